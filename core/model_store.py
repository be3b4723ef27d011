"""Simulation Model Store.

In-memory, ordered set of named flowsheet objects (streams, unit operations,
settings) with typed property maps. The store is read by the command
interpreter directly and by the script sandbox through a mocked facade
seeded from `to_dict()`.

The store is never mutated after construction. `with_property` returns a
new store, which is how alternate fixtures are derived.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union


class ObjectKind(Enum):
    """Kinds of flowsheet objects."""
    STREAM = "Stream"
    HEATER = "Heater"
    PUMP = "Pump"
    HEAT_EXCHANGER = "HeatExchanger"
    COMPRESSOR = "Compressor"
    DISTILLATION_COLUMN = "DistillationColumn"
    CSTR = "CSTR"
    FLOWSHEET_SETTINGS = "FlowsheetSettings"


PropertyValue = Union[int, float, str, List[str], None]


def is_number(value: Any) -> bool:
    """True for int/float values (bool excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def format_number(value: Union[int, float]) -> str:
    """Format a number for display: 2.0 -> "2", 1.5 -> "1.5"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_value(value: PropertyValue) -> str:
    """Format a raw property value without its unit."""
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_value(v) for v in value) + "]"
    if is_number(value):
        return format_number(value)
    return str(value)


@dataclass(frozen=True)
class Property:
    """A property value with an optional unit."""
    value: PropertyValue = None
    unit: Optional[str] = None

    def format(self) -> str:
        """Render for display.

        None renders as N/A, lists as [a, b], and the unit is appended
        after the value when present.
        """
        if self.value is None:
            return "N/A"
        value = format_value(self.value)
        return f"{value} {self.unit}" if self.unit else value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        d: Dict[str, Any] = {"value": copy.deepcopy(self.value)}
        if self.unit is not None:
            d["unit"] = self.unit
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Property":
        """Create from dictionary."""
        value = data.get("value")
        if isinstance(value, list):
            value = [str(v) for v in value]
        return cls(value=value, unit=data.get("unit"))


@dataclass
class SimulationObject:
    """A named flowsheet object with an ordered property map."""
    name: str
    kind: ObjectKind
    properties: Dict[str, Property] = field(default_factory=dict)

    def get_property(self, key: str) -> Optional[Property]:
        """Get a property by its exact key."""
        return self.properties.get(key)

    def value_of(self, key: str) -> PropertyValue:
        """Get the raw value of a property, None if absent."""
        prop = self.properties.get(key)
        return prop.value if prop is not None else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "type": self.kind.value,
            "properties": {k: p.to_dict() for k, p in self.properties.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationObject":
        """Create from dictionary."""
        return cls(
            name=data["name"],
            kind=ObjectKind(data["type"]),
            properties={
                k: Property.from_dict(v)
                for k, v in data.get("properties", {}).items()
            },
        )


class SimulationModelStore:
    """Ordered, read-only collection of simulation objects."""

    def __init__(self, objects: Iterable[SimulationObject]):
        """Initialize the store.

        Args:
            objects: Objects in definition order

        Raises:
            ValueError: If two objects share a name
        """
        self._objects: Dict[str, SimulationObject] = {}
        for obj in objects:
            if obj.name in self._objects:
                raise ValueError(f"Duplicate object name '{obj.name}'")
            self._objects[obj.name] = copy.deepcopy(obj)

    def __iter__(self) -> Iterator[SimulationObject]:
        return iter(self._objects.values())

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, name: object) -> bool:
        return name in self._objects

    def names(self) -> List[str]:
        """Object names in definition order."""
        return list(self._objects.keys())

    def get(self, name: str) -> Optional[SimulationObject]:
        """Get an object by name."""
        return self._objects.get(name)

    def find(self, name: str, kind: ObjectKind) -> Optional[SimulationObject]:
        """Get an object by name only if it has the given kind."""
        obj = self._objects.get(name)
        if obj is None or obj.kind != kind:
            return None
        return obj

    def by_kind(self, kind: ObjectKind) -> List[SimulationObject]:
        """All objects of a kind, in definition order."""
        return [o for o in self._objects.values() if o.kind == kind]

    def first_of_kind(self, kind: ObjectKind) -> Optional[SimulationObject]:
        """First object of a kind, or None."""
        for obj in self._objects.values():
            if obj.kind == kind:
                return obj
        return None

    def with_property(
        self,
        name: str,
        key: str,
        value: PropertyValue,
        unit: Optional[str] = None,
    ) -> "SimulationModelStore":
        """Return a copy of the store with one property set.

        Args:
            name: Object to modify
            key: Property key (added if missing)
            value: New value
            unit: Unit; keeps the existing unit when omitted

        Returns:
            New SimulationModelStore

        Raises:
            KeyError: If the object does not exist
        """
        if name not in self._objects:
            raise KeyError(f"Object '{name}' not found")

        objects = [copy.deepcopy(o) for o in self._objects.values()]
        for obj in objects:
            if obj.name == name:
                existing = obj.properties.get(key)
                if unit is None and existing is not None:
                    unit = existing.unit
                obj.properties[key] = Property(value=value, unit=unit)
        return SimulationModelStore(objects)

    def to_dict(self) -> List[Dict[str, Any]]:
        """Serialize to a JSON-compatible list."""
        return [o.to_dict() for o in self._objects.values()]

    @classmethod
    def from_dict(cls, data: List[Dict[str, Any]]) -> "SimulationModelStore":
        """Create from the output of `to_dict()`."""
        return cls(SimulationObject.from_dict(d) for d in data)
