"""Flowsheet topology utilities.

Connections are not stored; they are derived from the property keys that
name neighbouring objects:
- Outlet-type keys give an edge from the object to the named stream
- Inlet-type keys give an edge from the named stream to the object

For each object (settings excluded), outlet keys are scanned before inlet
keys, each in the fixed order below. Edges are not de-duplicated.
"""

from dataclasses import dataclass
from typing import Dict, List

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.model_store import ObjectKind, SimulationModelStore

OUTLET_KEYS = ("Outlet", "Top Outlet", "Bottom Outlet", "Hot Side Outlet", "Cold Side Outlet")
INLET_KEYS = ("Inlet", "Inlets", "Hot Side Inlet", "Cold Side Inlet")


@dataclass(frozen=True)
class StreamConnection:
    """Directed edge between two flowsheet objects."""
    source: str
    target: str

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.source, "to": self.target}


def _as_names(value) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def extract_connections(store: SimulationModelStore) -> List[StreamConnection]:
    """Derive connections from topology property keys.

    Args:
        store: Flowsheet to scan

    Returns:
        Connections in discovery order
    """
    connections: List[StreamConnection] = []
    for obj in store:
        if obj.kind == ObjectKind.FLOWSHEET_SETTINGS:
            continue

        for key in OUTLET_KEYS:
            value = obj.value_of(key)
            if value:
                for target in _as_names(value):
                    connections.append(StreamConnection(obj.name, target))

        for key in INLET_KEYS:
            value = obj.value_of(key)
            if value:
                for source in _as_names(value):
                    connections.append(StreamConnection(source, obj.name))

    return connections


def render_flowsheet_diagram(store: SimulationModelStore) -> str:
    """Text diagram of the flowsheet connections."""
    lines = ["Flowsheet Diagram", "=" * 40]
    for conn in extract_connections(store):
        lines.append(f"  {conn.source} → {conn.target}")
    return "\n".join(lines)


def dangling_references(store: SimulationModelStore) -> List[StreamConnection]:
    """Connections whose source or target is not an object in the store."""
    return [
        c for c in extract_connections(store)
        if c.source not in store or c.target not in store
    ]
