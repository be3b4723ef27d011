"""Tests for the simulation model store."""

import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.model_store import (
    ObjectKind,
    Property,
    SimulationModelStore,
    SimulationObject,
    format_number,
    format_value,
)


class TestPropertyFormatting:
    """Tests for property display formatting."""

    @pytest.mark.unit
    def test_value_with_unit(self):
        assert Property(100, "kmol/h").format() == "100 kmol/h"

    @pytest.mark.unit
    def test_value_without_unit(self):
        assert Property(0.4).format() == "0.4"

    @pytest.mark.unit
    def test_none_is_na(self):
        """None renders as N/A and drops the unit."""
        assert Property(None).format() == "N/A"
        assert Property(None, "C").format() == "N/A"

    @pytest.mark.unit
    def test_list_value(self):
        assert Property(["heated_feed"]).format() == "[heated_feed]"
        assert Property(["a", "b"]).format() == "[a, b]"
        assert Property(["a", "b"], "kmol/h").format() == "[a, b] kmol/h"

    @pytest.mark.unit
    def test_integral_float_drops_decimal(self):
        assert format_number(2.0) == "2"
        assert format_number(1.5) == "1.5"
        assert format_number(3) == "3"

    @pytest.mark.unit
    def test_string_value(self):
        assert format_value("Esterification") == "Esterification"

    @pytest.mark.unit
    def test_round_trip_keeps_unit(self):
        prop = Property.from_dict(Property(25, "C").to_dict())
        assert prop == Property(25, "C")


class TestSimulationModelStore:
    """Tests for SimulationModelStore."""

    @pytest.mark.unit
    def test_preserves_definition_order(self, default_store):
        names = default_store.names()
        assert names[0] == "raw_feed"
        assert names[-1] == "flowsheet_settings"
        assert len(default_store) == 16

    @pytest.mark.unit
    def test_duplicate_name_rejected(self):
        obj = SimulationObject("s1", ObjectKind.STREAM)
        with pytest.raises(ValueError, match="Duplicate object name 's1'"):
            SimulationModelStore([obj, obj])

    @pytest.mark.unit
    def test_get_and_contains(self, default_store):
        assert "raw_feed" in default_store
        assert "nonexistent" not in default_store
        assert default_store.get("nonexistent") is None
        assert default_store.get("feed_pump").kind == ObjectKind.PUMP

    @pytest.mark.unit
    def test_find_checks_kind(self, default_store):
        assert default_store.find("raw_feed", ObjectKind.STREAM) is not None
        assert default_store.find("feed_pump", ObjectKind.STREAM) is None

    @pytest.mark.unit
    def test_by_kind(self, default_store):
        heaters = default_store.by_kind(ObjectKind.HEATER)
        assert [h.name for h in heaters] == ["feed_heater"]
        assert default_store.first_of_kind(ObjectKind.FLOWSHEET_SETTINGS).name == "flowsheet_settings"

    @pytest.mark.unit
    def test_constructor_copies_objects(self):
        obj = SimulationObject("s1", ObjectKind.STREAM, {"Temperature": Property(25, "C")})
        store = SimulationModelStore([obj])
        obj.properties["Temperature"] = Property(99, "C")
        assert store.get("s1").value_of("Temperature") == 25


class TestWithProperty:
    """Tests for copy-on-write property updates."""

    @pytest.mark.unit
    def test_returns_new_store(self, default_store):
        updated = default_store.with_property("distillation_column", "Reflux Ratio", 3.0)
        assert updated.get("distillation_column").value_of("Reflux Ratio") == 3.0
        assert default_store.get("distillation_column").value_of("Reflux Ratio") == 1.5

    @pytest.mark.unit
    def test_keeps_existing_unit(self, default_store):
        updated = default_store.with_property("raw_feed", "Temperature", 30)
        assert updated.get("raw_feed").get_property("Temperature") == Property(30, "C")

    @pytest.mark.unit
    def test_adds_missing_key(self, default_store):
        updated = default_store.with_property("raw_feed", "Vapor Fraction", 0.0)
        assert updated.get("raw_feed").value_of("Vapor Fraction") == 0.0
        assert list(updated.get("raw_feed").properties)[-1] == "Vapor Fraction"

    @pytest.mark.unit
    def test_unknown_object(self, default_store):
        with pytest.raises(KeyError):
            default_store.with_property("nonexistent", "Temperature", 1)


class TestSerialization:
    """Tests for to_dict/from_dict."""

    @pytest.mark.unit
    def test_object_dict_shape(self, default_store):
        data = default_store.get("raw_feed").to_dict()
        assert data["name"] == "raw_feed"
        assert data["type"] == "Stream"
        assert data["properties"]["Temperature"] == {"value": 25, "unit": "C"}
        assert data["properties"]["Ethanol"] == {"value": 0.4}

    @pytest.mark.unit
    def test_round_trip(self, default_store):
        restored = SimulationModelStore.from_dict(default_store.to_dict())
        assert restored.names() == default_store.names()
        for original in default_store:
            copy = restored.get(original.name)
            assert copy.kind == original.kind
            assert copy.properties == original.properties
