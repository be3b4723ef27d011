"""Tests for flowsheet templates."""

import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.model_store import ObjectKind, Property
from solver.validation import CalculationValidator, ValidationRule
from templates import EthanolPlantConfig, EthanolPlantTemplate, default_flowsheet


EXPECTED_NAMES = [
    "raw_feed",
    "feed_pump",
    "pressurized_feed",
    "feed_preheater",
    "preheated_feed",
    "feed_heater",
    "heated_feed",
    "distillation_column",
    "distillate",
    "bottoms",
    "cooled_bottoms",
    "distillate_compressor",
    "compressed_distillate",
    "cstr_reactor",
    "reactor_product",
    "flowsheet_settings",
]


class TestEthanolPlantTemplate:
    """Tests for the ethanol plant template."""

    @pytest.mark.unit
    def test_default_config(self):
        config = EthanolPlantConfig()
        assert config.thermodynamic_package is None
        assert config.reflux_ratio == 1.5
        assert config.boilup_ratio == 2.0

    @pytest.mark.unit
    def test_object_order(self):
        store = default_flowsheet()
        assert store.names() == EXPECTED_NAMES

    @pytest.mark.unit
    def test_object_kinds(self):
        store = default_flowsheet()
        assert store.get("feed_preheater").kind == ObjectKind.HEAT_EXCHANGER
        assert store.get("distillate_compressor").kind == ObjectKind.COMPRESSOR
        assert store.get("cstr_reactor").kind == ObjectKind.CSTR
        assert len(store.by_kind(ObjectKind.STREAM)) == 9

    @pytest.mark.unit
    def test_seed_values(self):
        store = default_flowsheet()
        raw_feed = store.get("raw_feed")
        assert raw_feed.get_property("Molar Flow") == Property(100, "kmol/h")
        assert raw_feed.value_of("Ethanol") == 0.4
        assert store.get("distillation_column").value_of("Inlets") == ["heated_feed"]
        assert store.get("feed_heater").get_property("Duty") == Property(400, "kW")

    @pytest.mark.unit
    def test_compound_names_use_spaces(self):
        product = default_flowsheet().get("reactor_product")
        assert product.value_of("Ethyl Acetate") == 0.82

    @pytest.mark.unit
    def test_sections_cover_all_objects(self):
        template = EthanolPlantTemplate()
        count = (
            len(template.get_feed_section())
            + len(template.get_separation_section())
            + len(template.get_reaction_section())
            + 1
        )
        assert count == len(EXPECTED_NAMES)


class TestEthanolPlantVariants:
    """Configured variants and how the validator sees them."""

    @pytest.mark.unit
    def test_default_is_blocked_on_thermo_package(self):
        result = CalculationValidator().validate(default_flowsheet())
        assert result.rule == ValidationRule.THERMO_PACKAGE

    @pytest.mark.unit
    def test_with_package_passes(self):
        store = EthanolPlantTemplate(EthanolPlantConfig(thermodynamic_package="NRTL")).build_store()
        assert CalculationValidator().validate(store).valid

    @pytest.mark.unit
    def test_zero_reflux_variant(self):
        config = EthanolPlantConfig(thermodynamic_package="NRTL", reflux_ratio=0)
        result = CalculationValidator().validate(EthanolPlantTemplate(config).build_store())
        assert result.rule == ValidationRule.REFLUX_RATIO

    @pytest.mark.unit
    def test_heater_outlet_below_inlet_variant(self):
        """preheated_feed is 70 C; a 60 C outlet with positive duty is infeasible."""
        config = EthanolPlantConfig(thermodynamic_package="NRTL", heated_feed_temperature_c=60)
        result = CalculationValidator().validate(EthanolPlantTemplate(config).build_store())
        assert result.rule == ValidationRule.HEATER_CONSISTENCY
        assert "heater 'feed_heater'" in result.message

    @pytest.mark.unit
    def test_negative_duty_variant(self):
        config = EthanolPlantConfig(thermodynamic_package="NRTL", feed_heater_duty_kw=-50)
        result = CalculationValidator().validate(EthanolPlantTemplate(config).build_store())
        assert "cooler 'feed_heater'" in result.message
