"""Ethanol-Water Separation and Esterification Flowsheet Template.

Provides the default mock flowsheet used by the agent tools:
- Feed pump and feed/bottoms heat integration (preheater)
- Feed heater
- Ethanol-water distillation column
- Distillate compressor
- Esterification CSTR
- Flowsheet settings (thermodynamic package)

The dataset is fixed; the template only exposes the knobs tests use to
derive alternate fixtures.
"""

from dataclasses import dataclass
from typing import List, Optional

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.model_store import ObjectKind, Property, SimulationModelStore, SimulationObject


@dataclass
class EthanolPlantConfig:
    """Configuration for the ethanol plant template."""

    # None until the agent picks one; calculate rejects it
    thermodynamic_package: Optional[str] = None

    # Column
    reflux_ratio: float = 1.5
    boilup_ratio: float = 2.0
    n_stages: int = 10
    feed_stage: int = 5

    # Feed heater
    feed_heater_duty_kw: float = 400
    heated_feed_temperature_c: float = 95


@dataclass
class EthanolPlantObjects:
    """Object names in the ethanol plant template."""
    raw_feed: str = "raw_feed"
    feed_pump: str = "feed_pump"
    pressurized_feed: str = "pressurized_feed"
    feed_preheater: str = "feed_preheater"
    preheated_feed: str = "preheated_feed"
    feed_heater: str = "feed_heater"
    heated_feed: str = "heated_feed"
    column: str = "distillation_column"
    distillate: str = "distillate"
    bottoms: str = "bottoms"
    cooled_bottoms: str = "cooled_bottoms"
    compressor: str = "distillate_compressor"
    compressed_distillate: str = "compressed_distillate"
    reactor: str = "cstr_reactor"
    reactor_product: str = "reactor_product"
    settings: str = "flowsheet_settings"


def _stream(name: str, temperature: float, pressure: float, flow: float, **fractions: float) -> SimulationObject:
    props = {
        "Temperature": Property(temperature, "C"),
        "Pressure": Property(pressure, "atm"),
        "Molar Flow": Property(flow, "kmol/h"),
    }
    for compound, fraction in fractions.items():
        props[compound.replace("_", " ")] = Property(fraction)
    return SimulationObject(name=name, kind=ObjectKind.STREAM, properties=props)


class EthanolPlantTemplate:
    """Template for the ethanol-water / esterification flowsheet."""

    def __init__(self, config: Optional[EthanolPlantConfig] = None):
        """Initialize ethanol plant template.

        Args:
            config: Configuration options
        """
        self.config = config or EthanolPlantConfig()
        self.objects = EthanolPlantObjects()

    def get_feed_section(self) -> List[SimulationObject]:
        """Feed pump, heat integration and feed heater."""
        n = self.objects
        return [
            _stream(n.raw_feed, 25, 1.2, 100, Ethanol=0.4, Water=0.6),
            SimulationObject(n.feed_pump, ObjectKind.PUMP, {
                "Inlet": Property(n.raw_feed),
                "Outlet": Property(n.pressurized_feed),
                "Outlet Pressure": Property(3, "atm"),
                "Efficiency": Property(0.8),
            }),
            # Slight temperature rise across the pump
            _stream(n.pressurized_feed, 26, 3, 100),
            SimulationObject(n.feed_preheater, ObjectKind.HEAT_EXCHANGER, {
                "Hot Side Inlet": Property(n.bottoms),
                "Hot Side Outlet": Property(n.cooled_bottoms),
                "Cold Side Inlet": Property(n.pressurized_feed),
                "Cold Side Outlet": Property(n.preheated_feed),
                "Duty": Property(800, "kW"),
                "Overall Heat Transfer Coefficient": Property(1500, "W/m^2.K"),
            }),
            _stream(n.preheated_feed, 70, 2.8, 100),
            SimulationObject(n.feed_heater, ObjectKind.HEATER, {
                "Inlet": Property(n.preheated_feed),
                "Outlet": Property(n.heated_feed),
                "Duty": Property(self.config.feed_heater_duty_kw, "kW"),
                "Outlet Temperature": Property(self.config.heated_feed_temperature_c, "C"),
            }),
            _stream(n.heated_feed, self.config.heated_feed_temperature_c, 2.6, 100),
        ]

    def get_separation_section(self) -> List[SimulationObject]:
        """Distillation column and its products."""
        n = self.objects
        return [
            SimulationObject(n.column, ObjectKind.DISTILLATION_COLUMN, {
                "Inlets": Property([n.heated_feed]),
                "Top Outlet": Property(n.distillate),
                "Bottom Outlet": Property(n.bottoms),
                "Number of Stages": Property(self.config.n_stages),
                "Feed Stage": Property(self.config.feed_stage),
                "Reflux Ratio": Property(self.config.reflux_ratio),
                "Boilup Ratio": Property(self.config.boilup_ratio),
            }),
            _stream(n.distillate, 78, 1, 38, Ethanol=0.95, Water=0.05),
            _stream(n.bottoms, 102, 1.1, 62, Ethanol=0.01, Water=0.99),
            # Bottoms after giving up heat in the preheater
            _stream(n.cooled_bottoms, 45, 1, 62),
        ]

    def get_reaction_section(self) -> List[SimulationObject]:
        """Distillate compression and esterification."""
        n = self.objects
        return [
            SimulationObject(n.compressor, ObjectKind.COMPRESSOR, {
                "Inlet": Property(n.distillate),
                "Outlet": Property(n.compressed_distillate),
                "Outlet Pressure": Property(5, "atm"),
                "Isentropic Efficiency": Property(0.75),
                "Power Consumed": Property(50, "kW"),
            }),
            _stream(n.compressed_distillate, 120, 5, 38),
            SimulationObject(n.reactor, ObjectKind.CSTR, {
                "Inlet": Property(n.compressed_distillate),
                "Outlet": Property(n.reactor_product),
                "Temperature": Property(80, "C"),
                "Reaction Set": Property("Esterification"),
                "Conversion": Property(0.85),
            }),
            _stream(n.reactor_product, 80, 4.8, 35, Ethyl_Acetate=0.82, Water=0.18),
        ]

    def get_settings(self) -> SimulationObject:
        """Flowsheet-wide settings."""
        return SimulationObject(self.objects.settings, ObjectKind.FLOWSHEET_SETTINGS, {
            "Thermodynamic Package": Property(self.config.thermodynamic_package),
        })

    def build_objects(self) -> List[SimulationObject]:
        """All objects in definition order."""
        return (
            self.get_feed_section()
            + self.get_separation_section()
            + self.get_reaction_section()
            + [self.get_settings()]
        )

    def build_store(self) -> SimulationModelStore:
        """Build the model store for this template."""
        return SimulationModelStore(self.build_objects())


def default_flowsheet() -> SimulationModelStore:
    """Model store for the default ethanol plant."""
    return EthanolPlantTemplate().build_store()
