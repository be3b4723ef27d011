"""Pre-built flowsheet templates used to seed the model store."""

from .ethanol_plant import EthanolPlantTemplate, EthanolPlantConfig, default_flowsheet

__all__ = [
    "EthanolPlantTemplate",
    "EthanolPlantConfig",
    "default_flowsheet",
]
