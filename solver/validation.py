"""Pre-calculation validation for flowsheets.

Checks run in a fixed order and stop at the first violation:
THERMO_PACKAGE -> REFLUX_RATIO -> HEATER_CONSISTENCY

Only the first violated rule is reported; later rules are not evaluated.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.errors import ValidationFailedError
from core.model_store import (
    ObjectKind,
    SimulationModelStore,
    SimulationObject,
    format_number,
    is_number,
)

logger = logging.getLogger(__name__)

VALID_THERMO_PACKAGES: Tuple[str, ...] = ("Peng-Robinson", "NRTL", "UNIQUAC")

THERMO_PACKAGE_KEY = "Thermodynamic Package"
REFLUX_RATIO_KEY = "Reflux Ratio"


class ValidationRule(Enum):
    """Calculation preconditions, in evaluation order."""
    THERMO_PACKAGE = "thermo_package"
    REFLUX_RATIO = "reflux_ratio"
    HEATER_CONSISTENCY = "heater_consistency"


@dataclass
class ValidatorConfig:
    """Configuration for the calculation validator."""

    valid_thermo_packages: Tuple[str, ...] = VALID_THERMO_PACKAGES

    # Heaters whose Inlet/Outlet/Duty cannot be resolved are skipped
    # unless this is set
    strict_heater_references: bool = False


@dataclass
class ValidationResult:
    """Outcome of a validation run."""
    valid: bool
    rule: Optional[ValidationRule] = None
    message: str = ""
    checked: List[ValidationRule] = field(default_factory=list)
    skipped_heaters: List[str] = field(default_factory=list)


class CalculationValidator:
    """Multi-rule precondition checker for `calculate`."""

    def __init__(self, config: Optional[ValidatorConfig] = None):
        self.config = config or ValidatorConfig()
        self._rules: List[Tuple[ValidationRule, Callable[[SimulationModelStore, ValidationResult], Optional[str]]]] = [
            (ValidationRule.THERMO_PACKAGE, self._check_thermo_package),
            (ValidationRule.REFLUX_RATIO, self._check_reflux_ratio),
            (ValidationRule.HEATER_CONSISTENCY, self._check_heaters),
        ]

    def validate(self, store: SimulationModelStore) -> ValidationResult:
        """Run all rules in order, stopping at the first failure.

        Args:
            store: Flowsheet to validate

        Returns:
            ValidationResult with the first violated rule, if any
        """
        result = ValidationResult(valid=True)
        for rule, check in self._rules:
            result.checked.append(rule)
            message = check(store, result)
            if message is not None:
                result.valid = False
                result.rule = rule
                result.message = message
                logger.info("Calculation blocked by %s: %s", rule.value, message)
                return result
        return result

    def check(self, store: SimulationModelStore) -> None:
        """Validate and raise on the first violation.

        Raises:
            ValidationFailedError: If any rule fails
        """
        result = self.validate(store)
        if not result.valid:
            raise ValidationFailedError(result.message)

    def _check_thermo_package(self, store: SimulationModelStore, result: ValidationResult) -> Optional[str]:
        settings = store.first_of_kind(ObjectKind.FLOWSHEET_SETTINGS)
        current = settings.value_of(THERMO_PACKAGE_KEY) if settings else None

        if not current or str(current) not in self.config.valid_thermo_packages:
            shown = current if current else "None"
            return (
                f"Calculation failed. Invalid or missing thermodynamic package. "
                f"Current: '{shown}'. Please set a valid package (e.g., Peng-Robinson, NRTL)."
            )
        return None

    def _check_reflux_ratio(self, store: SimulationModelStore, result: ValidationResult) -> Optional[str]:
        for column in store.by_kind(ObjectKind.DISTILLATION_COLUMN):
            reflux = column.value_of(REFLUX_RATIO_KEY)
            if is_number(reflux) and reflux <= 0:
                return f"Calculation failed. Reflux ratio for '{column.name}' must be positive."
        return None

    def _check_heaters(self, store: SimulationModelStore, result: ValidationResult) -> Optional[str]:
        for heater in store.by_kind(ObjectKind.HEATER):
            temps = self._resolve_heater(store, heater)
            if temps is None:
                result.skipped_heaters.append(heater.name)
                logger.warning(
                    "Skipping heater '%s': inlet/outlet streams or duty could not be resolved",
                    heater.name,
                )
                if self.config.strict_heater_references:
                    return (
                        f"Calculation failed. Heater '{heater.name}' references streams "
                        f"that cannot be resolved."
                    )
                continue

            inlet_t, outlet_t, duty = temps
            if outlet_t <= inlet_t and duty > 0:
                return (
                    f"Calculation failed. Unachievable condition in heater '{heater.name}'. "
                    f"Outlet temperature ({format_number(outlet_t)} C) cannot be less than or equal to "
                    f"inlet temperature ({format_number(inlet_t)} C) with a positive duty "
                    f"({format_number(duty)} kW)."
                )
            if outlet_t > inlet_t and duty < 0:
                return (
                    f"Calculation failed. Unachievable condition in cooler '{heater.name}'. "
                    f"Outlet temperature ({format_number(outlet_t)} C) cannot be greater than "
                    f"inlet temperature ({format_number(inlet_t)} C) with a negative duty "
                    f"({format_number(duty)} kW)."
                )
        return None

    @staticmethod
    def _resolve_heater(
        store: SimulationModelStore,
        heater: SimulationObject,
    ) -> Optional[Tuple[float, float, float]]:
        """Resolve (inlet T, outlet T, duty) or None if anything is missing."""
        inlet_name = heater.value_of("Inlet")
        outlet_name = heater.value_of("Outlet")
        duty = heater.value_of("Duty")
        if not isinstance(inlet_name, str) or not isinstance(outlet_name, str) or not is_number(duty):
            return None

        inlet = store.find(inlet_name, ObjectKind.STREAM)
        outlet = store.find(outlet_name, ObjectKind.STREAM)
        if inlet is None or outlet is None:
            return None

        inlet_t = inlet.value_of("Temperature")
        outlet_t = outlet.value_of("Temperature")
        if not is_number(inlet_t) or not is_number(outlet_t):
            return None
        return inlet_t, outlet_t, duty
