# DWSIM Agent Engine - Solver Module
"""Pre-calculation checks for flowsheet calculation."""

from .validation import (
    CalculationValidator,
    ValidatorConfig,
    ValidationResult,
    ValidationRule,
    VALID_THERMO_PACKAGES,
)

__all__ = [
    "CalculationValidator",
    "ValidatorConfig",
    "ValidationResult",
    "ValidationRule",
    "VALID_THERMO_PACKAGES",
]
