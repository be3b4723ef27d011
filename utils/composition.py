"""Composition extraction from inspection output.

Pulls component mole fractions out of `get_all_properties` text so the UI
can chart them. A line such as "- Ethanol : 0.4" counts when its value lies
in [0, 1]; at least two components are needed to form a composition.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.errors import is_error_output

FRACTION_PATTERN = re.compile(r"-\s*([A-Za-z\s]+?)\s*:\s*(\d\.\d+)\s*$")


@dataclass(frozen=True)
class ComponentFraction:
    """One component of a stream composition."""
    name: str
    value: float

    def to_dict(self) -> Dict[str, float]:
        return {"name": self.name, "value": self.value}


def extract_composition(output: str) -> Optional[List[ComponentFraction]]:
    """Extract component fractions from inspection output.

    Args:
        output: Text returned by the command interpreter

    Returns:
        Fractions in output order, or None if fewer than two were found
        or the output is an error
    """
    if not output or is_error_output(output):
        return None

    fractions = []
    for line in output.split("\n"):
        match = FRACTION_PATTERN.search(line)
        if not match:
            continue
        value = float(match.group(2))
        if 0 <= value <= 1:
            fractions.append(ComponentFraction(match.group(1).strip(), value))

    return fractions if len(fractions) > 1 else None


def composition_percentages(fractions: List[ComponentFraction]) -> Dict[str, float]:
    """Normalize fractions to percentages of their total."""
    total = sum(f.value for f in fractions) or 1
    return {f.name: f.value / total * 100 for f in fractions}
