"""Wire value conversion shared by the models."""

import math
from typing import Any


def to_float(value: Any) -> float:
    """Convert a wire value (usually a decimal string) to float.

    Anything that does not parse becomes NaN and is passed through.
    """
    if isinstance(value, bool):
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan
