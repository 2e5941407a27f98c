"""Decode ONIX extent values into display durations."""
import math
import re
from typing import Optional
import logging

logger = logging.getLogger(__name__)

# ONIX code list 24 (extent unit)
UNIT_HHHMMSS = "16"
UNIT_MINUTES = "05"

_LEADING_NUMBER = re.compile(r"\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+))")


def decode_runtime(extent_unit: Optional[str], raw_value: Optional[str]) -> Optional[str]:
    """
    Format an extent value as a duration.

    Unit "16" is a fixed-width HHHMMSS digit string and is sliced, never
    re-validated: "0012345" -> "001:23:45", and anything past the minutes
    stays in the seconds field ("0012345001" -> "001:23:45001"). Unit "05"
    is a (possibly fractional) number of minutes read from the leading
    number of the value: "125.5" and "125.5 min" -> "2:5".

    Args:
        extent_unit: ExtentUnit code
        raw_value: ExtentValue text

    Returns:
        Formatted duration, or None for missing input or other units
    """
    if not extent_unit or not raw_value:
        return None

    if extent_unit == UNIT_HHHMMSS:
        return f"{raw_value[0:3]}:{raw_value[3:5]}:{raw_value[5:]}"

    if extent_unit == UNIT_MINUTES:
        match = _LEADING_NUMBER.match(raw_value)
        if match is None:
            logger.debug(f"Unparseable minute runtime: {raw_value!r}")
            return None
        minutes_total = float(match.group(1))
        if math.isinf(minutes_total):
            return None
        hours = math.floor(minutes_total / 60)
        minutes = math.floor(minutes_total % 60)
        return f"{hours}:{minutes}"

    return None
