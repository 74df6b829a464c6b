"""
Schedule Expression Utility

Converts schedule expressions such as "30m", "1h" or "3600" into a number of
seconds between monitoring cycles.
"""

import re

_UNITS = {"s": 1, "m": 60, "h": 3600, "d": 86400}
_EXPRESSION = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([smhd]?)\s*$", re.IGNORECASE)


def parse_interval(expression):
    """
    Convert a schedule expression to seconds.

    Args:
        expression (str): "<number>[s|m|h|d]"; a bare number means seconds

    Returns:
        float: Interval in seconds

    Raises:
        ValueError: If the expression is malformed or not positive
    """
    match = _EXPRESSION.match(str(expression))
    if not match:
        raise ValueError(f"Invalid schedule expression '{expression}'. Expected e.g. '30m' or '1h'")

    amount = float(match.group(1))
    unit = (match.group(2) or "s").lower()
    seconds = amount * _UNITS[unit]

    if seconds <= 0:
        raise ValueError(f"Schedule interval must be positive, got '{expression}'")

    return seconds


def describe_interval(seconds):
    """Human readable interval for log messages (e.g. 3600 -> '1h')."""
    for unit in ("d", "h", "m"):
        size = _UNITS[unit]
        if seconds >= size and seconds % size == 0:
            return f"{int(seconds // size)}{unit}"
    return f"{seconds:g}s"
