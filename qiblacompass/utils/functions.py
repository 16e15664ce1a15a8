"""Module for miscellaneous multi-use functions"""

__all__ = [
    'default_to_zulu', 'round_half_up', 'wrap_degrees'
]

from datetime import datetime, timezone
import math

from qiblacompass.utils.logging import warn_once


def default_to_zulu(dt: datetime) -> datetime:
    """Add Zulu/UTC as timezone, if timezone not present"""
    if not dt.tzinfo:
        warn_once(
            'Datetime does not contain timezone information; Zulu/UTC time assumed. '
            '(this warning will not repeat)'
        )
        return dt.replace(tzinfo=timezone.utc)

    return dt


def round_half_up(value: float, precision) -> float:
    """
    Rounds numbers to the nearest whole, where a value exactly between the two nearest
    wholes is rounded to the higher whole.

    Args:
        value:
            The float value to be rounded
        precision:
            The precision to round the float value to

    """
    mod = value + 10 ** -(precision + 12)

    return round(mod, precision)


def wrap_degrees(value: float) -> float:
    """
    Wraps an angle into [0, 360).

    Float modulo returns exactly 360.0 for tiny negative inputs, which is folded
    back onto 0.

    Args:
        value:
            An angle in degrees

    Returns:
        (float) the equivalent angle in [0, 360)
    """
    if not math.isfinite(value):
        raise ValueError(f'Cannot wrap non-finite angle {value}')

    wrapped = value % 360.0
    if wrapped >= 360.0:
        return 0.0

    return wrapped
