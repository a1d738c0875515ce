"""
Text codec for the store's point column.

Points are written as ``(<lat>,<lon>)`` with each float in its shortest
round-trippable positional form, so decoding recovers the exact value.
"""

import re
from decimal import Decimal
from typing import Union

from .entities import GPSPoint
from .exceptions import DecodeError

NUMBER = r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?"
POINT_PATTERN = re.compile(
    rf"^\(\s*({NUMBER})\s*,\s*({NUMBER})\s*\)$", re.ASCII
)


def _format_float(value: float) -> str:
    # repr() gives the shortest digits; Decimal drops the exponent form.
    return format(Decimal(repr(value)), "f")


def encode_gps_point(point: GPSPoint) -> str:
    """Render a point as ``(<lat>,<lon>)``."""
    return f"({_format_float(point.latitude)},{_format_float(point.longitude)})"


def decode_gps_point(raw: Union[bytes, bytearray, memoryview, str]) -> GPSPoint:
    """
    Parse the ``(<lat>,<lon>)`` form back into a point.

    Args:
        raw: Column value as returned by the driver

    Returns:
        Decoded point

    Raises:
        DecodeError: If the value is not text/bytes or is malformed
    """
    if isinstance(raw, (bytes, bytearray, memoryview)):
        try:
            text = bytes(raw).decode("ascii")
        except UnicodeDecodeError as e:
            raise DecodeError(raw, "not ASCII text") from e
    elif isinstance(raw, str):
        text = raw
    else:
        raise DecodeError(raw, f"expected bytes, got {type(raw).__name__}")

    match = POINT_PATTERN.match(text.strip())
    if match is None:
        raise DecodeError(raw, "expected (<lat>,<lon>)")

    try:
        return GPSPoint(latitude=float(match.group(1)), longitude=float(match.group(2)))
    except ValueError as e:
        raise DecodeError(raw, str(e)) from e
