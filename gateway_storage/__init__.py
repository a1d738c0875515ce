"""
Gateway storage - persistence for network gateway records.
"""

from .domain.entities import AES128Key, EUI64, Gateway, GPSPoint
from .domain.exceptions import (AlreadyExistsError, CountMismatchError,
                                DecodeError, GatewayStorageException,
                                NotFoundError, StorageError, ValidationError)
from .domain.gps import decode_gps_point, encode_gps_point
from .repositories import GatewayRepository

__all__ = [
    "AES128Key",
    "AlreadyExistsError",
    "CountMismatchError",
    "DecodeError",
    "EUI64",
    "GPSPoint",
    "Gateway",
    "GatewayRepository",
    "GatewayStorageException",
    "NotFoundError",
    "StorageError",
    "ValidationError",
    "decode_gps_point",
    "encode_gps_point",
]
