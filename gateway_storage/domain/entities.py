"""
Domain entities for gateway storage.

Value objects for identifiers, keys and coordinates plus the Gateway
record itself. These are framework-agnostic; the mapping to table rows
lives in the repository.
"""

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Type, TypeVar

T = TypeVar("T", bound="_FixedBytes")


class _FixedBytes:
    """Shared helpers for fixed-length byte values."""

    SIZE = 0

    def _check(self, value: bytes) -> bytes:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise TypeError(
                f"{type(self).__name__} expects bytes, got {type(value).__name__}"
            )
        value = bytes(value)
        if len(value) != self.SIZE:
            raise ValueError(
                f"{type(self).__name__} must be {self.SIZE} bytes, got {len(value)}"
            )
        return value

    @classmethod
    def from_hex(cls: Type[T], text: str) -> T:
        """Parse the hex text form produced by ``str()``."""
        try:
            raw = bytes.fromhex(text)
        except ValueError as e:
            raise ValueError(f"Invalid {cls.__name__} hex string: {text!r}") from e
        return cls(raw)

    def __bytes__(self) -> bytes:
        return self.value

    def __str__(self) -> str:
        return self.value.hex()


@dataclass(frozen=True)
class EUI64(_FixedBytes):
    """64 bit extended unique identifier."""

    SIZE = 8
    value: bytes

    def __post_init__(self):
        object.__setattr__(self, "value", self._check(self.value))

    def __repr__(self) -> str:
        return f"EUI64('{self}')"


@dataclass(frozen=True)
class AES128Key(_FixedBytes):
    """128 bit AES key. Its repr never exposes the key material."""

    SIZE = 16
    value: bytes

    def __post_init__(self):
        object.__setattr__(self, "value", self._check(self.value))

    def __repr__(self) -> str:
        return "AES128Key(<redacted>)"


@dataclass(frozen=True)
class GPSPoint:
    """Latitude / longitude pair."""

    latitude: float = 0.0
    longitude: float = 0.0

    def __post_init__(self):
        for name in ("latitude", "longitude"):
            value = float(getattr(self, name))
            if not math.isfinite(value):
                raise ValueError(f"GPS {name} must be finite, got {value}")
            object.__setattr__(self, name, value)


@dataclass
class Gateway:
    """
    A gateway record.

    ``created_at`` and ``updated_at`` are assigned by the repository;
    everything else is supplied by the caller. Optional values use None
    for "absent", never a zero value.
    """

    gateway_id: EUI64
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    first_seen_at: Optional[datetime] = None
    last_seen_at: Optional[datetime] = None
    location: GPSPoint = field(default_factory=GPSPoint)
    altitude: float = 0.0
    profile_id: Optional[uuid.UUID] = None
    fine_timestamp_key: Optional[AES128Key] = None
    hardware_id: Optional[EUI64] = None

    def validate(self) -> None:
        """
        Validate the gateway data.

        No rules are enforced yet. Rules added here must raise
        ``ValidationError``.
        """
        return None
