"""Width-annotated numeric field types for conversion targets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

FLOAT32_MAX = 3.4028234663852886e38


@dataclass(frozen=True, slots=True)
class IntWidth:
    """Bit width marker for integer fields (`Annotated[int, IntWidth(8)]`)."""

    bits: int = 64
    signed: bool = True

    @property
    def minimum(self) -> int:
        """Smallest value representable at this width."""
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def maximum(self) -> int:
        """Largest value representable at this width."""
        if self.signed:
            return (1 << (self.bits - 1)) - 1
        return (1 << self.bits) - 1

    def fits(self, value: int) -> bool:
        """Return True when value is within range."""
        return self.minimum <= value <= self.maximum


@dataclass(frozen=True, slots=True)
class FloatWidth:
    """Bit width marker for float fields (`Annotated[float, FloatWidth(32)]`)."""

    bits: int = 64

    def fits(self, value: float) -> bool:
        """Return True when a finite value does not overflow this width."""
        if self.bits >= 64:
            return True
        return abs(value) <= FLOAT32_MAX


DEFAULT_INT_WIDTH = IntWidth()
DEFAULT_FLOAT_WIDTH = FloatWidth()

Int8 = Annotated[int, IntWidth(8)]
Int16 = Annotated[int, IntWidth(16)]
Int32 = Annotated[int, IntWidth(32)]
Int64 = Annotated[int, IntWidth(64)]
UInt8 = Annotated[int, IntWidth(8, signed=False)]
UInt16 = Annotated[int, IntWidth(16, signed=False)]
UInt32 = Annotated[int, IntWidth(32, signed=False)]
UInt64 = Annotated[int, IntWidth(64, signed=False)]
Float32 = Annotated[float, FloatWidth(32)]
Float64 = Annotated[float, FloatWidth(64)]
