from enum import IntEnum
from typing import Iterable, Tuple


class Unit(IntEnum):
    """Capacity units, each step is 1024 times the previous one"""

    B = 0
    KB = 1
    MB = 2
    GB = 3
    TB = 4


UNIT_STEP = 1024

# Sizes are tracked as unsigned 64-bit byte counts
MAX_DEVICE_BYTES = 2**64 - 1

# Every block is an in-memory slot, larger devices need bigger blocks
MAX_BLOCK_COUNT = 2**24

# Units accepted by each command
CAPACITY_UNITS = (Unit.MB, Unit.GB, Unit.TB)
BLOCK_UNITS = (Unit.KB, Unit.MB)
WRITE_UNITS = (Unit.B, Unit.KB, Unit.MB, Unit.GB)


def convert(quantity: int, from_unit: Unit, to_unit: Unit) -> int:
    """Express quantity of from_unit in to_unit.

    Only downscaling is supported (from_unit >= to_unit). Upscaling returns 0,
    callers must only convert towards smaller units.
    """
    if to_unit > from_unit:
        return 0
    return quantity * UNIT_STEP ** (from_unit - to_unit)


def to_bytes(quantity: int, unit: Unit) -> int:
    """Convert to bytes, refusing values that do not fit the 64-bit size width"""
    size = convert(quantity, unit, Unit.B)
    if size > MAX_DEVICE_BYTES:
        raise OverflowError(f"{quantity}{unit.name} does not fit in 64 bits of bytes")
    return size


def parse_quantity(text: str, allowed_units: Iterable[Unit]) -> Tuple[int, Unit]:
    """Split "<digits><unit>" into (size, unit)"""
    text = text.strip()
    allowed = tuple(allowed_units)
    # Two-letter suffixes first, "10KB" must not parse as "10K" bytes
    for unit in sorted(allowed, key=lambda u: len(u.name), reverse=True):
        if text.endswith(unit.name):
            digits = text[: -len(unit.name)]
            if not digits or digits.strip("0123456789"):
                raise ValueError(f"Size must be a whole number: {text!r}")
            return int(digits), unit
    names = "|".join(u.name for u in allowed)
    raise ValueError(f"Unit must be {names}: {text!r}")
