import sys

from fs import Geometry, GeometryError
from logfs import LogFS, init_device
from units import BLOCK_UNITS, CAPACITY_UNITS, MAX_BLOCK_COUNT, Unit, convert, parse_quantity, to_bytes


def parse_capacity(text: str):
    """Parse diskCapacity arguments: <size><MB|GB|TB>"""
    try:
        capacity, unit = parse_quantity(text, CAPACITY_UNITS)
    except ValueError as e:
        raise GeometryError(f"Invalid syntax for diskCapacity: {e}. Cannot set diskCapacity") from e
    if capacity == 0:
        raise GeometryError("diskCapacity cannot be 0. Cannot set diskCapacity")
    try:
        to_bytes(capacity, unit)
    except OverflowError as e:
        raise GeometryError(f"diskCapacity too large: {e}") from e
    return capacity, unit


def parse_block_size(text: str):
    """Parse blockSize arguments: <size><KB|MB>"""
    try:
        block_size, unit = parse_quantity(text, BLOCK_UNITS)
    except ValueError as e:
        raise GeometryError(f"Invalid syntax for blockSize: {e}. Cannot set blockSize") from e
    if block_size == 0:
        raise GeometryError("blockSize cannot be 0. Cannot set blockSize")
    return block_size, unit


def make_geometry(capacity: int, capacity_unit: Unit, block_size: int, block_unit: Unit) -> Geometry:
    """Validate a capacity and block size pair"""
    capacity_in_block_unit = convert(capacity, capacity_unit, block_unit)
    if block_size > capacity_in_block_unit:
        raise GeometryError("Block size cannot be greater than disk capacity.")
    if capacity_in_block_unit % block_size != 0:
        raise GeometryError("Invalid block size. Block size should be able to divide disk into integral blocks.")
    geometry = Geometry(capacity, capacity_unit, block_size, block_unit)
    if geometry.block_count > MAX_BLOCK_COUNT:
        raise GeometryError(f"Too many blocks: {geometry.block_count}, at most {MAX_BLOCK_COUNT} are supported.")
    return geometry


def mkdev(capacity: str, block_size: str) -> LogFS:
    """Create a fresh device from "4MB", "1MB" style arguments"""
    geometry = make_geometry(*parse_capacity(capacity), *parse_block_size(block_size))
    return init_device(geometry)


def main():
    if len(sys.argv) != 3:
        print("Usage: main.py <capacity MB|GB|TB> <block size KB|MB>")
        return 2
    try:
        device = mkdev(sys.argv[1], sys.argv[2])
    except GeometryError as e:
        print(f"Critical error: {e}")
        return 1
    geometry = device.geometry
    print(f"Disk Size set to: {geometry.capacity}{geometry.capacity_unit.name}")
    print(f"Block Size set to: {geometry.block_size}{geometry.block_unit.name}")
    print(f"Number of Blocks: {geometry.block_count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
