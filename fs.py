from enum import Enum

import attr

from units import Unit, convert, to_bytes

FIRST_FILE_ID = 3  # 0, 1, 2 are reserved for the system


class LogFSError(Exception):
    """Base class for device errors"""


class GeometryError(LogFSError, ValueError):
    """Unusable device geometry, fatal for the whole session"""


class CapacityError(LogFSError, OSError):
    """No contiguous room for a write, even after compaction"""


class FileTooLargeError(CapacityError):
    """Requested size exceeds the whole device"""


class ScriptSyntaxError(LogFSError, SyntaxError):
    """Malformed command script, fatal for the whole session"""


@attr.s(auto_attribs=True, frozen=True)
class Geometry:
    capacity: int
    capacity_unit: Unit
    block_size: int
    block_unit: Unit

    @property
    def capacity_bytes(self) -> int:
        return to_bytes(self.capacity, self.capacity_unit)

    @property
    def block_bytes(self) -> int:
        return to_bytes(self.block_size, self.block_unit)

    @property
    def block_count(self) -> int:
        return convert(self.capacity, self.capacity_unit, self.block_unit) // self.block_size


@attr.s(auto_attribs=True)
class FileRecord:
    """Metadata of a committed file. Blocks live in the block store."""
    file_id: int
    path: str
    block_count: int
    size: int  # in the block unit, whole number of blocks


class WriteStatus(Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@attr.s(auto_attribs=True, frozen=True)
class WriteResult:
    status: WriteStatus
    path: str
    file_id: int
    address: int = 0
    size: int = 0
    unit: Unit = Unit.B


@attr.s(auto_attribs=True, frozen=True)
class FileInfo:
    path: str
    file_id: int
    address: int
    size: int
    unit: Unit
