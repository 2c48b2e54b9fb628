import logging
from typing import Dict, Optional

from blockstore import BlockStore
from fs import (
    FIRST_FILE_ID,
    CapacityError,
    FileInfo,
    FileRecord,
    FileTooLargeError,
    Geometry,
    WriteResult,
    WriteStatus,
)
from paths import DirectoryRegistry, resolve_path
from units import Unit, to_bytes

logger = logging.getLogger(__name__)


class FileDirectory:
    """File records keyed by id, searchable by path"""

    def __init__(self):
        self.files: Dict[int, FileRecord] = {}
        self.next_id = FIRST_FILE_ID

    def find(self, path: str) -> Optional[FileRecord]:
        for record in self.files.values():
            if record.path == path:
                return record
        return None

    def new_id(self) -> int:
        file_id = self.next_id
        self.next_id += 1
        return file_id

    def put(self, record: FileRecord):
        self.files[record.file_id] = record

    def remove(self, file_id: int):
        del self.files[file_id]

    def __len__(self) -> int:
        return len(self.files)


class LogFS:
    """Log-structured device: block store, file records and directories"""

    def __init__(self, geometry: Geometry):
        self.geometry = geometry
        self.store = BlockStore(geometry.block_count)
        self.files = FileDirectory()
        self.dirs = DirectoryRegistry()

    @property
    def cwd(self) -> str:
        return self.dirs.cwd

    def resolve(self, raw: str) -> str:
        return resolve_path(raw, self.dirs.cwd)

    def address_of(self, file_id: int) -> int:
        return self.store.address_of(file_id, self.geometry.block_bytes)

    def commit_write(self, path: str, size: int, unit: Unit = Unit.B) -> WriteResult:
        """Commit a write of size units to the absolute path.

        Size 0 deletes the file. Overwriting releases the old blocks before
        allocating the new ones, so a failed overwrite loses the old file.
        """
        if size < 0:
            raise ValueError(f"Invalid write size: {size}")

        record = self.files.find(path)

        if size == 0:
            if record is None:
                raise FileNotFoundError(f"No such file exists to write: {path}")
            self.store.release(record.file_id)
            self.files.remove(record.file_id)
            logger.debug("Deleted %s (file %d)", path, record.file_id)
            return WriteResult(WriteStatus.DELETED, path, record.file_id, unit=self.geometry.block_unit)

        try:
            size_bytes = to_bytes(size, unit)
        except OverflowError as e:
            raise FileTooLargeError("Cannot write files greater than disk capacity") from e
        if size_bytes > self.geometry.capacity_bytes:
            raise FileTooLargeError("Cannot write files greater than disk capacity")

        block_bytes = self.geometry.block_bytes
        required_blocks = -(-size_bytes // block_bytes)
        committed_size = required_blocks * self.geometry.block_size

        if record is not None:
            self.store.release(record.file_id)
            file_id = record.file_id
        else:
            file_id = self.files.next_id

        try:
            self.store.allocate(file_id, required_blocks)
        except CapacityError:
            if record is not None:
                # Old blocks are already gone
                self.files.remove(record.file_id)
                logger.debug("Overwrite of %s failed, file %d dropped", path, file_id)
            raise

        if record is None:
            file_id = self.files.new_id()
            status = WriteStatus.CREATED
        else:
            status = WriteStatus.UPDATED
        self.files.put(FileRecord(file_id, path, required_blocks, committed_size))

        address = self.address_of(file_id)
        logger.debug("Wrote %s (file %d): %d blocks at 0x%x", path, file_id, required_blocks, address)
        return WriteResult(status, path, file_id, address, committed_size, self.geometry.block_unit)

    def lookup_read(self, path: str) -> FileInfo:
        record = self.files.find(path)
        if record is None:
            raise FileNotFoundError(f"File not found: {path}")
        return FileInfo(
            record.path, record.file_id, self.address_of(record.file_id), record.size, self.geometry.block_unit
        )

    # Path-relative API

    def write(self, raw: str, size: int, unit: Unit = Unit.B) -> WriteResult:
        return self.commit_write(self.resolve(raw), size, unit)

    def read(self, raw: str) -> FileInfo:
        return self.lookup_read(self.resolve(raw))

    def mkdir(self, raw: str):
        return self.dirs.mkdir(raw)

    def chdir(self, raw: str) -> str:
        return self.dirs.chdir(raw)

    def stat(self) -> Dict[str, int]:
        """Device usage summary"""
        used = self.store.occupied_count()
        return {
            "total_blocks": len(self.store),
            "used_blocks": used,
            "free_blocks": len(self.store) - used,
            "cursor": self.store.cursor,
            "files": len(self.files),
            "directories": len(self.dirs),
            "block_bytes": self.geometry.block_bytes,
        }


# Global device instance
_device_instance = None


def init_device(geometry: Geometry) -> LogFS:
    """Initialize device"""
    global _device_instance
    _device_instance = LogFS(geometry)
    return _device_instance


def get_device() -> LogFS:
    """Get current device instance"""
    if _device_instance is None:
        raise RuntimeError("Device not initialized")
    return _device_instance


# Convenience functions that mirror the API
def write(path: str, size: int, unit: Unit = Unit.B) -> WriteResult:
    return get_device().write(path, size, unit)


def read(path: str) -> FileInfo:
    return get_device().read(path)


def mkdir(path: str):
    return get_device().mkdir(path)


def chdir(path: str) -> str:
    return get_device().chdir(path)


def stat() -> Dict[str, int]:
    return get_device().stat()
