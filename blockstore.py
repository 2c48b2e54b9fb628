import logging
from typing import List, Optional, Tuple

from fs import CapacityError

logger = logging.getLogger(__name__)

FREE = None  # slot holds no file


class BlockStore:
    """Fixed-length array of block slots with a single append cursor.

    Each slot is either FREE or the id of the file owning it. Writes always
    append at the cursor; deleted files leave FREE holes below it until
    compact() squeezes them out.
    """

    def __init__(self, total_blocks: int):
        if total_blocks <= 0:
            raise ValueError(f"Invalid block count {total_blocks}")
        self.blocks: List[Optional[int]] = [FREE] * total_blocks
        self.cursor = 0

    def __len__(self) -> int:
        return len(self.blocks)

    def snapshot(self) -> Tuple[Optional[int], ...]:
        return tuple(self.blocks)

    # Queries

    def is_full(self) -> bool:
        """True if no slot is free. Moves the cursor to the end when full."""
        if FREE in self.blocks:
            return False
        self.cursor = len(self.blocks)
        return True

    def is_empty(self) -> bool:
        """True if no slot is occupied. Rewinds the cursor when empty."""
        if any(slot is not FREE for slot in self.blocks):
            return False
        self.cursor = 0
        return True

    def count_free(self) -> int:
        """Free slots device-wide, contiguous or not"""
        if self.is_full():
            return 0
        return self.blocks.count(FREE)

    def occupied_count(self) -> int:
        return len(self.blocks) - self.blocks.count(FREE)

    def first_block(self, file_id: int) -> Optional[int]:
        try:
            return self.blocks.index(file_id)
        except ValueError:
            return None

    def blocks_of(self, file_id: int) -> List[int]:
        return [i for i, slot in enumerate(self.blocks) if slot == file_id]

    def address_of(self, file_id: int, block_bytes: int) -> int:
        """Byte offset of the first block of file_id, 0 if it owns none"""
        index = self.first_block(file_id)
        if index is None:
            return 0
        return index * block_bytes

    # Mutations

    def _append(self, file_id: int, required_blocks: int) -> int:
        start = self.cursor
        self.blocks[start : start + required_blocks] = [file_id] * required_blocks
        self.cursor = start + required_blocks
        return start

    def allocate(self, file_id: int, required_blocks: int) -> int:
        """Reserve required_blocks contiguous slots at the cursor.

        When the tail is too short but enough slots are free overall, the
        store is compacted once and the tail checked a second and last time.
        Returns the first slot index.
        """
        if required_blocks <= 0:
            raise ValueError(f"Invalid block count {required_blocks}")

        if required_blocks <= len(self.blocks) - self.cursor:
            return self._append(file_id, required_blocks)

        free = self.count_free()
        if free < required_blocks:
            raise CapacityError(
                f"Not enough memory to write: {required_blocks} blocks required, {free} free"
            )

        logger.debug("Tail too short for %d blocks, compacting", required_blocks)
        self.compact()
        if required_blocks > len(self.blocks) - self.cursor:
            raise CapacityError(
                f"Not enough memory to write: {required_blocks} blocks required, "
                f"{len(self.blocks) - self.cursor} contiguous after compaction"
            )
        return self._append(file_id, required_blocks)

    def release(self, file_id: int) -> int:
        """Free every slot of file_id. The cursor does not move."""
        freed = 0
        for i, slot in enumerate(self.blocks):
            if slot == file_id:
                self.blocks[i] = FREE
                freed += 1
        if freed:
            logger.debug("Released %d blocks of file %d", freed, file_id)
        return freed

    def compact(self):
        """Move occupied slots to the front, keeping their order"""
        if self.is_full() or self.is_empty():
            return
        occupied = [slot for slot in self.blocks if slot is not FREE]
        self.blocks[:] = occupied + [FREE] * (len(self.blocks) - len(occupied))
        logger.debug("Compacted: cursor %d -> %d", self.cursor, len(occupied))
        self.cursor = len(occupied)
