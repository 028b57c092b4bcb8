"""Sector-level access to a disk image with a small write-through block cache."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["SECTSIZE", "BLK_SIZE", "BCACHE_NUM", "BlockDevice"]

SECTSIZE = 512
BLK_SIZE = SECTSIZE * 8
BCACHE_NUM = 16

_SECTORS_PER_BLOCK = BLK_SIZE // SECTSIZE


@dataclass
class _CacheLine:
    no: int
    data: bytearray


class BlockDevice:
    """A disk made of 512-byte sectors, read and written in 4 KiB blocks.

    ``image`` is the disk's content.  A ``bytearray`` is used in place, so
    writes are visible to whoever holds it; any other bytes-like object is
    copied, and an ``int`` creates a zero-filled disk of that many bytes.
    Blocks pass through a direct-mapped cache of :data:`BCACHE_NUM` lines;
    writes go straight through to the image.
    """

    def __init__(self, image: bytearray | bytes | int) -> None:
        if isinstance(image, int):
            image = bytearray(image)
        elif not isinstance(image, bytearray):
            image = bytearray(image)
        if len(image) % SECTSIZE:
            raise ValueError(f"image size {len(image)} is not a multiple of {SECTSIZE}")
        self.image = image
        self._cache: list[_CacheLine | None] = [None] * BCACHE_NUM

    @property
    def sector_count(self) -> int:
        """Number of sectors on the disk."""
        return len(self.image) // SECTSIZE

    def _check_sector(self, sect: int) -> int:
        if not 0 <= sect < self.sector_count:
            raise IndexError(f"sector {sect} out of range")
        return sect * SECTSIZE

    def read_sector(self, sect: int) -> bytes:
        """Return the 512 bytes of sector ``sect``."""
        start = self._check_sector(sect)
        return bytes(self.image[start : start + SECTSIZE])

    def write_sector(self, sect: int, data: bytes) -> None:
        """Overwrite sector ``sect`` with exactly 512 bytes."""
        start = self._check_sector(sect)
        if len(data) != SECTSIZE:
            raise ValueError(f"a sector holds {SECTSIZE} bytes, got {len(data)}")
        self.image[start : start + SECTSIZE] = data

    def _load(self, no: int) -> _CacheLine:
        slot = no % BCACHE_NUM
        line = self._cache[slot]
        if line is None or line.no != no:
            first = no * _SECTORS_PER_BLOCK
            data = bytearray()
            for sect in range(first, first + _SECTORS_PER_BLOCK):
                data += self.read_sector(sect)
            line = _CacheLine(no, data)
            self._cache[slot] = line
        return line

    def _flush(self, line: _CacheLine) -> None:
        first = line.no * _SECTORS_PER_BLOCK
        for k in range(_SECTORS_PER_BLOCK):
            self.write_sector(first + k, bytes(line.data[k * SECTSIZE : (k + 1) * SECTSIZE]))

    @staticmethod
    def _check_range(off: int, size: int) -> None:
        if off < 0 or size < 0 or off + size > BLK_SIZE:
            raise ValueError(f"range [{off}, {off + size}) does not fit in a block")

    def bread(self, no: int, off: int, size: int) -> bytes:
        """Read ``size`` bytes at offset ``off`` of block ``no``."""
        self._check_range(off, size)
        line = self._load(no)
        return bytes(line.data[off : off + size])

    def bwrite(self, no: int, off: int, data: bytes) -> None:
        """Write ``data`` at offset ``off`` of block ``no`` and flush the block."""
        self._check_range(off, len(data))
        line = self._load(no)
        line.data[off : off + len(data)] = data
        self._flush(line)

    def bzero(self, no: int) -> None:
        """Fill block ``no`` with zeros."""
        line = self._load(no)
        line.data[:] = bytes(BLK_SIZE)
        self._flush(line)