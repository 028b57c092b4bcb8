"""An inode file system with directories, stored on a :class:`BlockDevice`.

Disk layout: a super block at block :data:`SUPER_BLOCK` names the bitmap
block, the first inode block, the inode count and the root directory's
inode.  Each inode has 12 direct block addresses and one indirect block.
Directories are files holding 32-byte entries; inode number 0 marks a free
entry.
"""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field

from tinykern.disk import BLK_SIZE, BlockDevice

__all__ = [
    "SUPER_BLOCK",
    "NDIRECT",
    "NINDIRECT",
    "MAX_NAME",
    "DINODE_SIZE",
    "DIRENT_SIZE",
    "IPERBLK",
    "INODE_NUM",
    "FileType",
    "FsError",
    "SuperBlock",
    "DiskInode",
    "Inode",
    "FileSystem",
    "skip_element",
]

SUPER_BLOCK = 32
NDIRECT = 12
NINDIRECT = BLK_SIZE // 4
MAX_NAME = 31 - 4
INODE_NUM = 128
FIRST_DATA_BLOCK = 64

_SUPER = struct.Struct("<4I")
_DINODE = struct.Struct(f"<3I{NDIRECT + 1}I")
_DIRENT = struct.Struct(f"<I{MAX_NAME + 1}s")
_WORD = struct.Struct("<I")

DINODE_SIZE = _DINODE.size
DIRENT_SIZE = _DIRENT.size
IPERBLK = BLK_SIZE // DINODE_SIZE


class FileType(enum.IntEnum):
    NONE = 0
    FILE = 1
    DIR = 2
    DEV = 3


class FsError(Exception):
    """A file-system operation could not be carried out."""


@dataclass(frozen=True)
class SuperBlock:
    bitmap: int
    istart: int
    inum: int
    root: int

    @classmethod
    def unpack(cls, data: bytes) -> SuperBlock:
        return cls(*_SUPER.unpack(data))

    def pack(self) -> bytes:
        return _SUPER.pack(self.bitmap, self.istart, self.inum, self.root)


@dataclass
class DiskInode:
    type: int = FileType.NONE
    device: int = 0
    size: int = 0
    addrs: list[int] = field(default_factory=lambda: [0] * (NDIRECT + 1))

    @classmethod
    def unpack(cls, data: bytes) -> DiskInode:
        type_, device, size, *addrs = _DINODE.unpack(data)
        return cls(type_, device, size, list(addrs))

    def pack(self) -> bytes:
        return _DINODE.pack(self.type, self.device, self.size, *self.addrs)


@dataclass(eq=False)
class Inode:
    """An inode opened in memory; ``ref`` counts its holders."""

    no: int
    dinode: DiskInode
    ref: int = 1
    deleted: bool = False

    @property
    def type(self) -> FileType:
        return FileType(self.dinode.type)

    @property
    def size(self) -> int:
        return self.dinode.size

    @property
    def dev_id(self) -> int | None:
        """The device number of a device inode, otherwise None."""
        return self.dinode.device if self.type is FileType.DEV else None


def skip_element(path: str) -> tuple[str, str] | None:
    """Split off the first path element.

    Returns ``(name, rest)`` where ``rest`` has no leading slashes, or None
    when the path holds no element.  Names are cut to :data:`MAX_NAME`.
    """
    stripped = path.lstrip("/")
    if not stripped:
        return None
    name, _, rest = stripped.partition("/")
    return name[:MAX_NAME], rest.lstrip("/")


def _encode_name(name: str) -> bytes:
    return name.encode("utf-8")[:MAX_NAME]


def _decode_name(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def _pack_dirent(no: int, name: str) -> bytes:
    return _DIRENT.pack(no, _encode_name(name))


class FileSystem:
    """The file system found on ``device``."""

    def __init__(self, device: BlockDevice) -> None:
        self.device = device
        self.sb = SuperBlock.unpack(device.bread(SUPER_BLOCK, 0, _SUPER.size))
        self._live: dict[int, Inode] = {}

    # -- on-disk inodes -------------------------------------------------

    def _inode_location(self, no: int) -> tuple[int, int]:
        return self.sb.istart + no // IPERBLK, (no % IPERBLK) * DINODE_SIZE

    def _diread(self, no: int) -> DiskInode:
        blk, off = self._inode_location(no)
        return DiskInode.unpack(self.device.bread(blk, off, DINODE_SIZE))

    def _diwrite(self, dinode: DiskInode, no: int) -> None:
        blk, off = self._inode_location(no)
        self.device.bwrite(blk, off, dinode.pack())

    def _dialloc(self, type: FileType) -> int:
        # inode 0 is never used: a directory entry pointing at 0 is free
        for no in range(1, self.sb.inum):
            if self._diread(no).type == FileType.NONE:
                self._diwrite(DiskInode(type=type), no)
                return no
        raise FsError("no free inode")

    def _difree(self, no: int) -> None:
        self._diwrite(DiskInode(), no)

    # -- block bitmap ---------------------------------------------------

    def _balloc(self) -> int:
        bitmap = self.device.bread(self.sb.bitmap, 0, BLK_SIZE)
        for i, (word,) in enumerate(_WORD.iter_unpack(bitmap)):
            if word == 0xFFFFFFFF:
                continue
            bit = (~word & (word + 1)).bit_length() - 1
            blkno = 32 * i + bit
            self.device.bzero(blkno)
            self.device.bwrite(self.sb.bitmap, 4 * i, _WORD.pack(word | (1 << bit)))
            return blkno
        raise FsError("no free block")

    def _bfree(self, blkno: int) -> None:
        if blkno < FIRST_DATA_BLOCK:
            raise FsError(f"block {blkno} is reserved")
        (byte,) = self.device.bread(self.sb.bitmap, blkno // 8, 1)
        byte &= ~(1 << (blkno % 8)) & 0xFF
        self.device.bwrite(self.sb.bitmap, blkno // 8, bytes([byte]))

    # -- in-memory inodes -----------------------------------------------

    def _iget(self, no: int) -> Inode:
        inode = self._live.get(no)
        if inode is not None:
            inode.ref += 1
            return inode
        if len(self._live) >= INODE_NUM:
            raise FsError("too many open inodes")
        inode = Inode(no, self._diread(no))
        self._live[no] = inode
        return inode

    def _iupdate(self, inode: Inode) -> None:
        self._diwrite(inode.dinode, inode.no)

    def root(self) -> Inode:
        """Open the root directory."""
        return self._iget(self.sb.root)

    def idup(self, inode: Inode) -> Inode:
        """Take another reference to ``inode``."""
        inode.ref += 1
        return inode

    def iclose(self, inode: Inode) -> None:
        """Drop a reference; the last one releases a removed inode's storage."""
        if inode.ref <= 0:
            raise ValueError(f"inode {inode.no} is not open")
        if inode.ref == 1 and inode.deleted:
            self.itrunc(inode)
            self._difree(inode.no)
        inode.ref -= 1
        if inode.ref == 0 and self._live.get(inode.no) is inode:
            del self._live[inode.no]

    # -- data -----------------------------------------------------------

    def _walk(self, inode: Inode, index: int) -> int:
        """Return the block holding the file's ``index``-th block, allocating it."""
        addrs = inode.dinode.addrs
        if index < NDIRECT:
            if not addrs[index]:
                addrs[index] = self._balloc()
                self._iupdate(inode)
            return addrs[index]
        index -= NDIRECT
        if index >= NINDIRECT:
            raise FsError("file too big")
        if not addrs[NDIRECT]:
            addrs[NDIRECT] = self._balloc()
            self._iupdate(inode)
        table = addrs[NDIRECT]
        (blkno,) = _WORD.unpack(self.device.bread(table, 4 * index, 4))
        if not blkno:
            blkno = self._balloc()
            self.device.bwrite(table, 4 * index, _WORD.pack(blkno))
        return blkno

    def iread(self, inode: Inode, off: int, length: int) -> bytes:
        """Read up to ``length`` bytes from ``off``, stopping at the file's end."""
        end = min(off + length, inode.dinode.size)
        out = bytearray()
        while off < end:
            blkno = self._walk(inode, off // BLK_SIZE)
            start = off % BLK_SIZE
            chunk = min(BLK_SIZE - start, end - off)
            out += self.device.bread(blkno, start, chunk)
            off += chunk
        return bytes(out)

    def iwrite(self, inode: Inode, off: int, data: bytes) -> int:
        """Write ``data`` at ``off``, growing the file; ``off`` may not pass its end."""
        if off > inode.dinode.size:
            raise FsError(f"offset {off} is past the end of the file")
        if off + len(data) > inode.dinode.size:
            inode.dinode.size = off + len(data)
            self._iupdate(inode)
        view = memoryview(data)
        done = 0
        while done < len(data):
            blkno = self._walk(inode, off // BLK_SIZE)
            start = off % BLK_SIZE
            chunk = min(BLK_SIZE - start, len(data) - done)
            self.device.bwrite(blkno, start, bytes(view[done : done + chunk]))
            off += chunk
            done += chunk
        return done

    def itrunc(self, inode: Inode) -> None:
        """Release every data block of ``inode`` and set its size to 0."""
        addrs = inode.dinode.addrs
        for blkno in addrs[:NDIRECT]:
            if blkno:
                self._bfree(blkno)
        table = addrs[NDIRECT]
        if table:
            for (blkno,) in _WORD.iter_unpack(self.device.bread(table, 0, BLK_SIZE)):
                if blkno:
                    self._bfree(blkno)
            self._bfree(table)
        inode.dinode.addrs = [0] * (NDIRECT + 1)
        inode.dinode.size = 0
        self._iupdate(inode)

    # -- directories ----------------------------------------------------

    def _entries(self, directory: Inode):
        data = self.iread(directory, 0, directory.dinode.size)
        for off in range(0, len(data) - DIRENT_SIZE + 1, DIRENT_SIZE):
            no, raw = _DIRENT.unpack_from(data, off)
            yield off, no, _decode_name(raw)

    def _dirinit(self, inode: Inode, parent: Inode) -> None:
        self.iwrite(inode, 0, _pack_dirent(inode.no, "."))
        self.iwrite(inode, DIRENT_SIZE, _pack_dirent(parent.no, ".."))

    def _lookup(self, parent: Inode, name: str, type: FileType) -> tuple[Inode, int] | None:
        """Find ``name`` in ``parent``; create it as ``type`` unless that is NONE."""
        if parent.type is not FileType.DIR:
            raise FsError(f"inode {parent.no} is not a directory")
        empty = parent.dinode.size
        for off, no, entry_name in self._entries(parent):
            if no == 0:
                empty = min(empty, off)
            elif entry_name == name:
                return self._iget(no), off
        if type == FileType.NONE:
            return None
        inode = self._iget(self._dialloc(type))
        if type == FileType.DIR:
            self._dirinit(inode, parent)
        self.iwrite(parent, empty, _pack_dirent(inode.no, name))
        return inode, empty

    def _open_parent(self, path: str, cwd: Inode | None) -> tuple[Inode, str] | None:
        ip = self.root() if path.startswith("/") or cwd is None else self.idup(cwd)
        rest = path
        while (element := skip_element(rest)) is not None:
            name, rest = element
            if ip.type is not FileType.DIR:
                self.iclose(ip)
                return None
            if not rest:
                return ip, name
            found = self._lookup(ip, name, FileType.NONE)
            self.iclose(ip)
            if found is None:
                return None
            ip = found[0]
        self.iclose(ip)
        return None

    def iopen(self, path: str, type: FileType = FileType.NONE, cwd: Inode | None = None) -> Inode:
        """Open ``path``, creating it as ``type`` when missing unless ``type`` is NONE.

        Relative paths start at ``cwd`` (the root when it is None).
        """
        if skip_element(path) is None:
            if path.startswith("/"):
                return self.root()
            raise FsError("empty path")
        opened = self._open_parent(path, cwd)
        if opened is None:
            raise FsError(f"no parent directory for {path!r}")
        parent, name = opened
        try:
            found = self._lookup(parent, name, FileType(type))
        finally:
            self.iclose(parent)
        if found is None:
            raise FsError(f"{path!r} does not exist")
        return found[0]

    def iadddev(self, name: str, dev_id: int) -> None:
        """Create a device node ``name`` for device ``dev_id``."""
        inode = self.iopen(name, FileType.DEV)
        inode.dinode.device = dev_id
        self._iupdate(inode)
        self.iclose(inode)

    def _dir_empty(self, directory: Inode) -> bool:
        return all(no == 0 for off, no, _ in self._entries(directory) if off >= 2 * DIRENT_SIZE)

    def iremove(self, path: str, cwd: Inode | None = None) -> None:
        """Unlink ``path``; its storage goes once the last holder closes it."""
        opened = self._open_parent(path, cwd)
        if opened is None:
            raise FsError(f"no parent directory for {path!r}")
        parent, name = opened
        try:
            if name in (".", ".."):
                raise FsError(f"cannot remove {name!r}")
            found = self._lookup(parent, name, FileType.NONE)
            if found is None:
                raise FsError(f"{path!r} does not exist")
            inode, off = found
            try:
                if inode.type is FileType.DIR and not self._dir_empty(inode):
                    raise FsError(f"directory {path!r} is not empty")
                inode.deleted = True
                self.iwrite(parent, off, bytes(DIRENT_SIZE))
            finally:
                self.iclose(inode)
        finally:
            self.iclose(parent)