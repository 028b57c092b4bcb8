import struct

import pytest

from tinykern.disk import BLK_SIZE, BlockDevice
from tinykern.fs import (
    DINODE_SIZE,
    DIRENT_SIZE,
    MAX_NAME,
    NDIRECT,
    SUPER_BLOCK,
    FileSystem,
    FileType,
    FsError,
    skip_element,
)

BLOCKS = 128
BITMAP = SUPER_BLOCK + 1
ISTART = SUPER_BLOCK + 2
INUM = 64
ROOT = 1
ROOT_DATA = 64


def _put(image, blk, off, data):
    start = blk * BLK_SIZE + off
    image[start : start + len(data)] = data


def _make_image():
    image = bytearray(BLOCKS * BLK_SIZE)
    _put(image, SUPER_BLOCK, 0, struct.pack("<4I", BITMAP, ISTART, INUM, ROOT))
    bitmap = bytearray(BLK_SIZE)
    bitmap[0:8] = b"\xff" * 8  # blocks 0..63
    bitmap[8] = 0x01  # root directory data
    bitmap[BLOCKS // 8 :] = b"\xff" * (BLK_SIZE - BLOCKS // 8)  # past the image
    _put(image, BITMAP, 0, bitmap)
    root = struct.pack(f"<3I{NDIRECT + 1}I", FileType.DIR, 0, 2 * DIRENT_SIZE, ROOT_DATA, *[0] * NDIRECT)
    _put(image, ISTART, ROOT * DINODE_SIZE, root)
    _put(image, ROOT_DATA, 0, struct.pack("<I28s", ROOT, b".") + struct.pack("<I28s", ROOT, b".."))
    return image


def _free_blocks(image):
    bitmap = image[BITMAP * BLK_SIZE : (BITMAP + 1) * BLK_SIZE]
    return sum(8 - bin(b).count("1") for b in bitmap)


@pytest.fixture
def image():
    return _make_image()


@pytest.fixture
def fs(image):
    return FileSystem(BlockDevice(image))


@pytest.mark.parametrize(
    "path, expected",
    [
        ("a/bb/c", ("a", "bb/c")),
        ("///a//bb", ("a", "bb")),
        ("a", ("a", "")),
        ("", None),
        ("////", None),
    ],
)
def test_skip_element(path, expected):
    assert skip_element(path) == expected


def test_skip_element_truncates_long_names():
    assert skip_element("/" + "x" * 40 + "/y") == ("x" * MAX_NAME, "y")


def test_open_root(fs):
    root = fs.iopen("/")
    assert root.no == ROOT
    assert root.type is FileType.DIR
    assert root.size == 2 * DIRENT_SIZE


def test_empty_path_is_an_error(fs):
    with pytest.raises(FsError):
        fs.iopen("")


def test_missing_file_is_an_error(fs):
    with pytest.raises(FsError):
        fs.iopen("/nothing")


def test_create_write_read(fs):
    inode = fs.iopen("/hello", FileType.FILE)
    assert inode.type is FileType.FILE
    assert fs.iwrite(inode, 0, b"hello world") == 11
    assert inode.size == 11
    assert fs.iread(inode, 0, 100) == b"hello world"
    assert fs.iread(inode, 6, 3) == b"wor"
    fs.iclose(inode)


def test_reopen_gives_same_inode(fs):
    first = fs.iopen("/f", FileType.FILE)
    second = fs.iopen("/f")
    assert second is first
    assert first.ref == 2


def test_contents_persist_on_disk(image, fs):
    inode = fs.iopen("/keep", FileType.FILE)
    fs.iwrite(inode, 0, b"persist")
    fs.iclose(inode)
    again = FileSystem(BlockDevice(image))
    reopened = again.iopen("/keep")
    assert again.iread(reopened, 0, 100) == b"persist"


def test_directory_has_dot_entries(fs):
    d = fs.iopen("/d", FileType.DIR)
    assert fs.iopen("/d/.") is d
    assert fs.iopen("/d/..").no == ROOT


def test_relative_path_uses_cwd(fs):
    d = fs.iopen("/dir", FileType.DIR)
    f = fs.iopen("inner", FileType.FILE, cwd=d)
    assert fs.iopen("/dir/inner") is f
    assert fs.iopen("../dir/inner", cwd=d) is f


def test_file_as_directory_component_fails(fs):
    fs.iopen("/plain", FileType.FILE)
    with pytest.raises(FsError):
        fs.iopen("/plain/x", FileType.FILE)


def test_write_past_end_is_an_error(fs):
    inode = fs.iopen("/f", FileType.FILE)
    fs.iwrite(inode, 0, b"abc")
    with pytest.raises(FsError):
        fs.iwrite(inode, 4, b"x")


def test_read_past_end_is_empty(fs):
    inode = fs.iopen("/f", FileType.FILE)
    fs.iwrite(inode, 0, b"abc")
    assert fs.iread(inode, 3, 10) == b""
    assert fs.iread(inode, 50, 10) == b""


def test_large_file_uses_indirect_block(fs):
    data = bytes(i % 251 for i in range(NDIRECT * BLK_SIZE + 300))
    inode = fs.iopen("/big", FileType.FILE)
    assert fs.iwrite(inode, 0, data) == len(data)
    assert inode.dinode.addrs[NDIRECT] != 0
    assert fs.iread(inode, 0, len(data)) == data


def test_trunc_returns_all_blocks(image, fs):
    before = _free_blocks(image)
    inode = fs.iopen("/big", FileType.FILE)
    free_after_create = _free_blocks(image)
    fs.iwrite(inode, 0, b"z" * (NDIRECT * BLK_SIZE + 10))
    assert _free_blocks(image) < free_after_create
    fs.itrunc(inode)
    assert inode.size == 0
    assert inode.dinode.addrs == [0] * (NDIRECT + 1)
    assert _free_blocks(image) == free_after_create
    assert free_after_create <= before


def test_remove_file(image, fs):
    free_before = _free_blocks(image)
    inode = fs.iopen("/gone", FileType.FILE)
    fs.iwrite(inode, 0, b"data" * 2000)
    fs.iclose(inode)
    fs.iremove("/gone")
    with pytest.raises(FsError):
        fs.iopen("/gone")
    assert _free_blocks(image) == free_before


def test_removed_file_readable_until_closed(image, fs):
    inode = fs.iopen("/held", FileType.FILE)
    fs.iwrite(inode, 0, b"still here")
    no = inode.no
    fs.iremove("/held")
    assert fs.iread(inode, 0, 100) == b"still here"
    fs.iclose(inode)
    fresh = FileSystem(BlockDevice(image))
    assert fresh._diread(no).type == FileType.NONE


def test_remove_missing_is_an_error(fs):
    with pytest.raises(FsError):
        fs.iremove("/missing")


def test_remove_dot_is_an_error(fs):
    fs.iopen("/d", FileType.DIR)
    with pytest.raises(FsError):
        fs.iremove("/d/.")
    with pytest.raises(FsError):
        fs.iremove("/d/..")


def test_remove_nonempty_directory_is_an_error(fs):
    fs.iopen("/d/child", FileType.FILE) if False else None
    d = fs.iopen("/d", FileType.DIR)
    fs.iopen("child", FileType.FILE, cwd=d)
    with pytest.raises(FsError):
        fs.iremove("/d")
    fs.iremove("/d/child")
    fs.iremove("/d")
    with pytest.raises(FsError):
        fs.iopen("/d")


def test_removed_entry_slot_is_reused(fs):
    root = fs.root()
    a = fs.iopen("/a", FileType.FILE)
    fs.iclose(a)
    size_with_a = root.size
    fs.iremove("/a")
    b = fs.iopen("/b", FileType.FILE)
    assert root.size == size_with_a
    assert fs.iopen("/b") is b


def test_add_device(fs):
    fs.iopen("/dev", FileType.DIR)
    fs.iadddev("/dev/null", 5)
    node = fs.iopen("/dev/null")
    assert node.type is FileType.DEV
    assert node.dev_id == 5


def test_plain_file_has_no_device_id(fs):
    assert fs.iopen("/f", FileType.FILE).dev_id is None


def test_dup_and_close_track_references(fs):
    inode = fs.iopen("/f", FileType.FILE)
    assert fs.idup(inode) is inode
    assert inode.ref == 2
    fs.iclose(inode)
    fs.iclose(inode)
    assert inode.ref == 0
    with pytest.raises(ValueError):
        fs.iclose(inode)