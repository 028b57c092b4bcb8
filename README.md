# tinykern

Pieces of a small teaching kernel, modelled in plain Python. There is no
hardware and no emulator: the disk is a byte image in memory and the serial
line is a buffer you feed.

## What is inside

- `tinykern.fmt`: `sprintf` and `cprintf`, the kernel's printf dialect
  (`%d %i %u %o %x %X %c %s %p %a`, with flags, width and precision).
  Integers are treated as 32-bit words.
- `tinykern.numconv`: `strtol`, `strtoul`, `atoi`, `itoa`, `utoa`, and `Rand`,
  a seeded pseudo-random generator returning values in `[0, RAND_MAX]`.
- `tinykern.cstring`: byte-string helpers with C semantics (`memccpy`,
  `memmem`, `strcmp`, `strncmp`, `strspn`, `strcspn`, `strpbrk`, `strnstr`)
  and `Tokenizer` for strtok-style splitting. Positions are byte offsets and
  a failed search returns `None`.
- `tinykern.disk`: `BlockDevice`, 512-byte sectors grouped into 4 KiB blocks
  behind a 16-line direct-mapped, write-through block cache.
- `tinykern.fs`: `FileSystem`, an inode file system with a super block, a
  block bitmap, twelve direct blocks plus one indirect block per inode, and
  directories holding `.` and `..`. Errors are raised as `FsError`.
- `tinykern.serial`: `SerialConsole`, a line-buffered console that echoes
  input and handles backspace.
- `tinykern.dev`: `NullDevice` and `DeviceTable`, which by default holds
  `/dev/serial` (a `SerialConsole`) and `/dev/null`, and can create their
  device nodes in a file system.

## Installing

```
pip install .
```

With the test requirements:

```
pip install .[test]
pytest
```

## A short tour

Formatting:

```python
from tinykern.fmt import sprintf

sprintf("%5d|%-4s|%#x", 42, "ab", 255)   # '   42|ab  |0xff'
```

Number conversion:

```python
from tinykern.numconv import strtol, itoa

strtol("  -0x1f", 0)   # (-31, 7): value and index of the first unconsumed character
itoa(-12, 10)          # '-12'
```

Strings:

```python
from tinykern.cstring import strcspn, Tokenizer

strcspn("hello world", " ")    # 5
tok = Tokenizer("a,,b c")
tok.next(","), tok.next(", ")  # ('a', 'b')
```

The serial console only hands out completed lines:

```python
from tinykern.serial import SerialConsole

echoed = []
console = SerialConsole(echoed.append)
console.feed(b"hix\x7f\r")
console.read(10)     # b'hi\n'
```

A file system on a disk image:

```python
from tinykern.disk import BlockDevice
from tinykern.fs import FileSystem, FileType
from tinykern.dev import DeviceTable

device = BlockDevice(image)      # image: a formatted disk image (bytes or bytearray)
fs = FileSystem(device)
DeviceTable().install(fs)        # creates /dev, /dev/serial and /dev/null

notes = fs.iopen("/notes.txt", FileType.FILE)
fs.iwrite(notes, 0, b"hello")
fs.iread(notes, 0, 5)            # b'hello'
fs.iclose(notes)
fs.iremove("/notes.txt")
```

A `bytearray` image is changed in place, so the written disk can be saved
afterwards.

## What it does not do

- It has no tool to format a disk image. `FileSystem` expects an image that
  already holds a super block at block 32, a block bitmap, inode blocks and a
  root directory.
- It has no open-file table, no processes, scheduler or semaphores, and no
  system-call layer: the file system is used through `FileSystem`'s inode
  methods directly, and devices through their own `read` and `write`.
- There is no command to run; it is a library only.