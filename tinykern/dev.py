"""Character devices and the table that numbers them."""

from __future__ import annotations

import errno
from collections.abc import Iterable, Sequence
from typing import Protocol

from tinykern.fs import FileSystem, FileType
from tinykern.serial import SerialConsole

__all__ = ["NullDevice", "DeviceTable"]


class _Device(Protocol):
    def read(self, size: int) -> bytes: ...

    def write(self, data: bytes) -> int: ...


class NullDevice:
    """Swallows every write; cannot be read."""

    def read(self, size: int) -> bytes:
        """Refuse the read: the null device has nothing to give."""
        if size < 0:
            raise ValueError(f"read size must not be negative, got {size}")
        raise PermissionError(errno.EPERM, "the null device cannot be read")

    def write(self, data: bytes) -> int:
        return len(data)


class DeviceTable:
    """Devices by number; a device's number is its position in the table."""

    def __init__(self, devices: Iterable[tuple[str, _Device]] | None = None) -> None:
        if devices is None:
            devices = [("/dev/serial", SerialConsole()), ("/dev/null", NullDevice())]
        self._devices: Sequence[tuple[str, _Device]] = list(devices)

    def __len__(self) -> int:
        return len(self._devices)

    def get(self, dev_id: int | None) -> _Device | None:
        """Return device ``dev_id``, or None if there is no such device."""
        if dev_id is None or not 0 <= dev_id < len(self._devices):
            return None
        return self._devices[dev_id][1]

    def install(self, fs: FileSystem) -> None:
        """Create ``/dev`` and a device node for every device on ``fs``."""
        fs.iclose(fs.iopen("/dev", FileType.DIR))
        for dev_id, (name, _) in enumerate(self._devices):
            fs.iadddev(name, dev_id)