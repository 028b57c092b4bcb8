"""A small teaching kernel's library routines, inode file system, serial console and devices, simulated in memory."""

__version__ = "0.1.0"