"""FUSE mount of a Yandex Disk. Importing this package requires libfuse."""

from .fuse_mount import DiskFuse, main, mount
