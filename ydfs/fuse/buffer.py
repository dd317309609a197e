# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Write buffers for the ydfs FUSE filesystem.

The disk only accepts whole-file uploads, so writes are collected per path
in a SpooledTemporaryFile and uploaded in one piece on flush or release.
"""

import os
import tempfile
from threading import RLock
from typing import Dict, Optional

from .utils import logger

# Spool to disk once a buffered file grows past this many bytes
DEFAULT_SPOOL_MAX_SIZE = 64 * 1024 * 1024  # 64MB

class WriteBuffer:
    """
    Per-path write buffers.

    Attributes:
        buffers (dict): Path -> SpooledTemporaryFile holding the full file body
        dirty (set): Paths written since their last flush
        lock (RLock): Guards both
    """

    def __init__(self, spool_max_size: int = DEFAULT_SPOOL_MAX_SIZE):
        self.buffers: Dict[str, tempfile.SpooledTemporaryFile] = {}
        self.dirty = set()
        self.lock = RLock()
        self.spool_max_size = spool_max_size

    def initialize_buffer(self, key: str, data: bytes = b"") -> None:
        """
        Start buffering a file, seeded with its current content.

        Args:
            key (str): Path of the file
            data (bytes, optional): Initial content. Defaults to empty.
        """
        with self.lock:
            if key in self.buffers:
                logger.warning(f"initialize_buffer called for existing key {key}. Ignoring.")
                return
            spooled_file = tempfile.SpooledTemporaryFile(max_size=self.spool_max_size, mode='w+b')
            if data:
                spooled_file.write(data)
                spooled_file.seek(0)
            self.buffers[key] = spooled_file
            logger.debug(f"Initialized buffer for {key} with {len(data)} bytes")

    def has_buffer(self, key: str) -> bool:
        with self.lock:
            return key in self.buffers

    def is_dirty(self, key: str) -> bool:
        with self.lock:
            return key in self.dirty

    def write(self, key: str, data: bytes, offset: int) -> int:
        """
        Write data at offset, zero-filling any gap past the current end.

        Returns:
            int: Number of bytes written
        """
        with self.lock:
            buffer = self.buffers[key]
            size = self.get_size(key)
            if offset > size:
                buffer.seek(size)
                buffer.write(b"\0" * (offset - size))
            buffer.seek(offset)
            written = buffer.write(data)
            self.dirty.add(key)
            return written

    def read(self, key: str, offset: int = 0, size: Optional[int] = None) -> bytes:
        """Read size bytes at offset, or everything from offset when size is None."""
        with self.lock:
            buffer = self.buffers[key]
            buffer.seek(offset)
            return buffer.read() if size is None else buffer.read(size)

    def truncate(self, key: str, length: int) -> None:
        with self.lock:
            buffer = self.buffers[key]
            size = self.get_size(key)
            if length > size:
                buffer.seek(size)
                buffer.write(b"\0" * (length - size))
            else:
                buffer.truncate(length)
            self.dirty.add(key)
            logger.debug(f"Truncated buffer {key} to {length} bytes")

    def get_size(self, key: str) -> int:
        with self.lock:
            buffer = self.buffers[key]
            buffer.seek(0, os.SEEK_END)
            return buffer.tell()

    def getvalue(self, key: str) -> bytes:
        """Full buffered body."""
        return self.read(key, 0, None)

    def mark_clean(self, key: str) -> None:
        with self.lock:
            self.dirty.discard(key)

    def remove(self, key: str) -> None:
        """Drop a buffer and release its temporary file."""
        with self.lock:
            buffer = self.buffers.pop(key, None)
            self.dirty.discard(key)
        if buffer is not None:
            buffer.close()
            logger.debug(f"Removed buffer for {key}")

    def clear(self) -> None:
        with self.lock:
            for key in list(self.buffers):
                self.remove(key)
