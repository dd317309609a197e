# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Open handles on disk nodes.

A DiskFile wraps one opened file or directory. File bodies are downloaded
whole on the first read and served from memory afterwards; directory
listings are fetched on the first ``read_dir`` and walked with a cursor.
Neither is shared between handles, and a handle is not safe for concurrent
use.
"""

import io
import time
from typing import List, NamedTuple, Optional

from ..client.base import ResourceClient
from ..client.exceptions import (
    DiskError, FileClosedError, IsDirectoryError, NotDirectoryError, PathError,
)
from ..utils import logger, time_function, trace_op
from .info import FileInfo
from .scope import Scope


class DirBatch(NamedTuple):
    """One ``read_dir`` result: the entries and whether the listing is exhausted."""
    entries: List[FileInfo]
    eof: bool


class DiskFile:
    """
    Handle on an opened file or directory.

    Attributes:
        path (str): Path as seen by the view that opened the handle
        remote_path (str): Absolute path on the disk
    """

    def __init__(self, client: ResourceClient, scope: Scope, remote_path: str, info: FileInfo):
        self._client = client
        self._scope = scope
        self.remote_path = remote_path
        self.path = scope.unresolve(remote_path)
        self._info = info
        self._data: Optional[bytes] = None
        self._read_offset = 0
        self._listing: Optional[List[FileInfo]] = None
        self._dir_offset = 0
        self._closed = False

    def __repr__(self):
        kind = "dir" if self.is_dir else "file"
        return f"<DiskFile {kind} {self.path!r}{' closed' if self._closed else ''}>"

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def is_dir(self) -> bool:
        return self._info.is_dir

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def info(self) -> FileInfo:
        """Metadata captured when the handle was opened (or last ``stat``)."""
        return self._info

    @property
    def eof(self) -> bool:
        """True once every byte of the body has been returned."""
        if self._closed:
            return True
        return self._data is not None and self._read_offset >= len(self._data)

    def stat(self) -> FileInfo:
        """Refresh metadata from the disk."""
        self._ensure_open("stat")
        try:
            resource = self._client.fetch_metadata(self.remote_path)
        except DiskError as e:
            raise PathError("stat", self.path, e) from e
        self._info = FileInfo.from_resource(resource, self._scope)
        return self._info

    def _ensure_open(self, op: str) -> None:
        if self._closed:
            raise PathError(op, self.path, FileClosedError())

    def _load(self) -> bytes:
        self._ensure_open("read")
        if self.is_dir:
            raise PathError("read", self.path, IsDirectoryError())
        if self._data is None:
            logger.debug(f"Fetching body of {self.remote_path}")
            start_time = time.time()
            try:
                self._data = self._client.fetch_file_bytes(self.remote_path)
            except DiskError as e:
                raise PathError("read", self.path, e) from e
            self._read_offset = 0
            time_function("fetch body", start_time)
        return self._data

    def readinto(self, buffer) -> int:
        """
        Copy up to ``len(buffer)`` bytes into buffer and advance the offset.

        Returns:
            int: Number of bytes copied; 0 once the body is exhausted
        """
        data = self._load()
        view = memoryview(buffer).cast("B")
        count = min(len(view), len(data) - self._read_offset)
        view[:count] = data[self._read_offset:self._read_offset + count]
        self._read_offset += count
        trace_op("read", self.path, requested=len(view), returned=count, eof=self.eof)
        return count

    def read(self, size: int = -1) -> bytes:
        """Read up to size bytes, or the rest of the body when size < 0."""
        data = self._load()
        if size is None or size < 0:
            end = len(data)
        else:
            end = min(len(data), self._read_offset + size)
        chunk = data[self._read_offset:end]
        self._read_offset = end
        trace_op("read", self.path, requested=size, returned=len(chunk), eof=self.eof)
        return chunk

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """Move the read offset; the result is clamped to the body bounds."""
        data = self._load()
        if whence == io.SEEK_SET:
            target = offset
        elif whence == io.SEEK_CUR:
            target = self._read_offset + offset
        elif whence == io.SEEK_END:
            target = len(data) + offset
        else:
            raise ValueError(f"invalid whence ({whence})")
        self._read_offset = max(0, min(target, len(data)))
        return self._read_offset

    def tell(self) -> int:
        return self._read_offset

    def read_dir(self, n: int = 0) -> DirBatch:
        """
        Return the next entries of a directory.

        The listing is fetched once per handle. With n <= 0 every remaining
        entry is returned and the cursor rewinds to the start. With n > 0 at
        most n entries are returned; ``eof`` is set when fewer than n were
        left.

        Args:
            n (int): Maximum number of entries, or <= 0 for all remaining

        Returns:
            DirBatch: Entries and the end-of-listing flag
        """
        self._ensure_open("readdir")
        if not self.is_dir:
            raise PathError("readdir", self.path, NotDirectoryError())
        if self._listing is None:
            try:
                resource = self._client.fetch_metadata(self.remote_path, include_children=True)
            except DiskError as e:
                raise PathError("readdir", self.path, e) from e
            self._listing = [FileInfo.from_resource(child, self._scope) for child in resource.children]
            logger.debug(f"Listed {len(self._listing)} entries of {self.remote_path}")

        remaining = self._listing[self._dir_offset:]
        if n <= 0:
            self._dir_offset = 0
            return DirBatch(remaining, False)

        batch = remaining[:n]
        self._dir_offset += len(batch)
        return DirBatch(batch, len(batch) < n)

    def close(self) -> None:
        """Drop cached data; further reads fail."""
        self._closed = True
        self._data = None
        self._read_offset = 0
        self._listing = None
        self._dir_offset = 0
