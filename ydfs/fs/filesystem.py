# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Filesystem view over a Yandex Disk.

This module maps filesystem calls (open, stat, read, list, write, mkdir,
remove) onto the single-node operations of a ``ResourceClient``. The
recursive operations, ``mkdir_all`` and ``remove_all``, drive several
remote calls each, strictly one after another.

Usage:
    import ydfs

    fs = ydfs.new()                  # token from YDFS_TOKEN or ~/.ydfs/credentials.yaml
    fs.mkdir_all("/backups/2024")
    fs.write_file("/backups/2024/notes.txt", b"hello")
    with fs.open("/backups/2024/notes.txt") as f:
        print(f.read())

    backups = fs.sub("/backups")     # view rooted at /backups
    print(backups.read_dir("/"))
"""

import time
from typing import List, Optional

from ..client.base import ResourceClient
from ..client.client import DiskClient, Session
from ..client.exceptions import (
    ConflictError, DirectoryNotEmptyError, DiskError, NotDirectoryError, PathError, is_not_found,
)
from ..client.types import DiskInfo, User
from ..utils import logger, time_function, trace_op
from .file import DiskFile
from .info import FileInfo
from .scope import ROOT, Scope, clean


class DiskFS:
    """
    Filesystem view of a disk, optionally rooted at a subdirectory.

    Paths given to a scoped view are relative to its base directory and
    cannot reach above it; paths it returns are trimmed the same way.
    Every error raised is a ``PathError`` naming the operation and the path
    as the caller gave it.

    Args:
        client (ResourceClient): Remote client used for every call
        scope (Scope, optional): Base directory; defaults to the unscoped root
    """

    def __init__(self, client: ResourceClient, scope: Optional[Scope] = None):
        self.client = client
        self.scope = scope or Scope()

    def __repr__(self):
        return f"<DiskFS base={self.scope.base_path!r} scoped={self.scope.is_scoped}>"

    def _stat_remote(self, remote_path: str, op: str, name: str) -> FileInfo:
        try:
            resource = self.client.fetch_metadata(remote_path)
        except DiskError as e:
            raise PathError(op, name, e) from e
        return FileInfo.from_resource(resource, self.scope)

    def open(self, name: str) -> DiskFile:
        """Open a file or directory. Nothing but metadata is fetched."""
        trace_op("open", name)
        remote_path = self.scope.resolve(name)
        info = self._stat_remote(remote_path, "open", name)
        return DiskFile(self.client, self.scope, remote_path, info)

    def create(self, name: str) -> DiskFile:
        """Create an empty file, truncating any existing one, and open it."""
        self.write_file(name, b"")
        return self.open(name)

    def stat(self, name: str) -> FileInfo:
        trace_op("stat", name)
        return self._stat_remote(self.scope.resolve(name), "stat", name)

    def sub(self, dir: str) -> "DiskFS":
        """Return a view rooted at directory dir."""
        remote_path = self.scope.resolve(dir)
        try:
            resource = self.client.fetch_metadata(remote_path)
        except DiskError as e:
            raise PathError("sub", dir, e) from e
        if not resource.is_dir:
            raise PathError("sub", dir, NotDirectoryError())
        logger.debug(f"sub: new view rooted at {resource.path}")
        return DiskFS(self.client, self.scope.descend(resource.path))

    def read_file(self, name: str) -> bytes:
        """Return the whole content of a file."""
        trace_op("read_file", name)
        try:
            return self.client.fetch_file_bytes(self.scope.resolve(name))
        except DiskError as e:
            raise PathError("read", name, e) from e

    def read_dir(self, name: str) -> List[FileInfo]:
        """List a directory, sorted by entry name."""
        trace_op("read_dir", name)
        try:
            resource = self.client.fetch_metadata(self.scope.resolve(name), include_children=True)
        except DiskError as e:
            raise PathError("open", name, e) from e
        if not resource.is_dir:
            raise PathError("readdirent", name, NotDirectoryError())
        entries = [FileInfo.from_resource(child, self.scope) for child in resource.children]
        return sorted(entries, key=lambda entry: entry.name)

    def write_file(self, name: str, data: bytes) -> None:
        """Create or overwrite a file with data."""
        trace_op("write_file", name, size=len(data))
        start_time = time.time()
        try:
            self.client.upload_file_bytes(self.scope.resolve(name), data, overwrite=True)
        except DiskError as e:
            raise PathError("write", name, e) from e
        time_function("write_file", start_time)

    def mkdir(self, name: str) -> None:
        """Create one directory; the parent must exist and name must not."""
        trace_op("mkdir", name)
        try:
            self.client.create_directory(self.scope.resolve(name))
        except DiskError as e:
            raise PathError("mkdir", name, e) from e

    def mkdir_all(self, path: str) -> None:
        """
        Create directory path together with any missing parents.

        Existing directories along the way are left alone. Walking stops at
        the first segment that exists as a file (``NotDirectoryError``) or
        fails otherwise; directories created before that point stay.

        Args:
            path (str): Directory to create

        Raises:
            PathError: Naming the segment where the walk stopped
        """
        trace_op("mkdir_all", path)
        start_time = time.time()
        if self.scope.is_scoped:
            base, relative = self.scope.base_path, clean(path)
        else:
            base, relative = ROOT, self.scope.resolve(path)

        prefix = base.rstrip(ROOT)
        for segment in (part for part in relative.split(ROOT) if part):
            prefix = f"{prefix}/{segment}"
            name = self.scope.unresolve(prefix)
            try:
                resource = self.client.fetch_metadata(prefix)
            except DiskError as e:
                if not is_not_found(e):
                    raise PathError("mkdir", name, e) from e
                logger.debug(f"mkdir_all: creating {prefix}")
                try:
                    self.client.create_directory(prefix)
                    continue
                except ConflictError as e:
                    # exists already: made concurrently or by a retried request
                    logger.debug(f"mkdir_all: {prefix} appeared while creating it")
                    try:
                        resource = self.client.fetch_metadata(prefix)
                    except DiskError:
                        raise PathError("mkdir", name, e) from e
                except DiskError as e:
                    raise PathError("mkdir", name, e) from e
            if not resource.is_dir:
                raise PathError("mkdir", name, NotDirectoryError())
        time_function("mkdir_all", start_time)

    def remove(self, name: str) -> None:
        """Remove a file or an empty directory."""
        trace_op("remove", name)
        remote_path = self.scope.resolve(name)
        try:
            resource = self.client.fetch_metadata(remote_path, include_children=True)
        except DiskError as e:
            raise PathError("remove", name, e) from e
        if resource.is_dir and resource.children:
            raise PathError("remove", name, DirectoryNotEmptyError())
        try:
            self.client.delete_node(remote_path, permanent=True)
        except DiskError as e:
            raise PathError("remove", name, e) from e

    def remove_all(self, path: str) -> None:
        """
        Remove path and everything below it.

        Children are removed depth-first, in listing order, before their
        parent. The first failure aborts the walk; whatever was removed
        before it stays removed. A path that does not exist is not an error.

        Args:
            path (str): File or directory to remove

        Raises:
            PathError: Naming the node where the walk stopped
        """
        trace_op("remove_all", path)
        start_time = time.time()

        # each frame: (absolute path, iterator over its not yet removed children)
        stack = []
        root = self._fetch_for_removal(self.scope.resolve(path), path)
        if root is None:
            return
        stack.append((root.path, iter(root.children)))

        while stack:
            node_path, children = stack[-1]
            child = next(children, None)
            if child is not None:
                resource = self._fetch_for_removal(child.path, self.scope.unresolve(child.path))
                if resource is not None:
                    stack.append((resource.path, iter(resource.children)))
                continue

            stack.pop()
            logger.debug(f"remove_all: deleting {node_path}")
            try:
                self.client.delete_node(node_path, permanent=True)
            except DiskError as e:
                name = path if not stack else self.scope.unresolve(node_path)
                raise PathError("remove", name, e) from e
        time_function("remove_all", start_time)

    def _fetch_for_removal(self, remote_path: str, name: str):
        try:
            return self.client.fetch_metadata(remote_path, include_children=True)
        except DiskError as e:
            if is_not_found(e):
                logger.debug(f"remove_all: {remote_path} already absent")
                return None
            raise PathError("remove", name, e) from e

    def disk_info(self) -> DiskInfo:
        try:
            return self.client.get_disk_info()
        except DiskError as e:
            raise PathError("diskinfo", ROOT, e) from e

    def user_info(self) -> User:
        return self.disk_info().user

    def close(self) -> None:
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def new(token: Optional[str] = None, session: Optional[Session] = None,
        client: Optional[ResourceClient] = None) -> DiskFS:
    """
    Connect to a disk and return an unscoped DiskFS.

    Disk metadata is fetched once so that an invalid token fails here rather
    than on the first filesystem call.

    Args:
        token (str, optional): OAuth token; resolved from the environment or
            credentials file when omitted
        session (Session, optional): Full connection settings
        client (ResourceClient, optional): Ready-made client, used as is;
            it is left open if the check fails

    Returns:
        DiskFS: View of the whole disk
    """
    owns_client = client is None
    if owns_client:
        client = DiskClient(session or Session(token=token))
    start_time = time.time()
    try:
        info = client.get_disk_info()
    except DiskError:
        if owns_client:
            client.close()
        raise
    logger.info(f"Connected to disk of {info.user.login or 'unknown user'}")
    time_function("new", start_time)
    return DiskFS(client)
