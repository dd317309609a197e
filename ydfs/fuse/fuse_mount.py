# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
FUSE implementation for ydfs.

This module mounts a Yandex Disk (or one of its directories) as a local
filesystem. Every FUSE operation is served by a ``DiskFS``: reads go through
``DiskFile`` handles, writes are buffered per file and uploaded whole on
flush/release, and directory operations map onto mkdir/remove.

Usage:
    # Mount the whole disk
    python -m ydfs.fuse /mnt/yadisk

    # Mount only the Photos directory
    python -m ydfs.fuse /mnt/photos --root /Photos

    ls /mnt/yadisk
    cat /mnt/yadisk/notes.txt
"""

import argparse
import errno
import itertools
import os
import time
from threading import Lock
from typing import Dict, Optional

from fuse import FUSE, FuseOSError, Operations

from ..client.client import DiskClient, Session
from ..client.exceptions import DiskError, IsDirectoryError, NotDirectoryError, PathError
from ..fs.file import DiskFile
from ..fs.filesystem import DiskFS, new
from .buffer import WriteBuffer
from .mount_utils import get_mount_options, is_mounted, setup_signal_handlers, unmount
from .utils import errno_for, logger, time_function, trace_op

class DiskFuse(Operations):
    """
    FUSE operations backed by a DiskFS.

    Attributes:
        fs (DiskFS): Filesystem view being mounted
        write_buffer (WriteBuffer): Pending writes, keyed by path
        handles (dict): Open file handle number -> DiskFile
        handle_locks (dict): Open file handle number -> Lock serializing seek+read on it
    """

    def __init__(self, fs: DiskFS):
        self.fs = fs
        self.write_buffer = WriteBuffer()
        self.handles: Dict[int, DiskFile] = {}
        self.handle_locks: Dict[int, Lock] = {}
        self._fh_counter = itertools.count(1)
        self._lock = Lock()
        self.uid = os.getuid()
        self.gid = os.getgid()

    def _raise(self, op, path, e):
        code = errno_for(e)
        if code == errno.EIO:
            logger.error(f"{op} failed for {path}: {e}")
        else:
            logger.debug(f"{op} failed for {path}: {e}")
        raise FuseOSError(code) from e

    def _register(self, handle: DiskFile) -> int:
        with self._lock:
            fh = next(self._fh_counter)
            self.handles[fh] = handle
            self.handle_locks[fh] = Lock()
        return fh

    def getattr(self, path, fh=None):
        """
        Get file attributes.

        Files with pending writes report their buffered size.

        Raises:
            FuseOSError: ENOENT if the path does not exist
        """
        trace_op("getattr", path, fh=fh)
        try:
            attrs = self.fs.stat(path).to_stat(self.uid, self.gid)
        except DiskError as e:
            self._raise("getattr", path, e)
        if self.write_buffer.has_buffer(path):
            attrs['st_size'] = self.write_buffer.get_size(path)
        return attrs

    def readdir(self, path, fh):
        trace_op("readdir", path, fh=fh)
        start_time = time.time()
        try:
            entries = self.fs.read_dir(path)
        except DiskError as e:
            self._raise("readdir", path, e)
        time_function("readdir", start_time)
        return ['.', '..'] + [entry.name for entry in entries]

    def open(self, path, flags):
        """
        Open a file.

        Opening for writing seeds a write buffer with the current content,
        or with nothing when O_TRUNC is given.

        Returns:
            int: File handle
        """
        trace_op("open", path, flags=flags)
        try:
            handle = self.fs.open(path)
            if (flags & os.O_ACCMODE) != os.O_RDONLY and not self.write_buffer.has_buffer(path):
                if handle.is_dir:
                    raise PathError("open", path, IsDirectoryError())
                data = b"" if flags & os.O_TRUNC else handle.read()
                self.write_buffer.initialize_buffer(path, data)
                if flags & os.O_TRUNC:
                    self.write_buffer.truncate(path, 0)
        except DiskError as e:
            self._raise("open", path, e)
        return self._register(handle)

    def create(self, path, mode, fi=None):
        """
        Create an empty file and open it for writing.

        Returns:
            int: File handle
        """
        trace_op("create", path, mode=oct(mode))
        try:
            self.fs.write_file(path, b"")
            handle = self.fs.open(path)
        except DiskError as e:
            self._raise("create", path, e)
        self.write_buffer.remove(path)
        self.write_buffer.initialize_buffer(path)
        return self._register(handle)

    def read(self, path, size, offset, fh):
        trace_op("read", path, size=size, offset=offset, fh=fh)
        if self.write_buffer.has_buffer(path):
            return self.write_buffer.read(path, offset, size)

        with self._lock:
            handle = self.handles.get(fh)
            handle_lock = self.handle_locks.get(fh)
        try:
            if handle is None:
                handle, handle_lock = self.fs.open(path), Lock()
            # first seek downloads the body; only this handle waits for it
            with handle_lock:
                handle.seek(offset)
                return handle.read(size)
        except DiskError as e:
            self._raise("read", path, e)

    def write(self, path, data, offset, fh):
        trace_op("write", path, offset=offset, size=len(data))
        if not self.write_buffer.has_buffer(path):
            try:
                self.write_buffer.initialize_buffer(path, self.fs.read_file(path))
            except DiskError as e:
                self._raise("write", path, e)
        return self.write_buffer.write(path, data, offset)

    def truncate(self, path, length, fh=None):
        trace_op("truncate", path, length=length, fh=fh)
        try:
            if not self.write_buffer.has_buffer(path):
                self.write_buffer.initialize_buffer(path, self.fs.read_file(path))
            self.write_buffer.truncate(path, length)
            if fh is None:
                # no open handle will flush this for us
                self._flush_buffer(path)
                self.write_buffer.remove(path)
        except DiskError as e:
            self._raise("truncate", path, e)
        return 0

    def _flush_buffer(self, path):
        """
        Upload the buffered body of path if it changed since the last flush.

        Raises:
            PathError: If the upload fails
        """
        if not self.write_buffer.is_dirty(path):
            return
        start_time = time.time()
        data = self.write_buffer.getvalue(path)
        self.fs.write_file(path, data)
        self.write_buffer.mark_clean(path)
        logger.info(f"Flushed {len(data)} bytes to {path}")
        time_function("_flush_buffer", start_time)

    def flush(self, path, fh):
        trace_op("flush", path, fh=fh)
        try:
            self._flush_buffer(path)
        except DiskError as e:
            self._raise("flush", path, e)
        return 0

    def fsync(self, path, datasync, fh):
        return self.flush(path, fh)

    def release(self, path, fh):
        """Upload pending writes and close the handle."""
        trace_op("release", path, fh=fh)
        with self._lock:
            handle = self.handles.pop(fh, None)
            self.handle_locks.pop(fh, None)
        if handle is not None:
            handle.close()
        try:
            self._flush_buffer(path)
        except DiskError as e:
            self._raise("release", path, e)
        finally:
            self.write_buffer.remove(path)
        return 0

    def flush_all(self):
        """Upload every pending buffer; errors are logged per path."""
        for path in list(self.write_buffer.buffers):
            try:
                self._flush_buffer(path)
            except DiskError as e:
                logger.error(f"Could not flush {path}: {e}")

    def mkdir(self, path, mode):
        trace_op("mkdir", path, mode=oct(mode))
        try:
            self.fs.mkdir(path)
        except DiskError as e:
            self._raise("mkdir", path, e)
        return 0

    def rmdir(self, path):
        trace_op("rmdir", path)
        try:
            if not self.fs.stat(path).is_dir:
                raise PathError("rmdir", path, NotDirectoryError())
            self.fs.remove(path)
        except DiskError as e:
            self._raise("rmdir", path, e)
        return 0

    def unlink(self, path):
        trace_op("unlink", path)
        try:
            if self.fs.stat(path).is_dir:
                raise PathError("unlink", path, IsDirectoryError())
            self.fs.remove(path)
        except DiskError as e:
            self._raise("unlink", path, e)
        self.write_buffer.remove(path)
        return 0

    def chmod(self, path, mode):
        # the disk has no permission bits
        return 0

    def chown(self, path, uid, gid):
        return 0

    def statfs(self, path):
        """Filesystem statistics from the disk quota."""
        try:
            info = self.fs.disk_info()
        except DiskError as e:
            self._raise("statfs", path, e)
        bsize = 4096
        free = max(info.total_space - info.used_space, 0) // bsize
        return {
            'f_bsize': bsize,
            'f_frsize': bsize,
            'f_blocks': info.total_space // bsize,
            'f_bfree': free,
            'f_bavail': free,
            'f_namemax': 255,
        }

    def destroy(self, path):
        self.flush_all()
        self.write_buffer.clear()
        self.fs.close()

def mount(mountpoint: str, root: Optional[str] = None, token: Optional[str] = None,
          profile: Optional[str] = None, foreground: bool = True, allow_other: bool = False):
    """
    Mount a disk at the specified mountpoint.

    Args:
        mountpoint (str): Local directory to mount on; created if missing
        root (str, optional): Disk directory to expose instead of the whole disk
        token (str, optional): OAuth token
        profile (str, optional): Credentials profile used when token is omitted
        foreground (bool, optional): Run in foreground. Defaults to True.
        allow_other (bool, optional): Allow other users to access the mount.
    """
    logger.info(f"Mounting disk{' directory ' + root if root else ''} at {mountpoint}")
    start_time = time.time()

    if os.path.exists(mountpoint) and not os.path.isdir(mountpoint):
        raise NotADirectoryError(f"{mountpoint} exists but is not a directory")
    os.makedirs(mountpoint, mode=0o755, exist_ok=True)

    client = DiskClient(Session(token=token, profile=profile))
    try:
        fs = new(client=client)
    except DiskError:
        client.close()
        raise
    if root:
        fs = fs.sub(root)

    operations = DiskFuse(fs)
    if is_mounted(mountpoint):
        logger.warning(f"{mountpoint} is already mounted, unmounting first")
        unmount(mountpoint)

    setup_signal_handlers(mountpoint, lambda mp: unmount(mp, operations))
    options = get_mount_options(foreground, allow_other)
    logger.info(f"Starting FUSE mount with options: {options}")
    try:
        FUSE(operations, mountpoint, nothreads=False, **options)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received, unmounting...")
        unmount(mountpoint, operations)
    finally:
        time_function("mount", start_time)

def main(argv=None):
    """
    CLI entry point for mounting a disk.

    Usage:
        python -m ydfs.fuse <mountpoint> [--root DIR] [--token TOKEN] [--profile NAME]

    Options:
        --allow-other: Allow other users to access the mount
            (requires user_allow_other in /etc/fuse.conf)
        --trace: Enable detailed tracing of file operations for debugging
    """
    parser = argparse.ArgumentParser(description='Mount a Yandex Disk as a local filesystem')
    parser.add_argument('mountpoint', help='The directory to mount the disk on')
    parser.add_argument('--root', default=None, help='Disk directory to mount instead of the whole disk')
    parser.add_argument('--token', default=None, help='OAuth token (defaults to YDFS_TOKEN or the credentials file)')
    parser.add_argument('--profile', default=None, help='Profile in ~/.ydfs/credentials.yaml')
    parser.add_argument('--allow-other', action='store_true',
                        help='Allow other users to access the mount (requires user_allow_other in /etc/fuse.conf)')
    parser.add_argument('--trace', action='store_true',
                        help='Enable detailed tracing of file operations for debugging')

    args = parser.parse_args(argv)

    if args.trace:
        os.environ['YDFS_TRACE_OPS'] = 'true'
        logger.info("Detailed operation tracing enabled")

    try:
        mount(args.mountpoint, root=args.root, token=args.token, profile=args.profile,
              allow_other=args.allow_other)
    except (DiskError, OSError) as e:
        logger.error(f"Mount failed: {e}")
        return 1
    return 0

if __name__ == '__main__':
    raise SystemExit(main())
