# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Utility functions for the ydfs FUSE filesystem.

This module provides logging configuration for the mount process and the
mapping from ydfs errors to errno values.
"""

import errno
import logging
import os

from ..client.exceptions import (
    ConflictError, DirectoryNotEmptyError, FileClosedError, IsDirectoryError,
    NotDirectoryError, NotFoundError, PathError,
)
from ..utils import time_function, trace_op  # noqa: F401

logging.basicConfig(
    level=os.environ.get('YDFS_LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s] - %(message)s'
)
logger = logging.getLogger('ydfs.fuse')

ERRNO_MAP = (
    (NotFoundError, errno.ENOENT),
    (ConflictError, errno.EEXIST),
    (NotDirectoryError, errno.ENOTDIR),
    (IsDirectoryError, errno.EISDIR),
    (DirectoryNotEmptyError, errno.ENOTEMPTY),
    (FileClosedError, errno.EBADF),
)

def errno_for(exc):
    """
    Pick the errno describing a ydfs error.

    Args:
        exc (Exception): Error raised by a DiskFS call

    Returns:
        int: errno value, EIO when nothing more specific applies
    """
    cause = exc.err if isinstance(exc, PathError) else exc
    for error_type, code in ERRNO_MAP:
        if isinstance(cause, error_type):
            return code
    return errno.EIO
