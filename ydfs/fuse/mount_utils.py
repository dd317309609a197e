# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Mount utilities for the ydfs FUSE filesystem.

This module provides functions for unmounting, signal handling and mount
options used when exposing a disk as a local filesystem.
"""

import sys
import signal
import subprocess
import time
from .utils import logger, time_function

def is_mounted(mountpoint):
    """
    Check whether something is mounted at mountpoint.

    Args:
        mountpoint (str): Directory to check

    Returns:
        bool: True if mountpoint(1) reports a mount
    """
    cp = subprocess.run(["mountpoint", "-q", mountpoint.rstrip('/')], check=False)
    return cp.returncode == 0

def unmount(mountpoint, fuse_ops=None):
    """
    Unmount the filesystem using fusermount (Linux).

    Pending write buffers of fuse_ops are uploaded first.

    Args:
        mountpoint (str): Path where the filesystem is mounted
        fuse_ops (DiskFuse, optional): Mounted operations object whose buffers should be flushed
    """
    logger.info(f"Unmounting filesystem at {mountpoint}")
    start_time = time.time()

    mountpoint = mountpoint.rstrip('/')
    try:
        if not is_mounted(mountpoint):
            logger.warning(f"{mountpoint} is not mounted, nothing to unmount.")
            time_function("unmount", start_time)
            return

        if fuse_ops is not None:
            fuse_ops.flush_all()

        subprocess.run(["fusermount", "-u", mountpoint], check=True)
        logger.info(f"Unmounted {mountpoint} gracefully.")
    except (OSError, subprocess.CalledProcessError) as e:
        logger.error(f"Error during unmounting: {e}")
    finally:
        time_function("unmount", start_time)

def setup_signal_handlers(mountpoint, unmount_func):
    """
    Set up signal handlers for graceful unmounting.

    Args:
        mountpoint (str): Path where the filesystem is mounted
        unmount_func (callable): Function to call for unmounting

    Returns:
        callable: The signal handler function
    """
    def signal_handler(sig, frame):
        logger.info(f"Signal {sig} received, unmounting...")
        unmount_func(mountpoint)
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    return signal_handler

def get_mount_options(foreground=True, allow_other=False):
    """
    Get mount options for FUSE.

    Attribute caching is kept short because the disk can change behind the
    mount's back.

    Args:
        foreground (bool, optional): Run in foreground. Defaults to True.
        allow_other (bool, optional): Allow other users to access the mount.
            Requires 'user_allow_other' in /etc/fuse.conf. Defaults to False.

    Returns:
        dict: Dictionary of mount options
    """
    ATTR_TIMEOUT = 5  # seconds

    options = {
        'foreground': foreground,
        'default_permissions': True,
        'rw': True,
        'big_writes': True,
        'entry_timeout': ATTR_TIMEOUT,
        'negative_timeout': ATTR_TIMEOUT,
        'attr_timeout': ATTR_TIMEOUT,
    }

    if allow_other:
        options['allow_other'] = True

    return options
