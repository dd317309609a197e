# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Logging helpers for ydfs.

The library logs under the ``ydfs`` logger and leaves handler setup to the
application. ``YDFS_LOG_LEVEL`` sets the package level and ``YDFS_TRACE_OPS``
enables per-operation tracing.
"""

import logging
import time
import os

def tracing_enabled():
    return os.environ.get('YDFS_TRACE_OPS', '').lower() in ('true', '1', 'yes')

logger = logging.getLogger('ydfs')
logger.setLevel(os.environ.get('YDFS_LOG_LEVEL', 'WARNING').upper())

def time_function(func_name, start_time):
    """
    Helper function for timing operations.

    Args:
        func_name (str): Name of the function being timed
        start_time (float): Start time from time.time()

    Returns:
        float: Elapsed time in seconds
    """
    elapsed = time.time() - start_time
    logger.debug(f"{func_name} completed in {elapsed:.4f} seconds")
    return elapsed

def trace_op(operation, path, **details):
    """
    Trace a filesystem operation when YDFS_TRACE_OPS is set.

    Args:
        operation (str): The operation being performed
        path (str): The path being operated on
        **details: Additional details to log
    """
    if tracing_enabled():
        detail_str = ', '.join(f"{k}={v}" for k, v in details.items())
        logger.debug(f"TRACE: {operation} on {path} {detail_str}")
