# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Entry point for ``python -m ydfs.fuse``.

Usage:
    python -m ydfs.fuse <mountpoint> [--root DIR] [--token TOKEN]
"""
from .fuse_mount import main

raise SystemExit(main())
