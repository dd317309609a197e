"""Yandex Disk exposed through a filesystem-style API."""

from .client import (
    DiskClient, DiskError, DiskInfo, PathError, Resource, ResourceClient,
    ResourceKind, Session, User, is_not_found,
)
from .client.exceptions import (
    ConflictError, DirectoryNotEmptyError, FileClosedError, IsDirectoryError,
    NetworkError, NotDirectoryError, NotFoundError, RemoteAPIError,
)
from .fs import DirBatch, DiskFile, DiskFS, FileInfo, Scope, new

__version__ = "0.1.0"
