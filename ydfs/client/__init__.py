from .base import ResourceClient
from .client import DiskClient, Session, URL_BASE, load_token
from .types import DiskInfo, Link, Resource, ResourceKind, ResourceList, User
from .exceptions import (
    DiskError, AuthenticationError, ConfigurationError, ConflictError,
    DirectoryNotEmptyError, FileClosedError, InternalError, IsDirectoryError,
    NetworkError, NotDirectoryError, NotFoundError, PathError, RemoteAPIError,
    is_not_found,
)
