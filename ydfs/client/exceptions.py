class DiskError(Exception):
    """Base exception for Yandex Disk errors."""
    def __init__(self, message: str, code: str = "ERR_UNKNOWN"):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")

class AuthenticationError(DiskError):
    """Authentication failed."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_AUTH")

class ConfigurationError(DiskError):
    """Configuration or credential error."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_CONFIG")

class NotFoundError(DiskError):
    """Target path is absent."""
    def __init__(self, message: str = "resource not found"):
        super().__init__(message, code="ERR_NOT_FOUND")

class ConflictError(DiskError):
    """A node already exists where a new one was requested."""
    def __init__(self, message: str = "resource already exists"):
        super().__init__(message, code="ERR_CONFLICT")

class NetworkError(DiskError):
    """Transport-level failure."""
    def __init__(self, message: str, code: str = "ERR_NETWORK"):
        super().__init__(message, code=code)

class RemoteAPIError(DiskError):
    """The API answered with a structured (or unreadable) failure."""
    def __init__(self, message: str, status_code: int = None, error: str = None,
                 description: str = None, code: str = "ERR_API"):
        self.status_code = status_code
        self.error = error
        self.description = description
        super().__init__(message, code=code)

class InternalError(DiskError):
    """Response decoding failure."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_INTERNAL")

class NotDirectoryError(DiskError):
    def __init__(self, message: str = "not a directory"):
        super().__init__(message, code="ERR_NOT_DIR")

class IsDirectoryError(DiskError):
    def __init__(self, message: str = "is a directory"):
        super().__init__(message, code="ERR_IS_DIR")

class DirectoryNotEmptyError(DiskError):
    def __init__(self, message: str = "directory not empty"):
        super().__init__(message, code="ERR_NOT_EMPTY")

class FileClosedError(DiskError):
    def __init__(self, message: str = "file already closed"):
        super().__init__(message, code="ERR_CLOSED")

class PathError(DiskError):
    """
    Error surfaced by filesystem operations.

    Records the operation, the caller's (scope-relative) path and the
    underlying error.

    Attributes:
        op (str): Operation name, e.g. "open", "mkdir", "remove".
        path (str): Path as the caller passed it.
        err (DiskError): The cause.
    """
    def __init__(self, op: str, path: str, err: Exception):
        self.op = op
        self.path = path
        self.err = err
        code = getattr(err, "code", "ERR_UNKNOWN")
        message = getattr(err, "message", str(err))
        super().__init__(f"{op} {path}: {message}", code=code)

def is_not_found(exc: BaseException) -> bool:
    """Return True if exc is a NotFoundError or a PathError wrapping one."""
    if isinstance(exc, PathError):
        exc = exc.err
    return isinstance(exc, NotFoundError)
