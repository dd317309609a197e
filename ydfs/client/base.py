"""Remote resource client abstraction.

The filesystem core only talks to the disk through this interface, so it can
run against the HTTP client or any other implementation (tests use an
in-memory one).
"""

from abc import ABC, abstractmethod

from .types import DiskInfo, Resource


class ResourceClient(ABC):
    """Single-node operations against a remote tree of files and directories.

    Every Resource returned must already be normalized (see
    ``types.normalize_resource``). Failures are raised as ``DiskError``
    subclasses: ``NotFoundError``, ``ConflictError``, ``NetworkError``,
    ``RemoteAPIError`` or ``InternalError``.
    """

    @abstractmethod
    def fetch_metadata(self, path: str, include_children: bool = False) -> Resource:
        """Fetch one node.

        Args:
            path: Absolute remote path
            include_children: Also fetch every child into ``Resource.embedded``

        Raises:
            NotFoundError: If nothing exists at path
        """
        ...

    @abstractmethod
    def fetch_file_bytes(self, path: str) -> bytes:
        """Download the whole body of a file."""
        ...

    @abstractmethod
    def upload_file_bytes(self, path: str, data: bytes, overwrite: bool) -> None:
        """Upload a whole file body.

        Raises:
            ConflictError: If the file exists and overwrite is False
        """
        ...

    @abstractmethod
    def create_directory(self, path: str) -> None:
        """Create exactly one directory.

        Raises:
            ConflictError: If a node already exists at path
            NotFoundError: If the parent directory is missing
        """
        ...

    @abstractmethod
    def delete_node(self, path: str, permanent: bool) -> None:
        """Delete a node; permanent skips the trash."""
        ...

    @abstractmethod
    def get_disk_info(self) -> DiskInfo:
        """Fetch quota and owner information."""
        ...

    def close(self) -> None:
        """Release transport resources."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
