from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

ROOT_PREFIX = "disk:"
ROOT_NAME = "disk"

class ResourceKind(str, Enum):
    """Node type as reported by the API."""
    FILE = "file"
    DIRECTORY = "dir"

def parse_time(value: Optional[str]) -> Optional[datetime]:
    """Parse an API timestamp such as 2023-04-01T10:00:00+00:00."""
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)

@dataclass
class User:
    """Owner of the disk."""
    country: str = ""
    login: str = ""
    display_name: str = ""
    uid: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            country=data.get("country", ""),
            login=data.get("login", ""),
            display_name=data.get("display_name", ""),
            uid=data.get("uid", ""),
        )

    def __str__(self) -> str:
        return f"Username:\t{self.login}"

@dataclass
class DiskInfo:
    """Disk quota and ownership. Sizes are in bytes."""
    total_space: int = 0
    used_space: int = 0
    trash_size: int = 0
    revision: int = 0
    system_folders: Dict[str, str] = field(default_factory=dict)
    user: User = field(default_factory=User)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DiskInfo":
        return cls(
            total_space=data.get("total_space", 0),
            used_space=data.get("used_space", 0),
            trash_size=data.get("trash_size", 0),
            revision=data.get("revision", 0),
            system_folders=data.get("system_folders") or {},
            user=User.from_dict(data.get("user") or {}),
        )

    def __str__(self) -> str:
        return "\n".join([
            str(self.user),
            f"Total space:\t{self.total_space}",
            f"Used space:\t{self.used_space}",
            f"Trash size:\t{self.trash_size}",
        ])

@dataclass
class Link:
    """Link returned by the API for downloads, uploads and async operations."""
    href: str
    method: str = "GET"
    templated: bool = False
    operation_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Link":
        return cls(
            href=data.get("href", ""),
            method=data.get("method") or "GET",
            templated=data.get("templated", False),
            operation_id=data.get("operation_id"),
        )

@dataclass
class ResourceList:
    """Children embedded into a directory Resource."""
    items: List["Resource"] = field(default_factory=list)
    path: str = ""
    sort: str = ""
    limit: int = 0
    offset: int = 0
    total: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResourceList":
        return cls(
            items=[Resource.from_dict(item) for item in data.get("items") or []],
            path=data.get("path", ""),
            sort=data.get("sort", ""),
            limit=data.get("limit", 0),
            offset=data.get("offset", 0),
            total=data.get("total", 0),
        )

@dataclass
class Resource:
    """
    Snapshot of one remote node.

    A Resource is produced fresh by every metadata fetch; nothing mutates
    it after normalization.
    """
    path: str
    name: str
    kind: ResourceKind
    size: int = 0
    modified: Optional[datetime] = None
    created: Optional[datetime] = None
    mime_type: Optional[str] = None
    md5: Optional[str] = None
    sha256: Optional[str] = None
    resource_id: Optional[str] = None
    revision: Optional[int] = None
    embedded: Optional[ResourceList] = None

    @property
    def is_dir(self) -> bool:
        return self.kind == ResourceKind.DIRECTORY

    @property
    def children(self) -> List["Resource"]:
        if self.embedded is None:
            return []
        return self.embedded.items

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Resource":
        embedded = data.get("_embedded")
        return cls(
            path=data.get("path", ""),
            name=data.get("name", ""),
            kind=ResourceKind(data.get("type", ResourceKind.FILE.value)),
            size=data.get("size", 0),
            modified=parse_time(data.get("modified")),
            created=parse_time(data.get("created")),
            mime_type=data.get("mime_type"),
            md5=data.get("md5"),
            sha256=data.get("sha256"),
            resource_id=data.get("resource_id"),
            revision=data.get("revision"),
            embedded=ResourceList.from_dict(embedded) if embedded is not None else None,
        )

def normalize_resource(resource: Resource) -> Resource:
    """
    Strip the disk root prefix from a Resource and its children.

    The root node reported by the API (path "disk:/", name "disk") is
    renamed to "/".
    """
    if resource.path.startswith(ROOT_PREFIX):
        resource.path = resource.path[len(ROOT_PREFIX):]
    if resource.path == "/" and resource.name == ROOT_NAME:
        resource.name = "/"
    if resource.embedded is not None:
        if resource.embedded.path.startswith(ROOT_PREFIX):
            resource.embedded.path = resource.embedded.path[len(ROOT_PREFIX):]
        for child in resource.embedded.items:
            normalize_resource(child)
    return resource
