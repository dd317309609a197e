"""Metadata of a disk node, shared by stat results and directory entries."""

import stat
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from ..client.types import Resource, ResourceKind
from .scope import ROOT, Scope

DIR_MODE = stat.S_IFDIR | 0o755
FILE_MODE = stat.S_IFREG | 0o644
BLOCK_SIZE = 4096


@dataclass(frozen=True)
class FileInfo:
    """Description of one node.

    The same value answers both "describe this node" (``name``, ``size``,
    ``mode``, ``mod_time``, ``is_dir``, ``sys``) and "list this directory"
    (``type``, ``info()``).

    ``path`` is relative to the view the value came from, so it can be fed
    back into that view.
    """

    name: str
    path: str
    kind: ResourceKind
    size: int = 0
    mod_time: Optional[datetime] = None

    @classmethod
    def from_resource(cls, resource: Resource, scope: Scope) -> "FileInfo":
        path = scope.unresolve(resource.path)
        name = ROOT if path == ROOT else resource.name
        return cls(
            name=name,
            path=path,
            kind=resource.kind,
            size=resource.size if resource.kind == ResourceKind.FILE else 0,
            mod_time=resource.modified,
        )

    @property
    def is_dir(self) -> bool:
        return self.kind == ResourceKind.DIRECTORY

    @property
    def mode(self) -> int:
        return DIR_MODE if self.is_dir else FILE_MODE

    @property
    def type(self) -> int:
        """File type bits of ``mode``."""
        return stat.S_IFMT(self.mode)

    def info(self) -> "FileInfo":
        return self

    def sys(self) -> None:
        return None

    def to_stat(self, uid: int = 0, gid: int = 0) -> Dict[str, Any]:
        """Attributes in the shape FUSE getattr expects."""
        mtime = self.mod_time.timestamp() if self.mod_time else 0.0
        if self.is_dir:
            size, nlink, blocks = BLOCK_SIZE, 2, 8
        else:
            size, nlink = self.size, 1
            blocks = (self.size + BLOCK_SIZE - 1) // BLOCK_SIZE
        return {
            'st_mode': self.mode,
            'st_size': size,
            'st_nlink': nlink,
            'st_blocks': blocks,
            'st_blksize': BLOCK_SIZE,
            'st_uid': uid,
            'st_gid': gid,
            'st_atime': mtime,
            'st_mtime': mtime,
            'st_ctime': mtime,
        }
