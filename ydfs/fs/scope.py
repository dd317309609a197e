"""Path rewriting between a scoped filesystem view and the disk."""

import posixpath
from dataclasses import dataclass

ROOT = "/"


def clean(path: str) -> str:
    """Normalize path against a virtual root: "a//b/../c/" -> "/a/c".

    Leading ".." segments are dropped, so the result never climbs above "/".
    """
    return posixpath.normpath(ROOT + path.lstrip(ROOT))


@dataclass(frozen=True)
class Scope:
    """Base directory of a filesystem view.

    An unscoped view passes paths through untouched. A scoped view joins
    caller paths onto ``base_path`` and trims the base off paths it hands
    back.
    """

    base_path: str = ROOT
    is_scoped: bool = False

    def resolve(self, name: str) -> str:
        """Caller path -> absolute disk path."""
        if not self.is_scoped:
            return name
        relative = clean(name)
        if relative == ROOT:
            return self.base_path
        if self.base_path == ROOT:
            return relative
        return self.base_path + relative

    def unresolve(self, path: str) -> str:
        """Absolute disk path -> caller path. The base itself becomes "/"."""
        if not self.is_scoped:
            return path
        if path == self.base_path:
            return ROOT
        if self.base_path == ROOT:
            return path
        if path.startswith(self.base_path + ROOT):
            return path[len(self.base_path):]
        return path

    def descend(self, path: str) -> "Scope":
        """Scope rooted at the absolute directory path."""
        return Scope(base_path=clean(path), is_scoped=True)
