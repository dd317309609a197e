import os
import posixpath
from datetime import datetime, timezone

import pytest

from ydfs.client.base import ResourceClient
from ydfs.client.exceptions import ConflictError, NotFoundError, RemoteAPIError
from ydfs.client.types import DiskInfo, Resource, ResourceKind, ResourceList, User
from ydfs.fs import DiskFS

MODIFIED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

def pytest_configure(config):
    """Configure test environment."""
    os.environ.setdefault("YDFS_LOG_LEVEL", "DEBUG")
    config.addinivalue_line("markers", "integration: talks to the live Yandex Disk API (needs YDFS_TOKEN)")

class FakeDiskClient(ResourceClient):
    """
    In-memory disk.

    Mirrors the API's behaviour for the single-node calls and records every
    call in ``calls`` as (method, path). ``fail[(method, path)]`` makes a
    call raise the given error.
    """

    def __init__(self):
        self.nodes = {"/": {"kind": ResourceKind.DIRECTORY, "data": None}}
        self.calls = []
        self.fail = {}
        self.closed = False

    @staticmethod
    def _norm(path):
        if path.startswith("disk:"):
            path = path[len("disk:"):]
        return posixpath.normpath("/" + path.lstrip("/"))

    def _record(self, method, path):
        path = self._norm(path)
        self.calls.append((method, path))
        error = self.fail.get((method, path))
        if error is not None:
            raise error
        return path

    def _children(self, path):
        return [p for p in self.nodes if p != "/" and posixpath.dirname(p) == path]

    def _resource(self, path, with_children=False):
        node = self.nodes[path]
        data = node["data"]
        embedded = None
        if with_children and node["kind"] == ResourceKind.DIRECTORY:
            items = [self._resource(child) for child in self._children(path)]
            embedded = ResourceList(items=items, path=path, limit=len(items), total=len(items))
        return Resource(
            path=path,
            name="/" if path == "/" else posixpath.basename(path),
            kind=node["kind"],
            size=len(data) if data is not None else 0,
            modified=MODIFIED,
            embedded=embedded,
        )

    # setup helpers, not recorded
    def add_dir(self, path):
        self.nodes[self._norm(path)] = {"kind": ResourceKind.DIRECTORY, "data": None}

    def add_file(self, path, data=b""):
        self.nodes[self._norm(path)] = {"kind": ResourceKind.FILE, "data": data}

    def calls_of(self, method):
        return [path for m, path in self.calls if m == method]

    def fetch_metadata(self, path, include_children=False):
        path = self._record("fetch_metadata", path)
        if path not in self.nodes:
            raise NotFoundError(f"{path} not found")
        return self._resource(path, include_children)

    def fetch_file_bytes(self, path):
        path = self._record("fetch_file_bytes", path)
        if path not in self.nodes:
            raise NotFoundError(f"{path} not found")
        if self.nodes[path]["kind"] == ResourceKind.DIRECTORY:
            raise RemoteAPIError(f"{path} is a directory", status_code=400)
        return self.nodes[path]["data"]

    def upload_file_bytes(self, path, data, overwrite):
        path = self._record("upload_file_bytes", path)
        if posixpath.dirname(path) not in self.nodes:
            raise NotFoundError(f"parent of {path} not found")
        existing = self.nodes.get(path)
        if existing is not None and (not overwrite or existing["kind"] == ResourceKind.DIRECTORY):
            raise ConflictError(f"{path} already exists")
        self.nodes[path] = {"kind": ResourceKind.FILE, "data": bytes(data)}

    def create_directory(self, path):
        path = self._record("create_directory", path)
        if path in self.nodes:
            raise ConflictError(f"{path} already exists")
        if posixpath.dirname(path) not in self.nodes:
            raise NotFoundError(f"parent of {path} not found")
        self.nodes[path] = {"kind": ResourceKind.DIRECTORY, "data": None}

    def delete_node(self, path, permanent):
        path = self._record("delete_node", path)
        if path not in self.nodes:
            raise NotFoundError(f"{path} not found")
        for node in [p for p in self.nodes if p == path or p.startswith(path + "/")]:
            del self.nodes[node]

    def get_disk_info(self):
        self.calls.append(("get_disk_info", "/"))
        used = sum(len(n["data"]) for n in self.nodes.values() if n["data"])
        return DiskInfo(total_space=10 * 1024 ** 3, used_space=used, user=User(login="tester"))

    def close(self):
        self.closed = True

@pytest.fixture
def client():
    """Fixture to provide an empty in-memory disk."""
    return FakeDiskClient()

@pytest.fixture
def fs(client):
    return DiskFS(client)
