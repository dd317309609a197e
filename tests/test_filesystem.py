import pytest

import ydfs
from ydfs.client.exceptions import (
    AuthenticationError, ConflictError, DirectoryNotEmptyError, NetworkError,
    NotDirectoryError, NotFoundError, PathError, is_not_found,
)
from ydfs.client.types import ResourceKind

def test_write_then_read_round_trip(fs):
    payload = bytes(range(256)) * 3
    fs.write_file("/blob.bin", payload)
    f = fs.open("/blob.bin")
    buf = bytearray(100)
    received = bytearray()
    while not f.eof:
        n = f.readinto(buf)
        received += buf[:n]
    assert bytes(received) == payload
    assert f.readinto(buf) == 0
    assert f.eof

def test_write_file_overwrites(client, fs):
    fs.write_file("/a.txt", b"one")
    fs.write_file("/a.txt", b"two")
    assert fs.read_file("/a.txt") == b"two"
    assert client.calls_of("upload_file_bytes") == ["/a.txt", "/a.txt"]

def test_write_file_missing_parent(fs):
    with pytest.raises(PathError) as exc_info:
        fs.write_file("/no/such/dir.txt", b"x")
    assert exc_info.value.op == "write"
    assert is_not_found(exc_info.value)

def test_read_file_missing_is_tagged_with_callers_path(fs):
    with pytest.raises(PathError) as exc_info:
        fs.read_file("missing.txt")
    assert exc_info.value.path == "missing.txt"
    assert exc_info.value.code == "ERR_NOT_FOUND"

def test_stat_file_and_root(client, fs):
    client.add_file("/test.txt", b"hello")
    info = fs.stat("test.txt")
    assert info.name == "test.txt"
    assert info.path == "/test.txt"
    assert info.size == 5
    assert not info.is_dir
    assert info.kind == ResourceKind.FILE

    root = fs.stat("/")
    assert root.name == "/"
    assert root.is_dir

def test_stat_missing(fs):
    with pytest.raises(PathError) as exc_info:
        fs.stat("surelynonexistententry")
    assert isinstance(exc_info.value.err, NotFoundError)
    assert exc_info.value.op == "stat"

def test_stat_propagates_transport_errors(client, fs):
    client.fail[("fetch_metadata", "/x")] = NetworkError("connection reset")
    with pytest.raises(PathError) as exc_info:
        fs.stat("/x")
    assert isinstance(exc_info.value.err, NetworkError)
    assert isinstance(exc_info.value.__cause__, NetworkError)

def test_create_truncates(client, fs):
    client.add_file("/a.txt", b"old content")
    f = fs.create("/a.txt")
    assert f.read() == b""
    assert client.nodes["/a.txt"]["data"] == b""

def test_read_dir_sorted(client, fs):
    client.add_dir("/d")
    for name in ("c", "a", "b"):
        client.add_file(f"/d/{name}", b"")
    assert [e.name for e in fs.read_dir("/d")] == ["a", "b", "c"]

def test_read_dir_on_file(client, fs):
    client.add_file("/f", b"")
    with pytest.raises(PathError) as exc_info:
        fs.read_dir("/f")
    assert isinstance(exc_info.value.err, NotDirectoryError)

def test_mkdir(client, fs):
    fs.mkdir("/test")
    assert fs.stat("/test").is_dir

def test_mkdir_existing_conflicts(client, fs):
    client.add_dir("/test")
    with pytest.raises(PathError) as exc_info:
        fs.mkdir("/test")
    assert isinstance(exc_info.value.err, ConflictError)

def test_mkdir_does_not_create_parents(client, fs):
    with pytest.raises(PathError) as exc_info:
        fs.mkdir("/a/b")
    assert is_not_found(exc_info.value)
    assert "/a" not in client.nodes

def test_mkdir_all_creates_each_level_once(client, fs):
    fs.mkdir_all("/a/b/c")
    assert client.calls_of("create_directory") == ["/a", "/a/b", "/a/b/c"]
    assert all(client.nodes[p]["kind"] == ResourceKind.DIRECTORY for p in ("/a", "/a/b", "/a/b/c"))

    nodes_before = dict(client.nodes)
    client.calls.clear()
    fs.mkdir_all("/a/b/c")
    assert client.calls_of("create_directory") == []
    assert client.nodes == nodes_before

def test_mkdir_all_relative_path(client, fs):
    fs.mkdir_all("test2/test3/test4")
    assert "/test2/test3/test4" in client.nodes

def test_mkdir_all_skips_existing_prefix(client, fs):
    client.add_dir("/a")
    client.add_dir("/a/b")
    fs.mkdir_all("/a/b/c/d")
    assert client.calls_of("create_directory") == ["/a/b/c", "/a/b/c/d"]

def test_mkdir_all_stops_at_file(client, fs):
    client.add_dir("/a")
    client.add_file("/a/b", b"file in the way")
    with pytest.raises(PathError) as exc_info:
        fs.mkdir_all("/a/b/c/d")
    assert exc_info.value.path == "/a/b"
    assert isinstance(exc_info.value.err, NotDirectoryError)
    assert client.calls_of("create_directory") == []
    assert "/a/b/c" not in client.nodes

def test_mkdir_all_accepts_directory_created_meanwhile(client, fs, monkeypatch):
    create = client.create_directory

    def create_then_conflict(path):
        create(path)
        raise ConflictError(f"{path} already exists")
    monkeypatch.setattr(client, "create_directory", create_then_conflict)
    fs.mkdir_all("/a/b")
    assert client.nodes["/a/b"]["kind"] == ResourceKind.DIRECTORY
    assert client.calls_of("fetch_metadata") == ["/a", "/a", "/a/b", "/a/b"]

def test_mkdir_all_conflict_with_file_created_meanwhile(client, fs, monkeypatch):
    def file_appears(path):
        client.add_file(path, b"raced")
        raise ConflictError(f"{path} already exists")
    monkeypatch.setattr(client, "create_directory", file_appears)
    with pytest.raises(PathError) as exc_info:
        fs.mkdir_all("/a/b")
    assert exc_info.value.path == "/a"
    assert isinstance(exc_info.value.err, NotDirectoryError)

def test_mkdir_all_propagates_stat_errors(client, fs):
    client.fail[("fetch_metadata", "/a/b")] = AuthenticationError("token expired")
    with pytest.raises(PathError) as exc_info:
        fs.mkdir_all("/a/b/c")
    assert exc_info.value.path == "/a/b"
    assert isinstance(exc_info.value.err, AuthenticationError)
    assert client.calls_of("create_directory") == ["/a"]

def test_remove_file(client, fs):
    client.add_file("/test.txt", b"x")
    fs.remove("test.txt")
    assert "/test.txt" not in client.nodes

def test_remove_empty_dir(client, fs):
    client.add_dir("/test")
    fs.remove("/test")
    assert "/test" not in client.nodes

def test_remove_non_empty_dir_fails(client, fs):
    client.add_dir("/d")
    client.add_file("/d/f", b"x")
    with pytest.raises(PathError) as exc_info:
        fs.remove("/d")
    assert isinstance(exc_info.value.err, DirectoryNotEmptyError)
    assert "/d" in client.nodes and "/d/f" in client.nodes
    assert client.calls_of("delete_node") == []

def test_remove_missing(fs):
    with pytest.raises(PathError) as exc_info:
        fs.remove("/nothing")
    assert is_not_found(exc_info.value)

@pytest.fixture
def tree(client):
    client.add_dir("/t")
    client.add_file("/t/f1", b"1")
    client.add_dir("/t/d1")
    client.add_file("/t/d1/f2", b"2")
    client.add_dir("/t/d1/d2")
    client.add_file("/t/d1/d2/f3", b"3")
    client.add_file("/t/f4", b"4")
    client.add_file("/outside", b"keep")
    return client

def test_remove_all_deletes_children_before_parents(tree, fs):
    fs.remove_all("/t")
    assert tree.calls_of("delete_node") == [
        "/t/f1", "/t/d1/f2", "/t/d1/d2/f3", "/t/d1/d2", "/t/d1", "/t/f4", "/t",
    ]
    assert set(tree.nodes) == {"/", "/outside"}
    with pytest.raises(PathError) as exc_info:
        fs.stat("/t")
    assert is_not_found(exc_info.value)

def test_remove_all_absent_is_not_an_error(client, fs):
    fs.remove_all("/t")
    assert client.calls_of("delete_node") == []

def test_remove_all_twice(tree, fs):
    fs.remove_all("/t")
    fs.remove_all("/t")

def test_remove_all_single_file(tree, fs):
    fs.remove_all("/t/f4")
    assert tree.calls_of("delete_node") == ["/t/f4"]

def test_remove_all_aborts_on_first_error(tree, fs):
    tree.fail[("delete_node", "/t/d1/f2")] = NetworkError("connection reset")
    with pytest.raises(PathError) as exc_info:
        fs.remove_all("/t")
    assert exc_info.value.path == "/t/d1/f2"
    assert isinstance(exc_info.value.err, NetworkError)
    assert tree.calls_of("delete_node") == ["/t/f1", "/t/d1/f2"]
    # nothing after the failure was attempted, earlier deletions stay
    assert "/t/f1" not in tree.nodes
    assert "/t/d1/d2/f3" in tree.nodes and "/t/f4" in tree.nodes and "/t" in tree.nodes

def test_remove_all_fetch_error_aborts(tree, fs):
    tree.fail[("fetch_metadata", "/t/d1/d2")] = AuthenticationError("token expired")
    with pytest.raises(PathError) as exc_info:
        fs.remove_all("/t")
    assert exc_info.value.path == "/t/d1/d2"
    assert tree.calls_of("delete_node") == ["/t/f1", "/t/d1/f2"]

def test_remove_all_tolerates_child_vanishing(tree, fs):
    tree.fail[("fetch_metadata", "/t/f4")] = NotFoundError("removed concurrently")
    fs.remove_all("/t")
    assert "/t/f4" not in tree.calls_of("delete_node")

def test_sub_view(tree, fs):
    sub = fs.sub("/t")
    root = sub.stat("/")
    assert root.name == "/"
    assert root.path == "/"
    assert root.is_dir

    info = sub.stat("d1")
    assert info.path == "/d1"
    assert sub.stat(info.path).path == "/d1"
    assert info.name == "d1"

    # /outside exists on the disk but is not reachable from the view
    with pytest.raises(PathError) as exc_info:
        sub.stat("/outside")
    assert is_not_found(exc_info.value)
    with pytest.raises(PathError):
        sub.stat("../outside")

def test_sub_view_lists_relative_paths(tree, fs):
    sub = fs.sub("/t")
    assert [(e.name, e.path) for e in sub.read_dir("/d1")] == [("d2", "/d1/d2"), ("f2", "/d1/f2")]
    entries = sub.open("/").read_dir().entries
    assert [e.path for e in entries] == ["/f1", "/d1", "/f4"]

def test_sub_view_operations(tree, fs):
    sub = fs.sub("t/d1")
    sub.write_file("new.txt", b"data")
    assert tree.nodes["/t/d1/new.txt"]["data"] == b"data"
    sub.mkdir_all("x/y")
    assert tree.calls_of("create_directory") == ["/t/d1/x", "/t/d1/x/y"]
    with pytest.raises(PathError) as exc_info:
        sub.remove("d2")
    assert exc_info.value.path == "d2"
    sub.remove_all("d2")
    assert "/t/d1/d2" not in tree.nodes
    with sub.open("new.txt") as f:
        assert f.path == "/new.txt"
        assert f.read() == b"data"

def test_sub_errors_name_scope_relative_paths(tree, fs):
    sub = fs.sub("/t")
    with pytest.raises(PathError) as exc_info:
        sub.mkdir_all("/f1/x")
    assert exc_info.value.path == "/f1"

    tree.fail[("delete_node", "/t/d1/d2/f3")] = NetworkError("boom")
    with pytest.raises(PathError) as exc_info:
        sub.remove_all("/d1")
    assert exc_info.value.path == "/d1/d2/f3"

def test_nested_sub(tree, fs):
    inner = fs.sub("/t").sub("d1")
    assert inner.scope.base_path == "/t/d1"
    assert inner.stat("d2/f3").path == "/d2/f3"

def test_sub_on_file_fails(tree, fs):
    with pytest.raises(PathError) as exc_info:
        fs.sub("/t/f1")
    assert isinstance(exc_info.value.err, NotDirectoryError)

def test_stale_scope_reports_not_found(tree, fs):
    sub = fs.sub("/t")
    fs.remove_all("/t")
    with pytest.raises(PathError) as exc_info:
        sub.stat("f1")
    assert is_not_found(exc_info.value)

def test_disk_and_user_info(fs):
    assert fs.user_info().login == "tester"
    assert fs.disk_info().total_space == 10 * 1024 ** 3

def test_new_checks_connection(client):
    fsys = ydfs.new(client=client)
    assert isinstance(fsys, ydfs.DiskFS)
    assert client.calls == [("get_disk_info", "/")]
    assert not fsys.scope.is_scoped

def test_new_leaves_given_client_open_on_failure(client, monkeypatch):
    def refuse():
        raise AuthenticationError("bad token")
    monkeypatch.setattr(client, "get_disk_info", refuse)
    with pytest.raises(AuthenticationError):
        ydfs.new(client=client)
    assert not client.closed

def test_new_closes_its_own_client_on_failure(monkeypatch):
    closed = []

    def refuse(self):
        raise AuthenticationError("bad token")
    monkeypatch.setattr(ydfs.DiskClient, "get_disk_info", refuse)
    monkeypatch.setattr(ydfs.DiskClient, "close", lambda self: closed.append(self))
    with pytest.raises(AuthenticationError):
        ydfs.new(token="bad")
    assert len(closed) == 1
