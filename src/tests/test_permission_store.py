import json
from pathlib import Path

import anyio
import pytest

from scoped_files.errors import StorageError
from scoped_files.host.local import LocalDirectoryToken, LocalHost, PresetPicker
from scoped_files.models.grant import Grant
from scoped_files.permission_store import JsonPermissionStore, MemoryPermissionStore, UnreadableToken


def _grant(host: LocalHost, path: Path) -> Grant:
    return Grant(display_name=path.name, token=LocalDirectoryToken(host, path))


def test_memory_store_crud(tmp_path: Path) -> None:
    host = LocalHost(PresetPicker())
    store = MemoryPermissionStore()
    grant = _grant(host, tmp_path)

    async def scenario() -> None:
        await store.init()
        await store.init()
        assert await store.put(grant) == grant.id
        assert await store.get(grant.id) is grant
        assert [g.id for g in await store.get_all()] == [grant.id]
        assert await store.delete(grant.id) is True
        assert await store.delete(grant.id) is True
        assert await store.get(grant.id) is None
        await store.put(grant)
        await store.clear()
        assert await store.get_all() == []

    anyio.run(scenario)


def test_grant_ids_are_unique(tmp_path: Path) -> None:
    host = LocalHost(PresetPicker())
    ids = {_grant(host, tmp_path).id for _ in range(50)}

    assert len(ids) == 50
    assert all(grant_id.startswith("dir_") for grant_id in ids)


def test_json_store_survives_restart(tmp_path: Path) -> None:
    root = tmp_path / "projects"
    root.mkdir()
    store_path = tmp_path / "state" / "grants.json"
    grant = _grant(LocalHost(PresetPicker()), root)

    anyio.run(JsonPermissionStore(store_path, LocalHost(PresetPicker())).put, grant)

    reopened = JsonPermissionStore(store_path, LocalHost(PresetPicker()))
    loaded = anyio.run(reopened.get, grant.id)

    assert loaded is not None
    assert loaded.id == grant.id
    assert loaded.display_name == "projects"
    assert loaded.created_at == grant.created_at
    assert isinstance(loaded.token, LocalDirectoryToken)
    assert loaded.token.path == root


def test_json_store_init_creates_file(tmp_path: Path) -> None:
    store_path = tmp_path / "nested" / "grants.json"
    store = JsonPermissionStore(store_path, LocalHost(PresetPicker()))

    anyio.run(store.init)
    anyio.run(store.init)

    data = json.loads(store_path.read_text(encoding="utf-8"))
    assert data == {"version": 1, "grants": {}}


def test_json_store_delete_and_clear(tmp_path: Path) -> None:
    host = LocalHost(PresetPicker())
    store_path = tmp_path / "grants.json"
    store = JsonPermissionStore(store_path, host)
    first = _grant(host, tmp_path)
    second = _grant(host, tmp_path)

    async def scenario() -> None:
        await store.put(first)
        await store.put(second)
        assert await store.delete(first.id) is True
        assert await store.delete("dir_missing") is True
        assert [g.id for g in await store.get_all()] == [second.id]
        await store.clear()

    anyio.run(scenario)

    data = json.loads(store_path.read_text(encoding="utf-8"))
    assert data["grants"] == {}


def test_json_store_rejects_corrupt_file(tmp_path: Path) -> None:
    store_path = tmp_path / "grants.json"
    store_path.write_text("{not json", encoding="utf-8")
    store = JsonPermissionStore(store_path, LocalHost(PresetPicker()))

    with pytest.raises(StorageError):
        anyio.run(store.get_all)


def test_json_store_keeps_unreadable_token_as_failing_placeholder(tmp_path: Path) -> None:
    store_path = tmp_path / "grants.json"
    record = {
        "id": "dir_x",
        "display_name": "x",
        "path": "x",
        "created_at": "2025-03-03T11:28:56+00:00",
        "token": {"kind": "remote", "url": "https://example.invalid"},
    }
    store_path.write_text(json.dumps({"version": 1, "grants": {"dir_x": record}}), encoding="utf-8")
    store = JsonPermissionStore(store_path, LocalHost(PresetPicker()))

    grant = anyio.run(store.get, "dir_x")

    assert grant is not None
    assert isinstance(grant.token, UnreadableToken)
    assert grant.display_name == "x"
    with pytest.raises(StorageError, match="unreadable token"):
        anyio.run(grant.token.query_permission, "readwrite")


def test_json_store_rejects_invalid_utf8(tmp_path: Path) -> None:
    store_path = tmp_path / "grants.json"
    store_path.write_bytes(b'{"version": 1, "grants": {"\xff": 1}}')
    store = JsonPermissionStore(store_path, LocalHost(PresetPicker()))

    with pytest.raises(StorageError, match="Failed to open grant store"):
        anyio.run(store.get_all)


def test_json_store_serialises_concurrent_puts(tmp_path: Path) -> None:
    host = LocalHost(PresetPicker())
    store_path = tmp_path / "grants.json"
    store = JsonPermissionStore(store_path, host)
    grants = [_grant(host, tmp_path) for _ in range(10)]

    async def scenario() -> None:
        async with anyio.create_task_group() as tg:
            for grant in grants:
                tg.start_soon(store.put, grant)

    anyio.run(scenario)

    data = json.loads(store_path.read_text(encoding="utf-8"))
    assert set(data["grants"]) == {grant.id for grant in grants}
    assert not (tmp_path / "grants.json.tmp").exists()
    reopened = JsonPermissionStore(store_path, LocalHost(PresetPicker()))
    assert len(anyio.run(reopened.get_all)) == 10
