from pathlib import Path

import anyio
import pytest

from scoped_files.errors import AccessDeniedError, HostApiError, NotFoundError, PickerCancelledError
from scoped_files.host.local import LocalDirectoryToken, LocalHost, PresetPicker
from scoped_files.models.picker_options import PickerOptions


def test_cancelled_pickers_raise(tmp_path: Path) -> None:
    host = LocalHost(PresetPicker())

    with pytest.raises(PickerCancelledError):
        anyio.run(host.pick_directory, PickerOptions(id="d"))
    with pytest.raises(PickerCancelledError):
        anyio.run(host.pick_file_to_open, PickerOptions(id="o"))
    with pytest.raises(PermissionError):
        anyio.run(host.pick_file_to_save, PickerOptions(id="s"))


def test_picked_directory_is_granted_for_requested_mode(tmp_path: Path) -> None:
    host = LocalHost(PresetPicker(directory=tmp_path))

    token = anyio.run(host.pick_directory, PickerOptions(id="d", mode="read"))

    assert anyio.run(token.query_permission, "read") == "granted"
    assert anyio.run(token.query_permission, "readwrite") == "prompt"


def test_revoke_with_deny(tmp_path: Path) -> None:
    host = LocalHost(PresetPicker(directory=tmp_path))
    token = anyio.run(host.pick_directory, PickerOptions(id="d", mode="readwrite"))

    host.revoke(tmp_path, deny=True)

    assert anyio.run(token.query_permission, "read") == "denied"
    with pytest.raises(AccessDeniedError):
        anyio.run(token.get_child_file, "a.txt", True)


def test_child_lookup_checks_entry_kind(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("x", encoding="utf-8")
    (tmp_path / "docs").mkdir()
    host = LocalHost(PresetPicker(directory=tmp_path))
    token = anyio.run(host.pick_directory, PickerOptions(id="d", mode="readwrite"))

    with pytest.raises(NotFoundError):
        anyio.run(token.get_child_directory, "a.txt", False)
    with pytest.raises(NotFoundError):
        anyio.run(token.get_child_file, "docs", True)
    with pytest.raises(HostApiError):
        anyio.run(token.get_child_file, "../a.txt", False)


def test_token_export_round_trip(tmp_path: Path) -> None:
    host = LocalHost(PresetPicker())
    token = LocalDirectoryToken(host, tmp_path)

    data = host.export_token(token)
    restored = host.import_token(data)

    assert data == {"kind": "local", "path": str(tmp_path)}
    assert isinstance(restored, LocalDirectoryToken)
    assert restored.path == tmp_path
    with pytest.raises(HostApiError):
        host.import_token({"kind": "local"})


def test_writable_stream_writes_text_and_bytes(tmp_path: Path) -> None:
    host = LocalHost(PresetPicker(directory=tmp_path))

    async def scenario() -> None:
        root = await host.pick_directory(PickerOptions(id="d", mode="readwrite"))
        file_token = await root.get_child_file("out.txt", create=True)
        async with await file_token.open_writable_stream() as stream:
            await stream.write("hello ")
            await stream.write(b"world")
        snapshot = await file_token.read_as_file()
        assert snapshot.size == 11
        assert await snapshot.read_bytes() == b"hello world"

    anyio.run(scenario)
