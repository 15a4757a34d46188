from pathlib import Path

import pytest
from pydantic import ValidationError

from scoped_files.settings import DEFAULT_MAX_FILE_SIZE, AccessSettings, load_settings


def test_defaults() -> None:
    settings = AccessSettings()

    assert settings.max_file_size == DEFAULT_MAX_FILE_SIZE
    assert settings.allowed_extensions is None
    assert "md" in settings.text_extensions
    assert settings.store_path is None


def test_load_settings_from_yaml(tmp_path: Path) -> None:
    config = tmp_path / "access.yaml"
    config.write_text(
        "max_file_size: 2048\n"
        "allowed_extensions: ['.TXT', ' md ']\n"
        "store_path: ~/grants.json\n"
        "debug: true\n",
        encoding="utf-8",
    )

    settings = load_settings(config)

    assert settings.max_file_size == 2048
    assert settings.allowed_extensions == ["txt", "md"]
    assert settings.store_path == "~/grants.json"
    assert settings.debug is True


def test_missing_or_empty_file_gives_defaults(tmp_path: Path) -> None:
    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")

    assert load_settings(tmp_path / "missing.yaml") == AccessSettings()
    assert load_settings(empty) == AccessSettings()


def test_invalid_settings_are_rejected(tmp_path: Path) -> None:
    config = tmp_path / "access.yaml"
    config.write_text("max_file_size: 0\n", encoding="utf-8")

    with pytest.raises(ValidationError):
        load_settings(config)

    config.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(config)
