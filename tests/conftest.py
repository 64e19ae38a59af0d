"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

import heretic.storage as storage


@pytest.fixture
def isolate_storage(tmp_path, monkeypatch):
    """Redirect storage to a temp directory."""
    data_dir = tmp_path / "heretic_data"
    data_dir.mkdir()
    history_file = data_dir / "history.json"
    monkeypatch.setattr(storage, "HISTORY_FILE", history_file)
    monkeypatch.setattr(storage, "_DATA_DIR", data_dir)
    return history_file


@pytest.fixture
def isolate_config(tmp_path, monkeypatch):
    """Point XDG_CONFIG_HOME at a temp directory."""
    config_home = tmp_path / "config_home"
    config_home.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    return config_home / "heretic"


@pytest.fixture
def make_tree():
    """Return a helper that creates files of given sizes under a base dir.

    ``make_tree(base, {"bin/a.dll": 100, "src": None})`` writes a 100-byte
    file and creates an empty ``src`` directory.
    """

    def _make(base: Path, layout: dict[str, int | None]) -> Path:
        base.mkdir(parents=True, exist_ok=True)
        for rel, size in layout.items():
            path = base / rel
            if size is None:
                path.mkdir(parents=True, exist_ok=True)
            else:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(b"x" * size)
        return base

    return _make


@pytest.fixture
def projects(tmp_path, make_tree):
    """Two project roots: A has bin (100+50 bytes) and obj (10 bytes), B has none."""
    proj_a = make_tree(
        tmp_path / "proj" / "A",
        {
            "bin/app.dll": 100,
            "bin/app.pdb": 50,
            "obj/cache": 10,
            "src/Program.cs": 20,
        },
    )
    proj_b = make_tree(tmp_path / "proj" / "B", {"src/Main.cs": 30})
    return proj_a, proj_b
