"""Tests for the project list and its persistence."""

from __future__ import annotations

import json

import pytest

from heretic.core.projects import AddOutcome, ProjectList, ProjectStore, path_exists


@pytest.fixture
def store(tmp_path):
    return ProjectStore(tmp_path / "cfg" / "config.json")


class TestPathExists:
    def test_directory(self, tmp_path):
        assert path_exists(tmp_path)
        assert path_exists(str(tmp_path))

    def test_missing_or_file(self, tmp_path):
        f = tmp_path / "f.txt"
        f.write_text("x")
        assert not path_exists(tmp_path / "missing")
        assert not path_exists(f)


class TestProjectStore:
    def test_round_trip(self, store, projects):
        proj_a, proj_b = projects
        store.save([str(proj_a), str(proj_b)])

        data = json.loads(store.location.read_text())
        assert data["project_paths"] == [str(proj_a), str(proj_b)]
        assert "last_saved" in data
        assert store.load() == [str(proj_a), str(proj_b)]

    def test_missing_file(self, store):
        assert not store.exists()
        assert store.load() == []

    def test_drops_paths_that_no_longer_exist(self, store, projects, tmp_path):
        proj_a, _ = projects
        store.save([str(tmp_path / "gone"), str(proj_a)])
        assert store.load() == [str(proj_a)]

    @pytest.mark.parametrize("content", ["{broken", "[]", '{"project_paths": "x"}', "{}"])
    def test_corrupt_file_loads_empty(self, store, content):
        store.location.parent.mkdir(parents=True)
        store.location.write_text(content)
        assert store.load() == []

    def test_default_location_follows_xdg(self, isolate_config):
        assert ProjectStore().location == isolate_config / "config.json"


class TestProjectList:
    def test_add(self, store, projects):
        proj_a, _ = projects
        plist = ProjectList(store)
        assert plist.add(f"  {proj_a}  ") is AddOutcome.ADDED
        assert plist.paths == [str(proj_a)]
        assert store.load() == [str(proj_a)]

    def test_add_rejections(self, store, projects, tmp_path):
        proj_a, _ = projects
        plist = ProjectList(store, [str(proj_a)])
        assert plist.add("   ") is AddOutcome.EMPTY
        assert plist.add(str(tmp_path / "missing")) is AddOutcome.INVALID
        assert plist.add(str(proj_a)) is AddOutcome.DUPLICATE
        assert len(plist) == 1

    def test_loads_from_store(self, store, projects):
        store.save([str(p) for p in projects])
        plist = ProjectList(store)
        assert list(plist) == [str(p) for p in projects]
        assert str(projects[0]) in plist

    def test_duplicates_collapsed(self, store, projects):
        proj_a, proj_b = projects
        plist = ProjectList(store, [str(proj_a), str(proj_b), str(proj_a)])
        assert plist.paths == [str(proj_a), str(proj_b)]

    def test_add_many(self, store, projects, tmp_path):
        proj_a, proj_b = projects
        plist = ProjectList(store, [str(proj_a)])
        added, skipped = plist.add_many([proj_a, proj_b, tmp_path / "missing"])
        assert (added, skipped) == (1, 1)
        assert plist.paths == [str(proj_a), str(proj_b)]
        assert store.load() == [str(proj_a), str(proj_b)]

    def test_remove_and_clear(self, store, projects):
        proj_a, proj_b = projects
        plist = ProjectList(store, [str(proj_a), str(proj_b)])
        assert plist.remove([str(proj_a), "/not/listed"]) == 1
        assert plist.paths == [str(proj_b)]
        assert plist.clear() == 1
        assert len(plist) == 0
        assert json.loads(store.location.read_text())["project_paths"] == []

    def test_validate_and_prune(self, store, projects, tmp_path):
        proj_a, _ = projects
        gone = tmp_path / "gone"
        gone.mkdir()
        plist = ProjectList(store, [str(proj_a), str(gone)])
        gone.rmdir()

        assert plist.validate() == [(str(proj_a), True), (str(gone), False)]
        assert plist.invalid() == [str(gone)]
        assert plist.remove_invalid() == 1
        assert plist.paths == [str(proj_a)]
