import os

import pytest

from pesvcs.index import MODE_EXEC, MODE_FILE, Index, IndexEntry, IndexError_
from pesvcs.objects import ObjectID, ObjectType, object_read


@pytest.fixture
def repo(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".pes" / "objects").mkdir(parents=True)
    (tmp_path / ".pes" / "refs" / "heads").mkdir(parents=True)
    return tmp_path


def test_load_without_file_is_empty(repo):
    index = Index.load()
    assert len(index) == 0
    assert index.find("anything") is None


def test_add_stores_blob_and_entry(repo):
    (repo / "a.txt").write_bytes(b"alpha\n")
    index = Index.load()
    entry = index.add("a.txt")
    assert entry.path == "a.txt"
    assert entry.size == 6
    assert entry.mode == MODE_FILE
    assert object_read(entry.hash) == (ObjectType.BLOB, b"alpha\n")


def test_add_then_load_round_trip(repo):
    (repo / "b.txt").write_text("bee")
    (repo / "a.txt").write_text("ay")
    index = Index.load()
    index.add("b.txt")
    index.add("a.txt")
    loaded = Index.load()
    assert [entry.path for entry in loaded] == ["a.txt", "b.txt"]
    assert loaded.find("b.txt") == index.find("b.txt")


def test_saved_file_format(repo):
    (repo / "z.txt").write_text("z")
    (repo / "m.txt").write_text("m")
    index = Index.load()
    index.add("z.txt")
    index.add("m.txt")
    lines = (repo / ".pes" / "index").read_text().splitlines()
    assert [line.split(" ", 4)[4] for line in lines] == ["m.txt", "z.txt"]
    assert all(line.startswith("100644 ") for line in lines)
    assert lines[0].split(" ")[1] == index.find("m.txt").hash.hex()


def test_add_again_updates_entry(repo):
    path = repo / "a.txt"
    path.write_text("one")
    index = Index.load()
    first = index.add("a.txt").hash
    path.write_text("second version")
    index.add("a.txt")
    assert len(index) == 1
    assert index.find("a.txt").hash != first
    assert index.find("a.txt").size == len("second version")


def test_add_executable_mode(repo):
    path = repo / "run.sh"
    path.write_text("#!/bin/sh\n")
    os.chmod(path, 0o755)
    entry = Index.load().add("run.sh")
    assert entry.mode == MODE_EXEC
    assert Index.load().find("run.sh").mode == 0o100755


def test_add_missing_file_raises(repo):
    with pytest.raises(IndexError_):
        Index.load().add("missing.txt")


def test_remove(repo):
    (repo / "a.txt").write_text("a")
    (repo / "b.txt").write_text("b")
    index = Index.load()
    index.add("a.txt")
    index.add("b.txt")
    index.remove("a.txt")
    assert index.find("a.txt") is None
    assert [entry.path for entry in Index.load()] == ["b.txt"]


def test_remove_unknown_raises(repo):
    with pytest.raises(IndexError_, match="is not in the index"):
        Index.load().remove("ghost.txt")


def test_malformed_index_line_raises(repo):
    (repo / ".pes" / "index").write_text("100644 nothex 1 2 a.txt\n")
    with pytest.raises(IndexError_):
        Index.load()


def test_entry_line_round_trip():
    entry = IndexEntry(MODE_FILE, ObjectID(b"\xaa" * 32), 1699900000, 42, "src/my file.c")
    assert IndexEntry.from_line(entry.to_line()) == entry


def test_status_empty(repo):
    report = Index.load().status()
    assert report.count("  (nothing to show)") == 3
    assert report.startswith("Staged changes:\n")


def test_status_clean_after_add(repo):
    (repo / "a.txt").write_text("content")
    index = Index.load()
    index.add("a.txt")
    report = index.status()
    assert "  staged:     a.txt" in report
    assert "Unstaged changes:\n  (nothing to show)\n" in report
    assert "Untracked files:\n  (nothing to show)\n" in report


def test_status_modified_and_deleted(repo):
    (repo / "a.txt").write_text("content")
    (repo / "b.txt").write_text("content")
    index = Index.load()
    index.add("a.txt")
    index.add("b.txt")
    (repo / "a.txt").write_text("content that is longer")
    (repo / "b.txt").unlink()
    report = index.status()
    assert "  modified:   a.txt" in report
    assert "  deleted:    b.txt" in report


def test_status_modified_by_mtime(repo):
    path = repo / "a.txt"
    path.write_text("same")
    index = Index.load()
    entry = index.add("a.txt")
    os.utime(path, (entry.mtime_sec + 100, entry.mtime_sec + 100))
    assert "  modified:   a.txt" in index.status()


def test_status_untracked(repo):
    (repo / "notes.txt").write_text("n")
    (repo / "main.o").write_text("obj")
    (repo / "subdir").mkdir()
    report = Index.load().status()
    assert "  untracked:  notes.txt" in report
    assert "main.o" not in report
    assert "subdir" not in report
    assert ".pes" not in report