import hashlib

import pytest

from pesvcs.objects import (
    DEFAULT_AUTHOR,
    ObjectError,
    ObjectID,
    ObjectType,
    hash_to_hex,
    hex_to_hash,
    object_exists,
    object_path,
    object_read,
    object_write,
    pes_author,
)


@pytest.fixture
def repo(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".pes" / "objects").mkdir(parents=True)
    (tmp_path / ".pes" / "refs" / "heads").mkdir(parents=True)
    return tmp_path


def test_blob_storage(repo):
    content = b"Hello, PES-VCS!\n"
    object_id = object_write(ObjectType.BLOB, content)
    assert object_exists(object_id)
    obj_type, data = object_read(object_id)
    assert obj_type is ObjectType.BLOB
    assert len(data) == len(content)
    assert data == content


def test_stored_format_and_hash(repo):
    content = b"Hello, PES-VCS!\n"
    object_id = object_write(ObjectType.BLOB, content)
    stored = (repo / object_path(object_id)).read_bytes()
    assert stored == b"blob 16\x00Hello, PES-VCS!\n"
    assert hashlib.sha256(stored).hexdigest() == object_id.hex()


def test_object_path_layout(repo):
    object_id = object_write(ObjectType.BLOB, b"layout\n")
    path = object_path(object_id)
    hex_id = object_id.hex()
    assert path.parts[:2] == (".pes", "objects")
    assert path.parent.name == hex_id[:2]
    assert path.name == hex_id[2:]


def test_deduplication(repo):
    content = b"Duplicate content\n"
    first = object_write(ObjectType.BLOB, content)
    second = object_write(ObjectType.BLOB, content)
    assert first == second


def test_type_changes_id(repo):
    blob_id = object_write(ObjectType.BLOB, b"same")
    tree_id = object_write(ObjectType.TREE, b"same")
    assert blob_id.digest != tree_id.digest
    assert object_read(tree_id) == (ObjectType.TREE, b"same")


def test_integrity(repo):
    object_id = object_write(ObjectType.BLOB, b"Test integrity\n")
    path = repo / object_path(object_id)
    with open(path, "r+b") as handle:
        handle.seek(20)
        handle.write(b"X")
    with pytest.raises(ObjectError):
        object_read(object_id)


def test_read_missing_object(repo):
    with pytest.raises(ObjectError):
        object_read(ObjectID(b"\x00" * 32))
    assert object_exists(ObjectID(b"\x00" * 32)) is False


def test_hex_round_trip():
    object_id = ObjectID(bytes(range(32)))
    text = hash_to_hex(object_id)
    assert len(text) == 64
    assert hex_to_hash(text) == object_id
    assert hex_to_hash(text.upper()) == object_id


@pytest.mark.parametrize("text", ["zz" * 32, "ab" * 31, "ab" * 33, ""])
def test_hex_to_hash_rejects_invalid(text):
    with pytest.raises(ValueError):
        hex_to_hash(text)


def test_object_id_requires_32_bytes():
    with pytest.raises(ValueError):
        ObjectID(b"\x01" * 31)


def test_pes_author_default(monkeypatch):
    monkeypatch.delenv("PES_AUTHOR", raising=False)
    assert pes_author() == DEFAULT_AUTHOR
    monkeypatch.setenv("PES_AUTHOR", "")
    assert pes_author() == "PES User <pes@localhost>"


def test_pes_author_from_environment(monkeypatch):
    monkeypatch.setenv("PES_AUTHOR", "Ada <ada@example.com>")
    assert pes_author() == "Ada <ada@example.com>"