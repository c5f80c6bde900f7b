"""Tree objects: directory snapshots mapping names to blobs and subtrees.

A serialized tree is the concatenation, in name order, of one record per entry::

    b"<mode-as-octal> <name>\\0" + <32-byte binary hash>
"""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass

from .index import Index, IndexEntry
from .objects import HASH_SIZE, ObjectID, ObjectType, object_write

MAX_TREE_ENTRIES = 1024
MAX_NAME_LENGTH = 255
MAX_MODE_LENGTH = 15

MODE_FILE = 0o100644
MODE_EXEC = 0o100755
MODE_DIR = 0o040000


@dataclass(frozen=True)
class TreeEntry:
    """One named entry of a tree: a file blob or a subtree."""

    mode: int
    hash: ObjectID
    name: str

    def to_bytes(self) -> bytes:
        return f"{self.mode:o} {self.name}".encode("utf-8") + b"\0" + self.hash.digest


def get_file_mode(path: str | os.PathLike[str]) -> int:
    """Return the tree mode for ``path``, or 0 when it cannot be examined."""
    try:
        st = os.lstat(path)
    except OSError:
        return 0
    if stat.S_ISDIR(st.st_mode):
        return MODE_DIR
    if st.st_mode & stat.S_IXUSR:
        return MODE_EXEC
    return MODE_FILE


def tree_parse(data: bytes) -> list[TreeEntry]:
    """Parse serialized tree data; raise ValueError when it is malformed.

    At most ``MAX_TREE_ENTRIES`` entries are read.
    """
    data = bytes(data)
    entries: list[TreeEntry] = []
    pos = 0
    end = len(data)
    while pos < end and len(entries) < MAX_TREE_ENTRIES:
        space = data.find(b" ", pos)
        if space < 0:
            raise ValueError("tree entry has no mode separator")
        mode_text = data[pos:space]
        if len(mode_text) > MAX_MODE_LENGTH:
            raise ValueError("tree entry mode is too long")
        try:
            mode = int(mode_text.decode("ascii"), 8)
        except (UnicodeDecodeError, ValueError) as exc:
            raise ValueError(f"tree entry has a bad mode: {mode_text!r}") from exc
        pos = space + 1

        nul = data.find(b"\0", pos)
        if nul < 0:
            raise ValueError("tree entry name is not terminated")
        raw_name = data[pos:nul]
        if len(raw_name) > MAX_NAME_LENGTH:
            raise ValueError("tree entry name is too long")
        try:
            name = raw_name.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValueError("tree entry name is not valid UTF-8") from exc
        pos = nul + 1

        if pos + HASH_SIZE > end:
            raise ValueError("tree entry hash is truncated")
        digest = data[pos:pos + HASH_SIZE]
        pos += HASH_SIZE

        entries.append(TreeEntry(mode, ObjectID(digest), name))
    return entries


def tree_serialize(entries) -> bytes:
    """Serialize tree entries, sorted by name, into the binary tree format."""
    ordered = sorted(entries, key=lambda entry: entry.name.encode("utf-8"))
    return b"".join(entry.to_bytes() for entry in ordered)


def _write_level(items: list[tuple[list[str], IndexEntry]]) -> ObjectID:
    files: list[TreeEntry] = []
    subdirs: dict[str, list[tuple[list[str], IndexEntry]]] = {}
    for parts, entry in items:
        if len(parts) == 1:
            files.append(TreeEntry(entry.mode, entry.hash, parts[0]))
        else:
            subdirs.setdefault(parts[0], []).append((parts[1:], entry))

    tree_entries = files + [
        TreeEntry(MODE_DIR, _write_level(children), name)
        for name, children in subdirs.items()
    ]
    if len(tree_entries) > MAX_TREE_ENTRIES:
        raise ValueError("directory has too many entries for one tree")
    return object_write(ObjectType.TREE, tree_serialize(tree_entries))


def tree_from_index() -> ObjectID:
    """Build trees for every staged path, store them, and return the root tree id."""
    index = Index.load()
    items = [
        ([part for part in entry.path.split("/") if part], entry)
        for entry in index
    ]
    return _write_level([(parts, entry) for parts, entry in items if parts])