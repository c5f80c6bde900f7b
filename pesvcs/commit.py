"""Commit objects, HEAD handling and history traversal.

A commit is stored as text::

    tree <hex>
    parent <hex>            (absent for the first commit)
    author <name> <unix-timestamp>
    committer <name> <unix-timestamp>

    <message>
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from .objects import (
    HEAD_FILE,
    PES_DIR,
    ObjectError,
    ObjectID,
    ObjectType,
    hex_to_hash,
    object_read,
    object_write,
    pes_author,
)
from .tree import tree_from_index

_REF_PREFIX = "ref: "


class CommitError(Exception):
    """Raised when a commit or ref cannot be read, parsed or written."""


def _take_line(text: str) -> tuple[str, str]:
    line, sep, rest = text.partition("\n")
    if not sep:
        raise CommitError("commit object is truncated")
    return line, rest


def _parse_hash(text: str) -> ObjectID:
    try:
        return hex_to_hash(text.strip())
    except ValueError as exc:
        raise CommitError(f"bad hash in commit: {text!r}") from exc


@dataclass
class Commit:
    """A snapshot tree together with its parent, author, time and message."""

    tree: ObjectID
    parent: Optional[ObjectID]
    author: str
    timestamp: int
    message: str

    @property
    def has_parent(self) -> bool:
        return self.parent is not None

    def serialize(self) -> bytes:
        """Return the text form stored as a commit object."""
        lines = [f"tree {self.tree.hex()}\n"]
        if self.parent is not None:
            lines.append(f"parent {self.parent.hex()}\n")
        lines.append(f"author {self.author} {self.timestamp}\n")
        lines.append(f"committer {self.author} {self.timestamp}\n")
        lines.append("\n")
        lines.append(self.message)
        return "".join(lines).encode("utf-8")

    @classmethod
    def parse(cls, data: bytes) -> "Commit":
        """Parse the stored text form; raise CommitError when it is malformed."""
        try:
            rest = bytes(data).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CommitError("commit object is not valid UTF-8") from exc

        line, rest = _take_line(rest)
        if not line.startswith("tree "):
            raise CommitError("commit has no tree line")
        tree = _parse_hash(line[len("tree "):])

        parent = None
        if rest.startswith("parent "):
            line, rest = _take_line(rest)
            parent = _parse_hash(line[len("parent "):])

        line, rest = _take_line(rest)
        if not line.startswith("author "):
            raise CommitError("commit has no author line")
        author, sep, stamp = line[len("author "):].rpartition(" ")
        if not sep:
            raise CommitError("author line has no timestamp")
        try:
            timestamp = int(stamp)
        except ValueError as exc:
            raise CommitError(f"bad timestamp in commit: {stamp!r}") from exc

        _, rest = _take_line(rest)  # committer line
        _, rest = _take_line(rest)  # blank separator
        return cls(tree, parent, author, timestamp, rest)


def _read_first_line(path: Path) -> str:
    try:
        with open(path, encoding="utf-8") as handle:
            line = handle.readline()
    except OSError as exc:
        raise CommitError(f"cannot read {path}: {exc}") from exc
    if not line:
        raise CommitError(f"{path} is empty")
    return line.rstrip("\r\n")


def _head_target() -> Path:
    line = _read_first_line(Path(HEAD_FILE))
    if line.startswith(_REF_PREFIX):
        return Path(PES_DIR) / line[len(_REF_PREFIX):]
    return Path(HEAD_FILE)


def head_read() -> ObjectID:
    """Return the commit HEAD points to, following a symbolic ref.

    Raises CommitError when there is no commit yet.
    """
    line = _read_first_line(Path(HEAD_FILE))
    if line.startswith(_REF_PREFIX):
        line = _read_first_line(Path(PES_DIR) / line[len(_REF_PREFIX):])
    return _parse_hash(line)


def head_update(commit_id: ObjectID) -> None:
    """Point the current branch (or a detached HEAD) at ``commit_id`` atomically."""
    target = _head_target()
    tmp_path = target.with_name(target.name + ".tmp")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as handle:
            handle.write(commit_id.hex() + "\n")
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, target)
    except OSError as exc:
        raise CommitError(f"cannot update {target}: {exc}") from exc


def commit_create(message: str) -> ObjectID:
    """Commit the staged index with ``message`` and move HEAD to it."""
    try:
        tree_id = tree_from_index()
    except (ObjectError, ValueError) as exc:
        raise CommitError(f"cannot build tree: {exc}") from exc

    try:
        parent = head_read()
    except CommitError:
        parent = None

    commit = Commit(
        tree=tree_id,
        parent=parent,
        author=pes_author(),
        timestamp=int(time.time()),
        message=message,
    )
    try:
        commit_id = object_write(ObjectType.COMMIT, commit.serialize())
    except ObjectError as exc:
        raise CommitError(f"cannot store commit: {exc}") from exc
    head_update(commit_id)
    return commit_id


def commit_walk() -> Iterator[tuple[ObjectID, Commit]]:
    """Yield ``(id, commit)`` from HEAD back to the root commit, newest first."""
    commit_id = head_read()
    while True:
        try:
            _, data = object_read(commit_id)
        except ObjectError as exc:
            raise CommitError(str(exc)) from exc
        commit = Commit.parse(data)
        yield commit_id, commit
        if commit.parent is None:
            return
        commit_id = commit.parent