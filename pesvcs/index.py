"""The staging area kept in ``.pes/index``.

Each line of the index file reads::

    <mode-octal> <64-char-hex-hash> <mtime-seconds> <size> <path>

and lines are sorted by path.
"""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

from .objects import INDEX_FILE, ObjectID, ObjectType, hex_to_hash, object_write

MAX_INDEX_ENTRIES = 10000
MODE_FILE = 0o100644
MODE_EXEC = 0o100755

_IGNORED_NAMES = frozenset({".", "..", ".pes", "pes"})


class IndexError_(Exception):
    """Raised when the index cannot be read, updated or written."""


@dataclass
class IndexEntry:
    """One staged file."""

    mode: int
    hash: ObjectID
    mtime_sec: int
    size: int
    path: str

    def to_line(self) -> str:
        return f"{self.mode:o} {self.hash.hex()} {self.mtime_sec} {self.size} {self.path}"

    @classmethod
    def from_line(cls, line: str) -> "IndexEntry":
        parts = line.split(" ", 4)
        if len(parts) != 5 or not parts[4]:
            raise IndexError_(f"malformed index line: {line!r}")
        mode_text, hex_text, mtime_text, size_text, path = parts
        try:
            return cls(
                mode=int(mode_text, 8),
                hash=hex_to_hash(hex_text),
                mtime_sec=int(mtime_text),
                size=int(size_text),
                path=path,
            )
        except ValueError as exc:
            raise IndexError_(f"malformed index line: {line!r}") from exc


@dataclass
class Index:
    """The set of files staged for the next commit."""

    entries: list[IndexEntry] = field(default_factory=list)

    def __iter__(self) -> Iterator[IndexEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @classmethod
    def load(cls) -> "Index":
        """Read ``.pes/index``; a missing file gives an empty index."""
        try:
            text = Path(INDEX_FILE).read_text(encoding="utf-8")
        except FileNotFoundError:
            return cls()
        except OSError as exc:
            raise IndexError_(f"cannot read index: {exc}") from exc
        entries = [IndexEntry.from_line(line) for line in text.splitlines() if line.strip()]
        if len(entries) > MAX_INDEX_ENTRIES:
            raise IndexError_("index has too many entries")
        return cls(entries)

    def save(self) -> None:
        """Write the index, sorted by path, via a temporary file and rename."""
        self.entries.sort(key=lambda entry: entry.path)
        tmp_path = INDEX_FILE + ".tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as handle:
                for entry in self.entries:
                    handle.write(entry.to_line() + "\n")
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, INDEX_FILE)
        except OSError as exc:
            raise IndexError_(f"cannot write index: {exc}") from exc

    def add(self, path: str) -> IndexEntry:
        """Store the file as a blob, record it in the index and save."""
        try:
            data = Path(path).read_bytes()
            st = os.stat(path)
        except OSError as exc:
            raise IndexError_(f"cannot read '{path}': {exc}") from exc

        blob_id = object_write(ObjectType.BLOB, data)
        mode = MODE_EXEC if st.st_mode & stat.S_IXUSR else MODE_FILE
        mtime = int(st.st_mtime)
        size = st.st_size & 0xFFFFFFFF

        entry = self.find(path)
        if entry is None:
            if len(self.entries) >= MAX_INDEX_ENTRIES:
                raise IndexError_("index is full")
            entry = IndexEntry(mode, blob_id, mtime, size, path)
            self.entries.append(entry)
        else:
            entry.mode = mode
            entry.hash = blob_id
            entry.mtime_sec = mtime
            entry.size = size
        self.save()
        return entry

    def remove(self, path: str) -> None:
        """Unstage a file and save; raise if it is not in the index."""
        entry = self.find(path)
        if entry is None:
            raise IndexError_(f"'{path}' is not in the index")
        self.entries.remove(entry)
        self.save()

    def find(self, path: str) -> Optional[IndexEntry]:
        """Return the entry for ``path``, or None."""
        return next((entry for entry in self.entries if entry.path == path), None)

    def status(self) -> str:
        """Return the staged, unstaged and untracked report for the working directory."""
        staged = [f"  staged:     {entry.path}" for entry in self.entries]

        unstaged = []
        for entry in self.entries:
            try:
                st = os.stat(entry.path)
            except OSError:
                unstaged.append(f"  deleted:    {entry.path}")
                continue
            if int(st.st_mtime) != entry.mtime_sec or st.st_size != entry.size:
                unstaged.append(f"  modified:   {entry.path}")

        tracked = {entry.path for entry in self.entries}
        untracked = []
        try:
            names = sorted(os.listdir("."))
        except OSError:
            names = []
        for name in names:
            if name in _IGNORED_NAMES or ".o" in name or name in tracked:
                continue
            if os.path.isfile(name):
                untracked.append(f"  untracked:  {name}")

        sections = [
            ("Staged changes:", staged),
            ("Unstaged changes:", unstaged),
            ("Untracked files:", untracked),
        ]
        lines = []
        for title, items in sections:
            lines.append(title)
            lines.extend(items or ["  (nothing to show)"])
            lines.append("")
        return "\n".join(lines) + "\n"