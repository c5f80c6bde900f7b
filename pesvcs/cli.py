"""Command-line front end: ``pes init|add|status|commit|log``."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from .commit import Commit, CommitError, commit_create, commit_walk
from .index import Index, IndexError_
from .objects import HEAD_FILE, OBJECTS_DIR, PES_DIR, REFS_DIR, ObjectError, ObjectID

USAGE = """Usage: pes <command> [args]

Commands:
  init            Create a new PES repository
  add <file>...   Stage files for commit
  status          Show working directory status
  commit -m <msg> Create a commit from staged files
  log             Show commit history
"""


def _error(message: str) -> None:
    print(message, file=sys.stderr)


def cmd_init() -> None:
    """Create the repository layout and a HEAD pointing at ``main``."""
    try:
        os.mkdir(PES_DIR, 0o755)
    except FileExistsError:
        pass
    except OSError:
        if not os.path.exists(PES_DIR):
            _error(f"error: failed to create {PES_DIR}")
            return

    for directory in (OBJECTS_DIR, os.path.join(PES_DIR, "refs"), REFS_DIR):
        try:
            os.mkdir(directory, 0o755)
        except OSError:
            pass

    head = Path(HEAD_FILE)
    if not head.exists():
        try:
            head.write_text("ref: refs/heads/main\n", encoding="utf-8")
        except OSError:
            pass

    print(f"Initialized empty PES repository in {PES_DIR}/")


def cmd_add(paths: Sequence[str]) -> None:
    """Stage each of ``paths``, reporting the ones that fail."""
    if not paths:
        _error("Usage: pes add <file>...")
        return

    try:
        index = Index.load()
    except IndexError_:
        _error("error: failed to load index")
        return

    for path in paths:
        try:
            index.add(path)
        except (IndexError_, ObjectError):
            _error(f"error: failed to add '{path}'")


def cmd_status() -> None:
    """Print the staged, unstaged and untracked report."""
    try:
        index = Index.load()
    except IndexError_:
        _error("error: failed to load index")
        return
    sys.stdout.write(index.status())


def cmd_commit(args: Sequence[str]) -> None:
    """Handle ``commit -m <message>``; ``args`` are the words after ``commit``."""
    if len(args) < 2 or args[0] != "-m":
        _error('error: commit requires a message (-m "message")')
        return

    message = args[1]
    try:
        commit_id = commit_create(message)
    except CommitError:
        _error("error: commit failed")
        return
    print(f"Committed: {commit_id.hex()[:12]}... {message}")


def _print_commit(commit_id: ObjectID, commit: Commit) -> None:
    print(f"commit {commit_id.hex()}")
    print(f"Author: {commit.author}")
    print(f"Date:   {commit.timestamp}")
    print(f"\n    {commit.message}\n")


def cmd_log() -> None:
    """Print history from HEAD back to the first commit."""
    try:
        for commit_id, commit in commit_walk():
            _print_commit(commit_id, commit)
    except CommitError:
        _error("No commits yet.")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Dispatch a command; return the process exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        sys.stderr.write(USAGE)
        return 1

    command, rest = args[0], args[1:]
    if command == "init":
        cmd_init()
    elif command == "add":
        cmd_add(rest)
    elif command == "status":
        cmd_status()
    elif command == "commit":
        cmd_commit(rest)
    elif command == "log":
        cmd_log()
    else:
        _error(f"Unknown command: {command}")
        _error("Run 'pes' with no arguments for usage.")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())