# pesvcs

A small version control system that keeps its history in a `.pes`
directory in the current working directory. Content is stored as
SHA-256 addressed objects (blobs, trees and commits), and a plain-text
staging area records what will go into the next commit.

## Installation

```
pip install .
```

This installs the `pes` command. `python -m pesvcs.cli` runs the same
command.

## Usage

Run every command from the top of your working directory.

```
pes init                      # create .pes/ with objects/, refs/heads/ and HEAD
pes add README.md src/main.c  # stage files
pes status                    # staged, unstaged and untracked files
pes commit -m "First commit"  # snapshot the staged files
pes log                       # history from HEAD back to the first commit
```

Running `pes` with no arguments prints the list of commands and exits
with status 1; an unknown command does the same.

- `pes add` stores each file as a blob and records its mode, hash,
  modification time and size in the index. Files that cannot be read
  are reported and the rest are still staged.
- `pes status` lists every indexed file as staged; lists as modified
  the indexed files whose modification time or size differ from the
  index, and as deleted those that no longer exist; and lists as
  untracked the regular files in the top directory that are not in the
  index (names containing `.o`, the name `pes`, and `.pes` are skipped).
- `pes commit -m <msg>` builds tree objects from the index (nested
  paths such as `src/main.c` become subtrees), writes a commit whose
  parent is the current HEAD commit, if any, and moves the branch HEAD
  refers to onto it.
- `pes log` prints each commit's hash, author, timestamp and message,
  newest first, or `No commits yet.` when there are none.

The author recorded in each commit comes from the `PES_AUTHOR`
environment variable; when it is unset or empty a built-in default
author is used:

```
export PES_AUTHOR="Ada Example <ada@example.com>"
```

## Repository layout

```
.pes/
  HEAD               ref: refs/heads/main
  index              staged entries, one per line, sorted by path
  objects/ab/cdef... stored objects, named by the SHA-256 of their content
  refs/heads/main    hash of the latest commit on the branch
```

An object is stored as `<type> <size>\0<data>`, and its name is the
SHA-256 of those bytes. Each line of the index reads
`<mode-octal> <hash> <mtime-seconds> <size> <path>`. Objects, the index
and branch refs are written to a temporary file that is then renamed
over the target.

## Using it as a library

```python
from pesvcs.objects import ObjectType, object_write, object_read
from pesvcs.tree import TreeEntry, tree_serialize, tree_parse
from pesvcs.index import Index
from pesvcs.commit import commit_walk

oid = object_write(ObjectType.BLOB, b"Hello, PES-VCS!\n")
print(oid.hex())
obj_type, data = object_read(oid)

tree_bytes = tree_serialize([TreeEntry(0o100644, oid, "hello.txt")])
entries = tree_parse(tree_bytes)

index = Index.load()
index.add("hello.txt")

for commit_id, commit in commit_walk():
    print(commit_id.hex(), commit.author, commit.message)
```

- `pesvcs.objects`: `ObjectID`, `ObjectType`, `object_write`,
  `object_read`, `object_exists`, `object_path`, `hash_to_hex`,
  `hex_to_hash`, `pes_author`. `object_read` raises `ObjectError` when
  an object is missing or its stored bytes no longer match its hash.
- `pesvcs.index`: `Index` with `load`, `save`, `add`, `remove`, `find`
  and `status` (which returns the report as a string); errors raise
  `IndexError_`.
- `pesvcs.tree`: `TreeEntry`, `tree_serialize`, `tree_parse`,
  `tree_from_index`, `get_file_mode`. Tree entries are always
  serialized sorted by name, so the same set of entries always gives
  the same tree hash.
- `pesvcs.commit`: `Commit` with `serialize` and `parse`,
  `commit_create`, `commit_walk`, `head_read`, `head_update`; errors
  raise `CommitError`.

## What it does not do

There are no commands to unstage files, create or switch branches,
check out or restore earlier commits, or show diffs. `pes status` does
not compare the index with the last commit, and it only looks for
untracked files in the top directory. Commits can only be read back
through `pes log` or the library.

## Running the tests

```
pip install ".[test]"
pytest
```