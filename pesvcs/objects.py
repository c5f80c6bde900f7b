"""Content-addressed object store kept under ``.pes/objects``."""

from __future__ import annotations

import enum
import hashlib
import os
from dataclasses import dataclass
from pathlib import Path

HASH_SIZE = 32
HASH_HEX_SIZE = 64
PES_DIR = ".pes"
OBJECTS_DIR = ".pes/objects"
REFS_DIR = ".pes/refs/heads"
INDEX_FILE = ".pes/index"
HEAD_FILE = ".pes/HEAD"
DEFAULT_AUTHOR = "PES User <pes@localhost>"

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class ObjectError(Exception):
    """Raised when an object cannot be stored, found or verified."""


class ObjectType(enum.Enum):
    """Kinds of object held in the store."""

    BLOB = "blob"
    TREE = "tree"
    COMMIT = "commit"


@dataclass(frozen=True)
class ObjectID:
    """A SHA-256 digest naming an object."""

    digest: bytes

    def __post_init__(self) -> None:
        if len(self.digest) != HASH_SIZE:
            raise ValueError(f"object id must be {HASH_SIZE} bytes, got {len(self.digest)}")

    def hex(self) -> str:
        """Return the digest as 64 lower-case hex characters."""
        return self.digest.hex()

    def __str__(self) -> str:
        return self.hex()


def hash_to_hex(object_id: ObjectID) -> str:
    """Return the hex form of an object id."""
    return object_id.hex()


def hex_to_hash(text: str) -> ObjectID:
    """Parse a 64-character hex string into an object id."""
    if len(text) != HASH_HEX_SIZE or not set(text) <= _HEX_DIGITS:
        raise ValueError(f"invalid object hash: {text!r}")
    return ObjectID(bytes.fromhex(text))


def object_path(object_id: ObjectID) -> Path:
    """Return where the object is kept: ``.pes/objects/<2 hex>/<62 hex>``."""
    hex_id = object_id.hex()
    return Path(OBJECTS_DIR) / hex_id[:2] / hex_id[2:]


def object_exists(object_id: ObjectID) -> bool:
    """Tell whether the object is present in the store."""
    return object_path(object_id).is_file()


def object_write(obj_type: ObjectType, data: bytes) -> ObjectID:
    """Store ``data`` as an object of ``obj_type`` and return its id.

    The stored bytes are ``b"<type> <size>\\0"`` followed by the data, and the
    id is the SHA-256 of those bytes. Writing the same content twice is a no-op.
    """
    data = bytes(data)
    record = f"{obj_type.value} {len(data)}".encode("ascii") + b"\0" + data
    object_id = ObjectID(hashlib.sha256(record).digest())

    path = object_path(object_id)
    if path.is_file():
        return object_id

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(path.name + ".tmp")
        with open(tmp_path, "wb") as handle:
            handle.write(record)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    except OSError as exc:
        raise ObjectError(f"cannot write object {object_id.hex()}: {exc}") from exc
    return object_id


def object_read(object_id: ObjectID) -> tuple[ObjectType, bytes]:
    """Read an object back, verifying its hash, and return ``(type, data)``."""
    path = object_path(object_id)
    try:
        record = path.read_bytes()
    except OSError as exc:
        raise ObjectError(f"cannot read object {object_id.hex()}: {exc}") from exc

    if hashlib.sha256(record).digest() != object_id.digest:
        raise ObjectError(f"object {object_id.hex()} is corrupt")

    header, sep, data = record.partition(b"\0")
    if not sep:
        raise ObjectError(f"object {object_id.hex()} has no header")
    try:
        type_name, size_text = header.decode("ascii").split(" ")
        obj_type = ObjectType(type_name)
        size = int(size_text)
    except (UnicodeDecodeError, ValueError) as exc:
        raise ObjectError(f"object {object_id.hex()} has a malformed header") from exc
    if size != len(data):
        raise ObjectError(f"object {object_id.hex()} has the wrong length")
    return obj_type, data


def pes_author() -> str:
    """Return the author from ``PES_AUTHOR``, or the default when unset or empty."""
    return os.environ.get("PES_AUTHOR") or DEFAULT_AUTHOR