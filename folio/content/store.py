"""
Content Store — flat-file records.

A content record is a text file of `Key: value` blocks separated by `----`
lines:

    Title: Hello

    ----

    Text:

    Multi-line
    body

    ----

    Uuid: x3kq9v0c2mfe1ab7

Reads take a shared lock, writes an exclusive lock and land via temp file +
fsync + os.replace, so a reader never sees a half-written record. Locks are
re-entrant inside one process: code holding `locked(path)` can call read()
and write() on the same path without deadlocking on itself.
"""

import contextlib
import fcntl
import os
import re
import tempfile
import threading
from pathlib import Path

SEPARATOR = "----"

_SPLIT = re.compile(r"^----\s*$", re.MULTILINE)
_ESCAPED = re.compile(r"^\\----", re.MULTILINE)
_NEEDS_ESCAPE = re.compile(r"^----", re.MULTILINE)

# paths whose lock this process already holds, per thread
_held = threading.local()


def _held_paths() -> dict:
    if not hasattr(_held, "paths"):
        _held.paths = {}
    return _held.paths


def normalize_key(key: str) -> str:
    """`Meta Title` / `meta-title` → `meta_title`."""
    return re.sub(r"[\s-]+", "_", key.strip()).lower()


def decode(text: str) -> dict[str, str]:
    """Parse record text into a dict of lowercase keys."""
    data = {}
    text = text.replace("\r\n", "\n").lstrip("\ufeff")

    for block in _SPLIT.split(text):
        if ":" not in block:
            continue
        key, value = block.split(":", 1)
        key = normalize_key(key)
        if not key:
            continue
        data[key] = _ESCAPED.sub(SEPARATOR, value.strip())

    return data


def encode(data: dict) -> str:
    """Serialize a dict into record text. None values are dropped."""
    blocks = []
    for key, value in data.items():
        if value is None:
            continue
        value = _NEEDS_ESCAPE.sub("\\\\" + SEPARATOR, str(value).strip())
        name = normalize_key(key)
        name = name[:1].upper() + name[1:]
        glue = "\n\n" if "\n" in value else " "
        blocks.append(f"{name}:{glue}{value}")

    return ("\n\n" + SEPARATOR + "\n\n").join(blocks) + "\n"


def _lock_path(path: Path) -> Path:
    return path.parent / f".{path.name}.lock"


@contextlib.contextmanager
def locked(path: Path, exclusive: bool = True):
    """Hold a lock on a record for the duration of the block."""
    path = Path(path)
    held = _held_paths()
    key = str(path.resolve())

    if key in held:
        # Already locked by this thread. A shared holder may not upgrade.
        if exclusive and not held[key]:
            raise RuntimeError(f"Cannot upgrade shared lock on {path}")
        yield
        return

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(_lock_path(path), "a") as handle:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
        held[key] = exclusive
        try:
            yield
        finally:
            del held[key]
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


def read(path: Path) -> dict[str, str]:
    """Read a record. Missing files read as an empty record."""
    path = Path(path)
    if not path.exists():
        return {}

    with locked(path, exclusive=False):
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}

    return decode(text)


def write(path: Path, data: dict) -> bool:
    """Replace a record atomically. Raises OSError on failure."""
    path = Path(path)
    payload = encode(data)

    with locked(path, exclusive=True):
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp)
            raise

    return True
