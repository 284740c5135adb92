"""Atomic file I/O primitives for persisting run artifacts."""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path


def write_text_atomic(text: str, path: Path, *, encoding: str = "utf-8") -> Path:
    """Write *text* to *path* atomically.

    Writes to a temporary file in the same directory first, then
    atomically replaces the target via :func:`os.replace`.  This
    prevents readers from ever seeing a partially-written file.

    Args:
        text: Content to persist.
        path: Destination file path.
        encoding: Text encoding of the written file.

    Returns:
        The *path* that was written, for convenient chaining.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=f"{path.suffix}.tmp")
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as f:
            f.write(text)
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp)
        raise
    return path


def remove_quietly(*paths: Path) -> None:
    """Best-effort delete of *paths*; missing or unreachable files are skipped."""
    for path in paths:
        with contextlib.suppress(OSError):
            path.unlink()
