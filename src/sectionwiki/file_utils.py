"""Async file helpers for the JSON file store."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path


async def read_text_async(path: Path, encoding: str = "utf-8") -> str:
    """Read text from a file asynchronously using a thread pool.

    Args:
        path: Path to the file to read.
        encoding: Text encoding to use.

    Returns:
        The file contents as a string.
    """
    return await asyncio.to_thread(path.read_text, encoding=encoding)


def _write_atomic(path: Path, content: str, encoding: str) -> None:
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(content, encoding=encoding)
    os.replace(tmp_path, path)


async def write_text_atomic_async(path: Path, content: str, encoding: str = "utf-8") -> None:
    """Write text to a temporary sibling file, then move it over ``path``.

    Readers never observe a half-written file.
    """
    await asyncio.to_thread(_write_atomic, path, content, encoding)


async def mkdir_async(
    path: Path, parents: bool = False, exist_ok: bool = False
) -> None:
    """Create a directory asynchronously using a thread pool.

    Args:
        path: Path to the directory to create.
        parents: If True, create parent directories as needed.
        exist_ok: If True, don't raise an error if directory exists.
    """
    await asyncio.to_thread(path.mkdir, parents=parents, exist_ok=exist_ok)
