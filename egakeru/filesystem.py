"""File helpers used by the resource loaders."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from pathlib import Path

DEFAULT_MAX_LINE = 512


def does_path_exist(path: str | os.PathLike) -> bool:
    """Return whether ``path`` exists, resolved against the working directory."""
    return Path(path).absolute().exists()


def _iter_lines(path: Path, limit: int) -> Iterator[str]:
    with path.open("r", encoding="utf-8", errors="surrogateescape") as handle:
        while chunk := handle.readline(limit):
            line = chunk.split("\n", 1)[0]
            yield line.split("\0", 1)[0]


def read_lines(path: str | os.PathLike, max_size: int = DEFAULT_MAX_LINE) -> Iterator[str]:
    """Yield the lines of a text file without their newline.

    A line longer than ``max_size - 1`` characters is yielded in pieces of at
    most that length. Blank lines are yielded as empty strings.
    """
    if max_size < 2:
        raise ValueError(f"max_size must be at least 2, got {max_size}")
    resolved = Path(path).absolute()
    if not resolved.is_file():
        raise FileNotFoundError(f"Invalid file path, does not exist: {path}")
    return _iter_lines(resolved, max_size - 1)


def read_all(path: str | os.PathLike) -> bytes:
    """Return the whole content of a file as bytes."""
    resolved = Path(path).absolute()
    if not resolved.is_file():
        raise FileNotFoundError(f"Invalid file path, does not exist: {path}")
    return resolved.read_bytes()


def write_lines(path: str | os.PathLike, lines: Iterable[str]) -> None:
    """Write each line followed by a newline, replacing any existing file."""
    with Path(path).absolute().open("w", encoding="utf-8", newline="\n") as handle:
        for line in lines:
            handle.write(f"{line}\n")