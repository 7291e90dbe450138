"""Filesystem-backed file listing and reading for workspace walks."""

from __future__ import annotations

import fnmatch
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

DEFAULT_EXCLUDES: tuple[str, ...] = (
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "__pycache__",
    ".venv",
    "venv",
    ".tox",
    ".mypy_cache",
    ".pytest_cache",
    "dist",
    "build",
)


def list_workspace_files(
    root: str | Path,
    exclude: Iterable[str] = DEFAULT_EXCLUDES,
) -> Iterator[str]:
    """Yield workspace-relative POSIX paths of every file under *root*.

    Directories whose name matches any glob in *exclude* are not descended
    into. Output order is sorted and therefore stable between runs.
    """
    root = Path(root)
    patterns = tuple(exclude)

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            d for d in dirnames if not any(fnmatch.fnmatch(d, p) for p in patterns)
        )
        rel_dir = Path(dirpath).relative_to(root)
        for filename in sorted(filenames):
            if any(fnmatch.fnmatch(filename, p) for p in patterns):
                continue
            yield (rel_dir / filename).as_posix()


class FileSystemReader:
    """Read workspace-relative paths as bytes."""

    __slots__ = ("root",)

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def __call__(self, identity: str) -> bytes:
        return (self.root / identity).read_bytes()
