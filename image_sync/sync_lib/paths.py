"""Path helpers for sync tooling."""
from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List


IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "bmp", "webp"}
PATH_SPLIT_RE = re.compile(r"[\\/]")


def file_extension(name: str) -> str:
    """Return the lowercased final dot-segment of a file name."""
    return name.rsplit(".", 1)[-1].lower()


def is_supported_image(name: str) -> bool:
    return file_extension(name) in IMAGE_EXTENSIONS


def split_relative_path(relative_path: str) -> List[str]:
    """Split on either separator, dropping empty segments."""
    return [part for part in PATH_SPLIT_RE.split(relative_path) if part]


def iter_files(root: Path) -> Iterable[Path]:
    """Yield files under root in a stable (sorted) order."""
    for entry in sorted(root.rglob("*")):
        if entry.is_file():
            yield entry


def relative_to_root(path: Path, root: Path) -> str:
    """Slash-delimited path of ``path`` prefixed with the root folder name."""
    try:
        relative = path.relative_to(root).as_posix()
    except ValueError:
        return path.name
    return f"{root.name}/{relative}" if root.name else relative
