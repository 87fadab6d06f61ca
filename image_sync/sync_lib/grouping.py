"""Group a flat file listing by immediate sub-folder."""
from __future__ import annotations

from typing import Dict, List, Sequence

from . import paths
from .acquisition import RawFile

GroupedFiles = Dict[str, List[RawFile]]


def infer_root(relative_path: str) -> str:
    """The first segment of a path, taken as the picked parent folder."""
    return paths.PATH_SPLIT_RE.split(relative_path.lstrip("/"))[0]


def group_files(files: Sequence[RawFile]) -> GroupedFiles:
    """Return ``{sub-folder: files}`` in insertion order.

    The root is whatever the first file's path starts with. Files under that
    root lose it; files elsewhere keep their own first segment. Anything not
    inside a sub-folder is left out.

    Examples:
        >>> group = group_files([RawFile.from_relative_path("root/X/a.png")])
        >>> list(group)
        ['X']
        >>> group_files([RawFile.from_relative_path("root/a.png")])
        {}
    """
    grouped: GroupedFiles = {}
    if not files:
        return grouped
    root = infer_root(files[0].relative_path)
    for item in files:
        parts = paths.split_relative_path(item.relative_path)
        if not parts:
            continue
        if parts[0] == root:
            parts = parts[1:]
        if len(parts) < 2:
            continue
        grouped.setdefault(parts[0], []).append(item)
    return grouped


def count_images(grouped: GroupedFiles) -> int:
    return sum(len(items) for items in grouped.values())
