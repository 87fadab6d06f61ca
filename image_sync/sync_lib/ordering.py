"""Order a group's images: cover first, then numbered, then the rest."""
from __future__ import annotations

import re
from typing import List, Sequence, Tuple

from .acquisition import RawFile
from .collation import zh_sort_key

DEFAULT_PRIORITY_KEYWORD = "封面"
EXTENSION_RE = re.compile(r"\.[^.]+$")
DIGIT_RUN_RE = re.compile(r"[0-9]+")


def base_name(name: str) -> str:
    """File name without its final extension."""
    return EXTENSION_RE.sub("", name)


def sequence_number(name: str) -> int | None:
    """The last digit run of the base name, e.g. ``img_v2_010.png`` -> 10."""
    runs = DIGIT_RUN_RE.findall(base_name(name))
    if not runs:
        return None
    try:
        return int(runs[-1])
    except ValueError:
        # Runs past the interpreter's int conversion limit are unnumbered.
        return None


def order_images(files: Sequence[RawFile], priority_keyword: str = DEFAULT_PRIORITY_KEYWORD) -> List[RawFile]:
    """Return files as cover tier, numbered tier, other tier.

    Examples:
        >>> names = ["02.png", "封面.png", "01.png", "note.png"]
        >>> ordered = order_images([RawFile(n, f"r/A/{n}") for n in names], "封面")
        >>> [item.name for item in ordered]
        ['封面.png', '01.png', '02.png', 'note.png']
    """
    cover: List[RawFile] = []
    numbered: List[Tuple[int, RawFile]] = []
    others: List[RawFile] = []
    for item in files:
        if priority_keyword and priority_keyword in item.name:
            cover.append(item)
            continue
        number = sequence_number(item.name)
        if number is not None:
            numbered.append((number, item))
            continue
        others.append(item)

    cover.sort(key=lambda item: zh_sort_key(item.name))
    numbered.sort(key=lambda entry: (entry[0], zh_sort_key(entry[1].name)))
    others.sort(key=lambda item: zh_sort_key(item.name))
    return cover + [item for _, item in numbered] + others


def cap_images(files: Sequence[RawFile], cap: int) -> List[RawFile]:
    """Keep at most ``cap`` files from the front (never fewer than one slot)."""
    return list(files[: max(1, cap)])
