"""Per-folder preview of what a run would upload."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Sequence

from .acquisition import RawFile
from .normalizer import normalize_folder_name
from .ordering import order_images

PREVIEW_SIZE = 3


@dataclass
class FolderPreview:
    folder: str
    key: str
    total: int
    preview: List[str]


def build_preview(
    groups: Mapping[str, Sequence[RawFile]],
    priority_keyword: str,
    size: int = PREVIEW_SIZE,
) -> List[FolderPreview]:
    return [
        FolderPreview(
            folder=folder,
            key=normalize_folder_name(folder),
            total=len(files),
            preview=[item.name for item in order_images(files, priority_keyword)[:size]],
        )
        for folder, files in groups.items()
    ]
