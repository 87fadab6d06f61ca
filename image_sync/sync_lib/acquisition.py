"""Turn a picked folder into the flat file list the grouper consumes."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from . import paths

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawFile:
    """One acquired file: leaf name, root-prefixed relative path, content."""

    name: str
    relative_path: str
    path: Optional[Path] = None
    content: Optional[bytes] = field(default=None, repr=False)

    @classmethod
    def from_relative_path(cls, relative_path: str, content: Optional[bytes] = None) -> "RawFile":
        parts = paths.split_relative_path(relative_path)
        name = parts[-1] if parts else ""
        return cls(name=name, relative_path=relative_path.lstrip("/"), content=content)

    def read_bytes(self) -> bytes:
        if self.content is not None:
            return self.content
        if self.path is None:
            raise ValueError(f"No content available for {self.relative_path}")
        return self.path.read_bytes()


def collect_folder(root: Path) -> List[RawFile]:
    """Walk ``root`` and return every file, relative paths prefixed by its name."""
    root = Path(root)
    if not root.is_dir():
        raise NotADirectoryError(f"{root} is not a directory")
    files = [
        RawFile(name=path.name, relative_path=paths.relative_to_root(path, root), path=path)
        for path in paths.iter_files(root)
    ]
    logger.debug("Collected %d files under %s", len(files), root)
    return files


def from_pairs(pairs: Iterable[Tuple[str, bytes]]) -> List[RawFile]:
    """Build files from (relative path, content) pairs."""
    return [RawFile.from_relative_path(relative, content) for relative, content in pairs]


def filter_images(files: Sequence[RawFile]) -> Tuple[List[RawFile], int]:
    """Keep supported image files; return them with the ignored count."""
    images = [item for item in files if paths.is_supported_image(item.name)]
    return images, len(files) - len(images)
