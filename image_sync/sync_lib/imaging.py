"""Image metadata helpers using Pillow."""
from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dateutil import parser as dateparser
from PIL import Image, UnidentifiedImageError


@dataclass
class ImageMetadata:
    width: Optional[int]
    height: Optional[int]
    exif_datetime: Optional[str]


EXIF_DATETIME_TAGS = {36867, 36868, 306}  # DateTimeOriginal, DateTimeDigitized, DateTime


def probe_image(source: Union[Path, bytes]) -> ImageMetadata:
    """Read size and capture time; unreadable images yield empty metadata."""
    width = height = None
    exif_datetime = None
    handle = io.BytesIO(source) if isinstance(source, bytes) else source
    try:
        with Image.open(handle) as img:
            width, height = img.size
            exif = img.getexif()
            if exif:
                for tag in EXIF_DATETIME_TAGS:
                    value = exif.get(tag)
                    if value:
                        exif_datetime = _normalize_datetime(value)
                        if exif_datetime:
                            break
    except (UnidentifiedImageError, OSError):
        pass
    return ImageMetadata(width=width, height=height, exif_datetime=exif_datetime)


def _normalize_datetime(value: str) -> Optional[str]:
    # EXIF stores "YYYY:MM:DD HH:MM:SS"
    text = str(value).strip()
    if len(text) >= 10 and text[4] == ":" and text[7] == ":":
        text = text[:4] + "-" + text[5:7] + "-" + text[8:]
    try:
        return dateparser.parse(text).isoformat()
    except (ValueError, TypeError, OverflowError):
        return None
