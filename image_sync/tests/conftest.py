from __future__ import annotations

import json
from pathlib import Path

import pytest
from PIL import Image


def write_image(path: Path, size=(4, 3), fmt: str = "PNG") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color=(200, 40, 40)).save(path, format=fmt)
    return path


@pytest.fixture
def table_path(tmp_path: Path) -> Path:
    path = tmp_path / "table.json"
    path.write_text(
        json.dumps(
            {
                "fields": [
                    {"id": "fld_note", "name": "Note", "type": "checkbox"},
                    {"id": "fld_name", "name": "Name", "type": "text"},
                    {"id": "fld_images", "name": "Images", "type": "attachment"},
                ],
                "records": [
                    {"id": "rec_1", "fields": {"fld_name": "Alice"}},
                    {"id": "rec_2", "fields": {"fld_name": [{"type": "text", "text": "张三"}]}},
                    {"id": "rec_3", "fields": {"fld_name": "Nobody"}},
                ],
            },
            ensure_ascii=False,
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def photo_root(tmp_path: Path) -> Path:
    root = tmp_path / "photos"
    write_image(root / "Alice" / "2.png")
    write_image(root / "Alice" / "1.png")
    write_image(root / "Alice" / "封面.png", size=(8, 6))
    (root / "Alice" / "notes.txt").write_text("skip me", encoding="utf-8")
    write_image(root / "张三 (1)" / "a.jpg", fmt="JPEG")
    write_image(root / "Carol" / "1.png")
    write_image(root / "stray.png")
    return root
