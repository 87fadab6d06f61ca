"""Run configuration for folder image sync."""
from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

from .errors import SetupError
from .ordering import DEFAULT_PRIORITY_KEYWORD

DEFAULT_MAX_IMAGES = 10
MATCH_FIELD_TYPES = ("text", "number")
UPLOAD_FIELD_TYPES = ("attachment",)

# Option names as the plugin UI stored them.
CAMEL_CASE_ALIASES = {
    "matchFieldId": "match_field_id",
    "uploadFieldId": "upload_field_id",
    "maxImages": "max_images",
    "priorityKeyword": "priority_keyword",
    "writeTimeout": "write_timeout",
    "dryRun": "dry_run",
}


@dataclass(frozen=True)
class SyncConfig:
    match_field_id: Optional[str] = None
    upload_field_id: Optional[str] = None
    max_images: int = DEFAULT_MAX_IMAGES
    priority_keyword: str = DEFAULT_PRIORITY_KEYWORD
    write_timeout: Optional[float] = None
    dry_run: bool = False

    @property
    def effective_cap(self) -> int:
        return max(1, self.max_images or 0)

    def with_overrides(self, **overrides: Any) -> "SyncConfig":
        """Return a copy with every non-None override applied."""
        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **values)


def load_config(path: Optional[Path] = None, **overrides: Any) -> SyncConfig:
    """Build a config from an optional JSON file plus explicit overrides."""
    cfg = SyncConfig()
    if path:
        cfg = cfg.with_overrides(**_read_config_file(Path(path)))
    return cfg.with_overrides(**overrides)


def _read_config_file(path: Path) -> Dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise SetupError(f"Cannot read config {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise SetupError(f"Config {path} must contain a JSON object")
    known = {item.name for item in fields(SyncConfig)}
    values: Dict[str, Any] = {}
    for key, value in payload.items():
        name = CAMEL_CASE_ALIASES.get(key, key)
        if name not in known:
            raise SetupError(f"Unknown config option: {key}")
        values[name] = value
    return values


def select_default_fields(field_metas: Sequence[Any], cfg: SyncConfig) -> Tuple[Optional[str], Optional[str]]:
    """Fill in unset field ids: first text/number field, first attachment field."""
    match_id = cfg.match_field_id
    upload_id = cfg.upload_field_id
    if not match_id:
        match_id = next((meta.id for meta in field_metas if meta.type in MATCH_FIELD_TYPES), None)
    if not upload_id:
        upload_id = next((meta.id for meta in field_metas if meta.type in UPLOAD_FIELD_TYPES), None)
    return match_id, upload_id
