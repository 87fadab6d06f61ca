"""JSON-file record table usable as a record source from the command line."""
from __future__ import annotations

import asyncio
import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .. import hashing, imaging
from ..acquisition import RawFile
from ..errors import WriteError
from ..records import FieldMeta, RecordId
from .json_store import BaseJSONStore

ATTACHMENT_TYPE = "attachment"

logger = logging.getLogger(__name__)


def attachment_payload(item: RawFile) -> Dict[str, Any]:
    """Describe one attached image: identity, size, digest, dimensions."""
    data = item.read_bytes()
    metadata = imaging.probe_image(data)
    return {
        "name": item.name,
        "relative_path": item.relative_path,
        "size": len(data),
        "sha256": hashing.sha256_for_bytes(data),
        "width": metadata.width,
        "height": metadata.height,
        "taken_at": metadata.exif_datetime,
    }


class JsonRecordTable(BaseJSONStore):
    """Records with typed fields, persisted as one JSON document.

    Layout::

        {"fields": [{"id": "fld_name", "name": "Name", "type": "text"}],
         "records": [{"id": "rec_1", "fields": {"fld_name": "Alice"}}]}

    Record order in the file is the listing order. Attachment fields are
    written as lists of attachment payloads.
    """

    VERSION = 1

    def _init_data(self) -> Dict[str, Any]:
        data = super()._init_data()
        data["fields"] = []
        data["records"] = []
        return data

    def _load_payload(self, payload: Dict[str, Any]) -> None:
        field_entries = payload.get("fields")
        if isinstance(field_entries, list):
            self._data["fields"] = [
                {"id": str(entry["id"]), "name": str(entry.get("name") or entry["id"]), "type": str(entry.get("type") or "text")}
                for entry in field_entries
                if isinstance(entry, dict) and entry.get("id")
            ]
        records = payload.get("records")
        if isinstance(records, list):
            self._data["records"] = [
                {"id": str(entry["id"]), "fields": dict(entry.get("fields") or {})}
                for entry in records
                if isinstance(entry, dict) and entry.get("id")
            ]

    def fields(self) -> List[FieldMeta]:
        with self.lock:
            return [FieldMeta(id=entry["id"], name=entry["name"], type=entry["type"]) for entry in self._data["fields"]]

    def record_ids(self) -> List[RecordId]:
        with self.lock:
            return [entry["id"] for entry in self._data["records"]]

    def get_value(self, record_id: RecordId, field_id: str) -> Any:
        with self.lock:
            record = self._find_record(record_id)
            if record is None:
                raise KeyError(f"Unknown record: {record_id}")
            return deepcopy(record["fields"].get(field_id))

    def set_value(self, record_id: RecordId, field_id: str, value: Any) -> None:
        self._commit(record_id, field_id, self._prepare(field_id, value))

    async def list_fields(self) -> Sequence[FieldMeta]:
        return await asyncio.to_thread(self.fields)

    async def list_record_ids(self) -> Sequence[RecordId]:
        return await asyncio.to_thread(self.record_ids)

    async def read_field(self, record_id: RecordId, field_id: str) -> Any:
        return await asyncio.to_thread(self.get_value, record_id, field_id)

    async def write_field(self, record_id: RecordId, field_id: str, value: Any) -> None:
        """Read and measure attachments off the event loop, then commit.

        A write cancelled while attachments are still being read leaves the
        record untouched.
        """
        prepared = await asyncio.to_thread(self._prepare, field_id, value)
        await asyncio.to_thread(self._commit, record_id, field_id, prepared)

    def _prepare(self, field_id: str, value: Any) -> Any:
        meta = self._field_meta(field_id)
        if meta is None:
            raise WriteError(f"Unknown field: {field_id}")
        if meta.type == ATTACHMENT_TYPE:
            return self._attachments(value)
        return value

    def _commit(self, record_id: RecordId, field_id: str, value: Any) -> None:
        with self.lock:
            record = self._find_record(record_id)
            if record is None:
                raise WriteError(f"Unknown record: {record_id}")
            record["fields"][field_id] = value
            self._touch_locked()
            self._write_locked()

    def _field_meta(self, field_id: str) -> Optional[FieldMeta]:
        return next((meta for meta in self.fields() if meta.id == field_id), None)

    def _find_record(self, record_id: RecordId) -> Optional[Dict[str, Any]]:
        for record in self._data["records"]:
            if record["id"] == record_id:
                return record
        return None

    def _attachments(self, value: Any) -> List[Dict[str, Any]]:
        if not isinstance(value, (list, tuple)) or not all(isinstance(item, RawFile) for item in value):
            raise WriteError("Attachment fields accept a list of files")
        try:
            return [attachment_payload(item) for item in value]
        except (OSError, ValueError) as exc:
            logger.debug("Attachment read failed", exc_info=True)
            raise WriteError(f"Cannot read attachment: {exc}") from exc
