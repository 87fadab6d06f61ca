"""Contracts for the host table the engine reads keys from and writes images to."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Sequence

RecordId = str


@dataclass(frozen=True)
class FieldMeta:
    id: str
    name: str
    type: str  # text|number|attachment|...


class RecordSource(Protocol):
    """Async table access; each call is one suspension point of a run."""

    async def list_fields(self) -> Sequence[FieldMeta]:
        ...

    async def list_record_ids(self) -> Sequence[RecordId]:
        ...

    async def read_field(self, record_id: RecordId, field_id: str) -> Any:
        ...

    async def write_field(self, record_id: RecordId, field_id: str, value: Any) -> None:
        """Persist ``value``; raise ``WriteError`` when the table rejects it."""
        ...
