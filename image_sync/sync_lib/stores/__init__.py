"""Store classes for persistent data management."""
from .json_store import BaseJSONStore
from .record_table import JsonRecordTable, attachment_payload

__all__ = [
    'BaseJSONStore',
    'JsonRecordTable',
    'attachment_payload',
]
