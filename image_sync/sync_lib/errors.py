"""Folder image sync exception hierarchy."""

from __future__ import annotations


class SyncError(Exception):
    """Base exception for all sync failures."""


class SetupError(SyncError):
    """Raised when a run cannot start (no table, fields, or files selected)."""


class WriteError(SyncError):
    """Raised by a record source when it rejects a field write."""
