"""Reconciliation of folder groups against table records."""

from .engine import (  # noqa: F401
    ABORT_CANCELLED,
    ABORT_ERROR,
    ABORT_NO_SUBFOLDERS,
    GroupOutcome,
    OutcomeStatus,
    Reconciler,
    RunSummary,
    build_match_index,
    reconcile,
)
from .run_log import RunLog  # noqa: F401

__all__ = [
    "ABORT_CANCELLED",
    "ABORT_ERROR",
    "ABORT_NO_SUBFOLDERS",
    "GroupOutcome",
    "OutcomeStatus",
    "Reconciler",
    "RunSummary",
    "RunLog",
    "build_match_index",
    "reconcile",
]
