"""Tests for the reconciliation engine."""
from __future__ import annotations

import asyncio
from typing import Any, Dict, Iterable, List, Optional

import pytest

from sync_lib.acquisition import RawFile
from sync_lib.config import SyncConfig
from sync_lib.errors import SetupError, WriteError
from sync_lib.grouping import group_files
from sync_lib.reconcile import (
    ABORT_CANCELLED,
    ABORT_ERROR,
    ABORT_NO_SUBFOLDERS,
    OutcomeStatus,
    Reconciler,
    RunLog,
    reconcile,
)
from sync_lib.records import FieldMeta

MATCH = "fld_key"
UPLOAD = "fld_images"


class FakeSource:
    """In-memory record source recording every write."""

    def __init__(
        self,
        values: Dict[str, Any],
        *,
        reject: Iterable[str] = (),
        list_error: Optional[Exception] = None,
        write_delay: float = 0.0,
    ) -> None:
        self.values = values
        self.reject = set(reject)
        self.list_error = list_error
        self.write_delay = write_delay
        self.writes: List[tuple] = []

    async def list_fields(self):
        return [FieldMeta(MATCH, "Key", "text"), FieldMeta(UPLOAD, "Images", "attachment")]

    async def list_record_ids(self):
        if self.list_error:
            raise self.list_error
        return list(self.values)

    async def read_field(self, record_id, field_id):
        return self.values[record_id]

    async def write_field(self, record_id, field_id, value):
        if self.write_delay:
            await asyncio.sleep(self.write_delay)
        if record_id in self.reject:
            raise WriteError("quota exceeded")
        self.writes.append((record_id, field_id, [item.name for item in value]))


def _cfg(**overrides) -> SyncConfig:
    return SyncConfig(match_field_id=MATCH, upload_field_id=UPLOAD).with_overrides(**overrides)


def _group(folder: str, *names: str) -> List[RawFile]:
    return [RawFile(name=name, relative_path=f"root/{folder}/{name}") for name in names]


def test_match_and_skip_partition():
    source = FakeSource({"r1": "Alice"})
    groups = {"Alice": _group("Alice", "2.png", "1.png"), "Carol": _group("Carol", "1.png")}
    summary = reconcile(source, groups, _cfg())
    assert (summary.success, summary.failed, summary.skipped) == (1, 0, 1)
    assert summary.success + summary.failed + summary.skipped == len(groups)
    assert source.writes == [("r1", UPLOAD, ["1.png", "2.png"])]
    statuses = [outcome.status for outcome in summary.outcomes]
    assert statuses == [OutcomeStatus.MATCHED, OutcomeStatus.SKIPPED_NO_MATCH]
    assert summary.outcomes[0].uploaded_count == 2
    assert summary.aborted is None


def test_zero_groups_aborts_without_writes():
    files = [RawFile.from_relative_path(path) for path in ("root/a.png", "root/b.png")]
    groups = group_files(files)
    assert groups == {}
    source = FakeSource({"r1": "Alice"})
    summary = reconcile(source, groups, _cfg())
    assert summary.aborted == ABORT_NO_SUBFOLDERS
    assert source.writes == []
    assert summary.outcomes == []
    assert "No sub-folders detected" in summary.log.latest


def test_collision_later_record_wins():
    source = FakeSource({"r1": "Alice", "r2": " Alice "})
    summary = reconcile(source, {"Alice": _group("Alice", "1.png")}, _cfg())
    assert summary.match_index == {"Alice": "r2"}
    assert source.writes[0][0] == "r2"


def test_empty_values_never_indexed():
    source = FakeSource({"r1": None, "r2": "   ", "r3": []})
    summary = reconcile(source, {"   ": _group("x", "1.png")}, _cfg())
    assert summary.match_index == {}
    assert summary.record_count == 3
    assert summary.outcomes[0].status is OutcomeStatus.SKIPPED_NO_MATCH


def test_empty_group_after_ordering_is_skipped():
    source = FakeSource({"r1": "Alice"})
    summary = reconcile(source, {"Alice": []}, _cfg())
    assert summary.outcomes[0].status is OutcomeStatus.SKIPPED_EMPTY
    assert (summary.success, summary.failed, summary.skipped) == (0, 0, 1)
    assert source.writes == []


def test_write_failure_is_isolated():
    source = FakeSource({"r1": "Alice", "r2": "Bob"}, reject={"r1"})
    groups = {"Alice": _group("Alice", "1.png"), "Bob": _group("Bob", "1.png")}
    summary = reconcile(source, groups, _cfg())
    assert (summary.success, summary.failed, summary.skipped) == (1, 1, 0)
    assert summary.outcomes[0].error == "quota exceeded"
    assert source.writes == [("r2", UPLOAD, ["1.png"])]
    assert any("quota exceeded" in line for line in summary.log)


def test_oversized_number_does_not_abort_sibling_groups():
    source = FakeSource({"r1": "Alice", "r2": "Bob"})
    huge = "9" * 5000 + ".png"
    groups = {"Alice": _group("Alice", huge, "1.png"), "Bob": _group("Bob", "1.png")}
    summary = reconcile(source, groups, _cfg())
    assert summary.aborted is None
    assert (summary.success, summary.failed, summary.skipped) == (2, 0, 0)
    assert source.writes == [("r1", UPLOAD, ["1.png", huge]), ("r2", UPLOAD, ["1.png"])]


def test_cap_keeps_cover_and_lowest_numbers():
    source = FakeSource({"r1": "Alice"})
    group = _group("Alice", "5.png", "4.png", "封面.png", "3.png", "2.png", "1.png")
    summary = reconcile(source, {"Alice": group}, _cfg(max_images=3))
    assert source.writes == [("r1", UPLOAD, ["封面.png", "1.png", "2.png"])]
    assert any("over the limit 3" in line for line in summary.log)


def test_custom_priority_keyword():
    source = FakeSource({"r1": "Alice"})
    group = _group("Alice", "1.png", "front.png")
    reconcile(source, {"Alice": group}, _cfg(priority_keyword="front"))
    assert source.writes[0][2] == ["front.png", "1.png"]


def test_copied_folder_matches_original_record():
    source = FakeSource({"r1": "Alice", "r2": "Bob"})
    groups = {"Alice (2)": _group("Alice (2)", "1.png"), "Bob - 副本": _group("Bob - 副本", "1.png")}
    summary = reconcile(source, groups, _cfg())
    assert [write[0] for write in source.writes] == ["r1", "r2"]
    assert summary.success == 2


def test_structured_and_numeric_values_match():
    source = FakeSource({"r1": [{"type": "text", "text": "张三"}], "r2": 1001})
    groups = {"张三": _group("张三", "a.png"), "1001": _group("1001", "a.png")}
    summary = reconcile(source, groups, _cfg())
    assert summary.success == 2


def test_listing_error_ends_run_with_partial_counts():
    source = FakeSource({"r1": "Alice"}, list_error=RuntimeError("table offline"))
    summary = reconcile(source, {"Alice": _group("Alice", "1.png")}, _cfg())
    assert summary.aborted == ABORT_ERROR
    assert (summary.success, summary.failed, summary.skipped) == (0, 0, 0)
    assert summary.log.latest == "Run failed: table offline"


def test_missing_fields_is_a_setup_error():
    source = FakeSource({"r1": "Alice"})
    with pytest.raises(SetupError):
        asyncio.run(Reconciler(source, SyncConfig()).run({"Alice": _group("Alice", "1.png")}))


def test_cancellation_only_between_groups():
    source = FakeSource({"r1": "A", "r2": "B", "r3": "C"})
    groups = {name: _group(name, "1.png") for name in ("A", "B", "C")}
    checks: List[int] = []

    def should_continue() -> bool:
        checks.append(1)
        return len(checks) <= 2

    summary = asyncio.run(Reconciler(source, _cfg(), should_continue=should_continue).run(groups))
    assert summary.aborted == ABORT_CANCELLED
    assert [write[0] for write in source.writes] == ["r1", "r2"]
    assert summary.groups_processed == 2


def test_write_timeout_counts_as_failure():
    source = FakeSource({"r1": "Alice"}, write_delay=0.5)
    summary = reconcile(source, {"Alice": _group("Alice", "1.png")}, _cfg(write_timeout=0.01))
    assert summary.failed == 1
    assert "timed out" in summary.outcomes[0].error
    assert summary.aborted is None


def test_dry_run_writes_nothing():
    source = FakeSource({"r1": "Alice"})
    summary = reconcile(source, {"Alice": _group("Alice", "1.png")}, _cfg(dry_run=True))
    assert source.writes == []
    assert summary.success == 1
    assert summary.dry_run


def test_runs_are_reproducible():
    groups = {
        "Alice": _group("Alice", "b.png", "10.png", "封面.png", "2.png"),
        "Zed": _group("Zed", "1.png"),
        "Bob (1)": _group("Bob (1)", "x.png"),
    }
    first = reconcile(FakeSource({"r1": "Alice", "r2": "Bob"}), groups, _cfg(max_images=3))
    second = reconcile(FakeSource({"r1": "Alice", "r2": "Bob"}), groups, _cfg(max_images=3))
    assert first.outcomes == second.outcomes
    assert first.log.entries == second.log.entries
    assert first.log.latest == first.summary_line() == "Done: 2 succeeded, 0 failed, 1 skipped"


def test_run_log_keeps_newest_first_and_caps():
    run_log = RunLog()
    for idx in range(600):
        run_log.info(f"line {idx}")
    assert len(run_log) == 500
    assert run_log.entries[0] == "line 599"
    assert run_log.chronological()[0] == "line 100"
