"""Match folder groups to records, then cap, order and attach their images."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..acquisition import RawFile
from ..config import SyncConfig
from ..errors import SetupError
from ..normalizer import describe_value, normalize, normalize_folder_name, quote_key
from ..ordering import cap_images, order_images
from ..records import RecordId, RecordSource
from .run_log import RunLog

ABORT_NO_SUBFOLDERS = "no_subfolders"
ABORT_CANCELLED = "cancelled"
ABORT_ERROR = "error"


class OutcomeStatus(Enum):
    MATCHED = "matched"
    FAILED = "failed"
    SKIPPED_NO_MATCH = "skipped_no_match"
    SKIPPED_EMPTY = "skipped_empty"


@dataclass
class GroupOutcome:
    folder: str
    key: str
    status: OutcomeStatus
    record_id: Optional[RecordId] = None
    uploaded: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def uploaded_count(self) -> int:
        return len(self.uploaded)

    @property
    def skipped(self) -> bool:
        return self.status in (OutcomeStatus.SKIPPED_NO_MATCH, OutcomeStatus.SKIPPED_EMPTY)


@dataclass
class RunSummary:
    log: RunLog
    success: int = 0
    failed: int = 0
    skipped: int = 0
    record_count: int = 0
    match_index: Dict[str, RecordId] = field(default_factory=dict)
    outcomes: List[GroupOutcome] = field(default_factory=list)
    aborted: Optional[str] = None
    dry_run: bool = False

    @property
    def groups_processed(self) -> int:
        return len(self.outcomes)

    def summary_line(self) -> str:
        return f"Done: {self.success} succeeded, {self.failed} failed, {self.skipped} skipped"

    def record(self, outcome: GroupOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.status is OutcomeStatus.MATCHED:
            self.success += 1
        elif outcome.status is OutcomeStatus.FAILED:
            self.failed += 1
        else:
            self.skipped += 1


async def build_match_index(
    source: RecordSource,
    field_id: str,
    run_log: RunLog,
) -> Tuple[Dict[str, RecordId], int]:
    """Return ``({key: record_id}, record_count)``; later records win on collisions."""
    record_ids = await source.list_record_ids()
    index: Dict[str, RecordId] = {}
    for record_id in record_ids:
        value = await source.read_field(record_id, field_id)
        key = normalize(value)
        if key:
            index[key] = record_id
        run_log.info(f"Record {record_id} key {quote_key(key)} | raw: {describe_value(value)}")
    run_log.info(f"Loaded {len(record_ids)} records, {len(index)} usable match keys")
    return index, len(record_ids)


def _describe_keys(keys: Sequence[str]) -> str:
    return " | ".join(f"{quote_key(key)} len={len(key)}" for key in keys)


def _error_message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class Reconciler:
    """Drive one run: index records, walk folder groups, attach images.

    Record reads and writes are awaited one at a time in group order. Writes
    that fail are counted per group and never stop the run.
    """

    def __init__(
        self,
        source: RecordSource,
        cfg: SyncConfig,
        *,
        logger: Optional[logging.Logger] = None,
        should_continue: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.source = source
        self.cfg = cfg
        self.logger = logger or logging.getLogger(__name__)
        self.should_continue = should_continue

    async def run(self, groups: Mapping[str, Sequence[RawFile]]) -> RunSummary:
        if not self.cfg.match_field_id or not self.cfg.upload_field_id:
            raise SetupError("Select both a match field and an upload field")
        summary = RunSummary(log=RunLog(self.logger), dry_run=self.cfg.dry_run)
        try:
            await self._reconcile(groups, summary)
        except Exception as exc:
            summary.aborted = ABORT_ERROR
            summary.log.error(f"Run failed: {_error_message(exc)}")
            self.logger.debug("Run aborted", exc_info=True)
        return summary

    async def _reconcile(self, groups: Mapping[str, Sequence[RawFile]], summary: RunSummary) -> None:
        run_log = summary.log
        run_log.info("Fetching record list...")
        index, record_count = await build_match_index(self.source, self.cfg.match_field_id, run_log)
        summary.match_index = index
        summary.record_count = record_count

        if not groups:
            summary.aborted = ABORT_NO_SUBFOLDERS
            run_log.warning("No sub-folders detected; select the parent folder that holds one folder per record")
            return

        folder_keys = [normalize_folder_name(folder) for folder in groups]
        run_log.info(f"Sub-folders ({len(folder_keys)}): {_describe_keys(folder_keys)}")
        run_log.info(f"Match keys ({len(index)}): {_describe_keys(list(index))}")

        for folder, files in groups.items():
            if self.should_continue is not None and not self.should_continue():
                summary.aborted = ABORT_CANCELLED
                run_log.warning("Run cancelled; remaining sub-folders left untouched")
                break
            outcome = await self._process_group(folder, files, index, run_log)
            summary.record(outcome)

        run_log.info(summary.summary_line())

    async def _process_group(
        self,
        folder: str,
        files: Sequence[RawFile],
        index: Mapping[str, RecordId],
        run_log: RunLog,
    ) -> GroupOutcome:
        run_log.info(f"Processing sub-folder: {folder}")
        key = normalize_folder_name(folder)
        record_id = index.get(key)
        if record_id is None:
            available = " , ".join(quote_key(candidate) for candidate in index)
            run_log.warning(
                f"No matching record, skipped (folder key: {quote_key(key)} len={len(key)}; available: {available})"
            )
            return GroupOutcome(folder=folder, key=key, status=OutcomeStatus.SKIPPED_NO_MATCH)

        cap = self.cfg.effective_cap
        upload_list = cap_images(order_images(files, self.cfg.priority_keyword), cap)
        if not upload_list:
            run_log.warning("No eligible images in sub-folder, skipped")
            return GroupOutcome(folder=folder, key=key, status=OutcomeStatus.SKIPPED_EMPTY, record_id=record_id)

        if len(files) > cap:
            run_log.warning(f"Sub-folder has {len(files)} images, over the limit {cap}; keeping the first {cap}")
        names = [item.name for item in upload_list]
        run_log.info(f"Upload order ({len(names)}): {' , '.join(names)}")

        if self.cfg.dry_run:
            run_log.info(f"Dry run: would update record {record_id} with {len(names)} images")
            return GroupOutcome(folder=folder, key=key, status=OutcomeStatus.MATCHED, record_id=record_id, uploaded=names)

        try:
            await self._write(record_id, upload_list)
        except Exception as exc:
            if isinstance(exc, asyncio.TimeoutError) and self.cfg.write_timeout:
                message = f"write timed out after {self.cfg.write_timeout}s"
            else:
                message = _error_message(exc)
            run_log.error(f"Upload failed for record {record_id}: {message}")
            return GroupOutcome(folder=folder, key=key, status=OutcomeStatus.FAILED, record_id=record_id, error=message)

        run_log.info(f"Updated record {record_id} with {len(names)} images")
        return GroupOutcome(folder=folder, key=key, status=OutcomeStatus.MATCHED, record_id=record_id, uploaded=names)

    async def _write(self, record_id: RecordId, upload_list: List[RawFile]) -> None:
        write = self.source.write_field(record_id, self.cfg.upload_field_id, upload_list)
        if self.cfg.write_timeout:
            await asyncio.wait_for(write, timeout=self.cfg.write_timeout)
        else:
            await write


def reconcile(
    source: RecordSource,
    groups: Mapping[str, Sequence[RawFile]],
    cfg: SyncConfig,
    *,
    logger: Optional[logging.Logger] = None,
) -> RunSummary:
    """Run a reconciliation to completion from synchronous code."""
    return asyncio.run(Reconciler(source, cfg, logger=logger).run(groups))
