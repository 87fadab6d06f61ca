"""Bounded trace log for a single reconciliation run."""
from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Iterator, List, Optional

MAX_ENTRIES = 500


class RunLog:
    """Human-readable trace lines, newest first, capped at ``max_entries``.

    Every line is also forwarded to ``logger`` so CLI runs keep a full record
    even after old lines fall out of the buffer.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, max_entries: int = MAX_ENTRIES) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self._entries: Deque[str] = deque(maxlen=max_entries)

    def add(self, message: str, level: int = logging.INFO) -> None:
        self._entries.appendleft(message)
        self.logger.log(level, message)

    def info(self, message: str) -> None:
        self.add(message, logging.INFO)

    def warning(self, message: str) -> None:
        self.add(message, logging.WARNING)

    def error(self, message: str) -> None:
        self.add(message, logging.ERROR)

    @property
    def entries(self) -> List[str]:
        return list(self._entries)

    def chronological(self) -> List[str]:
        return list(reversed(self._entries))

    @property
    def latest(self) -> Optional[str]:
        return self._entries[0] if self._entries else None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)
