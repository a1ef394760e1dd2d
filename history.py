"""
Snapshot diffs and undo history.

The HTTP service is stateless: every edit response carries a SnapshotDiff and
``/api/portfolio/revert`` applies ``revert`` to it. EditHistory is the
caller-side helper for a client that keeps a session: it records the diffs of
successive edits and walks them with undo and redo.
"""

from collections import deque
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

import config
from schemas import PortfolioDocument


class SnapshotDiff(BaseModel):
    before: Dict[str, Any] = {}
    after: Dict[str, Any] = {}

    @property
    def empty(self) -> bool:
        return not self.after


class HistoryEntry(BaseModel):
    summary: str
    diff: SnapshotDiff
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def snapshot_diff(before: PortfolioDocument, after: PortfolioDocument) -> SnapshotDiff:
    """Top-level fields that differ between two documents, with both values."""
    old = before.model_dump(mode="json", by_alias=True)
    new = after.model_dump(mode="json", by_alias=True)
    changed = [field for field in new if old.get(field) != new[field]]
    return SnapshotDiff(
        before={field: old.get(field) for field in changed},
        after={field: new[field] for field in changed},
    )


def _restore(document: PortfolioDocument, values: Dict[str, Any]) -> PortfolioDocument:
    data = document.model_dump(mode="json", by_alias=True)
    data.update(values)
    return PortfolioDocument.model_validate(data)


def revert(document: PortfolioDocument, diff: SnapshotDiff) -> PortfolioDocument:
    return _restore(document, diff.before)


def reapply(document: PortfolioDocument, diff: SnapshotDiff) -> PortfolioDocument:
    return _restore(document, diff.after)


class EditHistory:
    """Most recent applied plans, newest last, with undo and redo."""

    def __init__(self, limit: Optional[int] = None):
        self.limit = limit or config.HISTORY_LIMIT
        self._done = deque(maxlen=self.limit)
        self._undone = []

    def __len__(self):
        return len(self._done)

    def record(self, summary: str, before: PortfolioDocument, after: PortfolioDocument) -> Optional[HistoryEntry]:
        diff = snapshot_diff(before, after)
        if diff.empty:
            return None
        entry = HistoryEntry(summary=summary, diff=diff)
        self._done.append(entry)
        self._undone.clear()
        return entry

    @property
    def can_undo(self) -> bool:
        return bool(self._done)

    @property
    def can_redo(self) -> bool:
        return bool(self._undone)

    def undo(self, document: PortfolioDocument) -> PortfolioDocument:
        if not self._done:
            return document
        entry = self._done.pop()
        self._undone.append(entry)
        return revert(document, entry.diff)

    def redo(self, document: PortfolioDocument) -> PortfolioDocument:
        if not self._undone:
            return document
        entry = self._undone.pop()
        self._done.append(entry)
        return reapply(document, entry.diff)

    def entries(self):
        return list(reversed(self._done))
