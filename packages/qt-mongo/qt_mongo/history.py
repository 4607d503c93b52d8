"""Per-session explain history.

Each collection session owns one ``ExplainHistory``: a bounded FIFO of
completed runs plus the cursors and flags the explain panel reads. Runs
are referenced by position only; eviction shifts the cursors.

Usage:
    history = ExplainHistory(limit=20)
    history.begin(ExplainScope.FIND)
    history.push(analyze(doc, ExplainScope.FIND, signature=sig))
    history.compare_with_previous()
    delta = history.current_diff()
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional

from qt_shared.config import get_settings

from .explain.diff import diff
from .schemas import ExplainRun, ExplainRunDiff, ExplainScope

logger = logging.getLogger(__name__)


class ExplainHistory:
    """Bounded run history with current / compare cursors for one session."""

    def __init__(self, limit: Optional[int] = None):
        if limit is None:
            limit = get_settings().history_limit
        if limit < 1:
            raise ValueError(f"History limit must be at least 1, got {limit}")
        self.limit = limit
        self.runs: List[ExplainRun] = []
        self.current_index: Optional[int] = None
        self.compare_index: Optional[int] = None
        self.scope: ExplainScope = ExplainScope.FIND
        self.loading: bool = False
        self.error: Optional[str] = None
        self.stale: bool = False
        self.selected_node_id: Optional[str] = None

    def __len__(self) -> int:
        return len(self.runs)

    def __iter__(self) -> Iterator[ExplainRun]:
        return iter(self.runs)

    @property
    def current_run(self) -> Optional[ExplainRun]:
        if self.current_index is None:
            return None
        return self.runs[self.current_index]

    @property
    def compare_run(self) -> Optional[ExplainRun]:
        if self.compare_index is None:
            return None
        return self.runs[self.compare_index]

    # ── Request lifecycle ────────────────────────────────────────────────

    def begin(self, scope: ExplainScope) -> None:
        """An explain request was issued for ``scope``."""
        self.scope = ExplainScope(scope)
        self.loading = True
        self.error = None

    def fail(self, error: str) -> None:
        self.loading = False
        self.error = error
        self.mark_stale()

    def mark_stale(self) -> None:
        self.stale = True

    def push(self, run: ExplainRun) -> None:
        """Append a completed run and make it current, evicting the oldest past the limit."""
        self.runs.append(run)
        self.current_index = len(self.runs) - 1
        self.scope = run.scope
        self.loading = False
        self.error = None
        self.stale = False
        while len(self.runs) > self.limit:
            self.evict_oldest()
        if self.selected_node_id is not None and run.node(self.selected_node_id) is None:
            self.selected_node_id = None

    def evict_oldest(self) -> Optional[ExplainRun]:
        if not self.runs:
            return None
        evicted = self.runs.pop(0)
        logger.debug("Evicted explain run %s", evicted.id)
        self.current_index = self._shift_after_eviction(self.current_index, keep_first=True)
        self.compare_index = self._shift_after_eviction(self.compare_index, keep_first=False)
        return evicted

    def _shift_after_eviction(self, index: Optional[int], keep_first: bool) -> Optional[int]:
        if index is None:
            return None
        if index > 0:
            return index - 1
        # the evicted run was the one pointed at
        if keep_first and self.runs:
            return 0
        return None

    def clear(self) -> None:
        """Drop every run and reset the cursors."""
        self.runs.clear()
        self.current_index = None
        self.compare_index = None
        self.selected_node_id = None
        self.stale = False

    def clear_previous_runs(self) -> None:
        """Keep only the current run."""
        current = self.current_run
        if current is None:
            return
        self.runs = [current]
        self.current_index = 0
        self.compare_index = None

    # ── Navigation ───────────────────────────────────────────────────────

    def move_cursor(self, step: int) -> Optional[ExplainRun]:
        """Move the current cursor by ``step``, wrapping around the history."""
        if not self.runs:
            return None
        start = self.current_index if self.current_index is not None else len(self.runs) - 1
        self.current_index = (start + step) % len(self.runs)
        if self.compare_index == self.current_index:
            self.compare_index = None
        return self.current_run

    def set_compare_baseline(self, index: int) -> None:
        if not 0 <= index < len(self.runs):
            raise IndexError(f"No explain run at position {index} (history has {len(self.runs)})")
        self.compare_index = index

    def compare_with_previous(self) -> bool:
        """Use the run before the current one as baseline. Returns False if there is none."""
        if self.current_index is None or self.current_index == 0:
            self.compare_index = None
            return False
        self.compare_index = self.current_index - 1
        return True

    def clear_compare_baseline(self) -> None:
        self.compare_index = None

    def select_node(self, node_id: Optional[str]) -> None:
        self.selected_node_id = node_id

    def reset_view(self) -> None:
        """Clear transient flags; runs and cursors survive."""
        self.loading = False
        self.error = None
        self.stale = False
        self.selected_node_id = None

    def current_diff(self) -> Optional[ExplainRunDiff]:
        if self.current_index is None or self.compare_index is None:
            return None
        if self.current_index == self.compare_index:
            return None
        return diff(self.runs[self.current_index], self.runs[self.compare_index])
