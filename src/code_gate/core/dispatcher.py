"""
Review dispatcher: bounded worker pool over the review units of one run.

Workers pull file units from a shared queue until it is empty, so early
finishers pick up the next pending file. Completed items land in a ResultSet
that the live-status server reads from another thread while the run is in
progress.
"""
import asyncio
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Deque, List, Optional

from ..models.review import ReviewItem, ReviewMode, StatusSnapshot, SUMMARY_UNIT
from ..utils.error_sanitizer import sanitize_error_for_display
from .budget import clamp_concurrency, truncate_diff

logger = logging.getLogger(__name__)

# (diff, files) -> review text; direct review or an agent conversation
ReviewEntryPoint = Callable[[str, List[str]], Awaitable[str]]
DiffLoader = Callable[[str], str]
ProgressObserver = Callable[[str, int, int], None]
FirstUnitObserver = Callable[[ReviewItem], None]

UNIT_FAILED_TEMPLATE = "Review failed: {error}"
SUMMARY_FAILED_TEMPLATE = "AI review not generated.\nError: {error}"


def expected_units(file_count: int, mode: ReviewMode) -> int:
    """Number of units a run dispatches, counting the summary pass."""
    if mode is ReviewMode.SUMMARY:
        return 1
    return file_count + (1 if mode is ReviewMode.BOTH else 0)


class ResultSet:
    """
    Append-only collection of completed items for one run.

    Appends come from the event loop, snapshots from the server thread, so
    both go through the same lock. Items are never removed or replaced.
    """

    def __init__(self, dispatched: int = 0):
        self._lock = threading.Lock()
        self._items: List[ReviewItem] = []
        self._dispatched = dispatched
        self._first_claimed = False

    @property
    def dispatched(self) -> int:
        return self._dispatched

    def append(self, item: ReviewItem) -> int:
        """Add a completed item and return the new completed count."""
        with self._lock:
            self._items.append(item)
            return len(self._items)

    def claim_first(self) -> bool:
        """True exactly once, for the caller that completed the first item."""
        with self._lock:
            if self._first_claimed or not self._items:
                return False
            self._first_claimed = True
            return True

    def items(self) -> List[ReviewItem]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    @property
    def done(self) -> bool:
        with self._lock:
            return self._is_done()

    def snapshot(self) -> StatusSnapshot:
        with self._lock:
            completed = [item.model_copy() for item in self._items if item.done]
            return StatusSnapshot(files=completed, done=self._is_done())

    def _is_done(self) -> bool:
        return sum(1 for item in self._items if item.done) >= self._dispatched


@dataclass
class DispatchOutcome:
    items: List[ReviewItem] = field(default_factory=list)
    ai_invoked: bool = False
    ai_succeeded: bool = False
    status: str = ""


class ReviewDispatcher:
    """Runs the file units and the optional summary unit of one review."""

    def __init__(
        self,
        review: ReviewEntryPoint,
        diff_loader: DiffLoader,
        concurrency: int = 1,
        max_diff_lines: int = 10000,
        mode: ReviewMode = ReviewMode.FILES,
        on_progress: Optional[ProgressObserver] = None,
        on_first_unit: Optional[FirstUnitObserver] = None,
    ):
        self.review = review
        self.diff_loader = diff_loader
        self.concurrency = clamp_concurrency(concurrency)
        self.max_diff_lines = max_diff_lines
        self.mode = mode
        self.on_progress = on_progress
        self.on_first_unit = on_first_unit

    def new_result_set(self, files: List[str]) -> ResultSet:
        return ResultSet(dispatched=expected_units(len(files), self.mode))

    async def run(
        self,
        files: List[str],
        summary_diff: str = "",
        results: Optional[ResultSet] = None,
    ) -> DispatchOutcome:
        """
        Review every unit exactly once and return the completed items.

        Unit failures are recorded as the unit's review text; this method only
        raises for errors outside a unit (for example a broken observer).
        """
        results = results if results is not None else self.new_result_set(files)
        outcome = DispatchOutcome()

        if self.mode is not ReviewMode.SUMMARY and files:
            await self._run_files(files, results, outcome)

        if self.mode in (ReviewMode.SUMMARY, ReviewMode.BOTH):
            await self._run_summary(files, summary_diff, results, outcome)

        outcome.items = results.items()
        return outcome

    async def _run_files(self, files: List[str], results: ResultSet, outcome: DispatchOutcome) -> None:
        queue: Deque[str] = deque(files)
        worker_count = min(self.concurrency, len(files))
        total = len(files)
        logger.info(f"Reviewing {total} file(s) with {worker_count} worker(s)")

        async def worker(worker_id: int) -> None:
            while queue:
                path = queue.popleft()
                item = await self._review_file(worker_id, path, outcome)
                completed = results.append(item)
                if (self.mode is ReviewMode.FILES and self.on_first_unit
                        and results.claim_first()):
                    self.on_first_unit(item)
                if self.on_progress:
                    self.on_progress(path, completed, total)

        started = time.time()
        await asyncio.gather(*(worker(i + 1) for i in range(worker_count)))
        logger.info(f"File reviews completed in {time.time() - started:.2f}s")

    async def _review_file(self, worker_id: int, path: str, outcome: DispatchOutcome) -> ReviewItem:
        start_time = time.time()
        logger.info(f"[Worker {worker_id}] STARTED - {path}")

        diff = ""
        try:
            diff = await asyncio.to_thread(self.diff_loader, path)
            diff, _ = truncate_diff(diff, self.max_diff_lines)
            outcome.ai_invoked = True
            review = await self.review(diff, [path])
            outcome.ai_succeeded = outcome.ai_succeeded or bool(review)
            logger.info(f"[Worker {worker_id}] FINISHED {path} in {time.time() - start_time:.2f}s")
        except Exception as e:
            logger.warning(f"[Worker {worker_id}] FAILED {path} after {time.time() - start_time:.2f}s: {e}")
            review = UNIT_FAILED_TEMPLATE.format(error=sanitize_error_for_display(str(e)))

        return ReviewItem(
            file=path,
            review=review or "",
            diff=diff or f"diff --git a/{path} b/{path}",
            done=True,
        )

    async def _run_summary(
        self,
        files: List[str],
        summary_diff: str,
        results: ResultSet,
        outcome: DispatchOutcome,
    ) -> None:
        diff, _ = truncate_diff(summary_diff, self.max_diff_lines)
        try:
            outcome.ai_invoked = True
            review = await self.review(diff, list(files))
            outcome.ai_succeeded = True
        except Exception as e:
            logger.warning(f"Summary review failed: {e}")
            error = sanitize_error_for_display(str(e))
            outcome.status = f"LLM call failed: {error}"
            outcome.ai_succeeded = False
            review = SUMMARY_FAILED_TEMPLATE.format(error=error)

        results.append(ReviewItem(file=SUMMARY_UNIT, review=review or "", diff=summary_diff, done=True))
