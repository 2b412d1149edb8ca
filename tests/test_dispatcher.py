"""
Unit tests for the ReviewDispatcher worker pool and the ResultSet.
"""
import asyncio
import threading
from collections import Counter

import pytest

from code_gate.core.dispatcher import ResultSet, ReviewDispatcher, expected_units
from code_gate.models.review import ReviewItem, ReviewMode, SUMMARY_UNIT


def diff_for(path: str) -> str:
    return f"diff --git a/{path} b/{path}\n+change in {path}"


class RecordingReview:
    """Review entry point that tracks concurrency and calls."""

    def __init__(self, delay: float = 0.01, fail_on=()):
        self.delay = delay
        self.fail_on = set(fail_on)
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, diff, files):
        self.calls.append((diff, list(files)))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if any(f in self.fail_on for f in files):
                raise RuntimeError("model exploded")
            return f"review of {', '.join(files)}"
        finally:
            self.in_flight -= 1


class TestResultSet:

    def test_done_only_when_all_dispatched_units_completed(self):
        results = ResultSet(dispatched=2)
        assert results.snapshot().done is False

        results.append(ReviewItem(file="a.py"))
        assert results.snapshot().done is False

        results.append(ReviewItem(file="b.py"))
        snapshot = results.snapshot()
        assert snapshot.done is True
        assert [item.file for item in snapshot.files] == ["a.py", "b.py"]

    def test_snapshot_is_a_copy(self):
        results = ResultSet(dispatched=3)
        results.append(ReviewItem(file="a.py", review="ok"))
        snapshot = results.snapshot()
        snapshot.files.append(ReviewItem(file="injected.py"))
        snapshot.files[0].review = "tampered"

        assert [item.file for item in results.items()] == ["a.py"]
        assert results.items()[0].review == "ok"

    def test_append_returns_completed_count(self):
        results = ResultSet(dispatched=2)
        assert results.append(ReviewItem(file="a.py")) == 1
        assert results.append(ReviewItem(file="b.py")) == 2
        assert len(results) == 2

    def test_claim_first_succeeds_once(self):
        results = ResultSet(dispatched=2)
        assert results.claim_first() is False  # nothing completed yet
        results.append(ReviewItem(file="a.py"))
        assert results.claim_first() is True
        results.append(ReviewItem(file="b.py"))
        assert results.claim_first() is False

    def test_concurrent_appends_from_threads(self):
        results = ResultSet(dispatched=400)

        def writer(prefix):
            for i in range(100):
                results.append(ReviewItem(file=f"{prefix}-{i}"))

        threads = [threading.Thread(target=writer, args=(p,)) for p in "abcd"]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 400
        assert results.done is True


class TestExpectedUnits:

    def test_expected_units_per_mode(self):
        assert expected_units(5, ReviewMode.FILES) == 5
        assert expected_units(5, ReviewMode.BOTH) == 6
        assert expected_units(5, ReviewMode.SUMMARY) == 1


class TestFileReviews:

    @pytest.mark.asyncio
    async def test_every_unit_reviewed_exactly_once(self):
        files = [f"src/file_{i}.py" for i in range(7)]
        review = RecordingReview()
        dispatcher = ReviewDispatcher(review, diff_for, concurrency=3)

        outcome = await dispatcher.run(files)

        reviewed = Counter(f for _, fs in review.calls for f in fs)
        assert reviewed == Counter(files)
        assert sorted(item.file for item in outcome.items) == sorted(files)
        assert all(item.done for item in outcome.items)

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        files = [f"f{i}.py" for i in range(10)]
        review = RecordingReview(delay=0.02)

        await ReviewDispatcher(review, diff_for, concurrency=3).run(files)

        assert 1 <= review.max_in_flight <= 3

    @pytest.mark.asyncio
    async def test_concurrency_clamped_to_eight(self):
        files = [f"f{i}.py" for i in range(20)]
        review = RecordingReview(delay=0.02)
        dispatcher = ReviewDispatcher(review, diff_for, concurrency=50)

        await dispatcher.run(files)

        assert dispatcher.concurrency == 8
        assert review.max_in_flight <= 8

    @pytest.mark.asyncio
    async def test_fewer_files_than_workers(self):
        review = RecordingReview()
        outcome = await ReviewDispatcher(review, diff_for, concurrency=4).run(["only.py"])
        assert [item.file for item in outcome.items] == ["only.py"]

    @pytest.mark.asyncio
    async def test_failing_unit_recorded_and_siblings_complete(self):
        files = ["a.py", "broken.py", "c.py"]
        review = RecordingReview(fail_on={"broken.py"})

        outcome = await ReviewDispatcher(review, diff_for, concurrency=2).run(files)

        by_file = {item.file: item for item in outcome.items}
        assert set(by_file) == set(files)
        assert by_file["broken.py"].done is True
        assert by_file["broken.py"].review.startswith("Review failed: ")
        assert by_file["a.py"].review == "review of a.py"
        assert by_file["c.py"].review == "review of c.py"
        assert outcome.ai_succeeded is True

    @pytest.mark.asyncio
    async def test_failing_diff_loader_recorded_as_failure(self):
        def loader(path):
            if path == "gone.py":
                raise OSError("git vanished")
            return diff_for(path)

        outcome = await ReviewDispatcher(RecordingReview(), loader, concurrency=2).run(["gone.py", "ok.py"])

        by_file = {item.file: item for item in outcome.items}
        assert by_file["gone.py"].review.startswith("Review failed: ")
        assert by_file["gone.py"].diff == "diff --git a/gone.py b/gone.py"
        assert by_file["ok.py"].review == "review of ok.py"

    @pytest.mark.asyncio
    async def test_oversized_diff_truncated(self):
        big = "\n".join(f"+line {i}" for i in range(50))
        review = RecordingReview()

        outcome = await ReviewDispatcher(review, lambda p: big, max_diff_lines=10).run(["big.py"])

        sent_diff = review.calls[0][0]
        assert sent_diff.split("\n")[:10] == big.split("\n")[:10]
        assert "+line 10" not in sent_diff
        assert "original diff has 50 lines" in sent_diff
        assert outcome.items[0].diff == sent_diff

    @pytest.mark.asyncio
    async def test_empty_diff_gets_placeholder(self):
        outcome = await ReviewDispatcher(RecordingReview(), lambda p: "").run(["empty.py"])
        assert outcome.items[0].diff == "diff --git a/empty.py b/empty.py"

    @pytest.mark.asyncio
    async def test_progress_reports_monotonic_counts(self):
        progress = []
        files = [f"f{i}.py" for i in range(6)]
        dispatcher = ReviewDispatcher(
            RecordingReview(), diff_for, concurrency=3,
            on_progress=lambda path, done, total: progress.append((done, total)),
        )

        await dispatcher.run(files)

        assert [done for done, _ in progress] == [1, 2, 3, 4, 5, 6]
        assert all(total == 6 for _, total in progress)

    @pytest.mark.asyncio
    async def test_first_unit_trigger_fires_once_in_files_mode(self):
        opened = []
        dispatcher = ReviewDispatcher(
            RecordingReview(), diff_for, concurrency=2,
            on_first_unit=lambda item: opened.append(item.file),
        )

        await dispatcher.run(["a.py", "b.py", "c.py"])

        assert len(opened) == 1

    @pytest.mark.asyncio
    async def test_first_unit_trigger_not_used_in_both_mode(self):
        opened = []
        dispatcher = ReviewDispatcher(
            RecordingReview(), diff_for, mode=ReviewMode.BOTH,
            on_first_unit=lambda item: opened.append(item.file),
        )

        await dispatcher.run(["a.py"], summary_diff="whole diff")

        assert opened == []

    @pytest.mark.asyncio
    async def test_five_files_two_workers_done_only_at_the_end(self):
        files = [f"f{i}.py" for i in range(5)]
        dispatcher = ReviewDispatcher(RecordingReview(delay=0.01), diff_for, concurrency=2)
        results = dispatcher.new_result_set(files)
        seen = []

        def observe(path, done, total):
            snapshot = results.snapshot()
            seen.append((len(snapshot.files), snapshot.done))

        dispatcher.on_progress = observe
        await dispatcher.run(files, results=results)

        assert len(results) == 5
        assert results.snapshot().done is True
        assert seen[-1] == (5, True)
        assert all(done is False for count, done in seen if count < 5)


class TestSummary:

    @pytest.mark.asyncio
    async def test_summary_mode_runs_only_summary(self):
        review = RecordingReview()
        dispatcher = ReviewDispatcher(review, diff_for, mode=ReviewMode.SUMMARY)

        outcome = await dispatcher.run(["a.py", "b.py"], summary_diff="whole diff")

        assert [item.file for item in outcome.items] == [SUMMARY_UNIT]
        assert review.calls == [("whole diff", ["a.py", "b.py"])]
        assert outcome.items[0].diff == "whole diff"

    @pytest.mark.asyncio
    async def test_both_mode_appends_summary_last(self):
        review = RecordingReview()
        dispatcher = ReviewDispatcher(review, diff_for, concurrency=2, mode=ReviewMode.BOTH)
        results = dispatcher.new_result_set(["a.py", "b.py"])

        outcome = await dispatcher.run(["a.py", "b.py"], summary_diff="whole diff", results=results)

        assert len(outcome.items) == 3
        assert outcome.items[-1].file == SUMMARY_UNIT
        assert results.dispatched == 3
        assert results.snapshot().done is True

    @pytest.mark.asyncio
    async def test_summary_failure_sets_status(self):
        async def failing(diff, files):
            raise RuntimeError("model exploded")

        outcome = await ReviewDispatcher(failing, diff_for, mode=ReviewMode.SUMMARY).run(
            ["a.py"], summary_diff="whole diff"
        )

        assert outcome.items[0].review.startswith("AI review not generated.")
        assert "model exploded" in outcome.items[0].review
        assert outcome.status.startswith("LLM call failed")
        assert outcome.ai_invoked is True
        assert outcome.ai_succeeded is False
