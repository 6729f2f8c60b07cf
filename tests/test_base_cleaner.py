"""
Tests for the shared cleaner fan-out.
"""

import threading
import time

from cloudkeeper.cleaners import BaseCleaner, MutationResult, MutationStatus, MutationSummary


class PacedLimiter:
    """Hands out a token only once the previously submitted task has finished."""

    def __init__(self, finished, progress):
        self.finished = finished
        self.progress = progress
        self.acquired = 0
        self.progress_seen = []

    def acquire(self):
        if self.acquired:
            assert self.finished.acquire(timeout=5)
            time.sleep(0.05)
        self.progress_seen.append(len(self.progress))
        self.acquired += 1


class TestFanOut:
    """Tests for BaseCleaner.fan_out."""

    def test_progress_streams_while_submitting(self, stub_client, run_config):
        """Finished tasks are reported before the last token is granted."""
        finished = threading.Semaphore(0)
        progress = []
        limiter = PacedLimiter(finished, progress)
        cleaner = BaseCleaner(
            stub_client, run_config, rate_limiter=limiter, progress_callback=progress.append
        )

        def worker(image_id):
            finished.release()
            return MutationResult(image_id, "deregister", "us-east-1", MutationStatus.SUCCESS)

        summary = MutationSummary()
        results = cleaner.fan_out(["ami-1", "ami-2", "ami-3"], worker, summary)

        assert limiter.progress_seen[-1] >= 1
        assert sorted(r.resource_id for r in results) == ["ami-1", "ami-2", "ami-3"]
        assert len(progress) == 3
        assert summary.succeeded == 3

    def test_empty_batch(self, stub_client, run_config, fast_limiter):
        """No items means no pool and no results."""
        cleaner = BaseCleaner(stub_client, run_config, rate_limiter=fast_limiter)
        assert cleaner.fan_out([], lambda item: None, MutationSummary()) == []
