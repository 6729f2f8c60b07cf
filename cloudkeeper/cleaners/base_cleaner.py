"""
Shared machinery for the tag-driven cleaners.

Provides the dry-run substitution, per-item error capture, and the
rate-limited thread pool fan-out used by every batch.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, List, Optional, Sequence, TypeVar

from botocore.exceptions import ClientError

from ..core.aws_client import AWSClient
from ..core.config import RunConfig
from ..core.rate_limiter import TokenBucketRateLimiter
from .results import MutationResult, MutationStatus, MutationSummary

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseCleaner:
    """
    Base class for cleaners that mutate resources in batches.

    Provides:
    - Dry-run mode (log "Would ..." instead of calling the API)
    - Per-item failures captured as FAILED results, never raised
    - Rate-limited fan-out with a wait-for-all barrier
    - Progress callbacks, invoked on the calling thread
    """

    # Common error codes and user-friendly messages
    ERROR_MESSAGES = {
        "InvalidAMIID.NotFound": "Image no longer exists",
        "InvalidAMIID.Unavailable": "Image is not available",
        "InvalidSnapshot.NotFound": "Snapshot no longer exists",
        "InvalidSnapshot.InUse": "Snapshot is still in use by an image",
        "InvalidInstanceID.NotFound": "Instance no longer exists",
        "IncorrectInstanceState": "Instance is not in a valid state for this operation",
        "InvalidAMIName.Duplicate": "An image with this name already exists",
        "UnauthorizedOperation": "Insufficient permissions for this operation",
    }

    def __init__(
        self,
        aws_client: AWSClient,
        config: Optional[RunConfig] = None,
        rate_limiter: Optional[TokenBucketRateLimiter] = None,
        progress_callback: Optional[Callable[[MutationResult], None]] = None,
        sleep: Callable[[float], Any] = time.sleep,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the cleaner.

        Args:
            aws_client: Instance of AWSClient
            config: Run settings; defaults to RunConfig()
            rate_limiter: Shared limiter; one is created from config if omitted
            progress_callback: Called with every recorded result
            sleep: Used for grace and settle waits
            clock: Returns the current Unix time
        """
        self.aws_client = aws_client
        self.config = config or RunConfig(region=aws_client.region)
        self.region = aws_client.region
        self.rate_limiter = rate_limiter or TokenBucketRateLimiter(
            rate=self.config.rate_limit
        )
        self.progress_callback = progress_callback
        self.sleep = sleep
        self.clock = clock

    @property
    def dry_run(self) -> bool:
        return self.config.dry_run

    def describe_error(self, error: Exception) -> str:
        """Turn an API error into a short message."""
        if isinstance(error, ClientError):
            error_info = error.response.get("Error", {})
            code = error_info.get("Code", "Unknown")
            return self.ERROR_MESSAGES.get(code, error_info.get("Message", str(error)))
        return str(error)

    def record(self, summary: MutationSummary, result: MutationResult) -> None:
        """Add a result to the summary and report progress."""
        summary.add_result(result)
        if self.progress_callback:
            self.progress_callback(result)

    def dry_run_result(
        self, action: str, resource_id: str, detail: Optional[str] = None
    ) -> MutationResult:
        """Log the call that would have been made and return a DRY_RUN result."""
        logger.info(f"Would {action} {resource_id}" + (f" ({detail})" if detail else ""))
        return MutationResult(
            resource_id=resource_id,
            action=action,
            region=self.region,
            status=MutationStatus.DRY_RUN,
            detail=detail,
        )

    def mutate(
        self,
        action: str,
        resource_id: str,
        operation: str,
        detail: Optional[str] = None,
        **params: Any,
    ) -> MutationResult:
        """
        Issue one mutating EC2 call, or its dry-run stand-in.

        Args:
            action: Label used in logs and results
            resource_id: Resource being mutated
            operation: Boto3 EC2 method name
            detail: Extra information for the result
            **params: Request parameters

        Returns:
            MutationResult; FAILED when the call errors after retries
        """
        if self.dry_run:
            return self.dry_run_result(action, resource_id, detail)

        try:
            response = self.aws_client.call("ec2", operation, **params)
        except Exception as e:
            error_message = self.describe_error(e)
            logger.warning(f"Failed to {action} {resource_id}: {error_message}")
            return MutationResult(
                resource_id=resource_id,
                action=action,
                region=self.region,
                status=MutationStatus.FAILED,
                error_message=error_message,
                detail=detail,
            )

        return MutationResult(
            resource_id=resource_id,
            action=action,
            region=self.region,
            status=MutationStatus.SUCCESS,
            detail=detail,
            response=response,
        )

    def fan_out(
        self,
        items: Sequence[T],
        worker: Callable[[T], MutationResult],
        summary: MutationSummary,
    ) -> List[MutationResult]:
        """
        Run ``worker`` for every item on a thread pool and wait for all.

        A token is taken from the shared rate limiter before each task is
        submitted. Finished tasks are recorded between submissions, so
        progress shows while the limiter is still pacing the batch. Result
        order is completion order, not input order.

        Args:
            items: Work items
            worker: Called once per item, returns a MutationResult
            summary: Receives every result

        Returns:
            All results, in completion order
        """
        results: List[MutationResult] = []
        if not items:
            return results

        workers = min(self.config.max_workers, len(items))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            pending = set()
            for item in items:
                self.rate_limiter.acquire()
                pending.add(executor.submit(worker, item))

                finished = {future for future in pending if future.done()}
                pending -= finished
                for future in finished:
                    self._collect(future, summary, results)

            for future in as_completed(pending):
                self._collect(future, summary, results)

        return results

    def _collect(self, future, summary: MutationSummary, results: List[MutationResult]) -> None:
        result = future.result()
        self.record(summary, result)
        results.append(result)
