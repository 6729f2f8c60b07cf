"""
Run Configuration
=================

A single :class:`RunConfig` value is built by the CLI from its options
(or ``CLOUDKEEPER_*`` environment variables) and passed to every scanner
and cleaner. Nothing in the package reads global flags.

Example
-------
>>> config = RunConfig(region="eu-west-1", dry_run=True)
>>> cleaner = AmiCleaner(AWSClient.from_config(config), config)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Optional

from cloudkeeper.core.retry import DEFAULT_RETRY_POLICY, RetryPolicy

# Seconds per day used by the age check. 86000 is not a full day (86400);
# the value matches what existing autocleanup tags were tuned against.
LEGACY_DAY_SECONDS = 86000

# Wait for EC2 to release image -> snapshot links after deregistration.
DEFAULT_GRACE_PERIOD = 12.0

# Wait for newly created images to become taggable.
DEFAULT_SETTLE_PERIOD = 47.0

DEFAULT_MAX_WORKERS = 10
DEFAULT_RATE_LIMIT = 3.0

CLEANUP_TAG = "autocleanup"
BACKUP_TAG = "autobkup"
AUTOSTOP_TAG = "autostop"


@dataclass
class RunConfig:
    """
    Settings for one command invocation.

    Attributes:
        region: AWS region name
        profile: Named profile from ~/.aws/credentials
        dry_run: Replace every mutating call with a logged no-op
        max_workers: Thread pool size for per-resource fan-out
        rate_limit: Shared cap on mutating calls per second
        grace_period: Seconds to wait before deleting snapshots
        settle_period: Seconds to wait before tagging new images
        day_seconds: Length of a "day" in the age check
        retry_policy: Backoff used around every API call
    """

    region: str = "us-east-1"
    profile: Optional[str] = None
    dry_run: bool = False
    max_workers: int = DEFAULT_MAX_WORKERS
    rate_limit: float = DEFAULT_RATE_LIMIT
    grace_period: float = DEFAULT_GRACE_PERIOD
    settle_period: float = DEFAULT_SETTLE_PERIOD
    day_seconds: int = LEGACY_DAY_SECONDS
    retry_policy: RetryPolicy = field(default=DEFAULT_RETRY_POLICY)

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if self.rate_limit <= 0:
            raise ValueError("rate_limit must be positive")
        if self.grace_period < 0 or self.settle_period < 0:
            raise ValueError("wait periods cannot be negative")
        if self.day_seconds <= 0:
            raise ValueError("day_seconds must be positive")

    def with_options(self, **changes: Any) -> RunConfig:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)
