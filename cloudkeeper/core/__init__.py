"""
Core Infrastructure Components
==============================

This module provides the foundational components for CloudKeeper:

- :class:`AWSClient` - Manages AWS connections and retried calls
- :class:`BaseScanner` - Abstract base class for resource fetchers
- :class:`RetryPolicy` - Capped exponential backoff on server errors
- :class:`TokenBucketRateLimiter` - Shared cap on mutating calls
- :class:`RunConfig` - Settings for one command invocation
- Exception hierarchy for error handling

Classes
-------
AWSClient
    Thread-safe AWS client wrapper with retry logic and credential management.
BaseScanner
    Abstract base class defining the scanner interface.
ManagedResource
    Normalized view of a fetched image or instance.
CleanupDecision
    Outcome of the tag age check.

Exceptions
----------
CloudKeeperError
    Base exception for all CloudKeeper errors.
AWSClientError
    Base exception for AWS client errors.
CredentialsError
    Raised when credentials are invalid or missing.
ScannerError
    Base exception for fetch errors.
CleanerError
    Base exception for mutation errors.
ValidationError
    Raised for bad command-line input.

Example
-------
>>> from cloudkeeper.core import AWSClient, RunConfig
>>>
>>> config = RunConfig(region="us-east-1", profile="production")
>>> client = AWSClient.from_config(config)
>>> images = client.paginate("ec2", "describe_images", "Images", Owners=["self"])

See Also
--------
cloudkeeper.scanners : Resource fetchers.
cloudkeeper.cleaners : Lifecycle actions.
cloudkeeper.reporters : Output formatters.
"""

from cloudkeeper.core.aws_client import AWSClient
from cloudkeeper.core.base_scanner import BaseScanner
from cloudkeeper.core.config import RunConfig
from cloudkeeper.core.exceptions import (
    AWSClientError,
    CleanerError,
    CloudKeeperError,
    CredentialsError,
    MutationError,
    RegionError,
    ResourceFetchError,
    ScannerError,
    ServiceError,
    ValidationError,
)
from cloudkeeper.core.rate_limiter import TokenBucketRateLimiter
from cloudkeeper.core.resources import CleanupDecision, ManagedResource, decide_cleanup
from cloudkeeper.core.retry import DEFAULT_RETRY_POLICY, RetryPolicy, with_retry

__all__ = [
    # Client
    "AWSClient",
    # Scanner base
    "BaseScanner",
    # Settings and call discipline
    "RunConfig",
    "RetryPolicy",
    "DEFAULT_RETRY_POLICY",
    "with_retry",
    "TokenBucketRateLimiter",
    # Resources
    "ManagedResource",
    "CleanupDecision",
    "decide_cleanup",
    # Exceptions - Base
    "CloudKeeperError",
    # Exceptions - AWS Client
    "AWSClientError",
    "CredentialsError",
    "RegionError",
    "ServiceError",
    # Exceptions - Scanner
    "ScannerError",
    "ResourceFetchError",
    # Exceptions - Cleaner
    "CleanerError",
    "MutationError",
    # Exceptions - Input
    "ValidationError",
]
