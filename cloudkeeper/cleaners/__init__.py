"""
Resource Cleaners
=================

Tag-driven lifecycle actions on EC2 images and instances.

Each cleaner shares the same safety features:
- Dry-run mode that logs the call it would have made
- Per-resource failures recorded, never aborting the batch
- A shared rate limiter in front of the worker pool
- Progress callbacks for reporting

Available Cleaners
------------------
AmiCleaner
    Deregisters AMIs whose ``autocleanup`` tag is past the threshold,
    then deletes their snapshots after a grace period.
InstanceBackup
    Creates AMIs of instances tagged ``autobkup`` and tags the new images
    for later cleanup.
InstanceStopper
    Stops running instances tagged ``autostop``.

Data Classes
------------
MutationStatus
    Enum representing the status of one mutation.
MutationResult
    Result of a single mutation attempt.
MutationSummary
    Summary of a batch run.

Example
-------
>>> from cloudkeeper.cleaners import AmiCleaner, MutationStatus
>>> from cloudkeeper.core import AWSClient, RunConfig
>>> from cloudkeeper.scanners import ImageScanner
>>>
>>> client = AWSClient(region="us-east-1")
>>> images = ImageScanner(client).scan()
>>>
>>> # Preview (dry-run)
>>> config = RunConfig(region="us-east-1", dry_run=True)
>>> summary = AmiCleaner(client, config, threshold_days=30).run(images)
>>> print(f"Would deregister {summary.dry_run} resources")

See Also
--------
cloudkeeper.scanners : For fetching tagged resources.
"""

from cloudkeeper.cleaners.ami_cleaner import AmiCleaner
from cloudkeeper.cleaners.base_cleaner import BaseCleaner
from cloudkeeper.cleaners.instance_backup import InstanceBackup
from cloudkeeper.cleaners.instance_stopper import InstanceStopper
from cloudkeeper.cleaners.results import (
    MutationResult,
    MutationStatus,
    MutationSummary,
)

__all__ = [
    "AmiCleaner",
    "BaseCleaner",
    "InstanceBackup",
    "InstanceStopper",
    "MutationResult",
    "MutationStatus",
    "MutationSummary",
]
