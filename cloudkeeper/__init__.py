"""
CloudKeeper: Tag-Driven AWS Lifecycle Automation
================================================

Command-line tools that keep EC2 images and instances tidy based on
sentinel tags:

- ``autocleanup=<epoch>`` on an AMI: deregister it, and later its
  snapshots, once it is older than a threshold
- ``autobkup`` on an instance: create a backup AMI tagged for cleanup
- ``autostop`` on an instance: stop it when running

Modules
-------
core
    Core infrastructure components (AWS client, retry, rate limiter, config)
scanners
    Resource fetchers for images and instances
cleaners
    Lifecycle actions with dry-run and per-item failure capture
reporters
    Output formatters (CLI, CSV)

Example
-------
>>> from cloudkeeper.core import AWSClient, RunConfig
>>> from cloudkeeper.scanners import ImageScanner
>>> from cloudkeeper.cleaners import AmiCleaner
>>>
>>> config = RunConfig(region="us-east-1", dry_run=True)
>>> client = AWSClient.from_config(config)
>>> summary = AmiCleaner(client, config, threshold_days=30).run(ImageScanner(client).scan())
>>> print(f"Would deregister {summary.dry_run} resources")

Notes
-----
Requires AWS credentials configured via:
- Environment variables (AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY)
- AWS credentials file (~/.aws/credentials)
- IAM role (when running on AWS infrastructure)

See Also
--------
boto3 : AWS SDK for Python
"""

__version__ = "0.1.0"
__author__ = "CloudKeeper Team"
__license__ = "MIT"

# Public API
from cloudkeeper.core.aws_client import AWSClient
from cloudkeeper.core.base_scanner import BaseScanner
from cloudkeeper.core.config import RunConfig
from cloudkeeper.core.exceptions import AWSClientError
from cloudkeeper.core.resources import ManagedResource

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Core classes
    "AWSClient",
    "AWSClientError",
    "BaseScanner",
    "RunConfig",
    "ManagedResource",
]
