"""
Resource Scanners
=================

Fetchers for the resources the lifecycle commands act on. Every scanner
pages through its describe call with retries and returns
:class:`~cloudkeeper.core.resources.ManagedResource` objects.

Available Scanners
------------------
ImageScanner
    Self-owned AMIs tagged ``autocleanup``, or a single AMI.
InstanceScanner
    Instances tagged with a sentinel key, or a single instance.

Example
-------
>>> from cloudkeeper.scanners import ImageScanner, InstanceScanner
>>> from cloudkeeper.core import AWSClient
>>>
>>> client = AWSClient(region="us-east-1")
>>> images = ImageScanner(client).scan()
>>> to_backup = InstanceScanner(client, tag_key="autobkup").scan()

See Also
--------
cloudkeeper.core.base_scanner : Base class for all scanners.
"""

from cloudkeeper.scanners.image_scanner import ImageScanner
from cloudkeeper.scanners.instance_scanner import InstanceScanner

__all__ = [
    "ImageScanner",
    "InstanceScanner",
]
