"""
Image Scanner Module
====================

Fetches the AMIs that the cleanup command works on.

Classes
-------
ImageScanner
    Lists self-owned images carrying the cleanup tag, or one named image.

Example
-------
>>> from cloudkeeper.scanners import ImageScanner
>>> from cloudkeeper.core import AWSClient
>>>
>>> client = AWSClient(region="us-east-1")
>>> images = ImageScanner(client).scan()
>>> for image in images:
...     print(image.resource_id, image.get_tag("autocleanup"), image.dependents)

Notes
-----
The ``tag-key`` filter is applied server side, but the cleaner checks the
tag again on every image before it acts.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from cloudkeeper.core.base_scanner import BaseScanner
from cloudkeeper.core.config import CLEANUP_TAG
from cloudkeeper.core.resources import ManagedResource

# Module logger
logger = logging.getLogger(__name__)


class ImageScanner(BaseScanner):
    """
    Scanner for AMIs.

    Parameters
    ----------
    aws_client : AWSClient
        Instance of AWSClient for AWS API access.
    image_id : str, optional
        Fetch only this image. Otherwise all images owned by the account
        with a ``tag_key`` tag are fetched.
    tag_key : str, default="autocleanup"
        Sentinel tag used in the server-side filter.
    """

    operation = "describe_images"
    result_key = "Images"

    def __init__(
        self,
        aws_client,
        image_id: Optional[str] = None,
        tag_key: str = CLEANUP_TAG,
    ) -> None:
        super().__init__(aws_client)
        self.image_id = image_id
        self.tag_key = tag_key

    def get_resource_type(self) -> str:
        """Always returns 'image'."""
        return "image"

    def build_request(self) -> Dict[str, Any]:
        if self.image_id:
            return {"ImageIds": [self.image_id]}
        return {
            "Owners": ["self"],
            "Filters": [{"Name": "tag-key", "Values": [self.tag_key]}],
        }

    def parse(self, items: List[Dict[str, Any]]) -> List[ManagedResource]:
        return [ManagedResource.from_image(image) for image in items]
