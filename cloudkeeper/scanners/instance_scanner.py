"""
Instance Scanner Module
=======================

Fetches EC2 instances for the backup and autostop commands.

Classes
-------
InstanceScanner
    Lists instances carrying a sentinel tag, or one named instance.

Example
-------
>>> scanner = InstanceScanner(client, tag_key="autostop", states=["running"])
>>> for instance in scanner.scan():
...     print(instance.resource_id, instance.state)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from cloudkeeper.core.base_scanner import BaseScanner
from cloudkeeper.core.config import BACKUP_TAG
from cloudkeeper.core.resources import ManagedResource

# Module logger
logger = logging.getLogger(__name__)


class InstanceScanner(BaseScanner):
    """
    Scanner for EC2 instances.

    Parameters
    ----------
    aws_client : AWSClient
        Instance of AWSClient for AWS API access.
    instance_id : str, optional
        Fetch only this instance. The tag filter is not applied.
    tag_key : str, default="autobkup"
        Sentinel tag used in the server-side filter.
    states : sequence of str, optional
        Restrict to these instance states (e.g. ``["running"]``).
    """

    operation = "describe_instances"
    result_key = "Reservations"

    def __init__(
        self,
        aws_client,
        instance_id: Optional[str] = None,
        tag_key: str = BACKUP_TAG,
        states: Optional[Sequence[str]] = None,
    ) -> None:
        super().__init__(aws_client)
        self.instance_id = instance_id
        self.tag_key = tag_key
        self.states = list(states) if states else None

    def get_resource_type(self) -> str:
        """Always returns 'instance'."""
        return "instance"

    def build_request(self) -> Dict[str, Any]:
        if self.instance_id:
            return {"InstanceIds": [self.instance_id]}

        filters = [{"Name": "tag-key", "Values": [self.tag_key]}]
        if self.states:
            filters.append({"Name": "instance-state-name", "Values": self.states})
        return {"Filters": filters}

    def parse(self, items: List[Dict[str, Any]]) -> List[ManagedResource]:
        resources = []
        for reservation in items:
            for instance in reservation.get("Instances", []):
                resources.append(ManagedResource.from_instance(instance))
        return resources
