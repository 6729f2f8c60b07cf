"""
Base Scanner Module
===================

Provides the abstract base class for the resource fetchers.

A scanner builds one describe request, pages through it with
:meth:`AWSClient.paginate` (every page retried), and turns the raw items
into :class:`~cloudkeeper.core.resources.ManagedResource` objects.

Classes
-------
BaseScanner
    Abstract base class for resource scanners.

Example
-------
>>> class VolumeScanner(BaseScanner):
...     operation = "describe_volumes"
...     result_key = "Volumes"
...
...     def get_resource_type(self) -> str:
...         return "volume"
...
...     def build_request(self) -> dict:
...         return {"Filters": [{"Name": "tag-key", "Values": ["autocleanup"]}]}
...
...     def parse(self, items):
...         return [ManagedResource(v["VolumeId"], "volume") for v in items]

Notes
-----
Any error left after retries is raised as ResourceFetchError. Fetch
failures are fatal for the command, unlike per-item mutation failures.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from cloudkeeper.core.exceptions import ResourceFetchError
from cloudkeeper.core.resources import ManagedResource

# Module logger
logger = logging.getLogger(__name__)


class BaseScanner(ABC):
    """
    Abstract base class for all resource scanners.

    Parameters
    ----------
    aws_client : AWSClient
        Instance of AWSClient for AWS API access.

    Attributes
    ----------
    aws_client : AWSClient
        The AWS client instance.
    region : str
        The AWS region being queried.
    service : str
        Service owning the describe operation.
    operation : str
        Boto3 describe method name (set by subclasses).
    result_key : str
        Response key holding the items (set by subclasses).
    """

    service = "ec2"
    operation: str = ""
    result_key: str = ""

    def __init__(self, aws_client) -> None:
        self.aws_client = aws_client
        self.region = aws_client.region
        logger.debug(
            f"Initialized {self.__class__.__name__} for region {self.region}"
        )

    @abstractmethod
    def get_resource_type(self) -> str:
        """
        Get the type of resource this scanner handles.

        Returns
        -------
        str
            Lowercase identifier, e.g. 'image'.
        """
        pass

    @abstractmethod
    def build_request(self) -> Dict[str, Any]:
        """
        Build the parameters of the first describe call.

        Returns
        -------
        dict
            Keyword arguments for the boto3 operation.
        """
        pass

    @abstractmethod
    def parse(self, items: List[Dict[str, Any]]) -> List[ManagedResource]:
        """
        Convert raw response items into resources.

        Parameters
        ----------
        items : list of dict
            Items collected from every page under ``result_key``.

        Returns
        -------
        list of ManagedResource
            Parsed resources.
        """
        pass

    def fetch_raw(self) -> List[Dict[str, Any]]:
        """
        Run the paginated describe call.

        Raises
        ------
        ResourceFetchError
            If any page fails after retries.
        """
        request = self.build_request()
        try:
            return self.aws_client.paginate(
                self.service, self.operation, self.result_key, **request
            )
        except Exception as e:
            logger.error(f"Failed to fetch {self.get_resource_type()}s: {e}")
            raise ResourceFetchError(
                f"Failed to fetch {self.get_resource_type()}s: {e}",
                resource_type=self.get_resource_type(),
                region=self.region,
            ) from e

    def scan(self) -> List[ManagedResource]:
        """
        Fetch and parse all matching resources.

        Returns
        -------
        list of ManagedResource
            Resources in response order.

        Raises
        ------
        ResourceFetchError
            If the describe call fails terminally.
        """
        logger.debug(f"Fetching {self.get_resource_type()}s in {self.region}")
        resources = self.parse(self.fetch_raw())
        logger.info(
            f"Found {len(resources)} {self.get_resource_type()}(s) in {self.region}"
        )
        return resources

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"{self.__class__.__name__}("
            f"region='{self.region}', "
            f"resource_type='{self.get_resource_type()}')"
        )
