"""
Custom Exceptions for CloudKeeper
=================================

This module defines a hierarchy of custom exceptions used throughout
the application for consistent error handling and reporting.

Exception Hierarchy
-------------------
::

    CloudKeeperError (base)
    ├── AWSClientError
    │   ├── CredentialsError
    │   ├── RegionError
    │   └── ServiceError
    ├── ScannerError
    │   └── ResourceFetchError
    ├── CleanerError
    │   └── MutationError
    └── ValidationError

Example
-------
>>> from cloudkeeper.core.exceptions import ResourceFetchError
>>>
>>> try:
...     images = scanner.scan()
... except ResourceFetchError as e:
...     print(f"Unable to list images: {e}")
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class CloudKeeperError(Exception):
    """
    Base exception for all CloudKeeper errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    details : dict, optional
        Additional context about the error.

    Example
    -------
    >>> raise CloudKeeperError("Something went wrong", details={"code": 500})
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for serialization.

        Returns
        -------
        dict
            Dictionary representation of the error.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# AWS Client Exceptions
# =============================================================================


class AWSClientError(CloudKeeperError):
    """
    Base exception for AWS client-related errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    service : str, optional
        The AWS service that caused the error.
    region : str, optional
        The AWS region where the error occurred.
    details : dict, optional
        Additional context about the error.
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        region: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.service = service
        self.region = region
        full_details = details or {}
        if service:
            full_details["service"] = service
        if region:
            full_details["region"] = region
        super().__init__(message, full_details)


class CredentialsError(AWSClientError):
    """Raised when AWS credentials are invalid, missing, or expired."""

    pass


class RegionError(AWSClientError):
    """Raised when the configured AWS region is invalid or missing."""

    pass


class ServiceError(AWSClientError):
    """Raised when a service client cannot be created."""

    pass


# =============================================================================
# Scanner Exceptions
# =============================================================================


class ScannerError(CloudKeeperError):
    """
    Base exception for scanner-related errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    resource_type : str, optional
        The type of resource being fetched.
    region : str, optional
        The AWS region being queried.
    details : dict, optional
        Additional context about the error.
    """

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        region: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.resource_type = resource_type
        self.region = region
        full_details = details or {}
        if resource_type:
            full_details["resource_type"] = resource_type
        if region:
            full_details["region"] = region
        super().__init__(message, full_details)


class ResourceFetchError(ScannerError):
    """
    Raised when a describe call fails after retries.

    This is always fatal for the running command.

    Example
    -------
    >>> raise ResourceFetchError(
    ...     "Failed to describe images",
    ...     resource_type="image",
    ...     region="us-east-1"
    ... )
    """

    pass


# =============================================================================
# Cleaner Exceptions
# =============================================================================


class CleanerError(CloudKeeperError):
    """
    Base exception for mutation-related errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    resource_id : str, optional
        The ID of the resource being mutated.
    action : str, optional
        The mutating action (e.g. 'deregister', 'delete-snapshot').
    details : dict, optional
        Additional context about the error.
    """

    def __init__(
        self,
        message: str,
        resource_id: Optional[str] = None,
        action: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.resource_id = resource_id
        self.action = action
        full_details = details or {}
        if resource_id:
            full_details["resource_id"] = resource_id
        if action:
            full_details["action"] = action
        super().__init__(message, full_details)


class MutationError(CleanerError):
    """
    Raised when a batch-level mutation fails and cannot be skipped.

    Per-item failures inside a batch are recorded as results instead.

    Example
    -------
    >>> raise MutationError(
    ...     "Failed to stop instances",
    ...     action="stop-instances",
    ...     details={"instance_ids": ["i-123"]}
    ... )
    """

    pass


# =============================================================================
# Input Validation
# =============================================================================


class ValidationError(CloudKeeperError):
    """
    Raised when a command is invoked with a missing or conflicting
    combination of options. No remote call is made.
    """

    pass
