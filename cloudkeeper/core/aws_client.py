"""
AWS Client Module
=================

Provides a thread-safe wrapper around boto3 that routes every API call
through the CloudKeeper retry policy.

Classes
-------
AWSClient
    Main client class for AWS operations.

Example
-------
>>> from cloudkeeper.core.aws_client import AWSClient
>>>
>>> client = AWSClient(region="us-east-1", profile="production")
>>> client.validate_credentials()
>>>
>>> # Retried call
>>> client.call("ec2", "deregister_image", ImageId="ami-123")
>>>
>>> # Retried, paginated call
>>> images = client.paginate(
...     "ec2", "describe_images", "Images", Owners=["self"]
... )

Notes
-----
Botocore's own retry handler is switched off (``max_attempts=0``) so
that :func:`cloudkeeper.core.retry.with_retry` is the only component
deciding when a call is repeated.

See Also
--------
boto3 : AWS SDK for Python
cloudkeeper.core.retry : Backoff policy applied to every call.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import (
    ClientError,
    NoCredentialsError,
    NoRegionError,
    ProfileNotFound,
)

from cloudkeeper.core.exceptions import (
    AWSClientError,
    CredentialsError,
    RegionError,
    ServiceError,
)
from cloudkeeper.core.retry import DEFAULT_RETRY_POLICY, RetryPolicy, with_retry

# Module logger
logger = logging.getLogger(__name__)


class AWSClient:
    """
    Thread-safe AWS client wrapper with retry logic and credential management.

    Parameters
    ----------
    region : str, default="us-east-1"
        AWS region to connect to.
    profile : str, optional
        AWS profile name from ~/.aws/credentials.
    timeout : int, default=30
        Connect and read timeout in seconds.
    retry_policy : RetryPolicy, optional
        Backoff applied by :meth:`call`.
    sleep : callable, default=time.sleep
        Sleep function used between retries.

    Attributes
    ----------
    region : str
        The configured AWS region.
    profile : str or None
        The configured AWS profile name.
    retry_policy : RetryPolicy
        Backoff applied by :meth:`call`.

    Raises
    ------
    CredentialsError
        If AWS credentials are not found or invalid.
    RegionError
        If the specified region is invalid.
    ServiceError
        If unable to create a service client.
    """

    def __init__(
        self,
        region: str = "us-east-1",
        profile: Optional[str] = None,
        timeout: int = 30,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        sleep: Callable[[float], Any] = time.sleep,
    ) -> None:
        """Initialize AWS client with the specified configuration."""
        self.region = region
        self.profile = profile
        self.timeout = timeout
        self.retry_policy = retry_policy
        self.sleep = sleep

        # Lazy-loaded components
        self._session: Optional[boto3.Session] = None
        self._clients: Dict[str, Any] = {}
        self._lock = threading.Lock()

        self._config = self._create_config()

        logger.debug(
            "Initialized AWSClient",
            extra={"region": region, "profile": profile},
        )

    @classmethod
    def from_config(cls, config, sleep: Callable[[float], Any] = time.sleep) -> AWSClient:
        """
        Build a client from a :class:`~cloudkeeper.core.config.RunConfig`.

        Parameters
        ----------
        config : RunConfig
            Run settings providing region, profile and retry policy.
        sleep : callable, default=time.sleep
            Sleep function used between retries.

        Returns
        -------
        AWSClient
            A new client.
        """
        return cls(
            region=config.region,
            profile=config.profile,
            retry_policy=config.retry_policy,
            sleep=sleep,
        )

    def _create_config(self) -> Config:
        """
        Create botocore configuration with timeouts and SDK retries off.

        Returns
        -------
        Config
            Botocore configuration object.
        """
        return Config(
            retries={
                "max_attempts": 0,
                "mode": "standard",
            },
            connect_timeout=self.timeout,
            read_timeout=self.timeout,
        )

    @property
    def session(self) -> boto3.Session:
        """
        Get or create the boto3 session (lazy initialization).

        Raises
        ------
        CredentialsError
            If the profile is not found.
        RegionError
            If the region is invalid.
        """
        if self._session is None:
            self._session = self._create_session()
        return self._session

    def _create_session(self) -> boto3.Session:
        try:
            session_kwargs = {"region_name": self.region}
            if self.profile:
                session_kwargs["profile_name"] = self.profile

            session = boto3.Session(**session_kwargs)
            logger.debug(f"Created boto3 session for region {self.region}")
            return session

        except ProfileNotFound:
            raise CredentialsError(
                f"AWS profile '{self.profile}' not found",
                details={
                    "profile": self.profile,
                    "hint": "Check ~/.aws/credentials for available profiles",
                },
            )
        except NoRegionError:
            raise RegionError(
                f"Invalid or missing region: {self.region}",
                region=self.region,
                details={"hint": "Specify a valid AWS region like 'us-east-1'"},
            )
        except Exception as e:
            logger.exception("Failed to create AWS session")
            raise AWSClientError(
                f"Failed to create AWS session: {e}",
                region=self.region,
            )

    def _get_client(self, service_name: str) -> Any:
        """
        Get or create a boto3 client for the specified service.

        Client creation is guarded by a lock since worker threads share
        one AWSClient.

        Parameters
        ----------
        service_name : str
            Name of the AWS service (e.g., 'ec2', 'sts').

        Returns
        -------
        botocore.client.BaseClient
            The boto3 client for the specified service.
        """
        with self._lock:
            if service_name in self._clients:
                return self._clients[service_name]

            try:
                client = self.session.client(service_name, config=self._config)
                self._clients[service_name] = client
                logger.debug(f"Created {service_name} client for {self.region}")
                return client

            except NoCredentialsError:
                raise CredentialsError(
                    "AWS credentials not found",
                    details={
                        "hint": (
                            "Configure credentials using 'aws configure' or set "
                            "AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY environment variables"
                        ),
                    },
                )
            except CredentialsError:
                raise
            except Exception as e:
                logger.exception(f"Failed to create {service_name} client")
                raise ServiceError(
                    f"Failed to create {service_name} client: {e}",
                    service=service_name,
                    region=self.region,
                )

    # =========================================================================
    # Retried Calls
    # =========================================================================

    def call(self, service_name: str, operation_name: str, **params: Any) -> Dict[str, Any]:
        """
        Invoke a boto3 operation under the retry policy.

        Parameters
        ----------
        service_name : str
            Service the operation belongs to (e.g. 'ec2').
        operation_name : str
            Boto3 method name (e.g. 'deregister_image').
        **params
            Request parameters passed through unchanged.

        Returns
        -------
        dict
            The raw API response.

        Raises
        ------
        botocore.exceptions.ClientError
            When the call fails terminally (4xx, or 5xx after the last
            retry).

        Example
        -------
        >>> client.call("ec2", "delete_snapshot", SnapshotId="snap-123")
        """
        method = getattr(self._get_client(service_name), operation_name)
        return with_retry(
            lambda: method(**params),
            policy=self.retry_policy,
            sleep=self.sleep,
            description=f"{service_name}:{operation_name}",
        )

    def paginate(
        self,
        service_name: str,
        operation_name: str,
        result_key: str,
        **params: Any,
    ) -> List[Dict[str, Any]]:
        """
        Fetch every page of a list operation, each page retried.

        Follows the ``NextToken`` continuation marker until the service
        stops returning one.

        Parameters
        ----------
        service_name : str
            Service the operation belongs to.
        operation_name : str
            Boto3 method name (e.g. 'describe_instances').
        result_key : str
            Response key holding the list (e.g. 'Reservations').
        **params
            Request parameters for the first page.

        Returns
        -------
        list of dict
            Items from all pages, in response order.
        """
        items: List[Dict[str, Any]] = []
        request = dict(params)
        page = 0

        while True:
            page += 1
            response = self.call(service_name, operation_name, **request)
            items.extend(response.get(result_key, []))

            token = response.get("NextToken")
            if not token:
                break
            request["NextToken"] = token

        logger.debug(
            f"{service_name}:{operation_name} returned {len(items)} "
            f"{result_key} over {page} page(s)"
        )
        return items

    # =========================================================================
    # Credential Validation
    # =========================================================================

    def validate_credentials(self) -> bool:
        """
        Validate AWS credentials by calling STS GetCallerIdentity.

        Returns
        -------
        bool
            True if credentials are valid.

        Raises
        ------
        CredentialsError
            If credentials are invalid, expired, or missing.
        """
        try:
            identity = self.call("sts", "get_caller_identity")
            logger.info(
                "Credentials validated",
                extra={
                    "account": identity["Account"],
                    "arn": identity["Arn"],
                },
            )
            return True

        except CredentialsError:
            raise
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in ("InvalidClientTokenId", "SignatureDoesNotMatch"):
                raise CredentialsError(
                    "Invalid AWS credentials",
                    details={
                        "error_code": error_code,
                        "hint": "Check your access key and secret key",
                    },
                )
            raise CredentialsError(f"Failed to validate credentials: {e}")

        except Exception as e:
            logger.exception("Credential validation failed")
            raise CredentialsError(f"Failed to validate credentials: {e}")

    def __repr__(self) -> str:
        """Return string representation of the client."""
        return (
            f"AWSClient(region='{self.region}', "
            f"profile={self.profile!r})"
        )


__all__ = ["AWSClient"]
