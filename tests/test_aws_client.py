"""
Tests for the AWS Client module.
"""

import pytest
from botocore.exceptions import ClientError

from cloudkeeper.core.aws_client import AWSClient
from cloudkeeper.core.config import RunConfig
from cloudkeeper.core.retry import RetryPolicy
from conftest import StubAWSClient, make_client_error


class PagedEC2:
    """Returns describe_images results over several pages."""

    def __init__(self, pages, fail_first=0):
        self.pages = pages
        self.requests = []
        self.fail_first = fail_first

    def describe_images(self, **params):
        self.requests.append(dict(params))
        if self.fail_first:
            self.fail_first -= 1
            raise make_client_error(500)
        index = int(params.get("NextToken", "0"))
        response = {"Images": self.pages[index]}
        if index + 1 < len(self.pages):
            response["NextToken"] = str(index + 1)
        return response


class TestAWSClient:
    """Tests for AWSClient class."""

    def test_client_initialization(self, mock_aws_environment):
        """Test basic client initialization."""
        client = AWSClient(region="us-east-1")
        assert client.region == "us-east-1"
        assert client.profile is None

    def test_client_with_profile(self, mock_aws_environment):
        """Test client initialization with profile."""
        # Note: moto doesn't actually use profiles, but we test the attribute
        client = AWSClient(region="us-west-2", profile="test-profile")
        assert client.region == "us-west-2"
        assert client.profile == "test-profile"

    def test_from_config(self):
        """Region, profile and retry policy come from RunConfig."""
        policy = RetryPolicy(initial_delay_ms=10, ceiling_ms=100)
        config = RunConfig(region="eu-west-1", profile="ops", retry_policy=policy)

        client = AWSClient.from_config(config)

        assert client.region == "eu-west-1"
        assert client.profile == "ops"
        assert client.retry_policy is policy

    def test_sdk_retries_disabled(self):
        """Backoff is handled by the client, not by botocore."""
        client = AWSClient(region="us-east-1")
        assert client._config.retries["max_attempts"] == 0

    def test_clients_are_cached(self, mock_aws_environment):
        """One boto3 client per service is shared by all calls."""
        client = AWSClient(region="us-east-1")
        ec2 = client._get_client("ec2")
        assert ec2 is not None
        assert client._get_client("ec2") is ec2

    def test_validate_credentials(self, mock_aws_environment):
        """Test credential validation."""
        client = AWSClient(region="us-east-1")
        # Should not raise an exception with mocked credentials
        assert client.validate_credentials() is True


class TestAWSClientCalls:
    """Tests for retried calls and pagination."""

    def test_call_retries_server_errors(self):
        """A 500 on a call is retried with the policy delays."""
        sleeps = []
        stub = PagedEC2([[{"ImageId": "ami-1"}]], fail_first=2)
        client = StubAWSClient(stub, sleep=sleeps.append)

        response = client.call("ec2", "describe_images", Owners=["self"])

        assert response["Images"] == [{"ImageId": "ami-1"}]
        assert sleeps == [0.998, 1.996]

    def test_call_raises_client_errors(self):
        """A 4xx is raised straight away."""
        sleeps = []

        class Denied:
            def describe_images(self, **params):
                raise make_client_error(403, "UnauthorizedOperation")

        client = StubAWSClient(Denied(), sleep=sleeps.append)

        with pytest.raises(ClientError):
            client.call("ec2", "describe_images")
        assert sleeps == []

    def test_paginate_follows_tokens(self):
        """Items from every page are concatenated in order."""
        stub = PagedEC2([
            [{"ImageId": "ami-1"}, {"ImageId": "ami-2"}],
            [{"ImageId": "ami-3"}],
            [{"ImageId": "ami-4"}],
        ])
        client = StubAWSClient(stub)

        items = client.paginate("ec2", "describe_images", "Images", Owners=["self"])

        assert [i["ImageId"] for i in items] == ["ami-1", "ami-2", "ami-3", "ami-4"]
        assert stub.requests[0] == {"Owners": ["self"]}
        assert stub.requests[2] == {"Owners": ["self"], "NextToken": "2"}

    def test_paginate_against_moto(self, aws_client, ec2_client):
        """Pagination works against the real client shape."""
        ec2_client.create_volume(AvailabilityZone="us-east-1a", Size=8)

        volumes = aws_client.paginate("ec2", "describe_volumes", "Volumes")

        assert len(volumes) == 1
