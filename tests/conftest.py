"""
Pytest configuration and shared fixtures for testing.
"""

import threading

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from cloudkeeper.core.aws_client import AWSClient
from cloudkeeper.core.config import RunConfig
from cloudkeeper.core.rate_limiter import TokenBucketRateLimiter


def make_client_error(status_code, code="InternalError", operation="DescribeImages"):
    """Build a botocore ClientError carrying an HTTP status code."""
    return ClientError(
        {
            "Error": {"Code": code, "Message": f"{code} ({status_code})"},
            "ResponseMetadata": {"HTTPStatusCode": status_code},
        },
        operation,
    )


class FakeClock:
    """Clock whose sleep advances time instead of blocking."""

    def __init__(self, now=1_700_000_000.0):
        self.now = now
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class StubEC2:
    """
    Minimal EC2 client recording every call in order.

    ``failures`` maps (operation, resource id) to the error to raise.
    """

    def __init__(self, failures=None):
        self.calls = []
        self.failures = failures or {}
        self.image_requests = {}
        self.tags = {}
        self._lock = threading.Lock()
        self._image_counter = 0

    def _record(self, operation, resource_id):
        with self._lock:
            self.calls.append((operation, resource_id))
        error = self.failures.get((operation, resource_id))
        if error is not None:
            raise error

    def deregister_image(self, ImageId):
        self._record("deregister_image", ImageId)
        return {}

    def delete_snapshot(self, SnapshotId):
        self._record("delete_snapshot", SnapshotId)
        return {}

    def create_image(self, InstanceId, **params):
        self._record("create_image", InstanceId)
        with self._lock:
            self._image_counter += 1
            self.image_requests[InstanceId] = params
            return {"ImageId": f"ami-{self._image_counter:08d}"}

    def create_tags(self, Resources, Tags):
        self._record("create_tags", Resources[0])
        with self._lock:
            self.tags[Resources[0]] = {t["Key"]: t["Value"] for t in Tags}
        return {}

    def stop_instances(self, InstanceIds):
        self._record("stop_instances", ",".join(InstanceIds))
        return {
            "StoppingInstances": [
                {
                    "InstanceId": instance_id,
                    "PreviousState": {"Name": "running"},
                    "CurrentState": {"Name": "stopping"},
                }
                for instance_id in InstanceIds
            ]
        }

    def operations(self):
        return [call[0] for call in self.calls]


class StubAWSClient(AWSClient):
    """AWSClient whose EC2 client is a StubEC2."""

    def __init__(self, stub, sleep=None, **kwargs):
        super().__init__(region="us-east-1", sleep=sleep or (lambda seconds: None), **kwargs)
        self.stub = stub

    def _get_client(self, service_name):
        return self.stub


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mock AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def mock_aws_environment(aws_credentials):
    """Create a mocked AWS environment."""
    with mock_aws():
        yield


@pytest.fixture
def aws_client(mock_aws_environment):
    """Create an AWSClient instance for testing."""
    return AWSClient(region="us-east-1", sleep=lambda seconds: None)


@pytest.fixture
def ec2_client(mock_aws_environment):
    """Create a boto3 EC2 client for setting up test resources."""
    return boto3.client("ec2", region_name="us-east-1")


@pytest.fixture
def fake_clock():
    """Deterministic clock and sleep."""
    return FakeClock()


@pytest.fixture
def fast_limiter():
    """Rate limiter that never makes a test wait."""
    return TokenBucketRateLimiter(rate=10_000.0, capacity=10_000)


@pytest.fixture
def run_config():
    """Default run settings."""
    return RunConfig(region="us-east-1")


@pytest.fixture
def stub_ec2():
    """Recording EC2 stub."""
    return StubEC2()


@pytest.fixture
def stub_client(stub_ec2):
    """AWSClient backed by the recording stub."""
    return StubAWSClient(stub_ec2)


@pytest.fixture
def ami_id(ec2_client):
    """AMI id usable for run_instances in moto."""
    images = ec2_client.describe_images(Owners=["amazon"])["Images"]
    return images[0]["ImageId"]


@pytest.fixture
def instance(ec2_client, ami_id):
    """A running instance."""
    response = ec2_client.run_instances(
        ImageId=ami_id, MinCount=1, MaxCount=1, InstanceType="t2.micro"
    )
    return response["Instances"][0]["InstanceId"]
