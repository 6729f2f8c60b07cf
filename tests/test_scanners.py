"""
Tests for the image and instance scanners.
"""

import pytest

from cloudkeeper.core.exceptions import ResourceFetchError
from cloudkeeper.scanners import ImageScanner, InstanceScanner
from conftest import StubAWSClient, make_client_error


class TestImageScanner:
    """Tests for ImageScanner."""

    def test_auto_mode_request(self, aws_client):
        """Auto mode asks for self-owned images with the tag."""
        scanner = ImageScanner(aws_client)
        assert scanner.build_request() == {
            "Owners": ["self"],
            "Filters": [{"Name": "tag-key", "Values": ["autocleanup"]}],
        }

    def test_single_mode_request(self, aws_client):
        """Single mode asks for exactly one image."""
        scanner = ImageScanner(aws_client, image_id="ami-123")
        assert scanner.build_request() == {"ImageIds": ["ami-123"]}

    def test_scan_tagged_images(self, aws_client, ec2_client, instance):
        """Only self-owned images with the tag are returned."""
        tagged = ec2_client.create_image(InstanceId=instance, Name="tagged")["ImageId"]
        ec2_client.create_image(InstanceId=instance, Name="untagged")
        ec2_client.create_tags(
            Resources=[tagged], Tags=[{"Key": "autocleanup", "Value": "1600000000"}]
        )

        images = ImageScanner(aws_client).scan()

        assert [i.resource_id for i in images] == [tagged]
        assert images[0].tag_timestamp("autocleanup") == 1600000000
        assert images[0].resource_type == "image"

    def test_fetch_error_is_wrapped(self):
        """A terminal describe failure becomes ResourceFetchError."""

        class Broken:
            def describe_images(self, **params):
                raise make_client_error(400, "InvalidAMIID.Malformed")

        scanner = ImageScanner(StubAWSClient(Broken()), image_id="bad")

        with pytest.raises(ResourceFetchError) as exc_info:
            scanner.scan()

        assert exc_info.value.resource_type == "image"


class TestInstanceScanner:
    """Tests for InstanceScanner."""

    def test_request_with_states(self, aws_client):
        """A state filter is added when given."""
        scanner = InstanceScanner(aws_client, tag_key="autostop", states=["running"])
        assert scanner.build_request() == {
            "Filters": [
                {"Name": "tag-key", "Values": ["autostop"]},
                {"Name": "instance-state-name", "Values": ["running"]},
            ]
        }

    def test_scan_flattens_reservations(self, aws_client, ec2_client, ami_id):
        """Instances from all reservations are returned."""
        for name in ("a", "b"):
            ec2_client.run_instances(
                ImageId=ami_id,
                MinCount=1,
                MaxCount=1,
                TagSpecifications=[{
                    "ResourceType": "instance",
                    "Tags": [{"Key": "autobkup", "Value": ""}, {"Key": "Name", "Value": name}],
                }],
            )
        ec2_client.run_instances(ImageId=ami_id, MinCount=1, MaxCount=1)

        instances = InstanceScanner(aws_client).scan()

        assert sorted(i.name for i in instances) == ["a", "b"]
        assert all(i.state == "running" for i in instances)

    def test_single_instance(self, aws_client, instance):
        """Single mode returns the instance without a tag filter."""
        instances = InstanceScanner(aws_client, instance_id=instance).scan()
        assert [i.resource_id for i in instances] == [instance]
