"""
Tests for the instance backup workflow.
"""

import logging

import pytest

from cloudkeeper.cleaners import InstanceBackup, MutationStatus
from cloudkeeper.core.resources import ManagedResource
from cloudkeeper.scanners import InstanceScanner
from conftest import FakeClock, StubAWSClient, StubEC2, make_client_error

NOW = 1_700_000_000.0


def instance(instance_id, name=None, tagged=True, state="running"):
    tags = {"autobkup": ""} if tagged else {}
    if name:
        tags["Name"] = name
    return ManagedResource(
        resource_id=instance_id,
        resource_type="instance",
        tags=tags,
        name=name,
        state=state,
    )


@pytest.fixture
def clock():
    return FakeClock(now=NOW)


def make_backup(client, config, clock, limiter, **kwargs):
    return InstanceBackup(
        client,
        config,
        rate_limiter=limiter,
        sleep=clock.sleep,
        clock=clock,
        **kwargs,
    )


class TestInstanceBackup:
    """Tests for InstanceBackup with a stub EC2 client."""

    def test_image_request(self, stub_client, stub_ec2, run_config, clock, fast_limiter):
        """Name, description and reboot flag follow the instance."""
        backup = make_backup(stub_client, run_config, clock, fast_limiter)
        backup.run([instance("i-1", name="web"), instance("i-2")])

        assert stub_ec2.image_requests["i-1"] == {
            "Name": f"web-{int(NOW)}",
            "Description": "Auto backup of instance i-1",
            "NoReboot": True,
        }
        assert stub_ec2.image_requests["i-2"]["Name"] == f"i-2-{int(NOW)}"

    def test_force_reboot(self, stub_client, stub_ec2, run_config, clock, fast_limiter):
        """--force-reboot lets EC2 reboot the instance."""
        backup = make_backup(stub_client, run_config, clock, fast_limiter, force_reboot=True)
        backup.run([instance("i-1")])

        assert stub_ec2.image_requests["i-1"]["NoReboot"] is False

    def test_tags_after_single_settle(self, stub_client, stub_ec2, run_config, clock, fast_limiter):
        """All images are created, then one wait, then every image is tagged."""
        backup = make_backup(stub_client, run_config, clock, fast_limiter)
        summary = backup.run([instance(f"i-{n}") for n in range(4)])

        operations = stub_ec2.operations()
        assert operations[:4] == ["create_image"] * 4
        assert operations[4:] == ["create_tags"] * 4
        assert clock.sleeps == [run_config.settle_period]
        assert summary.succeeded == 8

    def test_tag_values(self, stub_client, stub_ec2, run_config, clock, fast_limiter):
        """New images get the cleanup timestamp and a backup Name."""
        backup = make_backup(stub_client, run_config, clock, fast_limiter)
        summary = backup.run([instance("i-1")])

        image_id = summary.for_action("create-image")[0].detail
        assert stub_ec2.tags[image_id] == {
            "autocleanup": str(int(NOW + run_config.settle_period)),
            "Name": "Autobkup-i-1",
        }

    def test_untagged_instances_skipped(self, stub_client, stub_ec2, run_config, clock, fast_limiter):
        """Without a named instance only tagged instances are backed up."""
        backup = make_backup(stub_client, run_config, clock, fast_limiter)
        summary = backup.run([instance("i-1"), instance("i-2", tagged=False)])

        assert ("create_image", "i-2") not in stub_ec2.calls
        assert summary.skipped == 1

    def test_named_instance_needs_no_tag(self, stub_client, stub_ec2, run_config, clock, fast_limiter):
        """A named instance is backed up even without the tag."""
        backup = make_backup(stub_client, run_config, clock, fast_limiter, instance_id="i-2")
        backup.run([instance("i-2", tagged=False)])

        assert ("create_image", "i-2") in stub_ec2.calls

    def test_create_failure_is_isolated(self, run_config, clock, fast_limiter):
        """A failed create-image is recorded and not tagged."""
        stub = StubEC2(failures={
            ("create_image", "i-bad"): make_client_error(400, "IncorrectInstanceState", "CreateImage"),
        })
        backup = make_backup(StubAWSClient(stub), run_config, clock, fast_limiter)

        summary = backup.run([instance("i-bad"), instance("i-good")])

        assert stub.operations().count("create_tags") == 1
        assert summary.failed == 1
        assert summary.succeeded == 2

    def test_all_creates_fail(self, run_config, clock, fast_limiter):
        """No image created means no wait and no tagging."""
        stub = StubEC2(failures={
            ("create_image", "i-1"): make_client_error(400, "IncorrectInstanceState", "CreateImage"),
        })
        backup = make_backup(StubAWSClient(stub), run_config, clock, fast_limiter)

        backup.run([instance("i-1")])

        assert clock.sleeps == []
        assert stub.operations() == ["create_image"]

    def test_tag_failure_is_warning(self, run_config, clock, fast_limiter, caplog):
        """A failed create-tags leaves a FAILED result and a warning."""
        stub = StubEC2(failures={
            ("create_tags", "ami-00000001"): make_client_error(400, "InvalidAMIID.NotFound", "CreateTags"),
        })
        backup = make_backup(StubAWSClient(stub), run_config, clock, fast_limiter)

        summary = backup.run([instance("i-1")])

        assert summary.for_action("create-tags")[0].status == MutationStatus.FAILED
        assert any(r.levelno == logging.WARNING for r in caplog.records)

    def test_dry_run(self, stub_client, stub_ec2, run_config, clock, fast_limiter, caplog):
        """Dry-run makes no calls and logs both phases per instance."""
        caplog.set_level(logging.INFO, logger="cloudkeeper")
        backup = make_backup(stub_client, run_config.with_options(dry_run=True), clock, fast_limiter)

        summary = backup.run([instance("i-1"), instance("i-2")])

        assert stub_ec2.calls == []
        assert clock.sleeps == []
        assert summary.dry_run == 4
        messages = [r.getMessage() for r in caplog.records]
        assert sum(m.startswith("Would create-image") for m in messages) == 2
        assert sum(m.startswith("Would create-tags") for m in messages) == 2


class TestInstanceBackupMoto:
    """End-to-end against moto."""

    def test_backup_tagged_instance(self, aws_client, ec2_client, ami_id, run_config, fast_limiter):
        """A tagged instance ends up with a tagged AMI."""
        reservation = ec2_client.run_instances(
            ImageId=ami_id,
            MinCount=1,
            MaxCount=1,
            InstanceType="t2.micro",
            TagSpecifications=[{
                "ResourceType": "instance",
                "Tags": [{"Key": "autobkup", "Value": "yes"}, {"Key": "Name", "Value": "db"}],
            }],
        )
        instance_id = reservation["Instances"][0]["InstanceId"]

        instances = InstanceScanner(aws_client).scan()
        backup = InstanceBackup(
            aws_client,
            run_config.with_options(settle_period=0),
            rate_limiter=fast_limiter,
        )
        summary = backup.run(instances)

        assert summary.failed == 0
        images = ec2_client.describe_images(Owners=["self"])["Images"]
        assert len(images) == 1
        tags = {t["Key"]: t["Value"] for t in images[0].get("Tags", [])}
        assert tags["Name"] == f"Autobkup-{instance_id}"
        assert int(tags["autocleanup"]) > 0
        assert images[0]["Name"].startswith("db-")
