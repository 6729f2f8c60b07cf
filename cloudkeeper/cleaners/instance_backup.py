"""
Cleaner-side workflow for backing up instances as AMIs.

Creates an image of every instance tagged ``autobkup`` (or of one named
instance), waits for the images to settle, then tags each new image with
``autocleanup=<epoch>`` so that a later ``ami-cleanup`` run can expire it.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from ..core.config import BACKUP_TAG, CLEANUP_TAG
from ..core.resources import ManagedResource
from .base_cleaner import BaseCleaner
from .results import MutationResult, MutationStatus, MutationSummary

logger = logging.getLogger(__name__)

CREATE_IMAGE = "create-image"
CREATE_TAGS = "create-tags"


class InstanceBackup(BaseCleaner):
    """
    Creates and tags backup images.

    A failed create-image is logged and skipped. A failed create-tags
    leaves the image in place untagged and is logged as a warning.
    """

    def __init__(
        self,
        aws_client,
        config=None,
        instance_id: Optional[str] = None,
        force_reboot: bool = False,
        tag_key: str = BACKUP_TAG,
        cleanup_tag: str = CLEANUP_TAG,
        **kwargs,
    ):
        """
        Initialize the backup.

        Args:
            aws_client: Instance of AWSClient
            config: Run settings
            instance_id: Back up only this instance, tagged or not
            force_reboot: Let EC2 reboot the instance for a consistent image
            tag_key: Sentinel tag selecting instances
            cleanup_tag: Tag written to new images
            **kwargs: Passed to BaseCleaner
        """
        super().__init__(aws_client, config, **kwargs)
        self.instance_id = instance_id
        self.force_reboot = force_reboot
        self.tag_key = tag_key
        self.cleanup_tag = cleanup_tag

    def select(self, instances: List[ManagedResource]) -> Tuple[List[ManagedResource], List[MutationResult]]:
        """Return (instances to back up, SKIPPED results for the others)."""
        targets: List[ManagedResource] = []
        skipped: List[MutationResult] = []

        for instance in instances:
            if self.instance_id:
                eligible = instance.resource_id == self.instance_id
            else:
                eligible = instance.has_tag(self.tag_key)

            if eligible:
                targets.append(instance)
            else:
                skipped.append(
                    MutationResult(
                        resource_id=instance.resource_id,
                        action=CREATE_IMAGE,
                        region=self.region,
                        status=MutationStatus.SKIPPED,
                        detail=f"no {self.tag_key} tag",
                    )
                )
        return targets, skipped

    def build_image_request(self, instance: ManagedResource, now: float) -> Dict[str, Any]:
        """
        CreateImage parameters for one instance.

        Image names must be unique, so the Unix time is appended to the
        instance's Name tag (or its ID when untagged).
        """
        base_name = instance.name or instance.resource_id
        return {
            "InstanceId": instance.resource_id,
            "Name": f"{base_name}-{int(now)}",
            "Description": f"Auto backup of instance {instance.resource_id}",
            "NoReboot": not self.force_reboot,
        }

    def create_image(self, instance: ManagedResource) -> MutationResult:
        """Start image creation for one instance."""
        request = self.build_image_request(instance, self.clock())
        result = self.mutate(
            CREATE_IMAGE,
            instance.resource_id,
            "create_image",
            detail=request["Name"],
            **request,
        )

        if result.status == MutationStatus.SUCCESS:
            image_id = result.response.get("ImageId")
            result.detail = image_id
            logger.info(f"Started creating AMI: {image_id} for instance {instance.resource_id}")
        return result

    def image_tags(self, instance_id: str, now: float) -> List[Dict[str, str]]:
        return [
            {"Key": self.cleanup_tag, "Value": str(int(now))},
            {"Key": "Name", "Value": f"Autobkup-{instance_id}"},
        ]

    def tag_image(self, created: Tuple[str, str], now: Optional[float] = None) -> MutationResult:
        """
        Tag one new image.

        Args:
            created: (instance ID, image ID)
            now: Timestamp written to the cleanup tag
        """
        instance_id, image_id = created
        now = self.clock() if now is None else now
        result = self.mutate(
            CREATE_TAGS,
            image_id,
            "create_tags",
            detail=f"backup of {instance_id}",
            Resources=[image_id],
            Tags=self.image_tags(instance_id, now),
        )
        if result.status == MutationStatus.SUCCESS:
            logger.info(f"Tagged AMI: {image_id}")
        return result

    def wait_for_images(self) -> None:
        """Give EC2 time to make new images taggable."""
        if self.dry_run:
            logger.info(
                f"Would wait {self.config.settle_period:g}s for new AMIs to become available"
            )
            return
        logger.info("AMI creation has started. Now waiting for AWS to make AMIs available to tag...")
        self.sleep(self.config.settle_period)

    def run(self, instances: List[ManagedResource]) -> MutationSummary:
        """
        Back up the given instances.

        Args:
            instances: Instances fetched by InstanceScanner

        Returns:
            MutationSummary covering create-image and create-tags results
        """
        summary = MutationSummary()

        targets, skipped = self.select(instances)
        for result in skipped:
            self.record(summary, result)

        create_results = self.fan_out(targets, self.create_image, summary)

        created: List[Tuple[str, str]] = []
        for result in create_results:
            if result.status == MutationStatus.SUCCESS and result.detail:
                created.append((result.resource_id, result.detail))
            elif result.status == MutationStatus.DRY_RUN:
                created.append((result.resource_id, f"<new image of {result.resource_id}>"))

        if not created:
            summary.complete()
            return summary

        self.wait_for_images()

        now = self.clock()
        self.fan_out(created, lambda pair: self.tag_image(pair, now), summary)

        summary.complete()
        return summary
