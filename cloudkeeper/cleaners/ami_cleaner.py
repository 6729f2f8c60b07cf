"""
Cleaner for deregistering expired AMIs and deleting their snapshots.

Images opt in with an ``autocleanup`` tag whose value is the Unix time the
image was made. Once that is older than the threshold the image is
deregistered, and after a grace period its EBS snapshots are deleted.
"""

import logging
from typing import List, Optional, Tuple

from ..core.config import CLEANUP_TAG
from ..core.resources import CleanupDecision, ManagedResource, decide_cleanup
from .base_cleaner import BaseCleaner
from .results import MutationResult, MutationStatus, MutationSummary

logger = logging.getLogger(__name__)

DEREGISTER = "deregister"
DELETE_SNAPSHOT = "delete-snapshot"


class AmiCleaner(BaseCleaner):
    """
    Deregisters tagged AMIs past their age threshold and cascades to
    their snapshots.

    Per image: SKIPPED (no tag), RETAINED (too young), or a deregister
    attempt. Snapshots of successfully deregistered images are deleted
    only after every deregister call has returned and the grace period
    has elapsed. A failure on one image or snapshot never stops the rest.
    """

    def __init__(self, aws_client, config=None, threshold_days: int = 0, tag_key: str = CLEANUP_TAG, **kwargs):
        """
        Initialize the cleaner.

        Args:
            aws_client: Instance of AWSClient
            config: Run settings
            threshold_days: Minimum tag age in days; 0 accepts any tagged image
            tag_key: Sentinel tag holding the creation timestamp
            **kwargs: Passed to BaseCleaner (rate_limiter, sleep, clock, ...)
        """
        super().__init__(aws_client, config, **kwargs)
        if threshold_days < 0:
            raise ValueError("threshold_days cannot be negative")
        self.threshold_days = threshold_days
        self.tag_key = tag_key

    def evaluate(
        self, images: List[ManagedResource], now: Optional[float] = None
    ) -> Tuple[List[ManagedResource], List[MutationResult]]:
        """
        Split images into those due for cleanup and the rest.

        Args:
            images: Fetched images
            now: Current Unix time; defaults to the cleaner's clock

        Returns:
            Tuple of (due images, SKIPPED/RETAINED results for the others)
        """
        now = self.clock() if now is None else now
        due: List[ManagedResource] = []
        untouched: List[MutationResult] = []

        for image in images:
            decision = decide_cleanup(
                image,
                self.tag_key,
                self.threshold_days,
                now,
                day_seconds=self.config.day_seconds,
            )

            if decision == CleanupDecision.MUTATE:
                due.append(image)
            elif decision == CleanupDecision.RETAIN:
                logger.info(
                    f"Not deregistering AMI: {image.resource_id} as expire time not reached"
                )
                untouched.append(
                    MutationResult(
                        resource_id=image.resource_id,
                        action=DEREGISTER,
                        region=self.region,
                        status=MutationStatus.RETAINED,
                        detail=f"{self.tag_key}={image.get_tag(self.tag_key)}",
                    )
                )
            else:
                logger.info(
                    f"Not deregistering AMI: {image.resource_id} as it has no {self.tag_key} tag"
                )
                untouched.append(
                    MutationResult(
                        resource_id=image.resource_id,
                        action=DEREGISTER,
                        region=self.region,
                        status=MutationStatus.SKIPPED,
                        detail=f"no {self.tag_key} tag",
                    )
                )

        return due, untouched

    def deregister_image(self, image: ManagedResource) -> MutationResult:
        """Deregister one image."""
        logger.info(f"Deregistering AMI: {image.resource_id}")
        result = self.mutate(
            DEREGISTER,
            image.resource_id,
            "deregister_image",
            detail=image.name,
            ImageId=image.resource_id,
        )
        if result.status == MutationStatus.SUCCESS:
            logger.info(f"AMI: {image.resource_id} deregistered")
        return result

    def delete_snapshot(self, snapshot_id: str) -> MutationResult:
        """Delete one snapshot."""
        logger.info(f"Deleting snapshot: {snapshot_id}")
        return self.mutate(
            DELETE_SNAPSHOT,
            snapshot_id,
            "delete_snapshot",
            SnapshotId=snapshot_id,
        )

    def collect_snapshots(
        self, due: List[ManagedResource], results: List[MutationResult]
    ) -> List[str]:
        """
        Snapshot IDs of the images whose deregistration succeeded.

        Args:
            due: Images a deregister was attempted for, in input order
            results: Deregister results

        Returns:
            Flat list of snapshot IDs without duplicates
        """
        deregistered = {r.resource_id for r in results if r.succeeded}
        snapshots: List[str] = []
        for image in due:
            if image.resource_id not in deregistered:
                continue
            for snapshot_id in image.dependents:
                logger.info(
                    f"Will delete associated snapshot: {snapshot_id} from ami: {image.resource_id}"
                )
                snapshots.append(snapshot_id)
        return list(dict.fromkeys(snapshots))

    def wait_for_release(self) -> None:
        """Give EC2 time to break the image to snapshot links."""
        if self.dry_run:
            logger.info(
                f"Would wait {self.config.grace_period:g}s for AWS to release snapshots"
            )
            return
        logger.info(
            "Waiting for AWS to break linkage between AMI & snapshot so snapshots can be deleted..."
        )
        self.sleep(self.config.grace_period)

    def run(self, images: List[ManagedResource]) -> MutationSummary:
        """
        Clean up the given images.

        Args:
            images: Images fetched by ImageScanner

        Returns:
            MutationSummary covering every image and snapshot
        """
        summary = MutationSummary()

        due, untouched = self.evaluate(images)
        for result in untouched:
            self.record(summary, result)

        if not due:
            logger.info("No images past their expiry time")
            summary.complete()
            return summary

        deregister_results = self.fan_out(due, self.deregister_image, summary)

        snapshots = self.collect_snapshots(due, deregister_results)
        if snapshots:
            self.wait_for_release()
            self.fan_out(snapshots, self.delete_snapshot, summary)

        summary.complete()
        return summary
