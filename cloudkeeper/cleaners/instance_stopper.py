"""
Stops running instances tagged ``autostop``.
"""

import logging
from typing import List, Tuple

from ..core.config import AUTOSTOP_TAG
from ..core.exceptions import MutationError
from ..core.resources import ManagedResource
from .base_cleaner import BaseCleaner
from .results import MutationResult, MutationStatus, MutationSummary

logger = logging.getLogger(__name__)

STOP = "stop"


class InstanceStopper(BaseCleaner):
    """
    Stops every running instance carrying the stop tag in one API call.

    Unlike the image cleaners a failure here is fatal: the whole batch
    is a single request, so there are no partial results to report.
    """

    def __init__(self, aws_client, config=None, tag_key: str = AUTOSTOP_TAG, **kwargs):
        super().__init__(aws_client, config, **kwargs)
        self.tag_key = tag_key

    def select(self, instances: List[ManagedResource]) -> Tuple[List[ManagedResource], List[MutationResult]]:
        """Return (running tagged instances, SKIPPED results for the others)."""
        targets: List[ManagedResource] = []
        skipped: List[MutationResult] = []
        for instance in instances:
            if instance.state == "running" and instance.has_tag(self.tag_key):
                targets.append(instance)
                continue
            reason = (
                f"state is {instance.state}"
                if instance.has_tag(self.tag_key)
                else f"no {self.tag_key} tag"
            )
            skipped.append(
                MutationResult(
                    resource_id=instance.resource_id,
                    action=STOP,
                    region=self.region,
                    status=MutationStatus.SKIPPED,
                    detail=reason,
                )
            )
        return targets, skipped

    def run(self, instances: List[ManagedResource]) -> MutationSummary:
        """
        Stop the eligible instances.

        Args:
            instances: Instances fetched by InstanceScanner

        Returns:
            MutationSummary with one result per instance

        Raises:
            MutationError: If the StopInstances call fails after retries
        """
        summary = MutationSummary()

        targets, skipped = self.select(instances)
        for result in skipped:
            self.record(summary, result)

        if not targets:
            logger.info(f"No running instances tagged {self.tag_key}")
            summary.complete()
            return summary

        instance_ids = [i.resource_id for i in targets]

        if self.dry_run:
            for instance_id in instance_ids:
                self.record(summary, self.dry_run_result(STOP, instance_id))
            summary.complete()
            return summary

        logger.info(f"Stopping instances: {', '.join(instance_ids)}")
        self.rate_limiter.acquire()
        try:
            response = self.aws_client.call("ec2", "stop_instances", InstanceIds=instance_ids)
        except Exception as e:
            raise MutationError(
                f"Failed to stop instances: {self.describe_error(e)}",
                resource_id=",".join(instance_ids),
                action=STOP,
            ) from e

        for change in response.get("StoppingInstances", []):
            previous = change.get("PreviousState", {}).get("Name", "unknown")
            current = change.get("CurrentState", {}).get("Name", "unknown")
            logger.info(f"Instance {change.get('InstanceId')}: {previous} -> {current}")
            self.record(
                summary,
                MutationResult(
                    resource_id=change.get("InstanceId", ""),
                    action=STOP,
                    region=self.region,
                    status=MutationStatus.SUCCESS,
                    detail=f"{previous} -> {current}",
                ),
            )

        summary.complete()
        return summary
