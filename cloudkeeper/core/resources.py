"""
Managed Resources
=================

Thin, read-only views over the dicts returned by ``describe_images`` and
``describe_instances``, plus the age rule that decides whether a tagged
image is due for cleanup.

Classes
-------
ManagedResource
    An image or instance with its tags and dependent snapshot IDs.
CleanupDecision
    Outcome of the age check for one resource.

Example
-------
>>> image = ManagedResource.from_image(raw_image)
>>> decide_cleanup(image, "autocleanup", threshold_days=30, now=time.time())
<CleanupDecision.MUTATE: 'mutate'>
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from cloudkeeper.core.config import LEGACY_DAY_SECONDS

# Module logger
logger = logging.getLogger(__name__)


class CleanupDecision(Enum):
    """Per-resource outcome of the sentinel tag and age check."""

    SKIP = "skip"
    RETAIN = "retain"
    MUTATE = "mutate"


def _tags_to_dict(raw_tags: Optional[List[Dict[str, str]]]) -> Dict[str, str]:
    return {tag["Key"]: tag.get("Value", "") for tag in raw_tags or [] if "Key" in tag}


@dataclass
class ManagedResource:
    """
    A cloud resource as seen by one command invocation.

    Attributes:
        resource_id: Image or instance ID
        resource_type: 'image' or 'instance'
        tags: Tag key to value mapping
        name: Image name, or the instance's Name tag
        state: Provider state string (e.g. 'available', 'running')
        created: Creation time reported by the provider, if any
        dependents: Snapshot IDs backing the image's EBS block devices
    """

    resource_id: str
    resource_type: str
    tags: Dict[str, str] = field(default_factory=dict)
    name: Optional[str] = None
    state: Optional[str] = None
    created: Optional[str] = None
    dependents: List[str] = field(default_factory=list)

    @classmethod
    def from_image(cls, image: Dict[str, Any]) -> ManagedResource:
        """
        Build from one entry of ``describe_images()["Images"]``.

        Block-device mappings without an EBS snapshot (ephemeral or
        no-device entries) contribute nothing to ``dependents``.
        """
        snapshots = []
        for mapping in image.get("BlockDeviceMappings", []) or []:
            snapshot_id = (mapping.get("Ebs") or {}).get("SnapshotId")
            if snapshot_id:
                snapshots.append(snapshot_id)

        return cls(
            resource_id=image["ImageId"],
            resource_type="image",
            tags=_tags_to_dict(image.get("Tags")),
            name=image.get("Name"),
            state=image.get("State"),
            created=image.get("CreationDate"),
            dependents=snapshots,
        )

    @classmethod
    def from_instance(cls, instance: Dict[str, Any]) -> ManagedResource:
        """Build from one instance inside ``describe_instances()["Reservations"]``."""
        tags = _tags_to_dict(instance.get("Tags"))
        launch_time = instance.get("LaunchTime")
        if isinstance(launch_time, datetime):
            launch_time = launch_time.isoformat()

        return cls(
            resource_id=instance["InstanceId"],
            resource_type="instance",
            tags=tags,
            name=tags.get("Name"),
            state=(instance.get("State") or {}).get("Name"),
            created=launch_time,
        )

    def has_tag(self, key: str) -> bool:
        """Return True if the resource carries tag ``key``."""
        return key in self.tags

    def get_tag(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Return the value of tag ``key``."""
        return self.tags.get(key, default)

    def tag_timestamp(self, key: str) -> Optional[int]:
        """
        Parse tag ``key`` as a Unix timestamp.

        Returns
        -------
        int or None
            The timestamp, or None if the tag is absent or not an integer.
        """
        value = self.tags.get(key)
        if value is None:
            return None
        try:
            return int(value.strip())
        except ValueError:
            return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.resource_id,
            "type": self.resource_type,
            "name": self.name,
            "state": self.state,
            "created": self.created,
            "tags": dict(self.tags),
            "dependents": list(self.dependents),
        }


def decide_cleanup(
    resource: ManagedResource,
    tag_key: str,
    threshold_days: int,
    now: float,
    day_seconds: int = LEGACY_DAY_SECONDS,
) -> CleanupDecision:
    """
    Apply the sentinel tag and age rule to one resource.

    A resource qualifies when it carries ``tag_key`` and
    ``now - int(tag value) > threshold_days * day_seconds``.

    Parameters
    ----------
    resource : ManagedResource
        Resource to check.
    tag_key : str
        Sentinel tag (normally 'autocleanup').
    threshold_days : int
        Minimum age in days. 0 means any tagged resource in the past.
    now : float
        Current Unix time.
    day_seconds : int, default=86000
        Seconds counted per day.

    Returns
    -------
    CleanupDecision
        SKIP if untagged, MUTATE if past the threshold, RETAIN otherwise.
        An unparseable tag value is RETAIN.
    """
    if not resource.has_tag(tag_key):
        return CleanupDecision.SKIP

    created = resource.tag_timestamp(tag_key)
    if created is None:
        logger.warning(
            f"Tag {tag_key}={resource.get_tag(tag_key)!r} on {resource.resource_id} "
            f"is not a Unix timestamp, leaving it alone"
        )
        return CleanupDecision.RETAIN

    age = int(now) - created
    if age > threshold_days * day_seconds:
        return CleanupDecision.MUTATE
    return CleanupDecision.RETAIN
