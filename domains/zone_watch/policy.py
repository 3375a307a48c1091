"""
Zone policy evaluation.

Pure decision logic: given a file's current zone and the rule of the directory
it lives in, decide whether to skip it, reassign it to the rule's target zone,
or remove its marker.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.models.schemas import TrustZone, WatchedDirectory
from app.utils.helpers import matches_any_glob


class PolicyAction(str, Enum):
    SKIP = "skip"
    DOWNGRADE = "downgrade"
    REMOVE = "remove"


class SkipReason(str, Enum):
    CLEAN = "clean"
    RESTRICTED_ZONE_PROTECTED = "restricted-zone-protected"
    BELOW_THRESHOLD = "below-threshold"
    EXCLUDED = "excluded"


@dataclass(frozen=True, slots=True)
class PolicyDecision:
    """What to do with one file."""

    action: PolicyAction
    reason: Optional[SkipReason] = None
    target_zone: Optional[TrustZone] = None

    @property
    def is_skip(self) -> bool:
        return self.action is PolicyAction.SKIP

    @classmethod
    def skip(cls, reason: SkipReason) -> "PolicyDecision":
        return cls(PolicyAction.SKIP, reason=reason)


def is_excluded(file_path: str, directory: WatchedDirectory) -> bool:
    """Check the file name against the directory's exclude globs."""
    return matches_any_glob(os.path.basename(file_path), directory.exclude_patterns)


def evaluate(
    current_zone: Optional[TrustZone],
    directory: WatchedDirectory,
    file_path: str = "",
) -> PolicyDecision:
    """
    Decide the action for a file.

    Rules apply in order; the Restricted Sites check overrides every
    directory setting.

    Args:
        current_zone: Zone read from the file's marker, None if unmarked
        directory: Rule of the directory the file belongs to
        file_path: File path, matched by name against exclude patterns

    Returns:
        PolicyDecision
    """
    if current_zone is None:
        return PolicyDecision.skip(SkipReason.CLEAN)

    if current_zone == TrustZone.RESTRICTED:
        return PolicyDecision.skip(SkipReason.RESTRICTED_ZONE_PROTECTED)

    if directory.min_zone is not None and current_zone < directory.min_zone:
        return PolicyDecision.skip(SkipReason.BELOW_THRESHOLD)

    if file_path and is_excluded(file_path, directory):
        return PolicyDecision.skip(SkipReason.EXCLUDED)

    if directory.target_zone is not None:
        return PolicyDecision(PolicyAction.DOWNGRADE, target_zone=TrustZone(directory.target_zone))

    return PolicyDecision(PolicyAction.REMOVE)
