"""
Per-file zone pipeline.

marker check -> zone read -> policy evaluation -> marker store action ->
outcome emission. Shared by the scheduler loop and the manual scan; every
error is contained at file granularity.
"""

import os
from typing import Optional

from loguru import logger

from app.models.schemas import (
    ProcessingAction,
    ProcessingOutcome,
    TrustZone,
    WatchedDirectory,
)
from app.utils.helpers import file_size
from domains.zone_watch.marker_store import MarkerStore
from domains.zone_watch.policy import PolicyAction, PolicyDecision, SkipReason, evaluate
from domains.zone_watch.reporting import OutcomeReporter


class ZonePipeline:
    """Applies directory policy to single files."""

    def __init__(
        self,
        store: MarkerStore,
        reporter: OutcomeReporter,
        unreadable_zone_default: TrustZone = TrustZone.INTERNET,
    ):
        """
        Initialize pipeline.

        Args:
            store: Marker store to read and write markers with
            reporter: Receives one outcome per acted-on or failed file
            unreadable_zone_default: Zone assumed when a marker exists but its
                zone cannot be read
        """
        self.store = store
        self.reporter = reporter
        self.unreadable_zone_default = TrustZone(unreadable_zone_default)

    def decide(self, file_path: str, directory: WatchedDirectory) -> PolicyDecision:
        """Read the file's marker and evaluate the directory rule."""
        if not self.store.has_marker(file_path):
            return PolicyDecision.skip(SkipReason.CLEAN)

        zone = self.store.get_zone(file_path)
        if zone is None:
            zone = self.unreadable_zone_default
            logger.info(f"Zone ID unreadable, assuming Zone {int(zone)}: {os.path.basename(file_path)}")

        return evaluate(zone, directory, file_path)

    def process(self, file_path: str, directory: WatchedDirectory) -> Optional[ProcessingOutcome]:
        """
        Run ``file_path`` through the pipeline.

        Returns:
            The emitted outcome, or None when the file was skipped
        """
        if not os.path.isfile(file_path):
            logger.info(f"File no longer exists, skipping: {file_path}")
            return None

        observed: Optional[TrustZone] = None
        try:
            observed = self.store.get_zone(file_path)
            decision = self.decide(file_path, directory)

            if decision.is_skip:
                zone = observed if observed is not None else self.unreadable_zone_default
                self._log_skip(file_path, int(zone), directory, decision.reason)
                return None

            if decision.action is PolicyAction.DOWNGRADE:
                result = self.store.set_marker(file_path, decision.target_zone)
                action = ProcessingAction.REASSIGNED
                zone = decision.target_zone
                done = f"Zone reassigned to {int(zone)} ({zone.label})"
            else:
                result = self.store.remove_marker(file_path)
                action = ProcessingAction.REMOVED
                zone = observed if observed is not None else self.unreadable_zone_default
                done = "MotW removed successfully"

            if result.success:
                logger.info(f"{done}: {file_path}")
                outcome = self._outcome(file_path, True, done, zone, action)
            else:
                logger.error(f"Failed to process {file_path}: {result.message}")
                outcome = self._outcome(
                    file_path, False, result.message or "Unknown error", observed, ProcessingAction.FAILED
                )

        except Exception as e:
            logger.error(f"Error processing {file_path}: {e}")
            outcome = self._outcome(file_path, False, str(e), observed, ProcessingAction.FAILED)

        self.reporter.emit(outcome)
        return outcome

    def _log_skip(self, file_path, zone, directory, reason):
        name = os.path.basename(file_path)
        if reason is SkipReason.CLEAN:
            logger.info(f"No MotW detected, skipping: {name}")
        elif reason is SkipReason.RESTRICTED_ZONE_PROTECTED:
            logger.warning(f"Zone 4 (Restricted Sites) file protected by policy, not modified: {file_path}")
        elif reason is SkipReason.BELOW_THRESHOLD:
            logger.info(f"Zone ID {zone} below threshold {directory.min_zone}, skipping: {name}")
        else:
            logger.info(f"Matches exclude pattern, skipping: {name}")

    @staticmethod
    def _outcome(file_path, success, message, zone, action) -> ProcessingOutcome:
        return ProcessingOutcome(
            file_path=file_path,
            success=success,
            message=message,
            file_size=file_size(file_path),
            zone_id=int(zone) if zone is not None else None,
            action=action,
        )
