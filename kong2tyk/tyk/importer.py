import logging
from typing import Iterable, List, Optional

from tqdm import tqdm

from ..errors import ExistenceCheckError, TransportFailure
from ..models import BatchResult, Unit, UnitOutcome, UnitStatus
from .client import TykDashboardClient


class ImportCoordinator:
    """
    Drives units through the Dashboard one at a time:
    existence check on the listen path, then create if nothing listens there.

    Rejections and indeterminate existence checks fail only their unit.
    A TransportFailure aborts the batch; it is re-raised with the partial
    BatchResult attached as ``.result``.
    """

    def __init__(self, client: TykDashboardClient, progress: bool = False,
                 logger: Optional[logging.Logger] = None) -> None:
        self._client = client
        self._progress = progress
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    def import_unit(self, unit: Unit) -> UnitOutcome:
        key = unit.routing_key
        try:
            if self._client.exists(key):
                self.logger.info("Skipping %s: listen path %r already exists", unit.key, key)
                return UnitOutcome(unit.key, UnitStatus.SKIPPED, key, "listen path already exists")
        except ExistenceCheckError as e:
            self.logger.error("Cannot tell whether %s exists, not creating it: %s", unit.key, e)
            return UnitOutcome(unit.key, UnitStatus.FAILED, key, f"existence check failed: {e}")

        self.logger.info("Importing %s (listen path %r)…", unit.key, key)
        outcome = self._client.create(unit.definition)
        if outcome.ok:
            self.logger.info("Successfully imported %s", unit.key)
            return UnitOutcome(unit.key, UnitStatus.IMPORTED, key)

        self.logger.error(
            "Failed to import %s (HTTP %s). Response: %s", unit.key, outcome.status_code, outcome.body
        )
        return UnitOutcome(
            unit.key, UnitStatus.FAILED, key, f"HTTP {outcome.status_code}: {outcome.body}"
        )

    def run(self, units: Iterable[Unit], result: Optional[BatchResult] = None) -> BatchResult:
        result = result if result is not None else BatchResult()
        pending: List[Unit] = list(units)

        bar = tqdm(total=len(pending), unit="api", desc="Importing", disable=not self._progress)
        try:
            for done, unit in enumerate(pending):
                try:
                    outcome = self.import_unit(unit)
                except TransportFailure as e:
                    remaining = len(pending) - done
                    result.abort(str(e))
                    self.logger.error(
                        "Tyk Dashboard unreachable, aborting with %d unit(s) unattempted: %s",
                        remaining, e,
                    )
                    e.result = result
                    raise
                result.record(outcome)
                bar.update(1)
        finally:
            bar.close()

        self.logger.info(
            "Import finished: %d imported, %d skipped, %d failed",
            result.succeeded, result.skipped, result.failed,
        )
        return result


__all__ = ["ImportCoordinator"]
