import json
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from ..config import MigrationConfig
from ..errors import ConfigError, TransformError
from ..kong import KongExporter, load_dump
from ..models import BatchResult, TargetDefinition, Unit, UnitOutcome, UnitStatus
from ..transformer import Splitter, Transformer, load_units
from ..tyk import ImportCoordinator, TykDashboardClient

REPORT_FILENAME = "import-report.csv"
RESULTS_FILENAME = "import-results.json"
REPORT_COLUMNS = ["key", "status", "listen_path", "detail"]

coord_logger = logging.getLogger("Coordinator")


class Coordinator:
    """
    Runs one migration: export → transform → split → import → report.

    Everything the run needs comes from the MigrationConfig; the exporter and
    the Dashboard client can be injected, otherwise they are built from it.
    """

    def __init__(self,
                 config: MigrationConfig,
                 exporter: Optional[KongExporter] = None,
                 client: Optional[TykDashboardClient] = None,
                 progress: bool = False) -> None:
        self._config = config
        self._exporter = exporter
        self._client = client
        self._progress = progress
        self._transformer = Transformer()
        self._splitter = Splitter()
        self.logger = coord_logger

    @property
    def data_dir(self) -> Path:
        return self._config.data_dir

    # ---------- data directory ----------
    def prepare_data_dir(self) -> None:
        """Recreate the data directory; keep it as is when its contents are inputs."""
        data_dir = self.data_dir.resolve()
        keep = self._config.skip_export or self._config.import_only
        if not keep:
            # also covers the filesystem root
            if (Path.cwd().resolve().is_relative_to(data_dir)
                    or Path.home().resolve().is_relative_to(data_dir)):
                raise ConfigError(f"Refusing to wipe data directory {data_dir}")
            self.logger.info("Preparing data directory: %s", self.data_dir)
            shutil.rmtree(data_dir, ignore_errors=True)
        data_dir.mkdir(parents=True, exist_ok=True)

    def _clear_unit_artifacts(self) -> None:
        for stale in self.data_dir.glob("oas-*.json"):
            stale.unlink()

    # ---------- pipeline steps ----------
    def _export(self) -> Path:
        dump = self._config.dump_path
        if self._config.skip_export:
            self.logger.info("Skipping export; reading existing dump %s", dump)
            return dump
        exporter = self._exporter or KongExporter(
            self._config.konnect_addr,
            self._config.konnect_control_plane,
            self._config.konnect_token,
            deck_binary=self._config.deck_binary,
        )
        return exporter.export(dump)

    def _write_combined(self, definitions: List[TargetDefinition]) -> None:
        path = self._config.oas_path
        path.write_text(json.dumps([d.to_oas() for d in definitions], indent=2), encoding="utf-8")
        self.logger.debug("Wrote %d definition(s) to %s", len(definitions), path)

    def build_units(self, seed: BatchResult) -> List[Unit]:
        """Export, transform and split; per-record failures are recorded on ``seed``."""
        if self._config.import_only:
            loaded = load_units(self.data_dir)
            self.logger.info("Loaded %d unit(s) from %s", len(loaded.units), self.data_dir)
            self._record_errors(seed, loaded.errors)
            return loaded.units

        services = load_dump(self._export())
        self.logger.info("Transforming Kong configuration to OpenAPI specs…")
        transformed = self._transformer.transform(services)
        self._write_combined(transformed.definitions)

        self.logger.info("Splitting OpenAPI specs into individual files…")
        split = self._splitter.split(transformed.definitions)
        self._clear_unit_artifacts()
        self._splitter.write_artifacts(split.units, self.data_dir)

        self._record_errors(seed, transformed.errors + split.errors)
        return split.units

    @staticmethod
    def _record_errors(seed: BatchResult, errors: List[TransformError]) -> None:
        for err in errors:
            seed.record(UnitOutcome(err.identifier, UnitStatus.FAILED, None, err.message))

    def _import(self, units: List[Unit], result: BatchResult) -> BatchResult:
        self.logger.info("Importing OpenAPI specs into Tyk…")
        client = self._client or TykDashboardClient(
            self._config.tyk_dashboard_url,
            self._config.tyk_auth_token,
            timeout=self._config.timeout,
        )
        try:
            return ImportCoordinator(client, progress=self._progress).run(units, result)
        finally:
            if self._client is None:
                client.close()

    # ---------- reporting ----------
    def write_report(self, result: BatchResult, planned: List[Unit], started_at: str) -> Path:
        rows: List[Dict[str, Any]] = [o.to_dict() for o in result.outcomes]
        if self._config.dry_run:
            rows.extend(
                {"key": u.key, "status": "planned", "listen_path": u.routing_key, "detail": ""}
                for u in planned
            )
        report = self.data_dir / REPORT_FILENAME
        pd.DataFrame(rows, columns=REPORT_COLUMNS).to_csv(report, index=False)

        summary = {
            "started_at": started_at,
            "completed_at": datetime.now(timezone.utc).isoformat(),
            "dry_run": self._config.dry_run,
            **result.to_dict(),
        }
        (self.data_dir / RESULTS_FILENAME).write_text(json.dumps(summary, indent=2), encoding="utf-8")
        self.logger.info("Report written to %s", report)
        return report

    # ---------- main ----------
    def run(self) -> BatchResult:
        started_at = datetime.now(timezone.utc).isoformat()
        self.logger.info("Starting Kong to Tyk migration…")
        self.prepare_data_dir()

        result = BatchResult()
        units = self.build_units(result)

        try:
            if self._config.dry_run:
                self.logger.info("Dry run: %d unit(s) prepared, nothing imported", len(units))
            else:
                result = self._import(units, result)
        finally:
            self.write_report(result, units, started_at)
        return result
