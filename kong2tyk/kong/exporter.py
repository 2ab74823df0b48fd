import json
import logging
import subprocess
from pathlib import Path
from typing import Any, List

from ..errors import ExportError
from ..models import SourceService

logger = logging.getLogger(__name__)


class KongExporter:
    """
    Runs ``deck gateway dump`` against a Konnect control plane and writes the
    configuration as JSON. deck does the actual export; this class only builds
    the command line and checks the result.
    """

    def __init__(self, konnect_addr: str, control_plane: str, token: str,
                 deck_binary: str = "deck") -> None:
        self.konnect_addr = konnect_addr.rstrip("/")
        self.control_plane = control_plane
        self._token = token
        self.deck_binary = deck_binary

    def build_command(self, output_file: Path) -> List[str]:
        return [
            self.deck_binary,
            "--konnect-addr", self.konnect_addr,
            "--konnect-control-plane-name", self.control_plane,
            "--konnect-token", self._token,
            "--format", "json",
            "-o", str(output_file),
            "gateway", "dump", "--yes",
        ]

    def _masked(self, cmd: List[str]) -> str:
        return " ".join("****" if part == self._token and self._token else part for part in cmd)

    def export(self, output_file: Path) -> Path:
        """Dump the control plane to ``output_file`` and return its path."""
        cmd = self.build_command(output_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Exporting Kong configuration from control plane %r…", self.control_plane)
        logger.debug("Running: %s", self._masked(cmd))

        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except FileNotFoundError as e:
            raise ExportError(f"deck binary not found: {self.deck_binary!r}") from e

        if proc.returncode != 0:
            stderr = (proc.stderr or "").strip()
            if self._token:
                stderr = stderr.replace(self._token, "****")
            raise ExportError(f"deck exited with status {proc.returncode}: {stderr}")
        if not output_file.exists():
            raise ExportError(f"deck reported success but wrote no dump at {output_file}")

        logger.info("Kong configuration exported to %s", output_file)
        return output_file


def load_dump(path: Path) -> List[SourceService]:
    """Read a deck JSON dump and return its services in file order."""
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ExportError(f"Kong dump not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ExportError(f"Kong dump is not valid JSON ({path}): {e}") from e

    if not isinstance(raw, dict):
        raise ExportError(f"Unexpected dump format in {path}: top level is {type(raw).__name__}")

    services: Any = raw.get("services")
    if services is None:
        logger.warning("Dump %s contains no services", path)
        return []
    if not isinstance(services, list):
        raise ExportError(f"Unexpected services format in {path}: {type(services).__name__}")

    records: List[SourceService] = []
    for idx, entry in enumerate(services):
        if not isinstance(entry, dict):
            # kept as a nameless record so the transformer reports it
            logger.warning("Service at index %d is not an object", idx)
            entry = {}
        records.append(SourceService.from_dict(entry, index=idx))
    logger.info("Loaded %d service(s) from %s", len(records), path)
    return records
