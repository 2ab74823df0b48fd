import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from ..errors import DuplicateTitleError, TransformError
from ..models import TargetDefinition, Unit

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_title(title: str) -> str:
    """Return ``title`` with every character outside ``[A-Za-z0-9._-]`` replaced by ``_``."""
    safe = _UNSAFE.sub("_", title)
    # keep "." and ".." from naming a directory entry
    return safe if safe.strip(".") else safe.replace(".", "_")


@dataclass
class SplitResult:
    units: List[Unit] = field(default_factory=list)
    errors: List[TransformError] = field(default_factory=list)


class Splitter:
    """
    Turns definitions into units keyed by their sanitized title.

    The first definition for a key wins; later ones are rejected with a
    DuplicateTitleError instead of overwriting the first.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    def split(self, definitions: Iterable[TargetDefinition]) -> SplitResult:
        pairs: List[Tuple[str, TargetDefinition]] = [
            (sanitize_title(d.title), d) for d in definitions
        ]

        result = SplitResult()
        seen: Dict[str, int] = {}
        for key, definition in pairs:
            count = seen.get(key, 0) + 1
            seen[key] = count
            if count > 1:
                err = DuplicateTitleError(
                    f"{key}#{count}",
                    f"title {definition.title!r} duplicates an earlier service",
                )
                self.logger.error("Rejecting duplicate: %s", err)
                result.errors.append(err)
                continue
            result.units.append(Unit(key=key, definition=definition))

        self.logger.info("Split into %d unit(s)", len(result.units))
        return result

    def write_artifacts(self, units: Iterable[Unit], directory: Path) -> List[Path]:
        """Write one ``oas-<key>.json`` per unit for operator inspection."""
        directory.mkdir(parents=True, exist_ok=True)
        written: List[Path] = []
        for unit in units:
            path = directory / unit.artifact_name
            path.write_text(json.dumps(unit.definition.to_oas(), indent=2), encoding="utf-8")
            written.append(path)
        self.logger.debug("Wrote %d unit artifact(s) to %s", len(written), directory)
        return written


def load_units(directory: Path, logger: Optional[logging.Logger] = None) -> SplitResult:
    """
    Reload units previously written by Splitter.write_artifacts.

    A file that cannot be read or does not hold a JSON object becomes a
    TransformError identified by its stem; the remaining files still load.
    """
    logger = logger or logging.getLogger("Splitter")
    result = SplitResult()
    for path in sorted(directory.glob("oas-*.json")):
        try:
            doc = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            err = TransformError(path.stem, f"cannot read {path.name}: {e}")
            logger.error("Skipping unit artifact: %s", err)
            result.errors.append(err)
            continue
        if not isinstance(doc, dict):
            err = TransformError(path.stem, f"{path.name} does not contain a JSON object")
            logger.error("Skipping unit artifact: %s", err)
            result.errors.append(err)
            continue
        key = path.stem[len("oas-"):]
        result.units.append(Unit(key=key, definition=TargetDefinition.from_oas(doc)))
    return result
