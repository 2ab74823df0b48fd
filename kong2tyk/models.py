from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

DEFAULT_VERSION = "1.0.0"
OPENAPI_VERSION = "3.0.3"
TYK_EXTENSION = "x-tyk-api-gateway"


def _obj(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


# ---------- source side (deck dump) ----------

@dataclass(frozen=True)
class Route:
    paths: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Route":
        paths = raw.get("paths") or []
        return cls(paths=[str(p) for p in paths])


@dataclass(frozen=True)
class SourceService:
    """One entry of the ``services`` array in a deck dump."""

    name: Optional[str]
    protocol: str = ""
    host: str = ""
    path: str = ""
    routes: List[Route] = field(default_factory=list)
    index: int = 0

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], index: int = 0) -> "SourceService":
        routes = [Route.from_dict(r) for r in (raw.get("routes") or []) if isinstance(r, dict)]
        return cls(
            name=raw.get("name"),
            protocol=raw.get("protocol") or "",
            host=raw.get("host") or "",
            path=raw.get("path") or "",
            routes=routes,
            index=index,
        )

    @property
    def identifier(self) -> str:
        return self.name or f"services[{self.index}]"


# ---------- target side (Tyk OAS) ----------

@dataclass(frozen=True)
class TargetDefinition:
    title: str
    listen_path: Optional[str]
    upstream_url: str
    version: str = DEFAULT_VERSION
    active: bool = True
    internal: bool = False

    def to_oas(self) -> Dict[str, Any]:
        """Render the Tyk OAS API definition posted to the Dashboard."""
        return {
            "info": {"title": self.title, "version": self.version},
            "openapi": OPENAPI_VERSION,
            "paths": {},
            TYK_EXTENSION: {
                "info": {
                    "name": self.title,
                    "state": {"active": self.active, "internal": self.internal},
                },
                "server": {"listenPath": {"strip": True, "value": self.listen_path}},
                "upstream": {"url": self.upstream_url},
            },
        }

    @classmethod
    def from_oas(cls, doc: Dict[str, Any]) -> "TargetDefinition":
        info = _obj(doc.get("info"))
        tyk = _obj(doc.get(TYK_EXTENSION))
        state = _obj(_obj(tyk.get("info")).get("state"))
        listen = _obj(_obj(tyk.get("server")).get("listenPath")).get("value")
        return cls(
            title=info.get("title", ""),
            version=info.get("version", DEFAULT_VERSION),
            listen_path=listen,
            upstream_url=_obj(tyk.get("upstream")).get("url", ""),
            active=bool(state.get("active", True)),
            internal=bool(state.get("internal", False)),
        )


@dataclass(frozen=True)
class Unit:
    """A single importable definition, keyed by its filesystem-safe title."""

    key: str
    definition: TargetDefinition

    @property
    def routing_key(self) -> Optional[str]:
        return self.definition.listen_path

    @property
    def artifact_name(self) -> str:
        return f"oas-{self.key}.json"


# ---------- outcomes ----------

class UnitStatus(str, Enum):
    IMPORTED = "imported"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class UnitOutcome:
    key: str
    status: UnitStatus
    listen_path: Optional[str] = None
    detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "status": self.status.value,
            "listen_path": self.listen_path,
            "detail": self.detail,
        }


@dataclass
class BatchResult:
    """Aggregate of per-unit outcomes for one run.

    Outcomes are append-only; ``succeeded + skipped + failed`` always equals
    ``total``. An aborted batch keeps the outcomes recorded before the abort.
    """

    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    failed_units: List[str] = field(default_factory=list)
    outcomes: List[UnitOutcome] = field(default_factory=list)
    aborted: bool = False
    abort_reason: str = ""

    def record(self, outcome: UnitOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.status is UnitStatus.IMPORTED:
            self.succeeded += 1
        elif outcome.status is UnitStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
            self.failed_units.append(outcome.key)

    def abort(self, reason: str) -> None:
        self.aborted = True
        self.abort_reason = reason

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def ok(self) -> bool:
        return not self.aborted and self.failed == 0

    def counts(self) -> Dict[str, int]:
        return {"succeeded": self.succeeded, "skipped": self.skipped, "failed": self.failed}

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.counts(),
            "total": self.total,
            "failed_units": list(self.failed_units),
            "aborted": self.aborted,
            "abort_reason": self.abort_reason,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
