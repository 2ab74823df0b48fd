"""
Configuration for a migration run.

Values are resolved in this order (highest first):
  1. CLI flags (applied by cli.py through MigrationConfig.override)
  2. Environment variables, optionally loaded from a .env file
  3. DEFAULT_SETTINGS below

The resulting MigrationConfig is passed explicitly to the Coordinator; nothing
reads the environment after start-up.
"""
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

DEFAULT_SETTINGS: Dict[str, Any] = {
    "KONNECT_ADDR": "https://us.api.konghq.com",
    "KONNECT_CONTROL_PLANE": "default",
    "TYK_DASHBOARD_URL": "http://tyk-dashboard.localhost:3000",
    "DATA_DIR": "./json-data",
    "DECK_BINARY": "deck",
    "TYK_TIMEOUT": 30.0,
}

DUMP_FILENAME = "kong-dump.json"
OAS_FILENAME = "kong-oas.json"

SENSITIVE_FIELDS = {"konnect_token", "tyk_auth_token"}


@dataclass(frozen=True)
class MigrationConfig:
    konnect_addr: str = DEFAULT_SETTINGS["KONNECT_ADDR"]
    konnect_control_plane: str = DEFAULT_SETTINGS["KONNECT_CONTROL_PLANE"]
    konnect_token: str = ""
    tyk_dashboard_url: str = DEFAULT_SETTINGS["TYK_DASHBOARD_URL"]
    tyk_auth_token: str = ""
    data_dir: Path = Path(DEFAULT_SETTINGS["DATA_DIR"])
    dump_file: Optional[Path] = None
    deck_binary: str = DEFAULT_SETTINGS["DECK_BINARY"]
    timeout: float = DEFAULT_SETTINGS["TYK_TIMEOUT"]
    skip_export: bool = False
    dry_run: bool = False
    import_only: bool = False
    # raw TYK_TIMEOUT when it is not a number; reported by validate()
    invalid_timeout: Optional[str] = None

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "MigrationConfig":
        """Build a config from the process environment (and an optional .env)."""
        if env_file is not None and Path(env_file).exists():
            load_dotenv(env_file)

        timeout_raw = os.getenv("TYK_TIMEOUT", str(DEFAULT_SETTINGS["TYK_TIMEOUT"]))
        invalid_timeout = None
        try:
            timeout = float(timeout_raw)
        except ValueError:
            timeout = DEFAULT_SETTINGS["TYK_TIMEOUT"]
            invalid_timeout = timeout_raw

        return cls(
            konnect_addr=os.getenv("KONNECT_ADDR", DEFAULT_SETTINGS["KONNECT_ADDR"]),
            konnect_control_plane=os.getenv(
                "KONNECT_CONTROL_PLANE", DEFAULT_SETTINGS["KONNECT_CONTROL_PLANE"]
            ),
            konnect_token=os.getenv("KONNECT_TOKEN", ""),
            tyk_dashboard_url=os.getenv("TYK_DASHBOARD_URL", DEFAULT_SETTINGS["TYK_DASHBOARD_URL"]),
            tyk_auth_token=os.getenv("TYK_AUTH_TOKEN", ""),
            data_dir=Path(os.getenv("DATA_DIR", DEFAULT_SETTINGS["DATA_DIR"])),
            deck_binary=os.getenv("DECK_BINARY", DEFAULT_SETTINGS["DECK_BINARY"]),
            timeout=timeout,
            invalid_timeout=invalid_timeout,
        )

    def override(self, **values: Any) -> "MigrationConfig":
        """Return a copy with every non-None value applied."""
        known = {f.name for f in fields(self)}
        changes = {k: v for k, v in values.items() if k in known and v is not None}
        if "data_dir" in changes:
            changes["data_dir"] = Path(changes["data_dir"])
        if changes.get("dump_file") is not None:
            changes["dump_file"] = Path(changes["dump_file"])
        if "timeout" in changes:
            changes["invalid_timeout"] = None
        return replace(self, **changes)

    @property
    def dump_path(self) -> Path:
        return self.dump_file if self.dump_file is not None else self.data_dir / DUMP_FILENAME

    @property
    def oas_path(self) -> Path:
        return self.data_dir / OAS_FILENAME

    def validate(self) -> List[str]:
        """Return a description of every missing or invalid parameter."""
        missing: List[str] = []
        if self.invalid_timeout is not None:
            missing.append(f"a numeric request timeout (TYK_TIMEOUT is {self.invalid_timeout!r})")
        if not (self.skip_export or self.import_only) and not self.konnect_token:
            missing.append("Kong Connect token (--konnect-token or KONNECT_TOKEN)")
        if not self.dry_run and not self.tyk_auth_token:
            missing.append("Tyk Auth token (--tyk-token or TYK_AUTH_TOKEN)")
        if self.timeout <= 0:
            missing.append("a positive request timeout (--timeout or TYK_TIMEOUT)")
        return missing

    def masked(self) -> Dict[str, Any]:
        """Return a dict copy with sensitive values masked."""
        data: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in SENSITIVE_FIELDS and value:
                value = "****"
            data[f.name] = str(value) if isinstance(value, Path) else value
        return data
