import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import http.client as http_client

from . import __version__
from .config import DEFAULT_SETTINGS, MigrationConfig
from .core.coordinator import Coordinator
from .errors import ConfigError, ExportError, TransportFailure
from .models import BatchResult

EXIT_OK = 0
EXIT_FAILED_UNITS = 1
EXIT_FATAL = 2
EXIT_INTERRUPTED = 130


def configure_logging(debug: bool, log_file: Optional[Path]) -> None:
    level = logging.DEBUG if debug else logging.INFO
    handlers: List[logging.Handler] = []
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    else:
        handlers.append(logging.StreamHandler(sys.stderr))

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        handlers=handlers,
    )

    if debug:
        http_client.HTTPConnection.debuglevel = 1  # type: ignore[attr-defined]
        for noisy in ("urllib3", "requests"):
            logging.getLogger(noisy).setLevel(logging.DEBUG)
            logging.getLogger(noisy).propagate = True


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="kong2tyk",
        description="Migrate Kong configuration to Tyk",
        epilog="Environment variables: KONNECT_ADDR, KONNECT_CONTROL_PLANE, KONNECT_TOKEN, "
               "TYK_DASHBOARD_URL, TYK_AUTH_TOKEN, DATA_DIR, DECK_BINARY, TYK_TIMEOUT",
    )
    p.add_argument("--konnect-addr",
                   help=f"Kong Connect address (default: {DEFAULT_SETTINGS['KONNECT_ADDR']})")
    p.add_argument("--konnect-control-plane", dest="konnect_control_plane",
                   help=f"Kong Control Plane name (default: {DEFAULT_SETTINGS['KONNECT_CONTROL_PLANE']})")
    p.add_argument("--konnect-token", help="Kong Connect token (required if not set in env)")
    p.add_argument("--tyk-url", dest="tyk_dashboard_url",
                   help=f"Tyk Dashboard URL (default: {DEFAULT_SETTINGS['TYK_DASHBOARD_URL']})")
    p.add_argument("--tyk-token", dest="tyk_auth_token",
                   help="Tyk Auth token (required if not set in env)")
    p.add_argument("--data-dir", type=Path,
                   help=f"Directory for JSON data (default: {DEFAULT_SETTINGS['DATA_DIR']})")
    p.add_argument("--dump-file", type=Path,
                   help="Kong dump to write (or read with --skip-export). "
                        "Defaults to <data-dir>/kong-dump.json")
    p.add_argument("--skip-export", action="store_true", default=None,
                   help="Do not run deck; transform an existing dump instead.")
    p.add_argument("--import-only", action="store_true", default=None,
                   help="Import the oas-*.json files already present in --data-dir.")
    p.add_argument("--dry-run", action="store_true", default=None,
                   help="Export, transform and split, but import nothing.")
    p.add_argument("--deck-binary", help="deck executable (default: deck)")
    p.add_argument("--timeout", type=float,
                   help=f"Per-request timeout in seconds for the Tyk API "
                        f"(default: {DEFAULT_SETTINGS['TYK_TIMEOUT']})")
    p.add_argument("--env-file", type=Path, default=Path(".env"),
                   help="Optional .env file to load (default: ./.env)")
    p.add_argument("--debug", action="store_true",
                   help="Enable verbose debug logging (incl. HTTP wire logs).")
    p.add_argument("--log-file", type=Path, default=None,
                   help="Write logs to this file instead of stderr.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def resolve_config(args: argparse.Namespace) -> MigrationConfig:
    """Environment/.env values, overridden by whatever was given on the command line."""
    return MigrationConfig.from_env(args.env_file).override(
        konnect_addr=args.konnect_addr,
        konnect_control_plane=args.konnect_control_plane,
        konnect_token=args.konnect_token,
        tyk_dashboard_url=args.tyk_dashboard_url,
        tyk_auth_token=args.tyk_auth_token,
        data_dir=args.data_dir,
        dump_file=args.dump_file,
        deck_binary=args.deck_binary,
        timeout=args.timeout,
        skip_export=args.skip_export,
        import_only=args.import_only,
        dry_run=args.dry_run,
    )


def print_summary(result: BatchResult, stream=None) -> None:
    stream = stream or sys.stderr
    status = "ABORTED" if result.aborted else ("SUCCESS" if result.ok else "FAILED")
    print(f"\nMigration {status}", file=stream)
    print(f"  Imported: {result.succeeded}", file=stream)
    print(f"  Skipped:  {result.skipped}", file=stream)
    print(f"  Failed:   {result.failed}", file=stream)
    if result.failed_units:
        print("  Failed units:", file=stream)
        for key in result.failed_units:
            print(f"    - {key}", file=stream)
    if result.aborted:
        print(f"  Aborted: {result.abort_reason}", file=stream)


def exit_code_for(result: BatchResult) -> int:
    if result.aborted:
        return EXIT_FATAL
    return EXIT_OK if result.failed == 0 else EXIT_FAILED_UNITS


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(args.debug, args.log_file)

    log = logging.getLogger("cli")
    config = resolve_config(args)
    log.debug("Resolved config (masked): %s", config.masked())

    missing = config.validate()
    if missing:
        log.error("Missing or invalid parameters:\n  %s", "\n  ".join(missing))
        sys.exit(EXIT_FATAL)

    try:
        coord = Coordinator(config, progress=sys.stderr.isatty() and args.log_file is None)
        log.debug("Coordinator initialized")
        result = coord.run()
    except KeyboardInterrupt:
        log.warning("Interrupted by user.")
        sys.exit(EXIT_INTERRUPTED)
    except TransportFailure as e:
        log.error("Migration aborted, Tyk Dashboard unreachable: %s", e)
        if e.result is not None:
            print_summary(e.result)
        sys.exit(EXIT_FATAL)
    except (ConfigError, ExportError) as e:
        log.error("%s", e)
        sys.exit(EXIT_FATAL)
    except Exception:
        log.exception("Unhandled error during execution")
        sys.exit(EXIT_FATAL)

    print_summary(result)
    if result.failed_units:
        log.error("Failed units: %s", ", ".join(result.failed_units))
    else:
        log.info("Migration completed successfully")
    sys.exit(exit_code_for(result))


if __name__ == "__main__":

    main()
