#!/usr/bin/env python3
"""
Command line front end.

    sulu-sync export
    sulu-sync import https://live.example.com [--skip-assets]
    sulu-sync show-config

Settings come from a YAML file (``--config``) and/or ``SULU_SYNC_*``
environment variables; ``--secret`` and ``--log-level`` override them.
"""

import argparse
import logging
import signal
import sys
from typing import List, Optional

from config.settings import SyncSettings, load_settings
from sync_ops_exceptions import SyncOpsError
from sync_operations import (
    CancellationToken,
    ImportParams,
    LoggingProgressSink,
    SyncManager,
    TqdmProgressSink,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sulu-sync",
        description="Export an installation's contents (PHPCR, database, uploads) "
                    "or import them from a remote host."
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--secret", help="Shared secret (overrides the configuration)")
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS,
                        help="Logging level (overrides the configuration)")
    parser.add_argument("--no-progress", action="store_true",
                        help="Log progress instead of drawing progress bars")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "export",
        help="Export all contents (PHPCR, database, uploads) to the web directory."
    )

    import_parser = subparsers.add_parser(
        "import",
        help="Import contents exported with the 'export' command from the remote host."
    )
    import_parser.add_argument("host", help="The live system's URI.")
    import_parser.add_argument("--skip-assets", action="store_true",
                               help="Skip the download of assets.")

    subparsers.add_parser("show-config", help="Print the effective configuration as YAML.")

    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )


def _load(args: argparse.Namespace) -> SyncSettings:
    settings = load_settings(args.config).with_overrides(secret=args.secret)
    if args.log_level:
        settings.monitoring.log_level = args.log_level
    return settings


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = _load(args)
    except (SyncOpsError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    configure_logging(settings.monitoring.log_level)

    if args.command == "show-config":
        print(settings.to_yaml(), end="")
        return EXIT_OK

    use_bars = settings.monitoring.progress_bars and not args.no_progress
    bars = TqdmProgressSink() if use_bars else None
    progress = bars or LoggingProgressSink()

    cancellation = CancellationToken()
    previous_handler = signal.signal(
        signal.SIGTERM, lambda signum, frame: cancellation.cancel("SIGTERM received")
    )

    try:
        manager = SyncManager.from_settings(settings, progress=progress)
        if args.command == "export":
            result = manager.export(cancellation=cancellation)
            logger.info(f"Artifacts written to {result.publish_dir}")
            print("\nSuccessfully exported contents.")
        else:
            result = manager.import_site(
                ImportParams(remote_host=args.host, skip_assets=args.skip_assets),
                cancellation=cancellation
            )
            logger.info(f"Downloaded {result.bytes_downloaded} bytes from {result.remote_base_url}")
            print("\nSuccessfully imported contents. You're good to go!")
        return EXIT_OK
    except (SyncOpsError, ValueError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        return EXIT_INTERRUPTED
    finally:
        if bars is not None:
            bars.close()
        signal.signal(signal.SIGTERM, previous_handler)


if __name__ == "__main__":
    sys.exit(main())
