"""Command line interface for docmirror.

Usage:
    docmirror -a source-key.json -B ./backup             # backup
    docmirror -a source-key.json -B ./backup -P -c users # pretty, one collection
    docmirror -a2 dest-key.json -B ./backup              # restore
    docmirror -a source-key.json -a2 dest-key.json -B ./backup
                                                         # backup and replicate

Exit code 0 on full success, 1 on any setup error, fatal backup error or
failed restore write.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .aio.api import AdapterFactory, run_mirror
from .aio.backup import BackupReport
from .config import MirrorConfig, MirrorMode
from .errors import CredentialsError, MirrorError
from .log import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docmirror",
        description="Back up a document database to JSON files, or restore it from them.",
    )
    parser.add_argument(
        "-a", "--account-credentials", "--accountCredentials",
        dest="account_credentials", metavar="PATH", type=Path,
        help="Google Cloud account credentials JSON file of the database to back up",
    )
    parser.add_argument(
        "-a2", "--restore-account-credentials", "--restoreAccountCredentials",
        dest="restore_account_credentials", metavar="PATH", type=Path,
        help="Google Cloud account credentials JSON file for restoring documents",
    )
    parser.add_argument(
        "-B", "--backup-path", "--backupPath",
        dest="backup_path", metavar="PATH", type=Path,
        help="Path to store backup",
    )
    parser.add_argument(
        "-P", "--pretty-print", "--prettyPrint",
        dest="pretty_print", action="store_true",
        help="JSON backups done with pretty-printing",
    )
    parser.add_argument(
        "-c", "--collection",
        dest="collection", metavar="COLLECTION",
        help="Specify collection to do backup",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> MirrorConfig:
    return MirrorConfig(
        backup_path=args.backup_path,
        source_credentials=args.account_credentials,
        destination_credentials=args.restore_account_credentials,
        pretty_print=args.pretty_print,
        collection=args.collection,
        log_level=args.log_level,
    )


def main(argv: Optional[List[str]] = None, adapter_factory: Optional[AdapterFactory] = None) -> int:
    """Entry point.

    Args:
        argv: Arguments (defaults to sys.argv[1:])
        adapter_factory: Builds a database adapter from a credentials path;
            Firestore when None

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    config = config_from_args(args)
    errors = config.validate()
    if errors:
        for error in errors:
            logger.error("Invalid arguments: %s", error)
        parser.print_help(sys.stderr)
        return 1

    if config.mode != MirrorMode.RESTORE:
        try:
            config.backup_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error("Unable to create backup path: '%s' - %s", config.backup_path, exc)
            return 1

    try:
        report = asyncio.run(run_mirror(config, adapter_factory))
    except CredentialsError as exc:
        logger.error("Unable to read credentials: %s", exc)
        return 1
    except MirrorError as exc:
        logger.error("%s failed: %s", config.mode.name.replace("_", " ").capitalize(), exc)
        return 1
    except Exception as exc:
        logger.error("Unexpected error: %r", exc)
        logger.debug("Traceback", exc_info=True)
        return 1

    if isinstance(report, BackupReport):
        logger.info(
            "Backed up %d collections and %d documents to '%s'",
            report.collections, report.documents, config.backup_path,
        )
        if report.replication_failures:
            logger.error("Replication Errors: %d documents", len(report.replication_failures))
            return 1
    else:
        if not report.ok:
            logger.error("Restore Errors: %d failed, %d written", len(report.failures), len(report.written))
            return 1
        logger.info("Restoration Completed! %d documents written", len(report.written))

    logger.info("All done")
    return 0


if __name__ == "__main__":
    sys.exit(main())
