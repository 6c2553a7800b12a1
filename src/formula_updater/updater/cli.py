from __future__ import annotations

import argparse
import logging
from pathlib import Path

from formula_updater.common.config import RuntimeConfig
from formula_updater.common.errors import BlockNotFoundError, FetchError, FormulaParseError, UsageError
from formula_updater.common.logging_utils import configure_logging
from formula_updater.updater.update_service import FormulaUpdateService


log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_FETCH_FAILED = 3
EXIT_BLOCKS_UNMATCHED = 4
EXIT_FORMULA_UNREADABLE = 5


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="formula-updater",
        description="Update a Homebrew formula's version, URLs and SHA256 digests for a release.",
    )
    parser.add_argument("version", help="Release version without the leading 'v' (e.g. 0.8.0).")
    parser.add_argument("--formula", type=Path, default=None, help="Formula file to update (default: Formula/tod.rb).")
    parser.add_argument("--dry-run", action="store_true", help="Fetch and patch, but do not write the formula.")
    parser.add_argument("--log-level", default="INFO", help="Log level.")
    return parser


def main(argv: list[str] | None = None, service: FormulaUpdateService | None = None) -> int:
    # argparse exits with status 2 on a missing version, before any network activity.
    args = build_parser().parse_args(argv)

    try:
        runtime = RuntimeConfig.from_env()
    except UsageError as exc:
        configure_logging(args.log_level)
        log.error("%s", exc)
        return EXIT_USAGE
    configure_logging(args.log_level, log_dir=runtime.log_dir)

    if service is None:
        service = FormulaUpdateService(runtime)

    try:
        result = service.run(args.version, formula_path=args.formula, dry_run=args.dry_run)
    except UsageError as exc:
        log.error("%s", exc)
        return EXIT_USAGE
    except FetchError as exc:
        log.error("%s", exc)
        return EXIT_FETCH_FAILED
    except BlockNotFoundError as exc:
        log.error("%s", exc)
        return EXIT_BLOCKS_UNMATCHED
    except FormulaParseError as exc:
        log.error("Could not parse formula: %s", exc)
        return EXIT_FORMULA_UNREADABLE
    except OSError as exc:
        log.error("Could not read or write formula: %s", exc)
        return EXIT_FORMULA_UNREADABLE

    for artifact in result.artifacts:
        log.info("%s: %s %s", artifact.platform.label, artifact.filename, artifact.sha256)
    return EXIT_OK
