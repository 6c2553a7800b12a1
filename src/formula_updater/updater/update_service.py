from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

from formula_updater.common.config import RuntimeConfig
from formula_updater.common.errors import BlockNotFoundError, UsageError
from formula_updater.common.types import ReleaseDescriptor, UpdateResult
from formula_updater.updater.fetch_service import ArtifactFetcher
from formula_updater.updater.formula import patch_formula


log = logging.getLogger(__name__)

_FORBIDDEN_VERSION_CHARS = set('"\'/\\')


def validate_version(version: str | None) -> str:
    value = (version or "").strip()
    if not value:
        raise UsageError("A release version is required (e.g. 0.8.0).")
    if any(ch.isspace() or ch in _FORBIDDEN_VERSION_CHARS for ch in value):
        raise UsageError(f"Release version {value!r} contains characters that cannot appear in a formula or URL.")
    return value


def write_text_atomic(path: Path, text: str) -> None:
    # Write through symlinks and keep the existing file mode.
    path = path.resolve()
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)
        if path.exists():
            shutil.copymode(path, tmp)
        tmp.replace(path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


class FormulaUpdateService:
    def __init__(self, runtime: RuntimeConfig, fetcher: ArtifactFetcher | None = None):
        self.runtime = runtime
        self.fetcher = fetcher if fetcher is not None else ArtifactFetcher(runtime)

    def run(self, version: str, formula_path: Path | None = None, dry_run: bool = False) -> UpdateResult:
        """Fetch every artifact, patch the formula and write it back.

        Raises FetchError on the first download failure and BlockNotFoundError
        when any block could not be rewritten; in both cases the formula file
        is left untouched.
        """
        version = validate_version(version)
        path = Path(formula_path) if formula_path is not None else self.runtime.formula_path
        release = ReleaseDescriptor.for_version(version, self.runtime)
        log.info("Updating %s for %s (%s)", path, release.tag, release.base_url)

        artifacts = tuple(self.fetcher.fetch_all(release))

        # newline="" keeps CRLF line endings intact.
        with path.open("r", encoding="utf-8", newline="") as fh:
            text = fh.read()
        report = patch_formula(text, release, artifacts)
        if not report.succeeded:
            log.error("The following blocks failed to update: %s", ", ".join(report.failed_labels))
            raise BlockNotFoundError(report.failed_labels)

        log.info("All platform blocks updated successfully")
        if dry_run:
            log.info("Dry run: %s left unchanged", path)
            return UpdateResult(release=release, artifacts=artifacts, report=report, formula_path=path, written=False)

        write_text_atomic(path, report.text)
        log.info("Wrote updated %s for %s", path, release.tag)
        return UpdateResult(release=release, artifacts=artifacts, report=report, formula_path=path, written=True)
