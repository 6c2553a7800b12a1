from __future__ import annotations

from typing import Iterable


class UpdaterError(Exception):
    """Base class for failures that abort a formula update run."""


class UsageError(UpdaterError, ValueError):
    pass


class ConfigError(UsageError):
    pass


class FetchError(UpdaterError, RuntimeError):
    def __init__(self, label: str, url: str, reason: str):
        super().__init__(f"Failed to download or hash {url} ({label}): {reason}")
        self.label = label
        self.url = url
        self.reason = reason


class BlockNotFoundError(UpdaterError, LookupError):
    def __init__(self, labels: Iterable[str]):
        self.labels = tuple(labels)
        super().__init__(f"Could not find or replace block for {', '.join(self.labels)}")


class FormulaParseError(UpdaterError, ValueError):
    def __init__(self, message: str, line_no: int | None = None):
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)
        self.line_no = line_no
