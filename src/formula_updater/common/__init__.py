from formula_updater.common.config import RuntimeConfig
from formula_updater.common.errors import (
    BlockNotFoundError,
    ConfigError,
    FetchError,
    FormulaParseError,
    UpdaterError,
    UsageError,
)

__all__ = [
    "RuntimeConfig",
    "UpdaterError",
    "UsageError",
    "ConfigError",
    "FetchError",
    "BlockNotFoundError",
    "FormulaParseError",
]
