from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from formula_updater.common.errors import ConfigError
from formula_updater.common.url_policy import normalize_host


# Release hosts that GitHub redirects asset downloads to.
DEFAULT_TRUSTED_HOSTS: tuple[str, ...] = (
    "github.com",
    "release-assets.githubusercontent.com",
    "objects.githubusercontent.com",
    "github-releases.githubusercontent.com",
)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


def _env_hosts(name: str) -> tuple[str, ...]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return DEFAULT_TRUSTED_HOSTS
    return tuple(h.strip() for h in raw.split(",") if h.strip())


@dataclass(frozen=True)
class RuntimeConfig:
    release_host: str = "github.com"
    release_org: str = "tod-org"
    release_repo: str = "tod"
    tool_name: str = "tod"
    formula_path: Path = Path("Formula") / "tod.rb"
    connect_timeout_seconds: int = 10
    read_timeout_seconds: int = 60
    max_retries: int = 0
    download_chunk_size: int = 1024 * 1024
    trusted_hosts: tuple[str, ...] = field(default=DEFAULT_TRUSTED_HOSTS)
    allow_insecure_http: bool = False
    log_dir: Path | None = None

    @property
    def download_root(self) -> str:
        return f"https://{self.release_host}/{self.release_org}/{self.release_repo}/releases/download"

    @property
    def timeout(self) -> tuple[int, int]:
        return (self.connect_timeout_seconds, self.read_timeout_seconds)

    @property
    def allowed_hosts(self) -> frozenset[str]:
        hosts = {normalize_host(h) for h in (self.release_host, *self.trusted_hosts)}
        hosts.discard("")
        return frozenset(hosts)

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        log_dir = os.environ.get("FORMULA_UPDATER_LOG_DIR", "").strip()
        return cls(
            release_host=os.environ.get("FORMULA_UPDATER_HOST", "github.com").strip() or "github.com",
            release_org=os.environ.get("FORMULA_UPDATER_ORG", "tod-org").strip() or "tod-org",
            release_repo=os.environ.get("FORMULA_UPDATER_REPO", "tod").strip() or "tod",
            tool_name=os.environ.get("FORMULA_UPDATER_TOOL", "tod").strip() or "tod",
            formula_path=Path(os.environ.get("FORMULA_UPDATER_FORMULA", "").strip() or Path("Formula") / "tod.rb"),
            connect_timeout_seconds=_env_int("FORMULA_UPDATER_CONNECT_TIMEOUT", 10, minimum=1),
            read_timeout_seconds=_env_int("FORMULA_UPDATER_READ_TIMEOUT", 60, minimum=1),
            max_retries=_env_int("FORMULA_UPDATER_MAX_RETRIES", 0),
            download_chunk_size=_env_int("FORMULA_UPDATER_DOWNLOAD_CHUNK", 1024 * 1024, minimum=1),
            trusted_hosts=_env_hosts("FORMULA_UPDATER_TRUSTED_HOSTS"),
            allow_insecure_http=os.environ.get("FORMULA_UPDATER_ALLOW_HTTP", "").strip().lower() in _TRUE_VALUES,
            log_dir=Path(log_dir) if log_dir else None,
        )
