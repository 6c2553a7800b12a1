from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from formula_updater.common.config import RuntimeConfig


class PlatformKey(str, Enum):
    MAC_ARM = "mac-arm"
    MAC_INTEL = "mac-intel"
    LINUX_ARM = "linux-arm"
    LINUX_INTEL = "linux-intel"


@dataclass(frozen=True)
class PlatformSpec:
    key: PlatformKey
    label: str
    os_name: str
    arch: str
    os_section: str
    arch_section: str


@dataclass(frozen=True)
class ReleaseDescriptor:
    version: str
    tag: str
    base_url: str

    @classmethod
    def for_version(cls, version: str, runtime: RuntimeConfig) -> "ReleaseDescriptor":
        tag = f"v{version}"
        return cls(version=version, tag=tag, base_url=f"{runtime.download_root}/{tag}")

    def artifact_url(self, filename: str) -> str:
        return f"{self.base_url}/{filename}"


@dataclass(frozen=True)
class Artifact:
    platform: PlatformSpec
    filename: str
    url: str
    sha256: str
    size: int


@dataclass(frozen=True)
class PatchOutcome:
    # platform is None for the version field.
    platform: PlatformKey | None
    label: str
    success: bool
    message: str = ""


@dataclass(frozen=True)
class PatchReport:
    text: str
    outcomes: tuple[PatchOutcome, ...]

    @property
    def failed_labels(self) -> list[str]:
        return [o.label for o in self.outcomes if not o.success]

    @property
    def succeeded(self) -> bool:
        return not self.failed_labels


@dataclass(frozen=True)
class UpdateResult:
    release: ReleaseDescriptor
    artifacts: tuple[Artifact, ...]
    report: PatchReport
    formula_path: Path
    written: bool
