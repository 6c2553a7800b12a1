from __future__ import annotations

from formula_updater.common.types import PlatformKey, PlatformSpec


PLATFORMS: tuple[PlatformSpec, ...] = (
    PlatformSpec(
        key=PlatformKey.MAC_ARM,
        label="macOS ARM",
        os_name="darwin",
        arch="arm64",
        os_section="on_macos",
        arch_section="on_arm",
    ),
    PlatformSpec(
        key=PlatformKey.MAC_INTEL,
        label="macOS Intel",
        os_name="darwin",
        arch="amd64",
        os_section="on_macos",
        arch_section="on_intel",
    ),
    PlatformSpec(
        key=PlatformKey.LINUX_ARM,
        label="Linux ARM",
        os_name="linux",
        arch="arm64",
        os_section="on_linux",
        arch_section="on_arm",
    ),
    PlatformSpec(
        key=PlatformKey.LINUX_INTEL,
        label="Linux Intel",
        os_name="linux",
        arch="amd64",
        os_section="on_linux",
        arch_section="on_intel",
    ),
)

_BY_KEY = {spec.key: spec for spec in PLATFORMS}


def get_platform(key: PlatformKey | str) -> PlatformSpec:
    return _BY_KEY[PlatformKey(key)]


def artifact_filename(tool: str, version: str, spec: PlatformSpec) -> str:
    return f"{tool}-{version}-{spec.os_name}-{spec.arch}.tar.gz"


def platform_artifacts(tool: str, version: str) -> list[tuple[PlatformSpec, str]]:
    return [(spec, artifact_filename(tool, version, spec)) for spec in PLATFORMS]
