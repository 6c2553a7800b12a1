from __future__ import annotations

import logging

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from formula_updater.common.config import RuntimeConfig
from formula_updater.common.errors import FetchError
from formula_updater.common.hashing import sha256_chunks
from formula_updater.common.types import Artifact, PlatformSpec, ReleaseDescriptor
from formula_updater.common.url_policy import validate_trusted_url
from formula_updater.updater.catalog import platform_artifacts


log = logging.getLogger(__name__)


def build_session(runtime: RuntimeConfig) -> requests.Session:
    session = requests.Session()
    retry = Retry(
        total=runtime.max_retries,
        connect=runtime.max_retries,
        read=runtime.max_retries,
        status=runtime.max_retries,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET", "HEAD"}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class ArtifactFetcher:
    """Downloads release archives and hashes them while streaming.

    Nothing is written to disk. Any failure is reported as a FetchError naming
    the platform and URL.
    """

    def __init__(self, runtime: RuntimeConfig, session: requests.Session | None = None):
        self.runtime = runtime
        self.session = session if session is not None else build_session(runtime)

    def _check_url(self, url: str) -> None:
        validate_trusted_url(url, self.runtime.allowed_hosts, allow_http=self.runtime.allow_insecure_http)

    def fetch(self, release: ReleaseDescriptor, spec: PlatformSpec, filename: str) -> Artifact:
        url = release.artifact_url(filename)
        log.info("Downloading %s", url)
        try:
            self._check_url(url)
            with self.session.get(url, stream=True, timeout=self.runtime.timeout) as resp:
                resp.raise_for_status()
                self._check_url(str(resp.url))
                digest, size = sha256_chunks(resp.iter_content(chunk_size=self.runtime.download_chunk_size))
        except (requests.RequestException, OSError, ValueError) as exc:
            raise FetchError(spec.label, url, str(exc) or exc.__class__.__name__) from exc
        log.info("SHA256 for %s: %s (%d bytes)", spec.key.value, digest, size)
        return Artifact(platform=spec, filename=filename, url=url, sha256=digest, size=size)

    def fetch_all(self, release: ReleaseDescriptor) -> list[Artifact]:
        artifacts: list[Artifact] = []
        for spec, filename in platform_artifacts(self.runtime.tool_name, release.version):
            artifacts.append(self.fetch(release, spec, filename))
        return artifacts
