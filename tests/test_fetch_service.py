from __future__ import annotations

import hashlib
import unittest

import requests
from http_fakes import FakeSession

from formula_updater.common.config import RuntimeConfig
from formula_updater.common.errors import FetchError
from formula_updater.common.types import PlatformKey, ReleaseDescriptor
from formula_updater.updater.catalog import get_platform
from formula_updater.updater.fetch_service import ArtifactFetcher, build_session


BASE = "https://github.com/tod-org/tod/releases/download/v1.2.3"


class ArtifactFetcherTests(unittest.TestCase):
    def setUp(self) -> None:
        self.runtime = RuntimeConfig(download_chunk_size=2, connect_timeout_seconds=3, read_timeout_seconds=7)
        self.release = ReleaseDescriptor.for_version("1.2.3", self.runtime)

    def test_fetch_hashes_streamed_body(self) -> None:
        url = f"{BASE}/tod-1.2.3-darwin-arm64.tar.gz"
        session = FakeSession({url: b"hello world"})
        fetcher = ArtifactFetcher(self.runtime, session=session)

        artifact = fetcher.fetch(self.release, get_platform("mac-arm"), "tod-1.2.3-darwin-arm64.tar.gz")

        self.assertEqual(artifact.sha256, hashlib.sha256(b"hello world").hexdigest())
        self.assertEqual(artifact.size, 11)
        self.assertEqual(artifact.url, url)
        self.assertEqual(artifact.platform.key, PlatformKey.MAC_ARM)
        self.assertEqual(session.timeouts, [(3, 7)])

    def test_http_error_becomes_fetch_error(self) -> None:
        fetcher = ArtifactFetcher(self.runtime, session=FakeSession({}))
        with self.assertRaises(FetchError) as ctx:
            fetcher.fetch(self.release, get_platform("linux-intel"), "tod-1.2.3-linux-amd64.tar.gz")
        self.assertEqual(ctx.exception.label, "Linux Intel")
        self.assertIn("404", ctx.exception.reason)
        self.assertTrue(ctx.exception.url.endswith("tod-1.2.3-linux-amd64.tar.gz"))

    def test_transport_error_becomes_fetch_error(self) -> None:
        url = f"{BASE}/tod-1.2.3-linux-arm64.tar.gz"
        fetcher = ArtifactFetcher(self.runtime, session=FakeSession({url: requests.ConnectionError("boom")}))
        with self.assertRaises(FetchError) as ctx:
            fetcher.fetch(self.release, get_platform("linux-arm"), "tod-1.2.3-linux-arm64.tar.gz")
        self.assertIsInstance(ctx.exception.__cause__, requests.ConnectionError)

    def test_redirect_to_release_asset_host_is_accepted(self) -> None:
        url = f"{BASE}/tod-1.2.3-darwin-amd64.tar.gz"
        session = FakeSession(
            {url: b"x"},
            redirects={url: "https://objects.githubusercontent.com/github-production-release-asset/1"},
        )
        artifact = ArtifactFetcher(self.runtime, session=session).fetch(
            self.release, get_platform("mac-intel"), "tod-1.2.3-darwin-amd64.tar.gz"
        )
        self.assertEqual(artifact.sha256, hashlib.sha256(b"x").hexdigest())

    def test_redirect_to_untrusted_host_is_rejected(self) -> None:
        url = f"{BASE}/tod-1.2.3-darwin-amd64.tar.gz"
        session = FakeSession({url: b"x"}, redirects={url: "https://evil.example.com/tod.tar.gz"})
        with self.assertRaises(FetchError) as ctx:
            ArtifactFetcher(self.runtime, session=session).fetch(
                self.release, get_platform("mac-intel"), "tod-1.2.3-darwin-amd64.tar.gz"
            )
        self.assertIn("evil.example.com", ctx.exception.reason)

    def test_fetch_all_stops_at_first_failure(self) -> None:
        session = FakeSession({f"{BASE}/tod-1.2.3-darwin-arm64.tar.gz": b"AAA"})
        fetcher = ArtifactFetcher(self.runtime, session=session)
        with self.assertRaises(FetchError) as ctx:
            fetcher.fetch_all(self.release)
        self.assertEqual(ctx.exception.label, "macOS Intel")
        self.assertEqual(
            session.requested,
            [f"{BASE}/tod-1.2.3-darwin-arm64.tar.gz", f"{BASE}/tod-1.2.3-darwin-amd64.tar.gz"],
        )

    def test_build_session_uses_configured_retry_budget(self) -> None:
        session = build_session(RuntimeConfig(max_retries=0))
        adapter = session.get_adapter("https://github.com/")
        self.assertEqual(adapter.max_retries.total, 0)
        self.assertEqual(build_session(RuntimeConfig(max_retries=2)).get_adapter("https://x/").max_retries.total, 2)


if __name__ == "__main__":
    unittest.main()
