from __future__ import annotations

from typing import Collection
from urllib.parse import urlparse


def normalize_host(host: str) -> str:
    return str(host or "").strip().lower().rstrip(".")


def validate_trusted_url(url: str, trusted_hosts: Collection[str], allow_http: bool = False) -> None:
    """Reject non-https URLs and hosts outside ``trusted_hosts`` (normalized names; subdomains match)."""
    parsed = urlparse(str(url))
    schemes = ("https", "http") if allow_http else ("https",)
    if (parsed.scheme or "").lower() not in schemes:
        raise ValueError(f"Untrusted URL scheme for release artifact: {url}")
    host = normalize_host(parsed.hostname or "")
    if not host or not (host in trusted_hosts or any(host.endswith("." + entry) for entry in trusted_hosts)):
        raise ValueError(f"Untrusted release host: {host or '<none>'}")
