from __future__ import annotations

import hashlib
from typing import Iterable


def sha256_chunks(chunks: Iterable[bytes]) -> tuple[str, int]:
    """Hash an iterable of byte chunks; returns (hexdigest, total byte count)."""
    h = hashlib.sha256()
    size = 0
    for chunk in chunks:
        if not chunk:
            continue
        h.update(chunk)
        size += len(chunk)
    return h.hexdigest(), size
