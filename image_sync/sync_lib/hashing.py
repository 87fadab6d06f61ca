"""Content hashing utilities."""
from __future__ import annotations

import hashlib


def sha256_for_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()
