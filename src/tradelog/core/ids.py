"""Canonical ID factories for the engine.

Every id the engine mints is content-derived: a SHA256 prefix of the
thing it names (alert ids, cache keys, settings versions), so re-running
on the same snapshot reproduces it.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def content_hash(*parts: str, length: int = 16) -> str:
    """Generate a deterministic SHA256-based ID from content strings.

    Concatenates all *parts* with ``':'`` before hashing.

    Parameters
    ----------
    *parts:
        Strings to hash together.
    length:
        Number of hex characters to return (default 16).
    """
    raw = ":".join(parts)
    return hashlib.sha256(raw.encode()).hexdigest()[:length]


def payload_hash(payload: dict[str, Any], *, length: int = 16) -> str:
    """Generate a deterministic hash from a JSON-serializable dict.

    Serialized with sorted keys and ``default=str`` so dates, enums and
    decimals hash by their string form.
    """
    raw = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(raw.encode()).hexdigest()[:length]
