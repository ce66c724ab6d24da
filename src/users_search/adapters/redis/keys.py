"""Redis adapter – key layout and stored value decoding.

Metadata hashes live at ``<prefix><identity>!metadata!<audience>`` and the
search index is built over those hashes, so a document id is the hash key.
"""
from __future__ import annotations

import json
from typing import Any

KEY_SEPARATOR = "!"
METADATA_SEGMENT = "metadata"


def metadata_key(prefix: str, identity: str, audience: str) -> str:
    return f"{prefix}{KEY_SEPARATOR.join((identity, METADATA_SEGMENT, audience))}"


def identity_from_key(prefix: str, key: str) -> str:
    """Inverse of :func:`metadata_key` for the identity part."""
    if prefix and key.startswith(prefix):
        key = key[len(prefix):]
    identity, _, _ = key.partition(KEY_SEPARATOR)
    return identity


def decode_value(raw: Any) -> Any:
    """Attribute values are stored JSON encoded; legacy plain strings pass through."""
    if isinstance(raw, bytes):
        raw = raw.decode()
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        return raw


__all__ = ["KEY_SEPARATOR", "METADATA_SEGMENT", "decode_value", "identity_from_key", "metadata_key"]
