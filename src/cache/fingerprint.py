# src/cache/fingerprint.py — v3
"""Deterministic content fingerprint used as the extraction cache key.

SHA-256 over the raw input bytes. No normalization is applied: any byte
difference, whitespace included, yields a different fingerprint.
"""

from __future__ import annotations

import hashlib

from acadimport.core.errors import InvalidInputError

FINGERPRINT_LENGTH = 64


def compute_fingerprint(raw: bytes | bytearray | str) -> str:
    """Compute the lowercase hex SHA-256 digest of raw input.

    Args:
        raw: Raw input bytes. Text is encoded as UTF-8 first.

    Returns:
        64-character lowercase hex string.

    Raises:
        InvalidInputError: If input is None or not bytes/str.
    """
    if raw is None:
        raise InvalidInputError("Raw input is required")
    if isinstance(raw, str):
        raw = raw.encode("utf-8")
    elif not isinstance(raw, (bytes, bytearray)):
        raise InvalidInputError(
            f"Raw input must be bytes or str, got {type(raw).__name__}"
        )
    return hashlib.sha256(bytes(raw)).hexdigest()
