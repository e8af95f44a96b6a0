"""Hashing utilities for deterministic content hashing."""

import hashlib


def compute_sha256(content: bytes) -> str:
    """Compute SHA-256 hash of content.

    Args:
        content: Bytes to hash

    Returns:
        Hexadecimal hash string
    """
    return hashlib.sha256(content).hexdigest()


def short_digest(text: str, length: int = 8) -> str:
    """Return the first ``length`` hex characters of the SHA-256 of ``text``."""
    if length < 1:
        raise ValueError("Digest length must be positive.")
    return compute_sha256(text.encode("utf-8"))[:length]
