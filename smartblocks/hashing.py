"""Content hashing for change detection."""

import hashlib


HASH_LENGTH = 8


def content_hash(content: str) -> str:
    """
    Fingerprint block content for change detection.

    SHA-256 of the UTF-8 bytes, truncated to 8 hex characters. Distinct
    contents can collide, so this is never a primary key.
    """
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:HASH_LENGTH]
