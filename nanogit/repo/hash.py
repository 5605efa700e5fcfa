"""Content-addressable hashing utilities."""

import hashlib
import json
from typing import Any


def canonical_json(data: dict[str, Any]) -> str:
    """
    Serialize a dictionary to its canonical JSON form.

    Keys are sorted and separators fixed so equal dictionaries always
    produce identical text.
    """
    return json.dumps(data, sort_keys=True, ensure_ascii=False, separators=(",", ":"))


def compute_hash(data: dict[str, Any]) -> str:
    """
    Compute the SHA256 hash of a dictionary.

    Args:
        data: Dictionary to hash.

    Returns:
        Hexadecimal SHA256 digest of the canonical JSON serialization.
    """
    return hashlib.sha256(canonical_json(data).encode("utf-8")).hexdigest()


def compute_content_hash(content: bytes) -> str:
    """
    Compute the SHA256 hash of raw content.

    Args:
        content: Bytes to hash.

    Returns:
        Hexadecimal SHA256 digest.
    """
    return hashlib.sha256(content).hexdigest()
