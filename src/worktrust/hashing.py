"""Content digests for trusted configuration files."""

from __future__ import annotations

import hashlib
import os

CHUNK_SIZE = 64 * 1024


def hash_bytes(data: bytes) -> str:
    """
    Compute the SHA-256 digest of an in-memory buffer.

    Args:
        data: Bytes already read by the caller.

    Returns:
        Hex-encoded SHA-256 digest (64 lowercase characters).
    """
    return hashlib.sha256(data).hexdigest()


def hash_file(path: str | os.PathLike[str]) -> str:
    """
    Compute the SHA-256 digest of a file, streaming it in chunks.

    Produces the same digest as :func:`hash_bytes` over the file's content.

    Raises:
        OSError: If the file cannot be read.
    """
    digest = hashlib.sha256()
    with open(path, "rb") as handle:
        for chunk in iter(lambda: handle.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def verify_file_hash(path: str | os.PathLike[str], expected: str) -> bool:
    """Return True when the file's current digest equals ``expected``."""
    return hash_file(path) == expected.lower()
