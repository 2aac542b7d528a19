"""Integrity helpers: SHA-256 compute & verify for downloaded payloads."""

from __future__ import annotations

import hashlib

from sky_install.errors import ChecksumMismatchError


def sha256(data: bytes | bytearray) -> str:
    """Return the hex SHA-256 of *data*."""
    return hashlib.sha256(data).hexdigest()


def _normalize_expected(expected: str) -> str:
    exp = expected.strip()
    if exp.startswith("sha256:"):
        exp = exp.split(":", 1)[1]
    return exp.lower()


def verify_sha256(data: bytes | bytearray, expected: str) -> None:
    """Raise ChecksumMismatchError if *data*'s sha256 does not match *expected*.

    *expected* may be either plain hex or `sha256:<hex>`.
    """
    got = sha256(data)
    exp = _normalize_expected(expected)
    if got != exp:
        raise ChecksumMismatchError(f"SHA-256 mismatch: got {got}, expected {exp}")
