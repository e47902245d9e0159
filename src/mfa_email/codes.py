"""Auth code helpers: generation, shape checks, attempt counting."""

from __future__ import annotations

import secrets
from typing import Any

AUTH_CODE_LENGTH = 6


def generate_auth_code() -> str:
    """Generate a numeric auth code.

    Returns:
        A uniformly distributed 6-digit code, zero padded (42 -> "000042").
    """
    code = secrets.randbelow(10**AUTH_CODE_LENGTH)
    return str(code).zfill(AUTH_CODE_LENGTH)


def is_auth_code(value: Any) -> bool:
    """Check that a value has the shape of an issued auth code."""
    return (
        isinstance(value, str)
        and len(value) == AUTH_CODE_LENGTH
        and value.isascii()
        and value.isdigit()
    )


def coerce_attempts(value: Any) -> int:
    """Read a stored attempt counter.

    Missing, non-numeric and negative values count as zero.
    """
    if isinstance(value, bool):
        return 0
    try:
        attempts = int(value)
    except (TypeError, ValueError):
        return 0
    return attempts if attempts > 0 else 0


def codes_match(stored: Any, candidate: str) -> bool:
    """Compare a submitted code against the stored one.

    Exact string comparison (leading zeros matter), done in constant time.
    An empty stored code never matches.
    """
    if not isinstance(stored, str) or not stored:
        return False
    return secrets.compare_digest(stored.encode("utf-8"), candidate.encode("utf-8"))


__all__: list[str] = [
    "AUTH_CODE_LENGTH",
    "generate_auth_code",
    "is_auth_code",
    "coerce_attempts",
    "codes_match",
]
