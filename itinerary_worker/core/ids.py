"""Identifier utilities."""

from __future__ import annotations

import secrets
import string

_ALPHABET = string.ascii_letters + string.digits + "_-"


def generate_job_id(size: int = 21) -> str:
    """Return a non-sequential, URL-safe job identifier (nanoid-style)."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(size))
