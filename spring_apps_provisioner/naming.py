"""Random resource names for resource groups and services left unnamed in config."""

from __future__ import annotations

import secrets


def random_resource_name(prefix: str, max_len: int) -> str:
    """Return ``prefix`` padded with random lowercase hex to exactly ``max_len`` characters."""
    if max_len <= 0:
        raise ValueError("max_len must be positive")
    if len(prefix) >= max_len:
        return prefix[:max_len]
    suffix_len = max_len - len(prefix)
    return prefix + secrets.token_hex((suffix_len + 1) // 2)[:suffix_len]
