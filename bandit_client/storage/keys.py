"""Storage key naming helpers."""

from __future__ import annotations

DEFAULT_NAMESPACE = "bayesian_bandit"


def assignments_key(namespace: str = DEFAULT_NAMESPACE) -> str:
    return f"{namespace}:storage"
