"""Helper utilities for configuration handling."""

from __future__ import annotations

import os

_ENV_PREFIX = "env:"


def resolve_env_reference(value: str | None, *, required: bool = True) -> str | None:
    """Resolve ``"env:VAR_NAME"`` references against ``os.environ``.

    Plain strings are returned unchanged and ``None`` passes through. When
    ``required`` is ``True`` a missing or empty variable raises
    :class:`EnvironmentError`; otherwise ``None`` is returned.
    """

    if value is None or not value.startswith(_ENV_PREFIX):
        return value

    var_name = value[len(_ENV_PREFIX) :].strip()
    if not var_name:
        raise ValueError("Environment reference 'env:' is missing a variable name")
    resolved = os.getenv(var_name)
    if resolved:
        return resolved
    if required:
        raise EnvironmentError(f"Environment variable '{var_name}' is not set or empty")
    return None


__all__ = ["resolve_env_reference"]
