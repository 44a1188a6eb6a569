"""Process configuration loaded from environment variables."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigurationError
from .keys.types import KeySpec

DEFAULT_MIN_KEY_CLEANUP_GRACE_PERIOD_SECONDS = 6 * 60 * 60
DEFAULT_CACHE_CONTROL = "public, max-age=3600"
DEFAULT_REDIS_URL = "redis://localhost:6379/0"
SECRET_STORE_BACKENDS = ("aws", "redis")


@dataclass
class RotationConfig:
    """Everything a rotation step needs besides its collaborators."""
    bucket_name: str
    bucket_path: str
    min_activation_grace_period_seconds: int
    max_token_validity_duration_seconds: int
    key_spec: KeySpec
    min_key_cleanup_grace_period_seconds: int = DEFAULT_MIN_KEY_CLEANUP_GRACE_PERIOD_SECONDS
    cache_control: str = DEFAULT_CACHE_CONTROL
    secret_store_backend: str = "aws"
    redis_url: str = DEFAULT_REDIS_URL
    log_level: str = "INFO"


def _required(env: Mapping[str, str], name: str) -> str:
    value = env.get(name)
    if not value:
        raise ConfigurationError(f"{name} environment variable is required")
    return value


def _seconds(name: str, raw: str) -> int:
    try:
        value = int(raw.strip(), 10)
    except ValueError:
        raise ConfigurationError(f"{name} must be a valid number") from None
    if value < 0:
        raise ConfigurationError(f"{name} must be a valid number")
    return value


def _key_spec(raw: str) -> KeySpec:
    try:
        data = json.loads(raw)
    except ValueError:
        raise ConfigurationError("Invalid KEY_SPEC environment variable") from None
    if not isinstance(data, dict) or not isinstance(data.get("algorithm"), str):
        raise ConfigurationError("Invalid KEY_SPEC environment variable")
    modulus_length = data.get("modulusLength")
    if modulus_length is not None and (isinstance(modulus_length, bool) or not isinstance(modulus_length, int)):
        raise ConfigurationError("Invalid KEY_SPEC environment variable")
    crv = data.get("crv")
    if crv is not None and not isinstance(crv, str):
        raise ConfigurationError("Invalid KEY_SPEC environment variable")
    return KeySpec.from_dict(data)


def load_config(environ: Optional[Mapping[str, str]] = None) -> RotationConfig:
    """Load and validate configuration.

    Args:
        environ: Mapping to read from. Defaults to ``os.environ``.
    Raises:
        ConfigurationError: naming the first missing or malformed variable.
    """
    env = os.environ if environ is None else environ

    bucket_name = _required(env, "BUCKET_NAME")
    bucket_path = _required(env, "BUCKET_PATH")
    min_activation = _seconds(
        "MIN_ACTIVATION_GRACE_PERIOD_SECONDS",
        _required(env, "MIN_ACTIVATION_GRACE_PERIOD_SECONDS"),
    )
    max_validity = _seconds(
        "MAX_TOKEN_VALIDITY_DURATION_SECONDS",
        _required(env, "MAX_TOKEN_VALIDITY_DURATION_SECONDS"),
    )
    cleanup_raw = env.get("MIN_KEY_CLEANUP_GRACE_PERIOD_SECONDS")
    min_cleanup = (
        _seconds("MIN_KEY_CLEANUP_GRACE_PERIOD_SECONDS", cleanup_raw)
        if cleanup_raw
        else DEFAULT_MIN_KEY_CLEANUP_GRACE_PERIOD_SECONDS
    )
    key_spec = _key_spec(_required(env, "KEY_SPEC"))

    backend = env.get("SECRET_STORE_BACKEND", "aws").lower()
    if backend not in SECRET_STORE_BACKENDS:
        raise ConfigurationError(
            f"SECRET_STORE_BACKEND must be one of {', '.join(SECRET_STORE_BACKENDS)}"
        )

    return RotationConfig(
        bucket_name=bucket_name,
        bucket_path=bucket_path,
        min_activation_grace_period_seconds=min_activation,
        max_token_validity_duration_seconds=max_validity,
        min_key_cleanup_grace_period_seconds=min_cleanup,
        key_spec=key_spec,
        secret_store_backend=backend,
        redis_url=env.get("REDIS_URL", DEFAULT_REDIS_URL),
        log_level=env.get("LOG_LEVEL", "INFO"),
    )


__all__ = [
    "RotationConfig",
    "KeySpec",
    "load_config",
    "DEFAULT_MIN_KEY_CLEANUP_GRACE_PERIOD_SECONDS",
    "DEFAULT_CACHE_CONTROL",
]
