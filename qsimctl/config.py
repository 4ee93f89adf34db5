import logging
import os
from dataclasses import dataclass, field

LOGGER = logging.getLogger(__name__)

#: Every setting is read from ``QSIMCTL_<KEY>``.
ENV_PREFIX = "QSIMCTL_"

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


def _env(key: str) -> str | None:
    """Return the stripped value of ``QSIMCTL_<key>``; ``None`` if unset or blank."""

    val = os.getenv(ENV_PREFIX + key)
    if val is None or not val.strip():
        return None
    return val.strip()


def _malformed(key: str, val: str, default):
    LOGGER.warning("Ignoring malformed %s%s=%r; using %r", ENV_PREFIX, key, val, default)
    return default


def _int_from_env(key: str, default: int | None) -> int | None:
    """``none`` clears the setting; anything unparsable keeps ``default``."""

    val = _env(key)
    if val is None:
        return default
    if val.lower() == "none":
        return None
    try:
        return int(val)
    except ValueError:
        return _malformed(key, val, default)


def _float_from_env(key: str, default: float) -> float:
    val = _env(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        return _malformed(key, val, default)


def _bool_from_env(key: str, default: bool) -> bool:
    val = _env(key)
    if val is None:
        return default
    if val.lower() in _TRUE:
        return True
    if val.lower() in _FALSE:
        return False
    return _malformed(key, val, default)


def _str_from_env(key: str, default: str) -> str:
    val = _env(key)
    return default if val is None else val.lower()


@dataclass
class Config:
    """Runtime configuration defaults for the simulator control layer.

    Field defaults are read from the environment whenever a ``Config`` is
    constructed, so explicit arguments override only the fields they name.
    :data:`DEFAULT` captures the environment at import time.
    """

    default_backend: str = field(
        default_factory=lambda: _str_from_env("BACKEND", "statevector")
    )
    max_instances: int | None = field(
        default_factory=lambda: _int_from_env("MAX_INSTANCES", 64)
    )
    max_qubits: int | None = field(
        default_factory=lambda: _int_from_env("MAX_QUBITS", 24)
    )
    seed: int | None = field(default_factory=lambda: _int_from_env("SEED", None))
    release_requires_zero: bool = field(
        default_factory=lambda: _bool_from_env("RELEASE_REQUIRES_ZERO", False)
    )
    zero_tolerance: float = field(
        default_factory=lambda: _float_from_env("ZERO_TOLERANCE", 1e-10)
    )
    verbose_dispatch: bool = field(
        default_factory=lambda: _bool_from_env("VERBOSE_DISPATCH", False)
    )

    @classmethod
    def from_env(cls) -> "Config":
        """Return a configuration re-read from the current environment."""
        return cls()


# Global configuration instance used when modules import ``qsimctl.config``.
DEFAULT = Config()
