"""Numerical backends available to simulator instances."""

from importlib.util import find_spec
from typing import Dict, Tuple, Type

from .. import config as _config
from .base import Backend

# Third-party packages each backend imports at module level.
_REQUIREMENTS: Dict[str, Tuple[str, ...]] = {
    "StatevectorBackend": ("numpy", "qiskit"),
    "TableauBackend": ("numpy", "stim"),
}


def _require(backend: str) -> None:
    """Raise ``ImportError`` naming the packages ``backend`` cannot find."""

    missing = [pkg for pkg in _REQUIREMENTS[backend] if find_spec(pkg) is None]
    if missing:  # pragma: no cover - environment specific
        raise ImportError(
            f"{backend} requires {', '.join(missing)}; install the missing "
            "package(s) to use this backend."
        )


_require("StatevectorBackend")
from .statevector import StatevectorBackend

_require("TableauBackend")
from .tableau import TableauBackend

#: Factories keyed by the name accepted in ``QSIMCTL_BACKEND``.
BACKENDS: Dict[str, Type[Backend]] = {
    "statevector": StatevectorBackend,
    "tableau": TableauBackend,
}


def make_backend(name: str, config: _config.Config | None = None) -> Backend:
    """Instantiate the backend registered as ``name`` using ``config`` limits."""

    try:
        cls = BACKENDS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown backend '{name}'. Available: {sorted(BACKENDS)}"
        ) from None
    return cls.from_config(config or _config.DEFAULT)


__all__ = [
    "Backend",
    "BACKENDS",
    "StatevectorBackend",
    "TableauBackend",
    "make_backend",
]
