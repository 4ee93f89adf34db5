from __future__ import annotations

"""Process-scoped bookkeeping of live simulator instances.

The registry maps ``(backend name, instance id)`` to the
:class:`~qsimctl.simulator.QuantumSimulator` that owns the id and holds one
backend binding per backend name.  A default registry is created on first
use by :func:`default_registry` and shut down at interpreter exit; tests and
embedding applications may construct their own :class:`InstanceRegistry`
instead.
"""

import atexit
import logging
import threading
from typing import TYPE_CHECKING, Dict, List, Tuple

from . import config as _config
from .backends import Backend, make_backend
from .errors import InvalidInstanceError

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .simulator import QuantumSimulator

LOGGER = logging.getLogger(__name__)


class InstanceRegistry:
    """Track live instances and route them to their backend binding.

    Parameters
    ----------
    config:
        Configuration handed to instances created through this registry.
        Defaults to :data:`qsimctl.config.DEFAULT`.
    """

    def __init__(self, config: _config.Config | None = None) -> None:
        self.config = config or _config.DEFAULT
        self._backends: Dict[str, Backend] = {}
        self._instances: Dict[Tuple[str, int], "QuantumSimulator"] = {}
        self._lock = threading.RLock()
        self._closed = False

    # ------------------------------------------------------------------
    def backend(self, backend: str | Backend | None = None) -> Backend:
        """Return the binding for ``backend``, creating it on first use.

        ``backend`` may be a registered backend name, an already constructed
        :class:`~qsimctl.backends.Backend` or ``None`` for the configured
        default.
        """

        with self._lock:
            if isinstance(backend, Backend):
                bound = self._backends.setdefault(backend.name, backend)
                if bound is not backend:
                    raise ValueError(
                        f"A different backend named '{backend.name}' is already bound"
                    )
                return bound
            name = (backend or self.config.default_backend).lower()
            if name not in self._backends:
                self._backends[name] = make_backend(name, self.config)
            return self._backends[name]

    def open(
        self, instance: "QuantumSimulator", backend: str | Backend | None = None
    ) -> Tuple[Backend, int]:
        """Allocate backend state for ``instance`` and register it."""

        with self._lock:
            if self._closed:
                raise InvalidInstanceError(None, "Instance registry has been shut down")
            binding = self.backend(backend)
            sid = binding.create()
            key = (binding.name, sid)
            if key in self._instances:
                raise InvalidInstanceError(
                    sid, f"Backend '{binding.name}' reissued live instance id {sid}"
                )
            self._instances[key] = instance
            LOGGER.debug("Registered instance %d on backend '%s'", sid, binding.name)
            return binding, sid

    def close(self, instance: "QuantumSimulator") -> None:
        """Unregister ``instance`` and release its backend state."""

        with self._lock:
            key = (instance.backend.name, instance.id)
            if self._instances.get(key) is not instance:
                raise InvalidInstanceError(instance.id)
            del self._instances[key]
            instance.backend.destroy(instance.id)
            LOGGER.debug(
                "Unregistered instance %d on backend '%s'", instance.id, instance.backend.name
            )

    def get(self, instance_id: int, backend: str | None = None) -> "QuantumSimulator":
        """Return the live instance registered under ``instance_id``."""

        name = (backend or self.config.default_backend).lower()
        with self._lock:
            try:
                return self._instances[(name, instance_id)]
            except KeyError:
                raise InvalidInstanceError(instance_id) from None

    def is_live(self, instance: "QuantumSimulator") -> bool:
        with self._lock:
            return self._instances.get((instance.backend.name, instance.id)) is instance

    def instances(self) -> List["QuantumSimulator"]:
        with self._lock:
            return list(self._instances.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._instances)

    def shutdown(self) -> None:
        """Destroy every live instance and refuse further registrations."""

        with self._lock:
            live = list(self._instances.values())
            for instance in live:
                instance.destroy()
            self._closed = True
        if live:
            LOGGER.debug("Registry shutdown destroyed %d instance(s)", len(live))


_DEFAULT_REGISTRY: InstanceRegistry | None = None
_DEFAULT_LOCK = threading.Lock()


def default_registry() -> InstanceRegistry:
    """Return the process-wide registry, creating it on first use."""

    global _DEFAULT_REGISTRY
    with _DEFAULT_LOCK:
        if _DEFAULT_REGISTRY is None:
            _DEFAULT_REGISTRY = InstanceRegistry()
            atexit.register(_DEFAULT_REGISTRY.shutdown)
        return _DEFAULT_REGISTRY


def reset_default_registry() -> None:
    """Shut down the process-wide registry so the next use starts empty."""

    global _DEFAULT_REGISTRY
    with _DEFAULT_LOCK:
        registry = _DEFAULT_REGISTRY
        _DEFAULT_REGISTRY = None
    if registry is not None:
        atexit.unregister(registry.shutdown)
        registry.shutdown()
