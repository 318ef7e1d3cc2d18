"""
Storage mechanism contract and registry.

Handlers use a storage mechanism to remember state across client
reconnects. Mechanisms are looked up by name in a MechanismRegistry; the
built-in ones are registered the first time a registry resolves a name.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from error_handling import MechanismNotRegisteredError


class StorageMechanism(ABC):
    """Key-value store. ``get`` returns None for missing keys."""

    def __init__(self, credentials: Optional[Dict[str, Any]] = None):
        self.credentials = dict(credentials or {})

    @abstractmethod
    def get(self, key: str) -> Any:
        """Return the stored value or None."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""


MechanismFactory = Callable[[Dict[str, Any]], StorageMechanism]


def register_builtin_mechanisms(registry: "MechanismRegistry") -> None:
    """Bind the mechanisms that ship with EventPump."""
    from core.mechanisms import BUILTIN_MECHANISMS

    for name, factory in BUILTIN_MECHANISMS.items():
        registry.register(name, factory)


class MechanismRegistry:
    """
    Name -> implementation map for storage mechanisms.

    Safe to share between sessions: built-ins are populated once on first
    resolve under a reentrant lock (the initializer registers through
    ``register``), and explicit registrations take the same lock.
    """

    def __init__(self, initializer: Optional[Callable[["MechanismRegistry"], None]] = register_builtin_mechanisms):
        self._lock = threading.RLock()
        self._factories: Dict[str, Optional[MechanismFactory]] = {}
        self._initializer = initializer
        self._initialized = initializer is None

    def _ensure_initialized(self):
        if self._initialized:
            return
        with self._lock:
            if self._initialized:
                return
            # Explicit registrations made before first use win over built-ins
            explicit = dict(self._factories)
            self._factories = {}
            self._initializer(self)
            self._factories.update(explicit)
            self._initialized = True
            logging.debug(f"Storage mechanisms registered: {', '.join(sorted(self._factories))}")

    def register(self, name: str, factory: Optional[MechanismFactory]) -> None:
        """Bind ``name`` to ``factory``; the last explicit registration wins."""
        with self._lock:
            self._factories[name] = factory

    def unregister(self, name: str) -> None:
        self._ensure_initialized()
        with self._lock:
            self._factories.pop(name, None)

    def names(self):
        self._ensure_initialized()
        return sorted(name for name, factory in self._factories.items() if factory)

    def __contains__(self, name):
        self._ensure_initialized()
        return bool(self._factories.get(name))

    def resolve(self, name: str, credentials: Optional[Dict[str, Any]] = None) -> StorageMechanism:
        """
        Instantiate the mechanism registered under ``name``.

        The first call on a registry also registers the built-ins. A
        registration made before that call keeps its binding, so it overrides
        a built-in of the same name even though the built-in is added later.

        Raises:
            MechanismNotRegisteredError: ``name`` is unknown or bound to nothing
        """
        self._ensure_initialized()
        factory = self._factories.get(name)
        if not factory:
            raise MechanismNotRegisteredError(name, self.names())
        return factory(dict(credentials or {}))


_global_registry = MechanismRegistry()


def get_registry() -> MechanismRegistry:
    """Get the process-wide mechanism registry."""
    return _global_registry


class Storage(StorageMechanism):
    """Storage facade that resolves a mechanism by name and delegates to it."""

    def __init__(self, mechanism: str, credentials: Optional[Dict[str, Any]] = None,
                 registry: Optional[MechanismRegistry] = None):
        super().__init__(credentials)
        self.name = mechanism
        self.mechanism = (registry or get_registry()).resolve(mechanism, self.credentials)

    def get(self, key):
        return self.mechanism.get(key)

    def set(self, key, value):
        self.mechanism.set(key, value)

    def delete(self, key):
        self.mechanism.delete(key)
