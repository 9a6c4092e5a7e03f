"""
Service container for the challenge engine.

Each service is a factory ``f(container) -> instance``, built on first
``get()`` and cached for the life of the container. ``override()`` swaps in
a ready-made instance, which is how tests replace the unit of work or the
challenge service.
"""

import logging
from typing import Any, Callable, Dict, Optional, Set

logger = logging.getLogger(__name__)

Factory = Callable[["ServiceContainer"], Any]


class ServiceContainer:
    """Lazy, cached service registry."""

    def __init__(self) -> None:
        self._factories: Dict[str, Factory] = {}
        self._instances: Dict[str, Any] = {}
        self._resolving: Set[str] = set()

    def register(self, name: str, factory: Factory) -> None:
        """Register *factory* under *name*, dropping any instance already built."""
        self._factories[name] = factory
        self._instances.pop(name, None)
        logger.debug(f"Registered service: {name}")

    def override(self, name: str, instance: Any) -> None:
        self._instances[name] = instance
        logger.debug(f"Overrode service: {name}")

    def get(self, name: str) -> Any:
        """
        Return the service, building it on first access.

        Raises:
            KeyError: service is not registered
            RuntimeError: the factories for *name* depend on each other
        """
        if name in self._instances:
            return self._instances[name]
        if name not in self._factories:
            raise KeyError(f"Service '{name}' is not registered")
        if name in self._resolving:
            raise RuntimeError(f"Circular dependency while building '{name}'")

        self._resolving.add(name)
        try:
            instance = self._factories[name](self)
        finally:
            self._resolving.discard(name)

        self._instances[name] = instance
        logger.debug(f"Built service: {name}")
        return instance

    def has(self, name: str) -> bool:
        return name in self._factories or name in self._instances

    def clear(self) -> None:
        self._factories.clear()
        self._instances.clear()


_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """Get the global service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """Replace the global container with an empty one."""
    global _container
    if _container is not None:
        _container.clear()
    _container = ServiceContainer()
