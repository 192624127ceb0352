"""
Dependency Injection Container

Holds the services the app factory builds once at startup and hands them
to request handlers and Celery tasks.
"""

import logging
import threading
from typing import Any, Dict, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class DependencyNotFoundError(Exception):
    """Raised when attempting to resolve an unregistered dependency."""
    pass


class DependencyContainer:
    """
    Dependency injection container for process-wide services.

    Every service is a singleton registered by the app factory. Registration
    and lookup are guarded by a lock; resolved services themselves are not.
    """

    def __init__(self):
        """Initialize the dependency container."""
        self._singletons: Dict[Type, Any] = {}
        self._lock = threading.Lock()

        logger.debug("DependencyContainer initialized")

    def register_singleton(self, interface: Type[T], implementation: T) -> None:
        """
        Register a singleton service (single instance shared across all resolutions).

        Registering the same interface again replaces the earlier instance.

        Args:
            interface: The interface or class type to register
            implementation: The concrete instance to use

        Example:
            container.register_singleton(IStorageBackend, backend)
        """
        with self._lock:
            self._singletons[interface] = implementation
            logger.debug(f"Registered singleton: {interface.__name__}")

    def resolve(self, interface: Type[T]) -> T:
        """
        Resolve a registered service.

        Args:
            interface: The interface or class type to resolve

        Returns:
            The registered instance

        Raises:
            DependencyNotFoundError: If the interface is not registered

        Example:
            upload_service = container.resolve(UploadService)
        """
        with self._lock:
            try:
                return self._singletons[interface]
            except KeyError:
                raise DependencyNotFoundError(
                    f"No registration found for type: {interface.__name__}"
                ) from None

    def is_registered(self, interface: Type) -> bool:
        """Check if an interface is registered."""
        with self._lock:
            return interface in self._singletons

    def __len__(self) -> int:
        with self._lock:
            return len(self._singletons)
