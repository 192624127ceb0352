"""
Unit tests for DependencyContainer

Tests singleton registration, replacement and resolution errors.
"""

import pytest

from filedrop.application.dependency_container import (
    DependencyContainer,
    DependencyNotFoundError,
)


class DummyService:
    """Dummy service for testing."""

    def __init__(self, value="default"):
        self.value = value


class DummyInterface:
    """Dummy interface for testing."""

    pass


@pytest.fixture
def container():
    """Create a fresh DependencyContainer for each test."""
    return DependencyContainer()


@pytest.mark.unit
class TestDependencyContainer:
    """Test service registration and resolution."""

    def test_singleton_returns_same_instance(self, container):
        # Arrange
        service = DummyService("test")
        container.register_singleton(DummyService, service)

        # Act / Assert
        assert container.resolve(DummyService) is service
        assert container.resolve(DummyService) is service

    def test_registering_again_replaces(self, container):
        container.register_singleton(DummyService, DummyService("first"))
        container.register_singleton(DummyService, DummyService("second"))

        assert container.resolve(DummyService).value == "second"
        assert len(container) == 1

    def test_interface_maps_to_implementation(self, container):
        service = DummyService("impl")
        container.register_singleton(DummyInterface, service)

        assert container.resolve(DummyInterface) is service
        assert not container.is_registered(DummyService)

    def test_unregistered_raises(self, container):
        with pytest.raises(DependencyNotFoundError, match="DummyService"):
            container.resolve(DummyService)

    def test_is_registered_and_len(self, container):
        assert not container.is_registered(DummyService)
        assert len(container) == 0

        container.register_singleton(DummyService, DummyService())
        container.register_singleton(DummyInterface, DummyInterface())

        assert container.is_registered(DummyService)
        assert container.is_registered(DummyInterface)
        assert len(container) == 2
