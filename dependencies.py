"""
Dependency Injection Container for the incident reporting dashboard.

This module provides a lightweight dependency injection container that manages
the lifecycle of the collection store, the repositories and the services built
on them. Tests reset it between runs or inject their own store.
"""

import logging
from typing import Optional

from access_control import AccessPolicy
from alert_repository import AlertRepository
from collection_store import (
    CollectionStore,
    InMemoryKeyValueBackend,
    KeyValueBackend,
    SQLiteKeyValueBackend,
)
from config import AppConfig, get_config
from dashboard_service import DashboardService
from guide_repository import GuideRepository
from incident_repository import IncidentRepository
from regional_admin_directory import RegionalAdminDirectory
from reporting_service import ReportingService
from seed_data import initialize_storage

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Dependency injection container for managing application services.

    Services are created lazily and cached, so every caller shares the same
    store and repositories.
    """

    def __init__(self, config: Optional[AppConfig] = None):
        """Initialize the service container with empty caches."""
        self._config = config
        self._store = None
        self._incidents = None
        self._alerts = None
        self._guides = None
        self._admins = None
        self._policy = None
        self._dashboard = None
        self._reporting = None

    def get_config(self) -> AppConfig:
        """Get the application configuration (singleton)."""
        if self._config is None:
            self._config = get_config()
        return self._config

    def _create_backend(self) -> KeyValueBackend:
        config = self.get_config()
        if config.storage_backend == "memory":
            logger.info("Using in-memory key-value backend")
            return InMemoryKeyValueBackend()
        return SQLiteKeyValueBackend(config.storage_db_path)

    def get_store(self) -> CollectionStore:
        """
        Get the collection store (singleton).

        Default admins, alerts and guides are seeded on first access when
        seed_on_startup is enabled.
        """
        if self._store is None:
            config = self.get_config()
            self._store = CollectionStore(self._create_backend(), key_prefix=config.storage_key_prefix)
            if config.seed_on_startup:
                seeded = initialize_storage(self._store)
                if seeded:
                    logger.info(f"Storage initialized: seeded {', '.join(seeded)}")
        return self._store

    def set_store(self, store: CollectionStore):
        """Use the given store instead of creating one. Useful for testing."""
        self.reset()
        self._store = store

    def get_incident_repository(self) -> IncidentRepository:
        if self._incidents is None:
            config = self.get_config()
            self._incidents = IncidentRepository(
                self.get_store(),
                optimistic_concurrency=config.optimistic_concurrency,
                enforce_forward_status=config.enforce_forward_status
            )
        return self._incidents

    def get_alert_repository(self) -> AlertRepository:
        if self._alerts is None:
            self._alerts = AlertRepository(
                self.get_store(), optimistic_concurrency=self.get_config().optimistic_concurrency
            )
        return self._alerts

    def get_guide_repository(self) -> GuideRepository:
        if self._guides is None:
            self._guides = GuideRepository(
                self.get_store(), optimistic_concurrency=self.get_config().optimistic_concurrency
            )
        return self._guides

    def get_admin_directory(self) -> RegionalAdminDirectory:
        if self._admins is None:
            self._admins = RegionalAdminDirectory(
                self.get_store(), optimistic_concurrency=self.get_config().optimistic_concurrency
            )
        return self._admins

    def get_access_policy(self) -> AccessPolicy:
        if self._policy is None:
            self._policy = AccessPolicy(
                admin_directory=self.get_admin_directory(),
                enforce_admin_permissions=self.get_config().enforce_admin_permissions
            )
        return self._policy

    def get_dashboard_service(self) -> DashboardService:
        """Get the dashboard service (singleton)."""
        if self._dashboard is None:
            self._dashboard = DashboardService(
                incidents=self.get_incident_repository(),
                alerts=self.get_alert_repository(),
                guides=self.get_guide_repository(),
                admins=self.get_admin_directory(),
                policy=self.get_access_policy()
            )
            logger.info("DashboardService initialized")
        return self._dashboard

    def get_reporting_service(self) -> ReportingService:
        """Get the reporting service (singleton)."""
        if self._reporting is None:
            self._reporting = ReportingService(self.get_incident_repository(), self.get_config())
            logger.info("ReportingService initialized")
        return self._reporting

    def reset(self):
        """
        Reset all cached instances. Useful for testing.

        This forces recreation of all services on next access.
        """
        if self._store is not None:
            try:
                self._store.backend.close()
            except Exception as e:
                logger.error(f"Error closing storage backend: {e}")

        self._store = None
        self._incidents = None
        self._alerts = None
        self._guides = None
        self._admins = None
        self._policy = None
        self._dashboard = None
        self._reporting = None
        logger.info("Service container reset")


# Global container instance
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container instance (singleton).

    Returns:
        ServiceContainer instance
    """
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container():
    """
    Reset the global container. Useful for testing.

    Forces recreation of all services on next access.
    """
    global _container
    if _container is not None:
        _container.reset()
    _container = None
