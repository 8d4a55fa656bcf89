"""
Pytest configuration for all tests.
Sets up environment variables and fixtures used across test modules.
"""

import os
import pytest


# Set environment variables BEFORE any other imports
# This must happen at module import time to affect config.py initialization
os.environ['TESTING'] = 'true'
os.environ['STORAGE_BACKEND'] = 'memory'
os.environ['DETECTION_DELAY_SECONDS'] = '0'


@pytest.fixture(autouse=True)
def reset_container():
    """Reset the dependency injection container before each test."""
    from dependencies import reset_container
    reset_container()
    yield
    reset_container()


@pytest.fixture
def store():
    """Empty collection store over an in-memory backend."""
    from collection_store import CollectionStore, InMemoryKeyValueBackend
    return CollectionStore(InMemoryKeyValueBackend())


@pytest.fixture
def incidents(store):
    from incident_repository import IncidentRepository
    return IncidentRepository(store)


@pytest.fixture
def alerts(store):
    from alert_repository import AlertRepository
    return AlertRepository(store)


@pytest.fixture
def guides(store):
    from guide_repository import GuideRepository
    return GuideRepository(store)


@pytest.fixture
def admins(store):
    from regional_admin_directory import RegionalAdminDirectory
    return RegionalAdminDirectory(store)


@pytest.fixture
def policy(admins):
    from access_control import AccessPolicy
    return AccessPolicy(admin_directory=admins)


@pytest.fixture
def dashboard(incidents, alerts, guides, admins, policy):
    from dashboard_service import DashboardService
    return DashboardService(incidents, alerts, guides, admins, policy)


@pytest.fixture
def super_admin():
    from models import Actor
    return Actor.super_admin("root-1", full_name="Super Admin")


@pytest.fixture
def casablanca_admin():
    from models import Actor
    return Actor.regional_admin("admin-casa", "Casablanca-Settat", full_name="Admin Casa")


@pytest.fixture
def rabat_admin():
    from models import Actor
    return Actor.regional_admin("admin-rabat", "Rabat-Salé-Kénitra", full_name="Admin Rabat")


@pytest.fixture
def citizen():
    from models import Actor
    return Actor.citizen("citizen-42", full_name="Amina")


def make_incident_input(**overrides):
    """Valid vital emergency input, with overrides."""
    data = {
        "type": "VITAL_EMERGENCY",
        "subType": "FIRE",
        "latitude": 33.5731,
        "longitude": -7.5898,
        "description": "kitchen fire",
        "region": "Casablanca-Settat",
    }
    data.update(overrides)
    return data


@pytest.fixture
def incident_input():
    return make_incident_input
