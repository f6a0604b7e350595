"""
Shared fixtures: in-memory store, repository and orchestrator factories
"""

from datetime import datetime

import pytest
from cryptography.fernet import Fernet

from social_cooking.config import SocialCookingConfig
from social_cooking.integrations.collaborators import CollaboratorPorts
from social_cooking.integrations.memory_store import InMemoryDocumentStore
from social_cooking.models.repository import EncryptionManager, SocialCookingRepository
from social_cooking.orchestrator import EventOrchestrator


@pytest.fixture
def encryption_key():
    """Fresh Fernet key"""
    return Fernet.generate_key().decode()


@pytest.fixture
def store():
    """Empty in-memory document store"""
    return InMemoryDocumentStore()


@pytest.fixture
def repository(store, encryption_key):
    """Repository facade over the in-memory store"""
    return SocialCookingRepository(store, EncryptionManager(encryption_key))


@pytest.fixture
def ports():
    """Recording feed / notifier / analytics"""
    return CollaboratorPorts.in_memory()


@pytest.fixture
def config():
    return SocialCookingConfig()


@pytest.fixture
def make_orchestrator(repository, ports, config):
    """Factory for orchestrators that share one repository"""

    def _make(user_id="host-1", display_name="You", **overrides):
        return EventOrchestrator(
            repository,
            user_id,
            display_name,
            ports=overrides.get("ports", ports),
            config=overrides.get("config", config),
        )

    return _make


@pytest.fixture
def host(make_orchestrator):
    """Orchestrator acting as the host"""
    return make_orchestrator("host-1", "Host")


@pytest.fixture
def next_sunday():
    return datetime(2026, 10, 25, 13, 0)
