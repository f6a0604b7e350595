"""
Unit tests for configuration loading
"""

import pytest

from social_cooking.config import (
    ClaimMode,
    SocialCookingConfig,
    StoreBackend,
    build_document_store,
)
from social_cooking.integrations.memory_store import InMemoryDocumentStore


def test_defaults():
    config = SocialCookingConfig()

    assert config.backend == StoreBackend.MEMORY
    assert config.claim_mode == ClaimMode.LAST_WRITE_WINS
    assert config.strict_transitions is True
    assert config.public_web_host == "nosh.social"


def test_from_env(monkeypatch):
    monkeypatch.setenv("SOCIAL_COOKING_BACKEND", "firestore")
    monkeypatch.setenv("GCP_PROJECT_ID", "nosh-dev")
    monkeypatch.setenv("CLAIM_MODE", "conditional")
    monkeypatch.setenv("STRICT_STATUS_TRANSITIONS", "false")
    monkeypatch.setenv("POTLUCK_PUBLIC_HOST", "https://potluck.example.com/")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = SocialCookingConfig.from_env()

    assert config.backend == "firestore"
    assert config.project_id == "nosh-dev"
    assert config.claim_mode == "conditional"
    assert config.strict_transitions is False
    assert config.public_web_host == "potluck.example.com"
    assert config.log_level == "DEBUG"


def test_invalid_log_level():
    with pytest.raises(ValueError):
        SocialCookingConfig(log_level="chatty")


def test_memory_backend_store():
    assert isinstance(build_document_store(SocialCookingConfig()), InMemoryDocumentStore)


def test_firestore_backend_requires_project():
    with pytest.raises(ValueError, match="GCP_PROJECT_ID"):
        build_document_store(SocialCookingConfig(backend="firestore"))
