"""Shared fixtures: settings in a temp dir and a MagicMock OpenAI client."""

from unittest.mock import MagicMock

import pytest

from fakes import FakeThreads
from helpcopilot.config import AppSettings
from helpcopilot.rag.embedding_store import EmbeddingStore


@pytest.fixture
def settings(tmp_path):
    """Settings rooted in a temporary config directory."""
    return AppSettings(
        config_dir=tmp_path / "config",
        index_poll_interval=0.01,
        index_timeout_seconds=5,
    )


@pytest.fixture
def store(settings):
    return EmbeddingStore(settings.config_dir)


@pytest.fixture
def client():
    """MagicMock standing in for openai.OpenAI."""
    return MagicMock()


@pytest.fixture
def threads(client):
    return FakeThreads(client)


@pytest.fixture
def sleeps():
    """Collects requested sleep durations; pass ``sleeps.append`` as the sleep function."""
    return []
