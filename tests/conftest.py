"""Shared fixtures."""
import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding

from astrolynx.config import Settings


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        openai_api_key="test-key",
        retrieval_timeout_seconds=1.0,
        context_max_tokens=4000,
        memory_window_turns=10,
    )


@pytest.fixture
def embeddings():
    return DeterministicFakeEmbedding(size=8)
