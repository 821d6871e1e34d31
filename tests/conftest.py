from __future__ import annotations

import pytest

from llmwrite.config import Configuration, MemorySettingsStore
from llmwrite.llm.client import CompletionClient
from tests._fixtures.backend import RecordingTransport


@pytest.fixture
def transport() -> RecordingTransport:
    """Provide a backend double with no queued responses."""
    return RecordingTransport()


@pytest.fixture
def client(transport: RecordingTransport) -> CompletionClient:
    return CompletionClient(transport=transport)


@pytest.fixture
def settings() -> MemorySettingsStore:
    return MemorySettingsStore(
        Configuration(api_key="sk-test-1234567890", organization_id="org-test", model="text-davinci-003")
    )
