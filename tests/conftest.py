"""Shared test fixtures."""

from unittest.mock import AsyncMock

import pytest

from cds_chat.llm.transport import CompletionResult, NormalizedResponse
from cds_chat.preferences import PreferenceStore
from cds_chat.storage import LocalStorage


@pytest.fixture
def storage(tmp_path):
    """A LocalStorage backed by a file in a temporary directory."""
    return LocalStorage(tmp_path / "storage.json")


@pytest.fixture
def store(storage):
    """A permissive PreferenceStore on isolated storage."""
    PreferenceStore._reset()
    s = PreferenceStore(storage, key="test.settings", strict=False)
    PreferenceStore._instance = s
    yield s
    PreferenceStore._reset()


@pytest.fixture
def transport():
    """A ChatTransport stand-in whose complete() replies 'World'."""
    mock = AsyncMock()
    mock.complete.return_value = CompletionResult(response=NormalizedResponse(content="World"))
    return mock
