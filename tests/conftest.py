"""Shared fixtures for stream-talk tests."""

import pytest
import torch
from unittest.mock import MagicMock, patch


# --- Sample Data Fixtures ---

@pytest.fixture
def alice_record():
    """A complete post record."""
    return b'{"user":{"name":"Alice","id":7},"text":"hi","lang":"en"}'


@pytest.fixture
def bob_and_cy_chunks():
    """Two records split across two chunks at an awkward offset."""
    return [
        b'{"user":{"nam',
        b'e":"Bob"},"text":"yo"}{"user":{"name":"Cy"},"text":"yo2"}',
    ]


# --- Mock Fixtures ---

@pytest.fixture
def mock_pipeline():
    """Mock Kokoro pipeline class yielding one second of audio per call."""
    with patch("kokoro.KPipeline") as mock_cls:
        mock_result = MagicMock()
        mock_result.audio = torch.rand(24000) * 2 - 1

        mock_pipeline_instance = MagicMock()
        mock_pipeline_instance.side_effect = lambda *args, **kwargs: iter([mock_result])
        mock_cls.return_value = mock_pipeline_instance

        yield mock_cls

