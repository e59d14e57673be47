from __future__ import annotations

import pytest

from tests._fixtures.metadata_builder import MetadataBuilder


@pytest.fixture
def metadata_builder() -> MetadataBuilder:
    """Provide a fresh metadata builder for each test."""
    return MetadataBuilder()
