from __future__ import annotations

import pytest
from fakes import FakeFetcher, FakeRegistry, RecordingRegistrar


@pytest.fixture
def fake_registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def registrar() -> RecordingRegistrar:
    return RecordingRegistrar()
