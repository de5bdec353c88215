"""Shared test fixtures."""

from __future__ import annotations

import pytest

from stardash.pipeline.models import ChannelEndpoint
from tests.helpers import FakeOpener, Recorder


@pytest.fixture
def endpoint() -> ChannelEndpoint:
    return ChannelEndpoint("/tmp/stardash-test.sock")


@pytest.fixture
def opener() -> FakeOpener:
    return FakeOpener()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
