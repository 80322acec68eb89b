"""Shared fixtures for room service tests."""

import pytest

from helpers import FakeClock
from pokerroom.adapters.local_notifier import LocalChangeNotifier
from pokerroom.adapters.memory_repository import InMemoryRoomRepository
from pokerroom.providers import DIContainer


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repository():
    return InMemoryRoomRepository()


@pytest.fixture
def notifier():
    return LocalChangeNotifier()


@pytest.fixture
def container(repository, notifier, clock, tmp_path):
    return DIContainer(
        repository=repository,
        notifier=notifier,
        clock=clock,
        identity_file=tmp_path / "identity.json",
    )
