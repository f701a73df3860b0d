import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Backend modules import each other as top-level modules (app, db_utils, ...)
BACKEND = Path(__file__).resolve().parent.parent / 'backend'
if str(BACKEND) not in sys.path:
    sys.path.insert(0, str(BACKEND))

from fakes import FakeCatalogStore, FakeStorage, FakeVerifier, SequentialIds, SteppingClock  # noqa: E402


@pytest.fixture
def store():
    return FakeCatalogStore()


@pytest.fixture
def ids():
    return SequentialIds()


@pytest.fixture
def clock():
    return SteppingClock(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc), step=timedelta(seconds=1))


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def verifier():
    return FakeVerifier()
