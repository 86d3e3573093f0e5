"""
Pytest configuration for backend tests.

This file configures pytest for the backend test suite, including
shared database fixtures and test doubles for the NFO pipeline.
"""

import os
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Add backend directory to Python path for imports
backend_root = Path(__file__).parent.parent
sys.path.insert(0, str(backend_root))

# Keep the application engine off disk during tests
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from nfoarr.models import Base, Group, Release, NZB_ADDED  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

SAMPLE_NFO = (
    b"  .:: Some.Movie.2019.1080p.BluRay.x264-GRP ::.\r\n"
    b"\r\n"
    b"  Release Date ....: 2019-05-02\r\n"
    b"  Source ..........: BluRay\r\n"
    b"  IMDb ............: https://www.imdb.com/title/tt1234567/\r\n"
    b"\r\n"
    b"  Greetings to all the crews out there.\r\n"
)

GB = 1073741824


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


@pytest.fixture
def test_db():
    """
    Create a fresh test database for each test.

    Uses in-memory SQLite database for speed. Each test gets a fresh
    database instance to ensure test isolation.
    """
    engine = create_engine(TEST_DATABASE_URL, echo=False)
    Base.metadata.create_all(engine)

    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestSessionLocal()

    yield db

    db.close()
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def test_group(test_db):
    """A single usenet group."""
    group = Group(name='alt.binaries.test')
    test_db.add(group)
    test_db.commit()
    test_db.refresh(group)
    return group


@pytest.fixture
def make_release(test_db, test_group):
    """
    Factory creating imported releases.

    Each call gets a distinct guid and a postdate one hour older than the
    previous release unless given explicitly.
    """
    counter = {'n': 0}
    base_date = datetime(2024, 1, 1, 12, 0, 0)

    def _make(guid=None, nfostatus=-1, size=GB, nzbstatus=NZB_ADDED, completion=100.0,
              postdate=None, groups_id=None, name=None):
        counter['n'] += 1
        n = counter['n']
        release = Release(
            guid=guid or f"{n:040x}",
            groups_id=groups_id or test_group.id,
            name=name or f"Some.Release.{n}",
            size=size,
            postdate=postdate or base_date - timedelta(hours=n),
            completion=completion,
            nzbstatus=nzbstatus,
            nfostatus=nfostatus,
        )
        test_db.add(release)
        test_db.commit()
        test_db.refresh(release)
        return release

    return _make


@pytest.fixture
def sample_nfo():
    """Typical scene NFO bytes."""
    return SAMPLE_NFO
