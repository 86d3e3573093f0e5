"""
Integration tests for SqlAlchemyReleaseStore

Runs the store against an in-memory SQLite database:
- Eligibility query (status range, import gate, size window, filters, order)
- Quarantine candidate query
- Payload insert-if-absent, compression and NULL purge
- Error wrapping into PersistenceError
"""

import zlib
from datetime import datetime
from unittest.mock import Mock, patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from nfoarr.adapters.release_store import EligibilityFilter, ReleaseSummary, SqlAlchemyReleaseStore
from nfoarr.models import Group, Release, ReleaseNfo
from nfoarr.services.exceptions import PersistenceError
from nfoarr.services.retry_policy import BYTES_PER_GB, BYTES_PER_MB, SizeWindow

pytestmark = pytest.mark.integration


@pytest.fixture
def store(test_db):
    return SqlAlchemyReleaseStore(test_db)


def ids(summaries):
    return [s.id for s in summaries]


# ============================================================================
# Eligibility
# ============================================================================

class TestQueryEligible:

    def test_status_range(self, store, make_release):
        eligible = [make_release(nfostatus=s) for s in (-1, -3, -6)]
        for status in (1, 0, -7, -9):
            make_release(nfostatus=status)

        result = store.query_eligible(EligibilityFilter(floor=-6), limit=100)

        assert sorted(ids(result)) == sorted(r.id for r in eligible)

    def test_requires_imported_nzb(self, store, make_release):
        make_release(nzbstatus=0)
        imported = make_release()

        assert ids(store.query_eligible(EligibilityFilter(floor=-6), limit=100)) == [imported.id]

    def test_size_window_bounds_are_exclusive(self, store, make_release):
        window = SizeWindow(min_size_bytes=100 * BYTES_PER_MB, max_size_bytes=2 * BYTES_PER_GB)
        make_release(size=100 * BYTES_PER_MB)
        inside = make_release(size=BYTES_PER_GB)
        make_release(size=2 * BYTES_PER_GB)

        result = store.query_eligible(EligibilityFilter(floor=-6, size_window=window), limit=100)

        assert ids(result) == [inside.id]

    def test_group_filter(self, store, test_db, make_release):
        other = Group(name='alt.binaries.other')
        test_db.add(other)
        test_db.commit()

        mine = make_release()
        make_release(groups_id=other.id)

        result = store.query_eligible(EligibilityFilter(floor=-6, group_id=mine.groups_id), limit=100)

        assert ids(result) == [mine.id]

    def test_guid_prefix_filter(self, store, make_release):
        a = make_release(guid="a" + "0" * 39)
        make_release(guid="b" + "0" * 39)

        result = store.query_eligible(EligibilityFilter(floor=-6, guid_prefix="a"), limit=100)

        assert ids(result) == [a.id]

    def test_guid_prefix_is_exact_and_case_sensitive(self, store, make_release):
        lower = make_release(guid="ab" + "0" * 38)
        make_release(guid="AB" + "0" * 38)
        percent = make_release(guid="a%" + "0" * 38)
        underscore = make_release(guid="a_" + "0" * 38)

        def matching(prefix):
            return ids(store.query_eligible(EligibilityFilter(floor=-6, guid_prefix=prefix), limit=100))

        assert matching("ab") == [lower.id]
        assert matching("a_") == [underscore.id]
        assert matching("a%") == [percent.id]

    def test_order_status_then_newest(self, store, make_release):
        newer_unprocessed = make_release(nfostatus=-1, postdate=datetime(2024, 3, 1))
        older_retried = make_release(nfostatus=-3, postdate=datetime(2024, 1, 1))
        newer_retried = make_release(nfostatus=-3, postdate=datetime(2024, 2, 1))
        older_unprocessed = make_release(nfostatus=-1, postdate=datetime(2023, 12, 1))

        result = store.query_eligible(EligibilityFilter(floor=-6), limit=100)

        assert ids(result) == [
            newer_retried.id,
            older_retried.id,
            newer_unprocessed.id,
            older_unprocessed.id,
        ]

    def test_limit(self, store, make_release):
        for _ in range(5):
            make_release()

        assert len(store.query_eligible(EligibilityFilter(floor=-6), limit=3)) == 3

    def test_returns_summaries(self, store, make_release):
        release = make_release(nfostatus=-2, completion=0)

        (summary,) = store.query_eligible(EligibilityFilter(floor=-6), limit=1)

        assert isinstance(summary, ReleaseSummary)
        assert summary.guid == release.guid
        assert summary.groups_id == release.groups_id
        assert summary.nfostatus == -2
        assert summary.completion == 0

    def test_count_by_status(self, store, make_release):
        make_release(nfostatus=-1)
        make_release(nfostatus=-1)
        make_release(nfostatus=-4)
        make_release(nfostatus=1)

        assert store.count_by_status(EligibilityFilter(floor=-6)) == {-4: 1, -1: 2}


# ============================================================================
# Quarantine candidates
# ============================================================================

class TestQuarantineCandidates:

    def test_below_floor_not_failed(self, store, make_release):
        below = [make_release(nfostatus=-7), make_release(nfostatus=-8)]
        make_release(nfostatus=-6)
        make_release(nfostatus=-9)

        result = store.query_quarantine_candidates(EligibilityFilter(floor=-6))

        assert sorted(result) == sorted(r.id for r in below)

    def test_ignores_size_window(self, store, make_release):
        tiny = make_release(nfostatus=-7, size=1)
        window = SizeWindow(min_size_bytes=100 * BYTES_PER_MB)

        assert store.query_quarantine_candidates(EligibilityFilter(floor=-6, size_window=window)) == [tiny.id]

    def test_respects_guid_prefix(self, store, make_release):
        a = make_release(guid="a" + "1" * 39, nfostatus=-7)
        make_release(guid="c" + "1" * 39, nfostatus=-7)

        assert store.query_quarantine_candidates(EligibilityFilter(floor=-6, guid_prefix="a")) == [a.id]


# ============================================================================
# Payloads
# ============================================================================

class TestPayloads:

    def test_insert_stores_compressed_payload(self, store, test_db, make_release, sample_nfo):
        release = make_release()

        assert store.insert_payload_if_absent(release.id, sample_nfo) is True

        row = test_db.query(ReleaseNfo).filter_by(releases_id=release.id).one()
        assert row.nfo != sample_nfo
        assert zlib.decompress(row.nfo) == sample_nfo
        assert store.get_payload(release.id) == sample_nfo
        assert store.has_payload(release.id)

    def test_insert_never_overwrites(self, store, test_db, make_release, sample_nfo):
        release = make_release()
        store.insert_payload_if_absent(release.id, sample_nfo)

        assert store.insert_payload_if_absent(release.id, b"a different NFO body") is False
        assert store.get_payload(release.id) == sample_nfo
        assert test_db.query(ReleaseNfo).filter_by(releases_id=release.id).count() == 1

    def test_concurrent_insert_keeps_existing_row(self, store, test_db, make_release, sample_nfo):
        release = make_release()
        store.insert_payload_if_absent(release.id, sample_nfo)

        # Another worker inserted between the existence check and our insert
        with patch.object(store, 'has_payload', return_value=False):
            assert store.insert_payload_if_absent(release.id, b"a different NFO body") is False

        assert store.get_payload(release.id) == sample_nfo

    def test_get_payload_missing(self, store, make_release):
        release = make_release()

        assert store.get_payload(release.id) is None
        assert not store.has_payload(release.id)

    def test_delete_null_payload(self, store, test_db, make_release):
        release = make_release()
        test_db.add(ReleaseNfo(releases_id=release.id, nfo=None))
        test_db.commit()

        assert store.has_payload(release.id)
        assert store.get_payload(release.id) is None
        assert store.delete_null_payload(release.id) == 1
        assert not store.has_payload(release.id)

    def test_delete_null_payload_keeps_real_payload(self, store, make_release, sample_nfo):
        release = make_release()
        store.insert_payload_if_absent(release.id, sample_nfo)

        assert store.delete_null_payload(release.id) == 0
        assert store.get_payload(release.id) == sample_nfo


# ============================================================================
# Status and lookups
# ============================================================================

class TestStatusAndLookups:

    def test_set_status(self, store, test_db, make_release):
        release = make_release()

        store.set_status(release.id, -2)

        test_db.expire_all()
        assert test_db.get(Release, release.id).nfostatus == -2

    def test_get_group_name(self, store, test_group):
        assert store.get_group_name(test_group.id) == 'alt.binaries.test'
        assert store.get_group_name(9999) is None


# ============================================================================
# Error handling
# ============================================================================

class TestPersistenceErrors:

    def test_database_error_wrapped(self):
        db = Mock(spec=Session)
        db.query.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))
        store = SqlAlchemyReleaseStore(db)

        with pytest.raises(PersistenceError) as exc_info:
            store.set_status(5, -2)

        assert exc_info.value.release_id == 5
        assert isinstance(exc_info.value.original_exception, OperationalError)
        db.rollback.assert_called_once()

    def test_query_error_wrapped(self):
        db = Mock(spec=Session)
        db.query.side_effect = OperationalError("SELECT", {}, Exception("no such table"))

        with pytest.raises(PersistenceError):
            SqlAlchemyReleaseStore(db).query_eligible(EligibilityFilter(floor=-6), limit=10)
