"""
Release Store Adapter for Nfoarr

This module defines the persistence contract of the NFO pipeline and its
SQLAlchemy implementation over the ``releases``, ``release_nfos`` and
``groups`` tables.

Contract Methods:
    - query_eligible(): Releases due for a fetch attempt
    - query_quarantine_candidates(): Releases that exhausted their retries
    - has_payload() / get_payload(): Payload row lookups
    - insert_payload_if_absent(): Store a compressed NFO, never overwriting
    - set_status(): Persist a new nfostatus
    - delete_null_payload(): Purge a stale NULL payload row
    - get_group_name(), count_by_status(): Lookups for the fetcher and logging

Every write is committed on its own so a transition already persisted
survives an interrupted batch. Database errors are rolled back and re-raised
as PersistenceError.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.group import Group
from ..models.release import Release, NfoStatus, NZB_ADDED
from ..models.release_nfo import ReleaseNfo
from ..services.exceptions import PersistenceError
from ..services.retry_policy import SizeWindow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EligibilityFilter:
    """
    Scope of one pipeline pass.

    Attributes:
        floor: Retry floor; statuses in [floor, UNPROCESSED] are eligible
        size_window: Release size bounds
        group_id: Restrict to one group (None for all)
        guid_prefix: Restrict to guids starting with this prefix (None for all)
    """
    floor: int
    size_window: SizeWindow = SizeWindow()
    group_id: Optional[int] = None
    guid_prefix: Optional[str] = None


@dataclass(frozen=True)
class ReleaseSummary:
    """Identifying fields of a release, as read by the pipeline."""
    id: int
    guid: str
    groups_id: int
    name: str = ""
    nfostatus: int = int(NfoStatus.UNPROCESSED)
    completion: Optional[float] = None
    postdate: Optional[datetime] = None


class ReleaseStore(ABC):
    """Persistence contract of the NFO pipeline."""

    @abstractmethod
    def query_eligible(self, filters: EligibilityFilter, limit: int) -> List[ReleaseSummary]:
        """Up to ``limit`` eligible releases, ordered by nfostatus ASC then postdate DESC."""
        pass

    @abstractmethod
    def query_quarantine_candidates(self, filters: EligibilityFilter) -> List[int]:
        """IDs of releases with FAILED < nfostatus < floor within the group/guid scope."""
        pass

    @abstractmethod
    def has_payload(self, release_id: int) -> bool:
        pass

    @abstractmethod
    def get_payload(self, release_id: int) -> Optional[bytes]:
        """Decompressed payload, or None when there is no row or a NULL body."""
        pass

    @abstractmethod
    def insert_payload_if_absent(self, release_id: int, blob: bytes) -> bool:
        """Store the compressed blob unless a row exists. Returns True if inserted."""
        pass

    @abstractmethod
    def set_status(self, release_id: int, status: int) -> None:
        pass

    @abstractmethod
    def delete_null_payload(self, release_id: int) -> int:
        """Delete a payload row with a NULL body. Returns the number of rows removed."""
        pass

    @abstractmethod
    def get_group_name(self, group_id: int) -> Optional[str]:
        pass

    @abstractmethod
    def count_by_status(self, filters: EligibilityFilter) -> Dict[int, int]:
        """Number of eligible releases per nfostatus."""
        pass


class SqlAlchemyReleaseStore(ReleaseStore):
    """
    ReleaseStore over a SQLAlchemy session.

    Example:
        >>> from nfoarr.database import SessionLocal
        >>> store = SqlAlchemyReleaseStore(SessionLocal())
        >>> store.query_eligible(EligibilityFilter(floor=-6), limit=100)
    """

    def __init__(self, db: Session):
        """
        Initialize SqlAlchemyReleaseStore.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    @contextmanager
    def _persistence(self, action: str, release_id: Optional[int] = None):
        """Roll back and wrap database errors raised inside the block."""
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Release store failed to {action}: {e}")
            raise PersistenceError(f"Failed to {action}: {e}", release_id=release_id, original_exception=e) from e

    def _scoped(self, query, filters: EligibilityFilter):
        """Apply the NZB import gate and the group/guid filters."""
        query = query.filter(Release.nzbstatus == NZB_ADDED)
        if filters.group_id is not None:
            query = query.filter(Release.groups_id == filters.group_id)
        if filters.guid_prefix:
            prefix = filters.guid_prefix
            query = query.filter(func.substr(Release.guid, 1, len(prefix)) == prefix)
        return query

    def _eligible(self, query, filters: EligibilityFilter):
        query = self._scoped(query, filters)
        query = query.filter(Release.nfostatus.between(filters.floor, int(NfoStatus.UNPROCESSED)))

        window = filters.size_window
        if window.max_size_bytes is not None:
            query = query.filter(Release.size < window.max_size_bytes)
        if window.min_size_bytes is not None:
            query = query.filter(Release.size > window.min_size_bytes)
        return query

    def query_eligible(self, filters: EligibilityFilter, limit: int) -> List[ReleaseSummary]:
        with self._persistence("query eligible releases"):
            rows = (
                self._eligible(self.db.query(Release), filters)
                .order_by(Release.nfostatus.asc(), Release.postdate.desc())
                .limit(limit)
                .all()
            )
            return [
                ReleaseSummary(
                    id=row.id,
                    guid=row.guid,
                    groups_id=row.groups_id,
                    name=row.name,
                    nfostatus=row.nfostatus,
                    completion=row.completion,
                    postdate=row.postdate,
                )
                for row in rows
            ]

    def query_quarantine_candidates(self, filters: EligibilityFilter) -> List[int]:
        with self._persistence("query quarantine candidates"):
            rows = (
                self._scoped(self.db.query(Release.id), filters)
                .filter(Release.nfostatus < filters.floor)
                .filter(Release.nfostatus > int(NfoStatus.FAILED))
                .all()
            )
            return [row.id for row in rows]

    def count_by_status(self, filters: EligibilityFilter) -> Dict[int, int]:
        with self._persistence("count releases by status"):
            results = (
                self._eligible(self.db.query(Release.nfostatus, func.count(Release.id)), filters)
                .group_by(Release.nfostatus)
                .order_by(Release.nfostatus.asc())
                .all()
            )
            return {status: count for status, count in results}

    def has_payload(self, release_id: int) -> bool:
        with self._persistence("check payload", release_id):
            return (
                self.db.query(ReleaseNfo.id)
                .filter(ReleaseNfo.releases_id == release_id)
                .first()
            ) is not None

    def get_payload(self, release_id: int) -> Optional[bytes]:
        with self._persistence("read payload", release_id):
            row = self.db.query(ReleaseNfo).filter(ReleaseNfo.releases_id == release_id).first()
            return row.decompressed() if row else None

    def insert_payload_if_absent(self, release_id: int, blob: bytes) -> bool:
        if self.has_payload(release_id):
            logger.debug(f"Release {release_id} already has a payload row, keeping it")
            return False

        with self._persistence("insert payload", release_id):
            try:
                self.db.add(ReleaseNfo(releases_id=release_id, nfo=ReleaseNfo.compress(blob)))
                self.db.commit()
            except IntegrityError:
                # Another shard stored it first
                self.db.rollback()
                logger.debug(f"Payload for release {release_id} inserted concurrently, keeping existing row")
                return False
        return True

    def set_status(self, release_id: int, status: int) -> None:
        with self._persistence("update status", release_id):
            self.db.query(Release).filter(Release.id == release_id).update(
                {Release.nfostatus: int(status)},
                synchronize_session=False
            )
            self.db.commit()

    def delete_null_payload(self, release_id: int) -> int:
        with self._persistence("delete null payload", release_id):
            deleted = (
                self.db.query(ReleaseNfo)
                .filter(ReleaseNfo.releases_id == release_id)
                .filter(ReleaseNfo.nfo.is_(None))
                .delete(synchronize_session=False)
            )
            self.db.commit()
            return deleted

    def get_group_name(self, group_id: int) -> Optional[str]:
        with self._persistence("resolve group name"):
            return Group.get_name_by_id(self.db, group_id)
