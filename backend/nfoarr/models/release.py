"""
Release Database Model for Nfoarr

This module defines the Release model: a logical unit of content gathered from
Usenet groups. Releases are owned by the indexing side of the system; the NFO
pipeline reads their identifying fields and only mutates ``nfostatus``.

NFO Status Values:
    FOUND (1)        - A valid NFO payload is stored (terminal)
    NONFO (0)        - Classifier concluded no NFO exists (terminal)
    UNPROCESSED (-1) - Not attempted yet
    -2 .. -8         - Attempted N times, still eligible while >= retry floor
    FAILED (-9)      - Quarantined after exhausting retries (terminal)
"""

import enum
from datetime import datetime
from sqlalchemy import Column, Integer, BigInteger, String, DateTime, Float, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import Base


class NfoStatus(enum.IntEnum):
    """Named points of the ``releases.nfostatus`` integer range."""
    FAILED = -9
    UNPROCESSED = -1
    NONFO = 0
    FOUND = 1


# Lowest value of the retry range, whatever the configured retry count
RETRY_FLOOR_LIMIT = -8

# releases.nzbstatus value once the NZB has been imported
NZB_ADDED = 1


class Release(Base):
    """
    Database model for an indexed release.

    Table Structure:
        - id: Primary key
        - guid: Opaque content handle, first character used for sharding
        - groups_id: Usenet group the release was posted to
        - name: Release name
        - size: Total size in bytes
        - postdate: Posting date of the newest article
        - completion: Percentage of parts present (0 when unknown/incomplete)
        - nzbstatus: NZB import status, only NZB_ADDED releases are processed
        - nfostatus: NFO processing state (see NfoStatus)
    """

    __tablename__ = 'releases'

    id = Column(Integer, primary_key=True, autoincrement=True)
    guid = Column(String(40), nullable=False, unique=True)
    groups_id = Column(Integer, ForeignKey('groups.id'), nullable=False, index=True)
    name = Column(String(255), nullable=False, default='')
    size = Column(BigInteger, nullable=False, default=0)
    postdate = Column(DateTime, nullable=True, default=datetime.utcnow)
    completion = Column(Float, nullable=False, default=0)
    nzbstatus = Column(Integer, nullable=False, default=0)
    nfostatus = Column(Integer, nullable=False, default=int(NfoStatus.UNPROCESSED))

    group = relationship("Group", backref="releases")

    __table_args__ = (
        Index('ix_releases_nzb_nfo_status', 'nzbstatus', 'nfostatus'),
    )

    def __init__(self, **kwargs):
        """Initialize release."""
        super().__init__(**kwargs)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'guid': self.guid,
            'groups_id': self.groups_id,
            'name': self.name,
            'size': self.size,
            'postdate': self.postdate.isoformat() if self.postdate else None,
            'completion': self.completion,
            'nzbstatus': self.nzbstatus,
            'nfostatus': self.nfostatus,
        }

    def __repr__(self) -> str:
        return f"<Release(id={self.id}, guid='{self.guid}', nfostatus={self.nfostatus})>"
