"""
ReleaseNfo Database Model

Stores the NFO payload of a release, zlib-compressed. At most one row exists
per release (unique ``releases_id``) so concurrent shards inserting the same
payload cannot create duplicates.

A row with a NULL ``nfo`` body is distinct from a missing row; such rows are
stale once the release is quarantined and get purged by the pipeline.
"""

import zlib
from sqlalchemy import Column, Integer, LargeBinary, ForeignKey
from typing import Optional

from .base import Base


class ReleaseNfo(Base):
    """Compressed NFO payload, 1:1 with a release."""

    __tablename__ = 'release_nfos'

    id = Column(Integer, primary_key=True, autoincrement=True)
    releases_id = Column(Integer, ForeignKey('releases.id'), nullable=False, unique=True)
    nfo = Column(LargeBinary, nullable=True)

    @staticmethod
    def compress(blob: bytes) -> bytes:
        """Compress raw NFO bytes for storage."""
        return zlib.compress(blob)

    def decompressed(self) -> Optional[bytes]:
        """Return the raw NFO bytes, or None for a null payload row."""
        if self.nfo is None:
            return None
        return zlib.decompress(self.nfo)

    def __repr__(self) -> str:
        return f"<ReleaseNfo(releases_id={self.releases_id}, has_nfo={self.nfo is not None})>"
