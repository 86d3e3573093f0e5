"""
Group Database Model

Usenet groups releases are posted to. The NFO pipeline only resolves group
names for the message fetcher.
"""

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import Session
from typing import Optional

from .base import Base


class Group(Base):
    """Usenet group."""

    __tablename__ = 'groups'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)

    @classmethod
    def get_name_by_id(cls, db: Session, group_id: int) -> Optional[str]:
        """Get group name by ID, or None when unknown."""
        group = db.query(cls).filter(cls.id == group_id).first()
        return group.name if group else None

    def __repr__(self) -> str:
        return f"<Group(id={self.id}, name='{self.name}')>"
