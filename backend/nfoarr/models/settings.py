"""
Settings Database Model for Nfoarr

This module defines the Settings model holding the administrator-tunable NFO
processing thresholds.

Features:
    - Settings persist across runs
    - Single-row singleton pattern
    - Defaults taken from Config when the row is first created

Tunables:
    - max_nfo_processed: Releases examined per batch
    - max_nfo_retries: Failed fetch attempts tolerated before quarantine
    - max_size_to_process_nfo: Upper release size bound in gigabytes (0 = none)
    - min_size_to_process_nfo: Lower release size bound in megabytes (0 = none)
    - tmp_unrar_path: Directory for the classifier's temporary probe files

Note: This uses a singleton pattern - only one row exists in the settings table.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import Session

from .base import Base
from ..config import Config


class Settings(Base):
    """
    Database model for NFO processing configuration.

    Singleton Pattern:
        This table should contain exactly one row. The get_settings() class
        method creates it with defaults on first access.
    """

    __tablename__ = 'settings'

    id = Column(Integer, primary_key=True, autoincrement=True)

    # NFO processing
    max_nfo_processed = Column(Integer, nullable=True, default=Config.DEFAULT_MAX_NFO_PROCESSED)
    max_nfo_retries = Column(Integer, nullable=True, default=Config.DEFAULT_MAX_NFO_RETRIES)
    max_size_to_process_nfo = Column(Integer, nullable=True, default=Config.DEFAULT_MAX_SIZE_TO_PROCESS_NFO)  # GB
    min_size_to_process_nfo = Column(Integer, nullable=True, default=Config.DEFAULT_MIN_SIZE_TO_PROCESS_NFO)  # MB

    # Paths
    tmp_unrar_path = Column(String(1000), nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __init__(self, **kwargs):
        """
        Initialize Settings entry.

        Args:
            **kwargs: Setting values as keyword arguments
        """
        super().__init__(**kwargs)

    @property
    def tmp_path(self) -> str:
        """Directory for probe temp files, falling back to Config.NFO_TMP_PATH."""
        return self.tmp_unrar_path or Config.NFO_TMP_PATH

    def to_dict(self) -> dict:
        """
        Convert settings to dictionary.

        Returns:
            Dictionary representation of settings
        """
        return {
            'id': self.id,
            'max_nfo_processed': self.max_nfo_processed,
            'max_nfo_retries': self.max_nfo_retries,
            'max_size_to_process_nfo': self.max_size_to_process_nfo,
            'min_size_to_process_nfo': self.min_size_to_process_nfo,
            'tmp_unrar_path': self.tmp_unrar_path,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }

    @classmethod
    def get_settings(cls, db: Session) -> 'Settings':
        """
        Get the singleton settings instance.

        If no settings exist, creates a new settings row with default values.

        Args:
            db: SQLAlchemy database session

        Returns:
            Settings instance (the only row in the table)
        """
        settings = db.query(cls).first()

        if not settings:
            settings = cls(
                max_nfo_processed=Config.DEFAULT_MAX_NFO_PROCESSED,
                max_nfo_retries=Config.DEFAULT_MAX_NFO_RETRIES,
                max_size_to_process_nfo=Config.DEFAULT_MAX_SIZE_TO_PROCESS_NFO,
                min_size_to_process_nfo=Config.DEFAULT_MIN_SIZE_TO_PROCESS_NFO
            )
            db.add(settings)
            db.commit()
            db.refresh(settings)

        return settings

    @classmethod
    def update_settings(cls, db: Session, **kwargs) -> 'Settings':
        """
        Update settings with provided values.

        Args:
            db: SQLAlchemy database session
            **kwargs: Setting values to update

        Returns:
            Updated Settings instance

        Example:
            Settings.update_settings(db, max_nfo_retries=3, tmp_unrar_path='/tmp/nfo')
        """
        settings = cls.get_settings(db)

        for key, value in kwargs.items():
            if hasattr(settings, key):
                setattr(settings, key, value)

        settings.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(settings)
        return settings

    def __repr__(self) -> str:
        return (
            f"<Settings(id={self.id}, max_nfo_retries={self.max_nfo_retries}, "
            f"max_nfo_processed={self.max_nfo_processed})>"
        )
