"""
Database models for Nfoarr
"""

from .base import Base
from .group import Group
from .release import Release, NfoStatus, NZB_ADDED, RETRY_FLOOR_LIMIT
from .release_nfo import ReleaseNfo
from .settings import Settings

__all__ = [
    'Base', 'Group', 'Release', 'NfoStatus', 'NZB_ADDED', 'RETRY_FLOOR_LIMIT',
    'ReleaseNfo', 'Settings'
]
