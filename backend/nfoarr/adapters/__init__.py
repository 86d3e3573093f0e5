"""
Collaborator Adapters for Nfoarr

The pipeline depends only on these capability contracts, so message
retrieval, persistence and the downstream extractors can each be swapped
for another implementation or a test double.

Architecture:
    NfoPipeline → NfoFetcher (interface, message network)
                → ReleaseStore (interface)
                      └── SqlAlchemyReleaseStore
                → MovieExtractor / ShowExtractor / ContentScanner (interfaces)
                      └── Null* no-op implementations
"""

from .fetcher_adapter import NfoFetcher
from .release_store import ReleaseStore, SqlAlchemyReleaseStore, EligibilityFilter, ReleaseSummary
from .extractors import (
    MovieExtractor,
    ShowExtractor,
    ContentScanner,
    NullMovieExtractor,
    NullShowExtractor,
    NullContentScanner,
)

__all__ = [
    'NfoFetcher',
    'ReleaseStore',
    'SqlAlchemyReleaseStore',
    'EligibilityFilter',
    'ReleaseSummary',
    'MovieExtractor',
    'ShowExtractor',
    'ContentScanner',
    'NullMovieExtractor',
    'NullShowExtractor',
    'NullContentScanner',
]
