"""
Downstream Extractor Interfaces

Consumers notified by the pipeline once an NFO has been stored. They are
best-effort: a failure in any of them never rolls back the FOUND status.

    MovieExtractor  - parses movie identifiers (IMDb) out of NFO text
    ShowExtractor   - runs a TV identifier scan over the processed scope
    ContentScanner  - scans the full message set of an incomplete release

The Null* implementations are used when the pipeline is built without a
collaborator.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

logger = logging.getLogger(__name__)


class MovieExtractor(ABC):
    """Receives the text of every newly stored NFO."""

    @abstractmethod
    def on_nfo_text(self, text: str, release_id: int, extract_imdb_ids: bool) -> None:
        """
        Handle NFO text for a release.

        Args:
            text: Decoded NFO text
            release_id: Release the NFO belongs to
            extract_imdb_ids: Whether IMDb ids should be looked up
        """
        pass


class ShowExtractor(ABC):
    """Runs a TV identifier scan on demand."""

    @abstractmethod
    def on_demand_scan(self, group_filter: Optional[int], guid_filter: Optional[str], enabled: bool) -> None:
        """
        Scan releases for TV identifiers.

        Args:
            group_filter: Restrict to a group (None for all)
            guid_filter: Restrict to a guid prefix (None for all)
            enabled: Whether the scan should actually run
        """
        pass


class ContentScanner(ABC):
    """Scans the complete message set of a release."""

    @abstractmethod
    def scan_release(self, guid: str, release_id: int, group_id: int, context: Any = None) -> None:
        """
        Scan every message of a release.

        Args:
            guid: Release content handle
            release_id: Release primary key
            group_id: Group the release was posted to
            context: Caller-supplied fetcher context (e.g. an open NNTP connection)
        """
        pass


class NullMovieExtractor(MovieExtractor):
    def on_nfo_text(self, text: str, release_id: int, extract_imdb_ids: bool) -> None:
        logger.debug(f"No movie extractor configured, skipping release {release_id}")


class NullShowExtractor(ShowExtractor):
    def on_demand_scan(self, group_filter: Optional[int], guid_filter: Optional[str], enabled: bool) -> None:
        logger.debug("No show extractor configured, skipping TV scan")


class NullContentScanner(ContentScanner):
    def scan_release(self, guid: str, release_id: int, group_id: int, context: Any = None) -> None:
        logger.debug(f"No content scanner configured, skipping release {release_id}")
