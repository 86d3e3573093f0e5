"""
NfoFetcher Abstract Base Class for Nfoarr

This module defines the contract the pipeline requires from the message
retrieval side of the system. Downloading articles, yEnc decoding and picking
the NFO candidate out of a release's NZB all happen behind this interface.

Contract:
    fetch(guid, release_id, group_id, group_name) -> bytes | None

    - Return the raw candidate bytes when the release has an NFO-like file.
    - Return None when the release has no NFO embedded. This is a normal
      outcome, not an error.
    - Raise NfoFetchError for transport failures (timeouts, dropped
      connections, articles missing on the server).
    - Bound every call with the implementation's own timeout.

Usage Example:
    class NntpNfoFetcher(NfoFetcher):
        def fetch(self, guid, release_id, group_id, group_name):
            try:
                return self.nzb_contents.get_nfo_from_nzb(guid, release_id, group_id, group_name)
            except socket.timeout as e:
                raise NfoFetchError("NNTP timeout", release_id=release_id, original_exception=e)
"""

from abc import ABC, abstractmethod
from typing import Optional


class NfoFetcher(ABC):
    """Abstract message fetcher returning candidate NFO bytes for a release."""

    @abstractmethod
    def fetch(
        self,
        guid: str,
        release_id: int,
        group_id: int,
        group_name: Optional[str]
    ) -> Optional[bytes]:
        """
        Fetch the candidate NFO bytes of a release.

        Args:
            guid: Release content handle
            release_id: Release primary key
            group_id: Group the release was posted to
            group_name: Name of that group (None if unknown)

        Returns:
            Raw bytes, or None when the release has no NFO

        Raises:
            NfoFetchError: If the bytes could not be retrieved this attempt
        """
        pass
