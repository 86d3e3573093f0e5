"""
Signature Probers for the NFO Classifier

The classifier never talks to a file-type tool directly. It depends on two
capabilities, each with interchangeable implementations:

    SignatureProber      - describes a file the way ``file -b`` does
        FileCommandProber    external ``file`` tool via subprocess
        StaticProber         fixed description, for tests and fixtures

    MediaFormatAnalyzer  - decides whether a file is a known media container
        PyMediaInfoAnalyzer  MediaInfo via pymediainfo
        StaticAnalyzer       fixed answer, for tests and fixtures

Every implementation raises ClassificationError when the probe itself cannot
run (tool missing, timeout, library not loadable).
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from typing import List, Optional

from ..config import Config
from .exceptions import ClassificationError

logger = logging.getLogger(__name__)


class SignatureProber(ABC):
    """Describes the content type of a file from its signature."""

    @abstractmethod
    def describe(self, path: str) -> str:
        """
        Describe the file at ``path``.

        Returns:
            Human-readable type description (e.g. "ASCII text"), empty when
            the tool has nothing to say

        Raises:
            ClassificationError: If the probe cannot run
        """


class MediaFormatAnalyzer(ABC):
    """Recognizes multimedia and container formats."""

    @abstractmethod
    def recognizes(self, path: str) -> bool:
        """
        Whether the file at ``path`` is a format the analyzer knows.

        Raises:
            ClassificationError: If the analyzer cannot run
        """


# ============================================================================
# Signature probers
# ============================================================================

class FileCommandProber(SignatureProber):
    """
    Runs the external ``file`` tool in brief mode.

    Linux and macOS ship it; on Windows it is available through GnuWin32.
    """

    def __init__(self, command: Optional[str] = None, timeout: Optional[int] = None):
        """
        Initialize FileCommandProber.

        Args:
            command: Path or name of the ``file`` executable (default: Config.FILE_COMMAND)
            timeout: Seconds before the probe is abandoned (default: Config.PROBE_TIMEOUT)
        """
        self.command = command or Config.FILE_COMMAND
        self.timeout = timeout or Config.PROBE_TIMEOUT

    def describe(self, path: str) -> str:
        cmd = [self.command, '-b', path]
        logger.debug(f"Running signature probe: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.timeout,
                check=False
            )
        except FileNotFoundError as e:
            raise ClassificationError(f"Signature probe tool not found: {self.command}", original_exception=e) from e
        except subprocess.TimeoutExpired as e:
            raise ClassificationError(f"Signature probe timed out after {self.timeout}s", original_exception=e) from e
        except OSError as e:
            raise ClassificationError(f"Signature probe could not run: {e}", original_exception=e) from e

        if result.returncode != 0:
            error_msg = result.stderr.decode(errors='replace').strip() if result.stderr else "Unknown error"
            raise ClassificationError(f"Signature probe failed: {error_msg}")

        return result.stdout.decode(errors='replace').strip()


class StaticProber(SignatureProber):
    """Returns a fixed description and records every probed path."""

    def __init__(self, description: str = ""):
        self.description = description
        self.calls: List[str] = []

    def describe(self, path: str) -> str:
        self.calls.append(path)
        return self.description


# ============================================================================
# Media format analyzers
# ============================================================================

class PyMediaInfoAnalyzer(MediaFormatAnalyzer):
    """
    Recognizes media containers with MediaInfo.

    A file counts as recognized when MediaInfo reports a container format on
    the General track or finds any video/audio/image/text stream.
    """

    def __init__(self):
        """Initialize PyMediaInfoAnalyzer."""
        self._mediainfo_available = None

    def _check_mediainfo(self) -> bool:
        """Check if MediaInfo library is available."""
        if self._mediainfo_available is not None:
            return self._mediainfo_available

        try:
            from pymediainfo import MediaInfo
            self._mediainfo_available = bool(MediaInfo.can_parse())
        except Exception as e:
            logger.warning(f"MediaInfo library not available: {e}")
            self._mediainfo_available = False

        return self._mediainfo_available

    def recognizes(self, path: str) -> bool:
        if not self._check_mediainfo():
            raise ClassificationError("MediaInfo library not available")

        try:
            from pymediainfo import MediaInfo

            media_info = MediaInfo.parse(path)
        except Exception as e:
            raise ClassificationError(f"MediaInfo analysis failed: {type(e).__name__}: {e}", original_exception=e) from e

        for track in media_info.tracks:
            if track.track_type != "General":
                logger.debug(f"MediaInfo found a {track.track_type} track")
                return True
            if track.format:
                logger.debug(f"MediaInfo recognized container format: {track.format}")
                return True

        return False


class StaticAnalyzer(MediaFormatAnalyzer):
    """Returns a fixed answer and records every analyzed path."""

    def __init__(self, recognized: bool = False):
        self.recognized = recognized
        self.calls: List[str] = []

    def recognizes(self, path: str) -> bool:
        self.calls.append(path)
        return self.recognized
