"""
NFO Classifier Service for Nfoarr

This module decides whether a byte blob fetched from a release is a genuine
NFO (plain-text release description) or a binary file that merely sits where
an NFO was expected.

Decision Sequence (first conclusive signal wins):
    1. Size gate: 11 < len(blob) < 65535
    2. Signature exclusion: XML prolog, NZB marker, RIFF, RAR/PAR headers,
       JFIF/Matroska/ISO-BMFF/ID3 markers near the start, SFV generator comments
    3. Signature probe on a temporary file:
       - text encodings -> NFO
       - known binary families or control bytes in the blob -> not NFO
    4. Deep-format fallback when the probe is inconclusive:
       media container -> PAR2 recovery set -> SFV listing; if nothing
       claims the blob it is treated as text
    5. Anything else -> not NFO

The temporary probe file is removed on every exit path.

Usage Example:
    >>> from nfoarr.services.nfo_classifier import get_default_classifier, NfoVerdict
    >>>
    >>> classifier = get_default_classifier(tmp_dir="/tmp/nfoarr")
    >>> verdict = classifier.classify(blob, guid="3fa85f64")
    >>> if verdict is NfoVerdict.NFO:
    ...     store(blob)
"""

import enum
import logging
import os
import re
import tempfile
from typing import Optional

from ..config import Config
from .exceptions import ClassificationError
from .recovery_formats import is_par2, is_sfv
from .signature_probers import (
    SignatureProber,
    MediaFormatAnalyzer,
    FileCommandProber,
    PyMediaInfoAnalyzer,
)

logger = logging.getLogger(__name__)

# Exclusive size bounds: 12 bytes are needed for header checks, larger blobs
# are implausible for a text file
MIN_NFO_SIZE = 11
MAX_NFO_SIZE = 65535

_BINARY_SIGNATURES = re.compile(
    rb'\A(\s*<\?xml|=newz\[NZB\]=|RIFF|\s*[RP]AR|.{0,10}(JFIF|matroska|ftyp|ID3))'
    rb'|;\s*Generated\s*by.*SF\w',
    re.IGNORECASE
)

_TEXT_DESCRIPTION = re.compile(r'(ASCII|ISO-8859|UTF-(8|16|32).*?)\s*text')

_BINARY_DESCRIPTION = re.compile(r'^(JPE?G|Parity|PNG|RAR|XML|(7-)?[Zz]ip)')

_CONTROL_BYTES = re.compile(rb'[\x00-\x08\x0B\x0E\x0F\x12-\x1F]')

_GUID_UNSAFE = re.compile(r'[^A-Za-z0-9_-]')


class NfoVerdict(enum.Enum):
    """Outcome of classifying a blob."""
    NFO = "nfo"
    NOT_NFO = "not_nfo"


class NfoClassifier:
    """
    Binary/text disambiguation for candidate NFO payloads.

    The classifier depends only on the SignatureProber and MediaFormatAnalyzer
    capabilities, so the external ``file`` tool or a test double can
    be used interchangeably.
    """

    def __init__(
        self,
        prober: SignatureProber,
        analyzer: MediaFormatAnalyzer,
        tmp_dir: Optional[str] = None
    ):
        """
        Initialize NfoClassifier.

        Args:
            prober: Signature probe used in step 3
            analyzer: Media format analyzer used in step 4
            tmp_dir: Directory for temporary probe files (default: Config.NFO_TMP_PATH)
        """
        self.prober = prober
        self.analyzer = analyzer
        self.tmp_dir = tmp_dir or Config.NFO_TMP_PATH

    def classify(self, blob: Optional[bytes], guid: str = "") -> NfoVerdict:
        """
        Classify a candidate NFO blob.

        Args:
            blob: Raw bytes (None or empty is never an NFO)
            guid: Release guid, used to name the temporary probe file

        Returns:
            NfoVerdict.NFO or NfoVerdict.NOT_NFO

        Raises:
            ClassificationError: If the temporary probe step fails
        """
        if not blob:
            return NfoVerdict.NOT_NFO

        size = len(blob)
        if not MIN_NFO_SIZE < size < MAX_NFO_SIZE:
            logger.debug(f"Rejected {size} byte blob: outside NFO size bounds")
            return NfoVerdict.NOT_NFO

        if _BINARY_SIGNATURES.search(blob):
            logger.debug("Rejected blob: known binary signature")
            return NfoVerdict.NOT_NFO

        probe_path = self._write_probe_file(blob, guid)
        try:
            return self._probe(blob, probe_path)
        finally:
            self._remove_probe_file(probe_path)

    def is_nfo(self, blob: Optional[bytes], guid: str = "") -> bool:
        """Boolean form of classify()."""
        return self.classify(blob, guid) is NfoVerdict.NFO

    def _probe(self, blob: bytes, probe_path: str) -> NfoVerdict:
        """Steps 3 to 5 of the decision sequence."""
        description = self.prober.describe(probe_path)

        if description:
            if _TEXT_DESCRIPTION.search(description):
                logger.debug(f"Probe reports text: {description}")
                return NfoVerdict.NFO

            if _BINARY_DESCRIPTION.match(description) or _CONTROL_BYTES.search(blob):
                logger.debug(f"Probe reports binary: {description}")
                return NfoVerdict.NOT_NFO

        # Probe inconclusive: look for anything else that claims the blob
        if self.analyzer.recognizes(probe_path):
            logger.debug("Media analyzer recognized the blob")
            return NfoVerdict.NOT_NFO

        if is_par2(blob):
            logger.debug("Blob is a PAR2 recovery set")
            return NfoVerdict.NOT_NFO

        if is_sfv(blob):
            logger.debug("Blob is an SFV checksum listing")
            return NfoVerdict.NOT_NFO

        return NfoVerdict.NFO

    def _write_probe_file(self, blob: bytes, guid: str) -> str:
        """Write the blob to a uniquely named temp file and return its path."""
        prefix = (_GUID_UNSAFE.sub('', guid)[:40] or 'nfo') + '-'

        try:
            os.makedirs(self.tmp_dir, exist_ok=True)
            fd, probe_path = tempfile.mkstemp(prefix=prefix, suffix='.nfo', dir=self.tmp_dir)
        except OSError as e:
            raise ClassificationError(f"Could not create probe file in {self.tmp_dir}: {e}", original_exception=e) from e

        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(blob)
        except OSError as e:
            self._remove_probe_file(probe_path)
            raise ClassificationError(f"Could not write probe file {probe_path}: {e}", original_exception=e) from e

        return probe_path

    @staticmethod
    def _remove_probe_file(probe_path: str) -> None:
        try:
            os.unlink(probe_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"⚠ Could not remove probe file {probe_path}: {e}")


def get_default_classifier(tmp_dir: Optional[str] = None) -> NfoClassifier:
    """
    Build a classifier backed by the ``file`` tool and MediaInfo.

    Args:
        tmp_dir: Directory for temporary probe files

    Returns:
        NfoClassifier instance
    """
    return NfoClassifier(FileCommandProber(), PyMediaInfoAnalyzer(), tmp_dir=tmp_dir)
