"""
Unit tests for signature probers and media analyzers

External tools and libraries are mocked:
- subprocess.run for the ``file`` command
- pymediainfo.MediaInfo for media container detection
"""

import subprocess
from unittest.mock import Mock, patch

import pytest

from nfoarr.services.exceptions import ClassificationError
from nfoarr.services.signature_probers import (
    FileCommandProber,
    PyMediaInfoAnalyzer,
    StaticAnalyzer,
    StaticProber,
)


def completed(returncode=0, stdout=b"", stderr=b""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


def track(track_type, fmt=None):
    return Mock(track_type=track_type, format=fmt)


# ============================================================================
# FileCommandProber
# ============================================================================

class TestFileCommandProber:

    def test_runs_file_in_brief_mode(self):
        prober = FileCommandProber(command="file", timeout=5)

        with patch("nfoarr.services.signature_probers.subprocess.run",
                   return_value=completed(stdout=b"ASCII text\n")) as mock_run:
            description = prober.describe("/tmp/x.nfo")

        assert description == "ASCII text"
        args, kwargs = mock_run.call_args
        assert args[0] == ["file", "-b", "/tmp/x.nfo"]
        assert kwargs["timeout"] == 5

    def test_missing_tool(self):
        prober = FileCommandProber(command="no-such-file-tool")

        with patch("nfoarr.services.signature_probers.subprocess.run", side_effect=FileNotFoundError()):
            with pytest.raises(ClassificationError, match="not found"):
                prober.describe("/tmp/x.nfo")

    def test_timeout(self):
        prober = FileCommandProber(timeout=1)
        error = subprocess.TimeoutExpired(cmd="file", timeout=1)

        with patch("nfoarr.services.signature_probers.subprocess.run", side_effect=error):
            with pytest.raises(ClassificationError, match="timed out") as exc_info:
                prober.describe("/tmp/x.nfo")

        assert exc_info.value.original_exception is error

    def test_nonzero_exit(self):
        prober = FileCommandProber()

        with patch("nfoarr.services.signature_probers.subprocess.run",
                   return_value=completed(returncode=1, stderr=b"cannot open")):
            with pytest.raises(ClassificationError, match="cannot open"):
                prober.describe("/tmp/x.nfo")

    def test_defaults_from_config(self):
        with patch("nfoarr.services.signature_probers.Config") as mock_config:
            mock_config.FILE_COMMAND = "/usr/local/bin/file"
            mock_config.PROBE_TIMEOUT = 42
            prober = FileCommandProber()

        assert prober.command == "/usr/local/bin/file"
        assert prober.timeout == 42


# ============================================================================
# PyMediaInfoAnalyzer
# ============================================================================

class TestPyMediaInfoAnalyzer:

    @pytest.fixture(autouse=True)
    def mediainfo_available(self):
        with patch("pymediainfo.MediaInfo.can_parse", return_value=True):
            yield

    def test_video_track_recognized(self):
        info = Mock(tracks=[track("General"), track("Video", "AVC")])

        with patch("pymediainfo.MediaInfo.parse", return_value=info):
            assert PyMediaInfoAnalyzer().recognizes("/tmp/x.nfo") is True

    def test_general_format_recognized(self):
        info = Mock(tracks=[track("General", "Matroska")])

        with patch("pymediainfo.MediaInfo.parse", return_value=info):
            assert PyMediaInfoAnalyzer().recognizes("/tmp/x.nfo") is True

    def test_unrecognized(self):
        info = Mock(tracks=[track("General", None)])

        with patch("pymediainfo.MediaInfo.parse", return_value=info):
            assert PyMediaInfoAnalyzer().recognizes("/tmp/x.nfo") is False

    def test_parse_failure(self):
        with patch("pymediainfo.MediaInfo.parse", side_effect=RuntimeError("bad file")):
            with pytest.raises(ClassificationError, match="MediaInfo analysis failed"):
                PyMediaInfoAnalyzer().recognizes("/tmp/x.nfo")

    def test_library_unavailable(self):
        analyzer = PyMediaInfoAnalyzer()

        with patch("pymediainfo.MediaInfo.can_parse", return_value=False):
            with pytest.raises(ClassificationError, match="not available"):
                analyzer.recognizes("/tmp/x.nfo")

    def test_availability_cached(self):
        analyzer = PyMediaInfoAnalyzer()
        info = Mock(tracks=[])

        with patch("pymediainfo.MediaInfo.can_parse", return_value=True) as mock_can_parse, \
                patch("pymediainfo.MediaInfo.parse", return_value=info):
            analyzer.recognizes("/tmp/a.nfo")
            analyzer.recognizes("/tmp/b.nfo")

        assert mock_can_parse.call_count == 1


# ============================================================================
# Static doubles
# ============================================================================

class TestStaticDoubles:

    def test_static_prober_records_calls(self):
        prober = StaticProber("data")

        assert prober.describe("/a") == "data"
        assert prober.calls == ["/a"]

    def test_static_analyzer_records_calls(self):
        analyzer = StaticAnalyzer(recognized=True)

        assert analyzer.recognizes("/a") is True
        assert analyzer.calls == ["/a"]
