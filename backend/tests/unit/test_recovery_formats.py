"""
Unit tests for PAR2 and SFV recognition
"""

import struct

from nfoarr.services.recovery_formats import (
    PAR2_MAGIC,
    is_par2,
    is_sfv,
    parse_par2_packets,
    parse_sfv,
)


def make_par2_packet(type_sig: bytes, body: bytes = b"") -> bytes:
    """Build a PAR2 packet with zeroed hashes."""
    length = 64 + len(body)
    return PAR2_MAGIC + struct.pack("<Q", length) + b"\x00" * 16 + b"\x00" * 16 + type_sig + body


MAIN = b"PAR 2.0\x00Main\x00\x00\x00\x00"
CREATOR = b"PAR 2.0\x00Creator\x00"


class TestPar2:

    def test_parses_consecutive_packets(self):
        data = make_par2_packet(MAIN, b"\x00" * 12) + make_par2_packet(CREATOR, b"QuickPar 0.9\x00\x00\x00\x00")

        packets = parse_par2_packets(data)

        assert [p.packet_type for p in packets] == ["main", "creator"]
        assert packets[0].offset == 0
        assert packets[1].offset == packets[0].length == 76

    def test_unknown_packet_type(self):
        packets = parse_par2_packets(make_par2_packet(b"PAR 2.0\x00Vendor\x00\x00"))

        assert packets[0].packet_type == "unknown"

    def test_max_packets(self):
        data = make_par2_packet(MAIN) * 3

        assert len(parse_par2_packets(data, max_packets=2)) == 2

    def test_truncated_packet_rejected(self):
        data = make_par2_packet(MAIN, b"\x00" * 12)[:-4]

        assert parse_par2_packets(data) == []
        assert not is_par2(data)

    def test_unaligned_length_rejected(self):
        data = PAR2_MAGIC + struct.pack("<Q", 66) + b"\x00" * 58

        assert not is_par2(data)

    def test_text_is_not_par2(self, sample_nfo):
        assert not is_par2(sample_nfo)
        assert not is_par2(b"")

    def test_is_par2(self):
        assert is_par2(make_par2_packet(MAIN))


class TestSfv:

    def test_parses_entries_and_skips_comments(self):
        data = (
            b"; Generated by QuickSFV v2.36\r\n"
            b";\r\n"
            b"\r\n"
            b"Some.Movie.r00 1a2b3c4d\r\n"
            b"Some Movie With Spaces.r01   DEADBEEF  \r\n"
        )

        entries = parse_sfv(data)

        assert [(e.file_name, e.crc32) for e in entries] == [
            ("Some.Movie.r00", "1A2B3C4D"),
            ("Some Movie With Spaces.r01", "DEADBEEF"),
        ]

    def test_comments_only_is_not_sfv(self):
        assert parse_sfv(b"; nothing here\r\n") is None
        assert not is_sfv(b"")

    def test_free_text_is_not_sfv(self, sample_nfo):
        assert not is_sfv(sample_nfo)

    def test_one_bad_line_rejects_listing(self):
        data = b"movie.r00 1A2B3C4D\r\nthis line is prose\r\n"

        assert parse_sfv(data) is None

    def test_is_sfv(self):
        assert is_sfv(b"movie.rar 0BADF00D\n")
