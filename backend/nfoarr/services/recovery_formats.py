"""
Recovery and Checksum Format Detection

Minimal readers for the two Usenet companion formats most often mistaken for
NFO text once other signature checks are inconclusive:

    - PAR2 recovery sets: binary packets starting with ``PAR2\\0PKT``
    - SFV checksum listings: ``filename CRC32`` lines with ``;`` comments

Only recognition is needed by the classifier; the readers do not verify
packet hashes or file checksums.
"""

import re
import struct
from dataclasses import dataclass
from typing import List, Optional

PAR2_MAGIC = b"PAR2\x00PKT"
PAR2_HEADER_SIZE = 64

# Packet type signatures defined by the PAR 2.0 specification
PAR2_PACKET_TYPES = {
    b"PAR 2.0\x00Main\x00\x00\x00\x00": "main",
    b"PAR 2.0\x00FileDesc": "file_description",
    b"PAR 2.0\x00IFSC\x00\x00\x00\x00": "input_file_slice_checksum",
    b"PAR 2.0\x00RecvSlic": "recovery_slice",
    b"PAR 2.0\x00Creator\x00": "creator",
}

_SFV_LINE = re.compile(rb"^(?P<name>.+?)\s+(?P<crc>[0-9A-Fa-f]{8})\s*$")


@dataclass
class Par2Packet:
    """Header of one PAR2 packet."""
    offset: int
    length: int
    packet_type: str


@dataclass
class SfvEntry:
    """One ``filename CRC32`` line of an SFV listing."""
    file_name: str
    crc32: str


def parse_par2_packets(data: bytes, max_packets: Optional[int] = None) -> List[Par2Packet]:
    """
    Walk PAR2 packet headers from the start of the buffer.

    Parsing stops at the first invalid header, so an empty result means the
    buffer does not start with a PAR2 packet.

    Args:
        data: Raw bytes
        max_packets: Stop after this many packets (None for all)

    Returns:
        List of packet headers in file order
    """
    packets = []
    offset = 0
    total = len(data)

    while offset + PAR2_HEADER_SIZE <= total:
        if data[offset:offset + 8] != PAR2_MAGIC:
            break

        (length,) = struct.unpack_from("<Q", data, offset + 8)
        if length < PAR2_HEADER_SIZE or length % 4 != 0 or offset + length > total:
            break

        type_sig = data[offset + 48:offset + 64]
        packets.append(Par2Packet(
            offset=offset,
            length=length,
            packet_type=PAR2_PACKET_TYPES.get(type_sig, "unknown"),
        ))

        offset += length
        if max_packets is not None and len(packets) >= max_packets:
            break

    return packets


def is_par2(data: bytes) -> bool:
    """Whether the buffer starts with a valid PAR2 packet."""
    return len(parse_par2_packets(data, max_packets=1)) > 0


def parse_sfv(data: bytes) -> Optional[List[SfvEntry]]:
    """
    Parse an SFV checksum listing.

    Args:
        data: Raw bytes

    Returns:
        Parsed entries, or None if any non-comment line is not an SFV entry
        or no entry was found
    """
    entries = []

    for raw_line in data.splitlines():
        line = raw_line.strip()
        if not line or line.startswith(b";"):
            continue

        match = _SFV_LINE.match(line)
        if not match:
            return None

        entries.append(SfvEntry(
            file_name=match.group("name").decode("latin-1").strip(),
            crc32=match.group("crc").decode("ascii").upper(),
        ))

    return entries or None


def is_sfv(data: bytes) -> bool:
    """Whether the buffer is an SFV checksum listing."""
    return parse_sfv(data) is not None
