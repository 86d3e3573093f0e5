"""
NFO Retry Policy for Nfoarr

Maps the administrator-configured retry count onto the ``nfostatus`` integer
range and decides which releases are still eligible for another fetch.

Status range:
    1      FOUND
    0      NONFO
    -1     UNPROCESSED (ceiling of the retry range)
    -2..-8 attempted N times, eligible while >= floor
    -9     FAILED (quarantined)

The floor is ``-(max_retries + 1)`` clamped to -8, so quarantine always
happens by the 8th failure whatever the configuration says. Releases that
fall strictly below the floor (but are not FAILED yet) are swept into
quarantine by the pipeline after each batch.

Usage Example:
    >>> config = RetryConfig(max_retries=5)
    >>> config.floor
    -6
    >>> is_eligible(-6, config.floor)
    True
    >>> decrement(-6)
    -7
"""

from dataclasses import dataclass
from typing import Optional, Union

from ..models.release import NfoStatus, RETRY_FLOOR_LIMIT

BYTES_PER_MB = 1048576
BYTES_PER_GB = 1073741824

TERMINAL_STATUSES = (NfoStatus.FOUND, NfoStatus.NONFO, NfoStatus.FAILED)


def compute_floor(max_retries: int) -> int:
    """
    Compute the lowest status still eligible for a fetch attempt.

    Args:
        max_retries: Configured retry count (negative disables retries)

    Returns:
        Retry floor, never below RETRY_FLOOR_LIMIT
    """
    floor = -(max_retries + 1) if max_retries >= 0 else int(NfoStatus.UNPROCESSED)
    return max(floor, RETRY_FLOOR_LIMIT)


def is_eligible(status: int, floor: int) -> bool:
    """Whether a release with this status may be fetched again."""
    return floor <= status <= NfoStatus.UNPROCESSED


def is_quarantine_candidate(status: int, floor: int) -> bool:
    """Whether a release has exhausted its retries but is not FAILED yet."""
    return NfoStatus.FAILED < status < floor


def decrement(status: int) -> int:
    """
    Record one more failed attempt.

    Args:
        status: Current status, must be UNPROCESSED or inside the retry range

    Returns:
        status - 1, never below FAILED

    Raises:
        ValueError: If status is terminal (FOUND, NONFO or FAILED)
    """
    if status in TERMINAL_STATUSES or status > NfoStatus.UNPROCESSED:
        raise ValueError(f"Cannot decrement terminal NFO status {status}")
    return max(status - 1, int(NfoStatus.FAILED))


@dataclass(frozen=True)
class RetryConfig:
    """Retry configuration, built once per pipeline instance."""

    max_retries: int = 5

    @property
    def floor(self) -> int:
        return compute_floor(self.max_retries)

    @classmethod
    def from_settings(cls, settings) -> 'RetryConfig':
        """Build from the Settings row (None falls back to the default)."""
        value = settings.max_nfo_retries
        return cls(max_retries=int(value) if value is not None else cls.max_retries)


@dataclass(frozen=True)
class SizeWindow:
    """
    Release size bounds for eligibility, in bytes.

    Bounds are exclusive; None means unbounded. Releases outside the window
    are never queried and never lose retries.
    """

    min_size_bytes: Optional[int] = None
    max_size_bytes: Optional[int] = None

    def contains(self, size: int) -> bool:
        if self.min_size_bytes is not None and not size > self.min_size_bytes:
            return False
        if self.max_size_bytes is not None and not size < self.max_size_bytes:
            return False
        return True

    @classmethod
    def from_settings(cls, settings) -> 'SizeWindow':
        """
        Build from the Settings row.

        ``min_size_to_process_nfo`` is in megabytes and ``max_size_to_process_nfo``
        in gigabytes; zero or negative disables the bound.
        """
        min_mb = int(settings.min_size_to_process_nfo or 0)
        max_gb = int(settings.max_size_to_process_nfo or 0)
        return cls(
            min_size_bytes=min_mb * BYTES_PER_MB if min_mb > 0 else None,
            max_size_bytes=max_gb * BYTES_PER_GB if max_gb > 0 else None,
        )


# ============================================================================
# Tagged status variant
# ============================================================================

@dataclass(frozen=True)
class Unprocessed:
    def to_status(self) -> int:
        return int(NfoStatus.UNPROCESSED)


@dataclass(frozen=True)
class AttemptsRemaining:
    """Attempted ``attempts`` times; ``remaining`` further attempts allowed before quarantine."""

    attempts: int
    remaining: int

    def to_status(self) -> int:
        return int(NfoStatus.UNPROCESSED) - self.attempts


@dataclass(frozen=True)
class Found:
    def to_status(self) -> int:
        return int(NfoStatus.FOUND)


@dataclass(frozen=True)
class NoNfo:
    def to_status(self) -> int:
        return int(NfoStatus.NONFO)


@dataclass(frozen=True)
class Quarantined:
    """
    Retries exhausted. ``pending_sweep`` is True while the stored status is
    still above FAILED and waits for the quarantine sweep.
    """

    pending_sweep: bool = False
    status: int = int(NfoStatus.FAILED)

    def to_status(self) -> int:
        return self.status


NfoState = Union[Unprocessed, AttemptsRemaining, Found, NoNfo, Quarantined]


def state_from_status(status: int, floor: int) -> NfoState:
    """
    Decode a stored ``nfostatus`` into its tagged form.

    Args:
        status: Stored integer status
        floor: Retry floor from RetryConfig

    Returns:
        One of Unprocessed, AttemptsRemaining, Found, NoNfo, Quarantined
    """
    if status == NfoStatus.FOUND:
        return Found()
    if status == NfoStatus.NONFO:
        return NoNfo()
    if status == NfoStatus.UNPROCESSED:
        return Unprocessed()
    if status <= NfoStatus.FAILED:
        return Quarantined()
    if status < floor:
        return Quarantined(pending_sweep=True, status=status)
    if status < NfoStatus.UNPROCESSED:
        return AttemptsRemaining(
            attempts=int(NfoStatus.UNPROCESSED) - status,
            remaining=status - floor + 1,
        )
    raise ValueError(f"Unknown NFO status {status}")
