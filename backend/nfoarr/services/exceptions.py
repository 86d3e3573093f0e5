"""
Typed Exception Hierarchy for Nfoarr

This module defines the exceptions raised while acquiring and classifying
NFO payloads. The pipeline recovers from some of them locally and lets the
others abort the batch.

Exception Hierarchy:
    NfoPipelineError (base)
    ├── NfoFetchError (retryable, converted into a retry decrement)
    ├── ClassificationError (retryable, treated like a fetch failure)
    └── PersistenceError (fatal for the current batch)

Invalid release references are not exceptions: ingest_alternate() returns
False for them.
"""

import logging

logger = logging.getLogger(__name__)


# ============================================================================
# Exception Hierarchy
# ============================================================================

class NfoPipelineError(Exception):
    """
    Base exception for NFO pipeline errors.

    Attributes:
        message: Human-readable error description
        release_id: Release being processed when the error occurred, if any
    """

    def __init__(self, message: str, release_id: int = None):
        """
        Initialize NfoPipelineError.

        Args:
            message: Human-readable error description
            release_id: Release being processed, if applicable
        """
        super().__init__(message)
        self.message = message
        self.release_id = release_id

    def __str__(self) -> str:
        if self.release_id is not None:
            return f"{self.__class__.__name__} (release {self.release_id}): {self.message}"
        return f"{self.__class__.__name__}: {self.message}"


class NfoFetchError(NfoPipelineError):
    """
    The message fetcher could not obtain bytes for this attempt.

    Raised by NfoFetcher implementations for transport-level failures
    (timeouts, dropped connections, missing articles on the server). A
    release without an embedded NFO is not an error: fetchers return None.
    """

    def __init__(self, message: str, release_id: int = None, original_exception: Exception = None):
        """
        Initialize NfoFetchError.

        Args:
            message: Human-readable error description
            release_id: Release being fetched
            original_exception: Underlying transport exception
        """
        super().__init__(message, release_id=release_id)
        self.original_exception = original_exception


class ClassificationError(NfoPipelineError):
    """
    The signature probe itself failed.

    Raised when the temporary probe file cannot be written or the file-type
    identification tool is missing, times out or crashes. The temporary file
    is always removed before this propagates.
    """

    def __init__(self, message: str, release_id: int = None, original_exception: Exception = None):
        super().__init__(message, release_id=release_id)
        self.original_exception = original_exception


class PersistenceError(NfoPipelineError):
    """
    The release store rejected a read or write.

    Aborts the remaining releases of the batch. Transitions committed before
    the failure are kept.
    """

    def __init__(self, message: str, release_id: int = None, original_exception: Exception = None):
        super().__init__(message, release_id=release_id)
        self.original_exception = original_exception


# ============================================================================
# Convenience Functions
# ============================================================================

def is_retryable_error(exception: Exception) -> bool:
    """
    Check if an exception only costs the release one retry.

    Args:
        exception: Exception to check

    Returns:
        True if the pipeline should decrement and continue, False otherwise
    """
    return isinstance(exception, (NfoFetchError, ClassificationError))
