"""
Errors raised by the bulk QR card pipeline.

Everything derives from BatchError so callers (CLI, Streamlit page) can show a
single message for any failed run.
"""

from typing import Optional


class BatchError(Exception):
    """Base class for every failure that aborts a batch."""


class AssetLoadError(BatchError):
    """Brand mark could not be fetched or decoded."""


class AttendeeSourceError(BatchError):
    """Attendee list could not be fetched or parsed."""


class CodeEncodingError(BatchError):
    """A record's identifier could not be encoded as a QR code."""

    def __init__(self, message: str, record_id: Optional[str] = None):
        super().__init__(message)
        self.record_id = record_id


class CompositionError(BatchError):
    """Unexpected drawing/encoding failure while composing one card."""

    def __init__(self, message: str, record_id: Optional[str] = None):
        super().__init__(message)
        self.record_id = record_id


class BatchFailedError(BatchError):
    """
    A batch was aborted because of one record.

    Attributes:
        record_id: id of the offending record (None for batch-level problems)
        attempted: number of records the batch would have processed
        completed: number of cards composed before the failure
        cause: the underlying error
    """

    def __init__(
        self,
        message: str,
        *,
        record_id: Optional[str] = None,
        attempted: int = 0,
        completed: int = 0,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.record_id = record_id
        self.attempted = attempted
        self.completed = completed
        self.cause = cause


class BatchCancelledError(BatchError):
    """The caller asked to stop between two records."""

    def __init__(self, message: str, completed: int = 0):
        super().__init__(message)
        self.completed = completed
