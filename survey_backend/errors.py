"""
Error types raised by the submissions backend.
"""

from __future__ import annotations


class SubmissionError(Exception):
    """Base class for failures reported back to the caller as a status."""


class PayloadParseError(SubmissionError):
    """The ingest body could not be decoded into a submission payload."""


class StoreAccessError(SubmissionError):
    """The underlying row store failed to read or write."""


class UnknownActionError(SubmissionError):
    """Retrieve was called with an action it does not recognize."""
