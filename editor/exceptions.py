"""Exceptions for editor operations.

Match outcomes (not found, ambiguous, empty match) are reported as skipped
operations, not raised. Only request- and batch-level failures raise.
"""


class EditorError(Exception):
    """Base exception for all editor operations."""


class InvalidRequestError(EditorError):
    """Raised when a request is missing identifiers or carries a malformed batch."""


class UnsupportedPatchError(EditorError):
    """Raised when a batch contains a patch kind with no text transformation."""
