"""
contracts/errors.py

Error taxonomy for the export pipeline.

Every error carries the label of the pipeline step that raised it, so the
runner can report "which step failed" without string parsing.
"""

from __future__ import annotations


class PostureExportError(RuntimeError):
    """Base class for all pipeline errors."""

    def __init__(self, message: str, *, step: str = "") -> None:
        super().__init__(message)
        self.step = step

    def with_step(self, step: str) -> PostureExportError:
        """Tag the error with *step* unless a more specific label is already set."""
        if not self.step:
            self.step = step
        return self

    @property
    def detail(self) -> str:
        """Message without the step tag."""
        return super().__str__()

    def __str__(self) -> str:
        base = super().__str__()
        return f"[{self.step}] {base}" if self.step else base


class PrerequisiteError(PostureExportError):
    """A required client capability (SDK package, credential type) is missing."""


class AuthenticationError(PostureExportError):
    """No valid authenticated session is available."""


class SubscriptionBindingError(PostureExportError):
    """The requested subscription could not be selected."""


class ExportIOError(PostureExportError):
    """Output directory or file could not be created, written or read back."""


class QueryError(PostureExportError):
    """A resource graph query failed or returned an unexpected shape."""


class SerializationError(PostureExportError):
    """A row could not be converted to delimited text."""


__all__ = [
    "AuthenticationError",
    "ExportIOError",
    "PostureExportError",
    "PrerequisiteError",
    "QueryError",
    "SerializationError",
    "SubscriptionBindingError",
]
