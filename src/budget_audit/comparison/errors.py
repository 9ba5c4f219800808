"""Typed failures raised by the comparison core and its document repository."""

from __future__ import annotations


class ComparisonError(Exception):
    """Base failure carrying a machine-readable ``kind`` plus a message."""

    kind = "COMPARISON_ERROR"

    def __init__(self, message: str, kind: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class ValidationError(ComparisonError, ValueError):
    """A raw document is malformed or lacks a required collection."""

    kind = "VALIDATION_ERROR"


class NotFoundError(ComparisonError, LookupError):
    """A requested source document does not exist."""

    kind = "NOT_FOUND"
