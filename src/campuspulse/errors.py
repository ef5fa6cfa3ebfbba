"""Error types raised by the recommendation core."""

from __future__ import annotations

UPSTREAM_TRANSPORT = "transport"
UPSTREAM_UNPARSABLE = "unparsable"


class CampusPulseError(Exception):
    """Base class for recommendation core errors."""


class StudentNotFoundError(CampusPulseError):
    def __init__(self, student_id: str | int) -> None:
        super().__init__(f"student_id {student_id} has no profile")
        self.student_id = student_id


class UpstreamError(CampusPulseError):
    """The text-generation service failed or returned unusable output."""

    def __init__(self, reason: str, message: str = "") -> None:
        if reason not in {UPSTREAM_TRANSPORT, UPSTREAM_UNPARSABLE}:
            raise ValueError(f"Unknown upstream error reason: {reason}")
        super().__init__(message or reason)
        self.reason = reason


class StoreError(CampusPulseError):
    def __init__(self, table: str, message: str) -> None:
        super().__init__(f"{table}: {message}")
        self.table = table
