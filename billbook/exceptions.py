"""Exceptions raised by the bill book."""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError


class BillbookError(Exception):
    """Base exception for bill book errors."""


class ValidationError(BillbookError, ValueError):
    """Raised when a bill or one of its inputs is rejected before persistence."""

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> ValidationError:
        messages = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error["loc"])
            message = error["msg"].removeprefix("Value error, ")
            messages.append(f"{location}: {message}" if location else message)
        return cls("; ".join(messages))


class StorageError(BillbookError):
    """Raised when the underlying database is unavailable or rejects an operation."""
