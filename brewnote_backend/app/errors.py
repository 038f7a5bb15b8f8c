# brewnote_backend/app/errors.py
from __future__ import annotations

from typing import Optional


class BrewnoteError(Exception):
    """Base for every failure the core raises on purpose."""


class ValidationFailure(BrewnoteError, ValueError):
    """A required field is missing or invalid; nothing was written."""

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundFailure(BrewnoteError, LookupError):
    """A referenced bean/brew id does not exist."""


class UnknownMethod(NotFoundFailure):
    """Method key is not in the registry. Callers resolve it through legacy migration."""

    def __init__(self, key: object):
        super().__init__(f"unknown brew method: {key!r}")
        self.key = key


class RemoteSuggestionFailure(BrewnoteError, RuntimeError):
    """Remote suggestion call failed or returned something unusable."""


class StoreWriteFailure(BrewnoteError, RuntimeError):
    """The key/value store refused a write."""

    def __init__(self, key: str, cause: BaseException):
        super().__init__(f"store write failed for {key!r}: {cause}")
        self.key = key


__all__ = [
    "BrewnoteError",
    "ValidationFailure",
    "NotFoundFailure",
    "UnknownMethod",
    "RemoteSuggestionFailure",
    "StoreWriteFailure",
]
