"""Exception types raised by Pocket Pulse."""

from __future__ import annotations

from typing import Dict, Optional


class PocketPulseError(Exception):
    """Base class for all Pocket Pulse errors."""


class ValidationError(PocketPulseError):
    """Raised when user-supplied data fails validation.

    ``errors`` maps field names to user-facing messages.
    """

    def __init__(self, errors: Optional[Dict[str, str]] = None, message: Optional[str] = None):
        self.errors: Dict[str, str] = dict(errors or {})
        if message is None:
            message = '; '.join(f"{field}: {msg}" for field, msg in self.errors.items()) or 'invalid input'
        super().__init__(message)


class NotFoundError(PocketPulseError, KeyError):
    """Raised when a document id does not exist in a collection."""

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"{collection}/{doc_id} not found")

    def __str__(self) -> str:
        return f"{self.collection}/{self.doc_id} not found"
