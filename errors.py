"""Error kinds surfaced by the store, repositories and auth service.

The HTTP layer maps each kind to one status code; nothing below it ever lets
a raw sqlite error escape.
"""

from __future__ import annotations


class TodontError(Exception):
    """Base class for every error the core raises on purpose."""


class ValidationError(TodontError):
    """Bad input shape or value. The caller can fix it and try again."""


class DuplicateAccount(TodontError):
    """The username is already registered."""


class NotFound(TodontError):
    """Lookup miss."""


class StoreUnavailable(TodontError):
    """The database could not be opened or a statement failed."""


class UniquenessViolation(StoreUnavailable):
    """A row collided with a UNIQUE constraint.

    Subclasses StoreUnavailable so callers that do not care about the
    difference still treat it as a store failure.
    """


class ServiceNotReady(TodontError):
    """The app is still starting up (or already closed). Retry later."""
