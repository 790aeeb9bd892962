"""Domain exceptions raised by services and translated to HTTP errors by routers."""

from __future__ import annotations


class NotFoundError(LookupError):
    """A requested entity does not exist (or is not visible to the caller)."""


class ConflictError(ValueError):
    """A unique key is already taken."""


class InvalidTransitionError(ValueError):
    """A status change is not allowed from the current state."""


class ConcurrentModificationError(RuntimeError):
    """Another writer changed the record since it was read."""
