"""Exception types raised by the matching, coherence and clustering engines.

Batch operations never raise for a single bad item; they collect the
failure into a :class:`content_intel.batch.BatchResult` instead.
"""

from __future__ import annotations


class ContentIntelError(Exception):
    """Base class for every error raised by this package."""


class InvalidInputError(ContentIntelError, ValueError):
    """A required identifier is missing or a parameter is malformed."""


class NotFoundError(ContentIntelError, LookupError):
    """A referenced article, cluster or place does not exist."""

    def __init__(self, kind: str, ident: object) -> None:
        self.kind = kind
        self.ident = ident
        super().__init__(f"{kind} {ident!r} not found")


class CollaboratorUnavailableError(ContentIntelError):
    """A gazetteer, content or persistence call failed with no usable fallback."""

    def __init__(self, collaborator: str, message: str) -> None:
        self.collaborator = collaborator
        super().__init__(f"{collaborator} unavailable: {message}")
