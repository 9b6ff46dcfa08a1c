"""
Capability ports consumed by the credential exchange.

Keep these small and framework-agnostic so tests can supply simple fakes
without any network dependency.
"""
from __future__ import annotations

from typing import Protocol

from .domain import Principal, Site, VerifiedIdentity


class IdentityValidator(Protocol):
    """Validate an opaque provider session token.

    Intent:
        Return the verified identity (non-empty email) attested by the
        identity provider.

    Raises:
        TokenValidationError for any failure (missing, expired, malformed,
        rejected, provider unreachable).
    """

    def validate(self, token: str) -> VerifiedIdentity: ...


class DirectoryLookup(Protocol):
    """Read-only lookups against the site/principal directory.

    Raises:
        DirectoryError when the store cannot be queried. "Not found" is not an
        error: it is an empty list or None.
    """

    def find_principals_by_email(self, email: str) -> list[Principal]: ...

    def find_site_by_slug(self, slug: str) -> Site | None: ...


__all__ = ["DirectoryLookup", "IdentityValidator"]
