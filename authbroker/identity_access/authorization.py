"""
Authorization gate: is a verified email entitled to the shared credential?

Two modes:
    - `authorize_email`: any directory record for the email is sufficient.
    - `authorize_repository`: some record for the email must belong to a site
      whose repository equals the requested one (exact, case-sensitive).

Both fail closed. A directory outage, a principal without a resolvable site or
any mismatch is a denial, never an allow.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging

from .directory import DirectoryError
from .domain import Principal, mask_email
from .ports import DirectoryLookup


logger = logging.getLogger("authbroker.identity_access")


@dataclass(frozen=True)
class AuthorizationDecision:
    allowed: bool
    reason: str
    principal: Principal | None = None
    # every record found for the email; lets callers collect per-site settings
    principals: tuple[Principal, ...] = ()


DENY_NOT_FOUND = "not_found"
DENY_REPO_MISMATCH = "repository_mismatch"
DENY_DIRECTORY_ERROR = "directory_error"


def _lookup(directory: DirectoryLookup, email: str) -> list[Principal] | AuthorizationDecision:
    try:
        return list(directory.find_principals_by_email(email) or [])
    except DirectoryError as exc:
        logger.warning("Authorization denied for %s: directory error %s", mask_email(email), exc.code)
        return AuthorizationDecision(allowed=False, reason=DENY_DIRECTORY_ERROR)


def authorize_email(directory: DirectoryLookup, email: str) -> AuthorizationDecision:
    """Allow when the email has at least one directory record (site and role unchecked)."""
    if not email:
        return AuthorizationDecision(allowed=False, reason=DENY_NOT_FOUND)
    found = _lookup(directory, email)
    if isinstance(found, AuthorizationDecision):
        return found
    if not found:
        return AuthorizationDecision(allowed=False, reason=DENY_NOT_FOUND)
    return AuthorizationDecision(allowed=True, reason="member", principal=found[0], principals=tuple(found))


def authorize_repository(directory: DirectoryLookup, email: str, repository: str) -> AuthorizationDecision:
    """Allow when one of the email's sites is bound to exactly `repository`.

    The repository identifier is an opaque string: no case folding, trimming
    or `owner/repo` parsing. Every record of a multi-site principal is
    considered.
    """
    if not email or not repository:
        return AuthorizationDecision(allowed=False, reason=DENY_NOT_FOUND)
    found = _lookup(directory, email)
    if isinstance(found, AuthorizationDecision):
        return found
    if not found:
        return AuthorizationDecision(allowed=False, reason=DENY_NOT_FOUND)
    for principal in found:
        if principal.site is not None and principal.site.github_repo == repository:
            return AuthorizationDecision(
                allowed=True, reason="repository_match", principal=principal, principals=tuple(found)
            )
    return AuthorizationDecision(allowed=False, reason=DENY_REPO_MISMATCH)


__all__ = ["AuthorizationDecision", "authorize_email", "authorize_repository"]
