"""
Credential exchange: provider session token in, shared repository credential out.

Why:
    This is the only security-relevant logic of the broker. It is kept as pure
    functions over two capability ports (identity validator, directory) so the
    whole state machine can be driven by fakes in unit tests.

Flow (per request, no server-side session):
    Validating -> Authorizing -> Completed(success | failure)

    Every failure is terminal for the request and releases no credential,
    regardless of how far the flow progressed. No retries are attempted.

Security:
    - Outbound failures (identity provider down, directory unreachable) map to
      the same failure shapes as genuine rejections so callers cannot probe
      infrastructure state.
    - Neither the provider token nor the shared credential is logged.
    - The redirect flow also checks the handoff target server-side, against
      the allow-lists of the sites the principal is authorized for.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union
import logging

from .authorization import authorize_email, authorize_repository
from .directory import DirectoryError
from .domain import Site, mask_email
from .ports import DirectoryLookup, IdentityValidator
from .redirects import is_allowed_redirect
from .tokens import TokenValidationError


logger = logging.getLogger("authbroker.identity_access")

# Fixed validity announced to the browser for the released credential (8 hours).
CREDENTIAL_TTL_SECONDS = 28800

MISSING_INPUT = "missing_input"
INVALID_TOKEN = "invalid_token"
UNAUTHORIZED = "unauthorized"
REDIRECT_NOT_ALLOWED = "redirect_not_allowed"

_STATUS_BY_REASON = {
    MISSING_INPUT: 400,
    INVALID_TOKEN: 401,
    UNAUTHORIZED: 401,
    REDIRECT_NOT_ALLOWED: 400,
}


@dataclass(frozen=True)
class ExchangeSuccess:
    credential: str
    expires_in: int = CREDENTIAL_TTL_SECONDS


@dataclass(frozen=True)
class ExchangeFailure:
    reason: str
    message: str

    @property
    def status_code(self) -> int:
        return _STATUS_BY_REASON.get(self.reason, 401)


ExchangeResult = Union[ExchangeSuccess, ExchangeFailure]


def _validate(validator: IdentityValidator, token: str):
    try:
        return validator.validate(token)
    except TokenValidationError as exc:
        logger.info("Token validation failed: %s", exc.code)
        return None


def _handoff_origins(global_origins: Iterable[str], sites: Iterable[Site | None]) -> set[str]:
    allowed = set(global_origins)
    for s in sites:
        if s is not None:
            allowed.update(s.allowed_redirect_origins)
    return allowed


def exchange_for_redirect(
    token: str | None,
    *,
    validator: IdentityValidator,
    directory: DirectoryLookup,
    credential: str,
    site: str | None = None,
    require_site: bool = False,
    redirect_uri: str | None = None,
    global_origins: Iterable[str] = (),
) -> ExchangeResult:
    """Run the browser-facing exchange behind `POST /callback/validate`.

    Parameters
    ----------
    token:
        Provider session token taken from the browser.
    site:
        Optional site slug carried through the sign-in flow. When present the
        server resolves the site's repository from the directory and binds the
        principal to it; otherwise directory membership alone is checked.
    require_site:
        Reject requests that do not name a site (strict deployments).
    redirect_uri:
        Where the browser will hand the credential. Checked against
        `global_origins` plus the allow-lists of the bound site, or of every
        site the principal belongs to when no site is named. An empty union
        leaves the target unrestricted.
    """
    if not token:
        return ExchangeFailure(MISSING_INPUT, "Missing access_token")
    if require_site and not site:
        return ExchangeFailure(MISSING_INPUT, "Missing access_token or site")

    identity = _validate(validator, token)
    if identity is None:
        return ExchangeFailure(INVALID_TOKEN, "Invalid or expired token")

    resolved: Site | None = None
    if site:
        try:
            resolved = directory.find_site_by_slug(site)
        except DirectoryError as exc:
            logger.warning("Site lookup failed during exchange: %s", exc.code)
            resolved = None
        if resolved is None:
            logger.info("Exchange denied for %s: unknown site", mask_email(identity.email))
            return ExchangeFailure(UNAUTHORIZED, "User not authorized")
        decision = authorize_repository(directory, identity.email, resolved.github_repo)
    else:
        decision = authorize_email(directory, identity.email)

    if not decision.allowed:
        logger.info("Exchange denied for %s: %s", mask_email(identity.email), decision.reason)
        return ExchangeFailure(UNAUTHORIZED, "User not authorized")

    sites = [resolved] if resolved is not None else [p.site for p in decision.principals]
    if not is_allowed_redirect(redirect_uri, _handoff_origins(global_origins, sites)):
        logger.warning("Exchange denied for %s: redirect_uri not allowed", mask_email(identity.email))
        return ExchangeFailure(REDIRECT_NOT_ALLOWED, "redirect_uri not allowed")

    logger.info("Credential released to %s (redirect flow)", mask_email(identity.email))
    return ExchangeSuccess(credential=credential, expires_in=CREDENTIAL_TTL_SECONDS)


def exchange_direct(
    token: str | None,
    repository: str | None,
    *,
    validator: IdentityValidator,
    directory: DirectoryLookup,
    credential: str,
) -> ExchangeResult:
    """Run the programmatic exchange behind `POST /auth`.

    The caller names the target repository up front; the principal must be
    bound to it. "No record" and "wrong repository" are reported identically.
    """
    if not token or not repository:
        return ExchangeFailure(MISSING_INPUT, "Missing token or repo")

    identity = _validate(validator, token)
    if identity is None:
        return ExchangeFailure(INVALID_TOKEN, "Invalid or expired token")

    decision = authorize_repository(directory, identity.email, repository)
    if not decision.allowed:
        logger.info("Exchange denied for %s: %s", mask_email(identity.email), decision.reason)
        return ExchangeFailure(UNAUTHORIZED, "Unauthorized for this repository")

    logger.info("Credential released to %s (direct flow)", mask_email(identity.email))
    return ExchangeSuccess(credential=credential)


__all__ = [
    "CREDENTIAL_TTL_SECONDS",
    "ExchangeFailure",
    "ExchangeResult",
    "ExchangeSuccess",
    "exchange_direct",
    "exchange_for_redirect",
]
