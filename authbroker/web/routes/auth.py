"""
Authentication-related FastAPI routes (router-only module).

Why:
    Keep the sign-in surface and both credential exchange endpoints in one
    router. The exchange itself lives in `identity_access.exchange`; this
    module only parses requests, resolves collaborators and maps results to
    HTTP.

Notes:
    - Collaborator calls are blocking (requests, supabase client) and run in a
      worker thread so a slow provider stalls only its own request.
    - Responses carrying or refusing a credential are `private, no-store`.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse

from authbroker.identity_access.directory import DirectoryError
from authbroker.identity_access.domain import Site, SiteBranding
from authbroker.identity_access.exchange import (
    REDIRECT_NOT_ALLOWED,
    ExchangeFailure,
    ExchangeResult,
    ExchangeSuccess,
    exchange_direct,
    exchange_for_redirect,
)
from authbroker.identity_access.redirects import is_allowed_redirect
from authbroker.web import wiring
from authbroker.web.components import AuthPage, CallbackPage


auth_router = APIRouter(tags=["Auth"])  # explicit paths, no prefix (align with OpenAPI)
logger = logging.getLogger("authbroker.web.auth")


def _private_no_store() -> dict:
    return {"Cache-Control": "private, no-store"}


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=_private_no_store())


async def _read_json_body(request: Request) -> dict:
    """Return the JSON object body, or {} for empty/malformed/non-object bodies."""
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _str_field(body: dict, key: str) -> str | None:
    # Values are passed on verbatim; repository identifiers are exact-match.
    value = body.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return None


async def _lookup_site(slug: str | None) -> Site | None:
    """Resolve a site for branding; lookup failures degrade to default branding."""
    if not slug:
        return None
    directory = wiring.get_directory()
    try:
        return await asyncio.to_thread(directory.find_site_by_slug, slug)
    except DirectoryError as exc:
        logger.warning("Site lookup failed for branding: %s", exc.code)
        return None


def _redirect_allowed(redirect_uri: str, site: Site | None) -> bool:
    cfg = wiring.get_config()
    allowed = set(cfg.allowed_redirect_origins)
    if site is not None:
        allowed.update(site.allowed_redirect_origins)
    return is_allowed_redirect(redirect_uri, allowed)


_REDIRECT_REJECTED = ExchangeFailure(REDIRECT_NOT_ALLOWED, "redirect_uri not allowed")


def _failure_response(result: ExchangeFailure) -> JSONResponse:
    return _error(result.message, result.status_code)


@auth_router.get("/auth", response_class=HTMLResponse)
async def auth_page(request: Request, site: str | None = None, redirect_uri: str = ""):
    """
    Serve the branded sign-in surface (start of the redirect flow).

    Behavior:
        - `site` selects branding only; it is not a trust boundary here.
        - `redirect_uri` is carried to the callback; when an allow-list is
          configured (deployment-wide or on the site) a non-matching origin is
          rejected with 400.
    Permissions:
        Public.
    """
    resolved = await _lookup_site(site)
    if not _redirect_allowed(redirect_uri, resolved):
        logger.warning("Rejected redirect_uri on /auth")
        return _failure_response(_REDIRECT_REJECTED)
    cfg = wiring.get_config()
    branding = resolved.branding() if resolved is not None else SiteBranding()
    page = AuthPage(
        branding=branding,
        supabase_url=cfg.supabase_url,
        supabase_anon_key=cfg.supabase_anon_key,
        redirect_uri=redirect_uri,
        site=resolved.slug if resolved is not None else None,
    )
    return HTMLResponse(page.render(), headers=_private_no_store())


@auth_router.get("/callback", response_class=HTMLResponse)
async def auth_callback(request: Request, redirect_uri: str = "", site: str | None = None):
    """
    Serve the bridge page the identity provider redirects back to.

    The provider token sits in the URL fragment and never reaches this
    handler; the page script forwards it to `/callback/validate`.
    """
    resolved = await _lookup_site(site)
    if not _redirect_allowed(redirect_uri, resolved):
        logger.warning("Rejected redirect_uri on /callback")
        return _failure_response(_REDIRECT_REJECTED)
    page = CallbackPage(redirect_uri=redirect_uri, site=site)
    return HTMLResponse(page.render(), headers=_private_no_store())


@auth_router.post("/callback/validate")
async def auth_callback_validate(request: Request):
    """
    Exchange a provider session token for the shared credential (redirect flow).

    Request body: `{access_token, site?, redirect_uri?}`. `redirect_uri` is the
    handoff target the page will navigate to; it must fit the allow-lists of
    the principal's sites.
    Responses:
        200 `{success: true, token, expires_in}`
        400 `{error: "Missing access_token" | "redirect_uri not allowed"}`
        401 `{error: "Invalid or expired token" | "User not authorized"}`
    """
    body = await _read_json_body(request)
    cfg = wiring.get_config()
    result: ExchangeResult = await asyncio.to_thread(
        exchange_for_redirect,
        _str_field(body, "access_token"),
        validator=wiring.get_identity_validator(),
        directory=wiring.get_directory(),
        credential=cfg.github_pat,
        site=_str_field(body, "site"),
        require_site=cfg.require_site_binding,
        redirect_uri=_str_field(body, "redirect_uri"),
        global_origins=cfg.allowed_redirect_origins,
    )
    if isinstance(result, ExchangeSuccess):
        return JSONResponse(
            {"success": True, "token": result.credential, "expires_in": result.expires_in},
            headers=_private_no_store(),
        )
    return _failure_response(result)


@auth_router.post("/auth")
async def auth_direct(request: Request):
    """
    Exchange a provider session token for the shared credential (direct flow).

    Request body: `{token, repo}`; `repo` must equal the repository of one of
    the caller's sites exactly.
    Responses:
        200 `{access_token, token_type: "bearer"}`
        400 `{error: "Missing token or repo"}`
        401 `{error: "Invalid or expired token" | "Unauthorized for this repository"}`
    """
    body = await _read_json_body(request)
    cfg = wiring.get_config()
    result: ExchangeResult = await asyncio.to_thread(
        exchange_direct,
        _str_field(body, "token"),
        _str_field(body, "repo"),
        validator=wiring.get_identity_validator(),
        directory=wiring.get_directory(),
        credential=cfg.github_pat,
    )
    if isinstance(result, ExchangeSuccess):
        return JSONResponse(
            {"access_token": result.credential, "token_type": "bearer"},
            headers=_private_no_store(),
        )
    return _failure_response(result)
