"""
Redirect target checks for the credential handoff.

Why:
    The browser hands the released credential to `redirect_uri` in the URL
    fragment. Without a check any origin could receive it. Sites (and the
    deployment) may declare the origins they accept.
"""
from __future__ import annotations

from typing import Iterable
from urllib.parse import urlparse


_DEFAULT_PORTS = {"http": 80, "https": 443}


def parse_origin_list(raw: str | None) -> set[str]:
    """Parse a comma-separated origin list into a normalized set.

    Intent:
        - Accept a list like "https://docs.example.com, http://localhost:5173".
        - Normalize each entry with `normalize_origin`.
        - Ignore empty or unparsable entries so a trailing comma is harmless.
    """
    if not raw:
        return set()
    out: set[str] = set()
    for part in str(raw).split(","):
        origin = normalize_origin(part.strip())
        if origin:
            out.add(origin)
    return out


def normalize_origin(url: str) -> str:
    """Return `scheme://host[:port]` in lowercase, eliding default ports.

    Returns an empty string for anything that is not an absolute http(s) URL.
    """
    try:
        p = urlparse(url)
        scheme = (p.scheme or "").lower()
        if scheme not in _DEFAULT_PORTS or not p.hostname:
            return ""
        host = p.hostname.lower()
        port = p.port
    except ValueError:
        return ""
    if port is None or port == _DEFAULT_PORTS[scheme]:
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def is_allowed_redirect(redirect_uri: str | None, allowed_origins: Iterable[str]) -> bool:
    """Return True if `redirect_uri` may receive the credential handoff.

    Behavior:
        - An empty redirect_uri is always fine (the page shows a message
          instead of navigating).
        - An empty allow-list means "no restriction".
        - Otherwise the URI must be absolute http(s) and its origin must be
          listed.
    """
    if not redirect_uri:
        return True
    allowed = {o for o in (normalize_origin(a) for a in allowed_origins) if o}
    if not allowed:
        return True
    origin = normalize_origin(redirect_uri)
    return bool(origin) and origin in allowed


__all__ = ["is_allowed_redirect", "normalize_origin", "parse_origin_list"]
