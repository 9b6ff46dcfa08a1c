"""
Identity domain constants and value types.

Why:
- Centralize allowed roles to avoid drift between the admin tool, the schema
  and the web layer.
- Keep the directory records (sites, principals) as small immutable values so
  the authorization gate can be tested with plain fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import re

# Keep roles minimal and explicit. Immutable to prevent accidental mutation.
# Roles are recorded but not enforced by the credential exchange.
ALLOWED_ROLES = frozenset({"admin", "editor"})

DEFAULT_BRAND_NAME = "Sign In"
DEFAULT_PRIMARY_COLOR = "#6366f1"

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


@dataclass(frozen=True)
class SiteBranding:
    logo_url: str | None = None
    brand_name: str = DEFAULT_BRAND_NAME
    primary_color: str = DEFAULT_PRIMARY_COLOR


@dataclass(frozen=True)
class Site:
    id: str
    slug: str
    github_repo: str  # "owner/repo", compared as an opaque exact string
    logo_url: str | None = None
    brand_name: str | None = None
    primary_color: str | None = None
    allowed_redirect_origins: tuple[str, ...] = field(default_factory=tuple)

    def branding(self) -> SiteBranding:
        """Cosmetic projection with defaults for missing values."""
        color = self.primary_color or ""
        return SiteBranding(
            logo_url=self.logo_url or None,
            brand_name=self.brand_name or DEFAULT_BRAND_NAME,
            primary_color=color if _HEX_COLOR.match(color) else DEFAULT_PRIMARY_COLOR,
        )


@dataclass(frozen=True)
class Principal:
    email: str
    site_id: str
    role: str
    site: Site | None = None  # embedded relation; None when the join is missing


@dataclass(frozen=True)
class VerifiedIdentity:
    email: str
    user_id: str | None = None


def mask_email(email: str) -> str:
    """Return a log-safe form of an email address (``a***@example.com``)."""
    if not email or "@" not in email:
        return "***"
    local, domain = email.rsplit("@", 1)
    return f"{local[:1]}***@{domain}"


__all__ = [
    "ALLOWED_ROLES",
    "DEFAULT_BRAND_NAME",
    "DEFAULT_PRIMARY_COLOR",
    "Principal",
    "Site",
    "SiteBranding",
    "VerifiedIdentity",
    "mask_email",
]
