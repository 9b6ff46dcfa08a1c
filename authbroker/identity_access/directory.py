"""
Directory adapter for site and principal lookup (Supabase tables).

Why:
    The credential exchange needs two reads: "which principals exist for this
    email (and which site each belongs to)" and "which site has this slug".
    This adapter wraps those PostgREST queries behind the `DirectoryLookup`
    port and returns small immutable values.

Security:
    - The client must be initialized with the Service Role key (RLS only
      grants reads to `service_role`).
    - Do not log keys. Emails are logged masked only.
    - Intended for server-side use only.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional
import logging

from .domain import Principal, Site, mask_email


logger = logging.getLogger("authbroker.identity_access")

SITE_COLUMNS = "id, slug, github_repo, logo_url, brand_name, primary_color, allowed_redirect_origins"
PRINCIPAL_COLUMNS = f"email, role, site_id, sites({SITE_COLUMNS})"


class DirectoryError(Exception):
    """Raised when the directory store cannot be queried."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


def _site_from_row(row: Dict[str, Any] | None) -> Site | None:
    if not isinstance(row, dict):
        return None
    site_id = row.get("id")
    slug = row.get("slug")
    repo = row.get("github_repo")
    if not site_id or not slug or not repo:
        return None
    origins = row.get("allowed_redirect_origins") or []
    if not isinstance(origins, (list, tuple)):
        origins = []
    return Site(
        id=str(site_id),
        slug=str(slug),
        github_repo=str(repo),
        logo_url=row.get("logo_url") or None,
        brand_name=row.get("brand_name") or None,
        primary_color=row.get("primary_color") or None,
        allowed_redirect_origins=tuple(str(o) for o in origins if o),
    )


def _principal_from_row(row: Dict[str, Any]) -> Principal | None:
    email = row.get("email")
    site_id = row.get("site_id")
    if not email or not site_id:
        return None
    # PostgREST embeds a many-to-one relation as an object; tolerate a
    # single-element list from older clients.
    embedded = row.get("sites")
    if isinstance(embedded, list):
        embedded = embedded[0] if embedded else None
    return Principal(
        email=str(email),
        site_id=str(site_id),
        role=str(row.get("role") or ""),
        site=_site_from_row(embedded),
    )


class SupabaseDirectory:
    """DirectoryLookup backed by the Supabase `users` and `sites` tables."""

    def __init__(self, client: Any):
        # Duck-typed supabase client, e.g., from `supabase import create_client(...)`.
        self._client = client

    def _rows(self, query: Any) -> List[Dict[str, Any]]:
        try:
            res = query.execute()
        except Exception as exc:
            logger.warning("Directory query failed: %s", exc.__class__.__name__)
            raise DirectoryError("directory_unavailable") from exc
        data = getattr(res, "data", None)
        if data is None and isinstance(res, dict):
            data = res.get("data")
        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        if not isinstance(data, list):
            raise DirectoryError("directory_invalid_response")
        return [r for r in data if isinstance(r, dict)]

    def find_principals_by_email(self, email: str) -> list[Principal]:
        query = self._client.table("users").select(PRINCIPAL_COLUMNS).eq("email", email)
        principals = [p for p in (_principal_from_row(r) for r in self._rows(query)) if p]
        logger.debug("Directory lookup for %s returned %d record(s)", mask_email(email), len(principals))
        return principals

    def find_site_by_slug(self, slug: str) -> Site | None:
        query = self._client.table("sites").select(SITE_COLUMNS).eq("slug", slug).limit(1)
        rows = self._rows(query)
        return _site_from_row(rows[0]) if rows else None


def create_supabase_directory(url: str, service_role_key: str) -> SupabaseDirectory:
    """Build a directory adapter using the official supabase client."""
    from supabase import create_client

    return SupabaseDirectory(create_client(url, service_role_key))


class InMemoryDirectory:
    """DirectoryLookup over in-process data (development and tests)."""

    def __init__(self, sites: Iterable[Site] = (), principals: Iterable[Principal] = ()):
        self._sites: Dict[str, Site] = {}
        self._principals: List[Principal] = []
        for site in sites:
            self.add_site(site)
        for principal in principals:
            self._principals.append(principal)

    def add_site(self, site: Site) -> Site:
        if any(s.slug == site.slug and s.id != site.id for s in self._sites.values()):
            raise ValueError("duplicate_slug")
        self._sites[site.id] = site
        return site

    def add_principal(self, *, email: str, site_id: str, role: str) -> Principal:
        if site_id not in self._sites:
            raise ValueError("unknown_site")
        if any(p.email == email and p.site_id == site_id for p in self._principals):
            raise ValueError("duplicate_principal")
        rec = Principal(email=email, site_id=site_id, role=role)
        self._principals.append(rec)
        return rec

    def find_principals_by_email(self, email: str) -> list[Principal]:
        out: List[Principal] = []
        for p in self._principals:
            if p.email != email:
                continue
            out.append(Principal(email=p.email, site_id=p.site_id, role=p.role, site=self._sites.get(p.site_id)))
        return out

    def find_site_by_slug(self, slug: str) -> Optional[Site]:
        for site in self._sites.values():
            if site.slug == slug:
                return site
        return None


__all__ = [
    "DirectoryError",
    "InMemoryDirectory",
    "SupabaseDirectory",
    "create_supabase_directory",
]
