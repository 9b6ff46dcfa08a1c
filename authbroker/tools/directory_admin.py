"""Provision sites and authorized editors in the broker directory.

Why:
    Sites and principals are created out-of-band by an operator. This tool
    wraps the few writes needed against the Supabase `sites` and `users`
    tables so operators do not hand-edit rows.

Usage:
    python -m authbroker.tools.directory_admin add-site \
      --slug acme-docs --repo acme/docs --brand-name "Acme Docs" \
      --redirect-origin https://docs.acme.example

    python -m authbroker.tools.directory_admin add-user \
      --email alice@example.com --site acme-docs --role editor

Environment:
    SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY (service role; RLS only
    grants writes to it).

Notes:
    - Repository identifiers are stored verbatim; the broker compares them
      exactly, so "Acme/Docs" and "acme/docs" are different repositories.
    - Idempotent: re-adding an existing (email, site) pair updates its role.
"""

from __future__ import annotations

import os
import re
from typing import Any, Iterable

import click

from authbroker.identity_access.directory import SITE_COLUMNS
from authbroker.identity_access.domain import ALLOWED_ROLES
from authbroker.identity_access.redirects import normalize_origin


_REPO_SHAPE = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


def _client_from_env() -> Any:
    url = (os.getenv("SUPABASE_URL") or "").strip()
    key = (os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "").strip()
    if not url or not key:
        raise click.ClickException("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required")
    from supabase import create_client

    return create_client(url, key)


def _data(res: Any) -> list[dict]:
    data = getattr(res, "data", None)
    if isinstance(data, dict):
        return [data]
    return [r for r in (data or []) if isinstance(r, dict)]


def _site_id(client: Any, slug: str) -> str:
    rows = _data(client.table("sites").select("id").eq("slug", slug).limit(1).execute())
    if not rows:
        raise click.ClickException(f"unknown site: {slug}")
    return str(rows[0]["id"])


def build_site_row(
    *,
    slug: str,
    repo: str,
    brand_name: str | None,
    logo_url: str | None,
    primary_color: str | None,
    redirect_origins: Iterable[str],
) -> dict:
    """Validate operator input and return the `sites` row to upsert."""
    slug = slug.strip()
    if not slug:
        raise click.BadParameter("slug must not be empty", param_hint="--slug")
    if not _REPO_SHAPE.match(repo):
        raise click.BadParameter("repo must look like owner/repo", param_hint="--repo")
    origins: list[str] = []
    for raw in redirect_origins:
        origin = normalize_origin(raw)
        if not origin:
            raise click.BadParameter(f"not an http(s) origin: {raw}", param_hint="--redirect-origin")
        origins.append(origin)
    row: dict = {"slug": slug, "github_repo": repo, "allowed_redirect_origins": origins}
    if brand_name:
        row["brand_name"] = brand_name
    if logo_url:
        row["logo_url"] = logo_url
    if primary_color:
        row["primary_color"] = primary_color
    return row


@click.group()
def cli() -> None:
    """Manage sites and authorized editors."""


@cli.command("add-site")
@click.option("--slug", required=True, help="URL slug, unique across sites")
@click.option("--repo", required=True, help="Repository identifier owner/repo")
@click.option("--brand-name", default=None)
@click.option("--logo-url", default=None)
@click.option("--primary-color", default=None, help="CSS hex color, e.g. #6366f1")
@click.option("--redirect-origin", "redirect_origins", multiple=True, help="Allowed redirect_uri origin (repeatable)")
def add_site(slug: str, repo: str, brand_name: str | None, logo_url: str | None, primary_color: str | None, redirect_origins: tuple[str, ...]) -> None:
    row = build_site_row(
        slug=slug,
        repo=repo,
        brand_name=brand_name,
        logo_url=logo_url,
        primary_color=primary_color,
        redirect_origins=redirect_origins,
    )
    client = _client_from_env()
    res = client.table("sites").upsert(row, on_conflict="slug").execute()
    rows = _data(res)
    click.echo(f"site {row['slug']} -> {row['github_repo']} ({rows[0]['id'] if rows else 'ok'})")


@cli.command("add-user")
@click.option("--email", required=True)
@click.option("--site", "site_slug", required=True, help="Site slug")
@click.option("--role", default="editor", show_default=True)
def add_user(email: str, site_slug: str, role: str) -> None:
    email = email.strip()
    if "@" not in email:
        raise click.BadParameter("invalid email", param_hint="--email")
    if role not in ALLOWED_ROLES:
        raise click.BadParameter(f"role must be one of {sorted(ALLOWED_ROLES)}", param_hint="--role")
    client = _client_from_env()
    site_id = _site_id(client, site_slug)
    client.table("users").upsert(
        {"email": email, "site_id": site_id, "role": role}, on_conflict="email,site_id"
    ).execute()
    click.echo(f"{email} is {role} on {site_slug}")


@cli.command("remove-user")
@click.option("--email", required=True)
@click.option("--site", "site_slug", required=True)
def remove_user(email: str, site_slug: str) -> None:
    client = _client_from_env()
    site_id = _site_id(client, site_slug)
    res = client.table("users").delete().eq("email", email.strip()).eq("site_id", site_id).execute()
    click.echo(f"removed {len(_data(res))} record(s)")


@cli.command("list-users")
@click.option("--site", "site_slug", required=True)
def list_users(site_slug: str) -> None:
    client = _client_from_env()
    site_id = _site_id(client, site_slug)
    rows = _data(client.table("users").select("email, role").eq("site_id", site_id).order("email").execute())
    for row in rows:
        click.echo(f"{row.get('email')}\t{row.get('role')}")


@cli.command("show-site")
@click.option("--slug", required=True)
def show_site(slug: str) -> None:
    client = _client_from_env()
    rows = _data(client.table("sites").select(SITE_COLUMNS).eq("slug", slug).limit(1).execute())
    if not rows:
        raise click.ClickException(f"unknown site: {slug}")
    for key in ("slug", "github_repo", "brand_name", "logo_url", "primary_color", "allowed_redirect_origins"):
        click.echo(f"{key}: {rows[0].get(key)}")


if __name__ == "__main__":  # pragma: no cover - manual invocation
    cli()
