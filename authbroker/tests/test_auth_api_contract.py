"""
HTTP contract of both credential exchange endpoints.

Uses the real FastAPI app with fake collaborators installed via wiring; no
network access.
"""
from __future__ import annotations

from dataclasses import replace

import pytest
import httpx
from httpx import ASGITransport

from authbroker.identity_access.directory import InMemoryDirectory
from authbroker.tests import fakes
from authbroker.web import main, wiring


pytestmark = pytest.mark.anyio


async def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test")


async def test_direct_exchange_success_returns_bearer():
    async with (await _client()) as c:
        r = await c.post("/auth", json={"token": "alice-token", "repo": "acme/docs"})
    assert r.status_code == 200
    assert r.json() == {"access_token": fakes.SHARED_PAT, "token_type": "bearer"}
    assert r.headers.get("Cache-Control") == "private, no-store"


async def test_direct_exchange_wrong_repo_is_401():
    async with (await _client()) as c:
        r = await c.post("/auth", json={"token": "alice-token", "repo": "acme/other"})
    assert r.status_code == 401
    assert r.json() == {"error": "Unauthorized for this repository"}


async def test_direct_exchange_unknown_user_is_indistinguishable_from_mismatch():
    async with (await _client()) as c:
        r = await c.post("/auth", json={"token": "mallory-token", "repo": "acme/docs"})
    assert r.status_code == 401
    assert r.json() == {"error": "Unauthorized for this repository"}


@pytest.mark.parametrize("body", [{}, {"token": "alice-token"}, {"repo": "acme/docs"}, {"token": 1, "repo": "acme/docs"}])
async def test_direct_exchange_missing_fields_is_400(body):
    async with (await _client()) as c:
        r = await c.post("/auth", json=body)
    assert r.status_code == 400
    assert r.json() == {"error": "Missing token or repo"}


async def test_direct_exchange_invalid_token_is_401():
    async with (await _client()) as c:
        r = await c.post("/auth", json={"token": "expired", "repo": "acme/docs"})
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid or expired token"}


async def test_validate_success_returns_token_and_ttl():
    async with (await _client()) as c:
        r = await c.post("/callback/validate", json={"access_token": "alice-token"})
    assert r.status_code == 200
    assert r.json() == {"success": True, "token": fakes.SHARED_PAT, "expires_in": 28800}
    assert r.headers.get("Cache-Control") == "private, no-store"


async def test_validate_unknown_user_gets_no_token():
    async with (await _client()) as c:
        r = await c.post("/callback/validate", json={"access_token": "mallory-token"})
    assert r.status_code == 401
    body = r.json()
    assert body == {"error": "User not authorized"}
    assert "token" not in body


async def test_validate_missing_token_is_400():
    async with (await _client()) as c:
        r = await c.post("/callback/validate", json={})
    assert r.status_code == 400
    assert r.json() == {"error": "Missing access_token"}


async def test_validate_malformed_json_is_400():
    async with (await _client()) as c:
        r = await c.post(
            "/callback/validate",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
    assert r.status_code == 400
    assert r.json() == {"error": "Missing access_token"}


async def test_validate_with_site_is_bound_to_that_site():
    async with (await _client()) as c:
        ok = await c.post("/callback/validate", json={"access_token": "alice-token", "site": "acme"})
        denied = await c.post("/callback/validate", json={"access_token": "alice-token", "site": "beta"})
    assert ok.status_code == 200
    assert denied.status_code == 401
    assert denied.json() == {"error": "User not authorized"}


async def test_validate_requires_site_when_binding_enforced():
    wiring.set_config(fakes.make_config(require_site_binding=True))
    async with (await _client()) as c:
        r = await c.post("/callback/validate", json={"access_token": "alice-token"})
    assert r.status_code == 400
    assert r.json() == {"error": "Missing access_token or site"}


async def test_repeated_exchanges_each_succeed():
    async with (await _client()) as c:
        first = await c.post("/callback/validate", json={"access_token": "alice-token"})
        second = await c.post("/callback/validate", json={"access_token": "alice-token"})
    assert first.status_code == second.status_code == 200
    assert first.json()["expires_in"] == second.json()["expires_in"] == 28800


async def test_directory_outage_fails_closed():
    wiring.set_directory(fakes.BrokenDirectory())
    async with (await _client()) as c:
        r1 = await c.post("/callback/validate", json={"access_token": "alice-token"})
        r2 = await c.post("/auth", json={"token": "alice-token", "repo": "acme/docs"})
    assert r1.status_code == 401
    assert r2.status_code == 401
    assert fakes.SHARED_PAT not in r1.text + r2.text


async def test_index_and_health():
    async with (await _client()) as c:
        root = await c.get("/")
        health = await c.get("/health")
    assert root.status_code == 200
    assert root.json() == {"message": "Sveltia Auth Proxy is running"}
    assert health.status_code == 200
    assert health.json() == {"status": "ok"}


def _acme_restricted_to_docs_origin() -> InMemoryDirectory:
    acme = replace(fakes.ACME_DOCS, allowed_redirect_origins=("https://docs.acme.example",))
    directory = InMemoryDirectory(sites=[acme])
    directory.add_principal(email="alice@example.com", site_id=acme.id, role="editor")
    return directory


async def test_validate_rejects_handoff_outside_site_allow_list_without_site():
    wiring.set_directory(_acme_restricted_to_docs_origin())
    async with (await _client()) as c:
        r = await c.post(
            "/callback/validate",
            json={"access_token": "alice-token", "redirect_uri": "https://evil.example/"},
        )
    assert r.status_code == 400
    assert r.json() == {"error": "redirect_uri not allowed"}
    assert fakes.SHARED_PAT not in r.text
    assert r.headers.get("Cache-Control") == "private, no-store"


async def test_validate_accepts_handoff_to_site_origin_without_site():
    wiring.set_directory(_acme_restricted_to_docs_origin())
    async with (await _client()) as c:
        r = await c.post(
            "/callback/validate",
            json={"access_token": "alice-token", "redirect_uri": "https://docs.acme.example/admin/"},
        )
    assert r.status_code == 200
    assert r.json()["token"] == fakes.SHARED_PAT


async def test_validate_checks_handoff_against_global_allow_list():
    wiring.set_config(fakes.make_config(allowed_redirect_origins=frozenset({"https://cms.example.org"})))
    async with (await _client()) as c:
        bad = await c.post(
            "/callback/validate",
            json={"access_token": "alice-token", "redirect_uri": "https://evil.example/"},
        )
        good = await c.post(
            "/callback/validate",
            json={"access_token": "alice-token", "redirect_uri": "https://cms.example.org/admin/"},
        )
    assert bad.status_code == 400
    assert good.status_code == 200
