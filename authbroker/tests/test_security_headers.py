"""
Security headers and CORS on every response.
"""
from __future__ import annotations

import pytest
import httpx
from httpx import ASGITransport

from authbroker.web import main


pytestmark = pytest.mark.anyio


async def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test")


async def test_security_headers_present_on_pages():
    async with (await _client()) as c:
        r = await c.get("/auth")
    assert r.headers.get("X-Frame-Options") == "DENY"
    assert r.headers.get("X-Content-Type-Options") == "nosniff"
    assert r.headers.get("Referrer-Policy") == "no-referrer"
    csp = r.headers.get("Content-Security-Policy", "")
    assert "frame-ancestors 'none'" in csp
    assert "script-src 'self' https://unpkg.com" in csp
    assert "connect-src 'self' https://project.supabase.test" in csp
    # no inline scripts are needed, so none are allowed
    assert "unsafe-inline" not in csp


async def test_security_headers_present_on_json_errors():
    async with (await _client()) as c:
        r = await c.post("/auth", json={})
    assert r.status_code == 400
    assert r.headers.get("X-Content-Type-Options") == "nosniff"


async def test_cors_preflight_allows_post_from_any_origin():
    async with (await _client()) as c:
        r = await c.options(
            "/auth",
            headers={
                "Origin": "https://cms.example.org",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type",
            },
        )
    assert r.status_code == 200
    assert r.headers.get("access-control-allow-origin") in ("*", "https://cms.example.org")
    assert "POST" in r.headers.get("access-control-allow-methods", "")


async def test_static_scripts_are_served():
    async with (await _client()) as c:
        r = await c.get("/static/js/handoff.js")
    assert r.status_code == 200
    assert "auth_token" in r.text
