"""
Site branding API: cosmetic lookup by slug.

Why:
    CMS front ends show the same logo/name/color as the sign-in page. Only
    cosmetic fields leave the server; repository bindings, ids and redirect
    allow-lists stay private.
"""
from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from authbroker.identity_access.directory import DirectoryError
from authbroker.web import wiring


sites_router = APIRouter(tags=["Sites"])
logger = logging.getLogger("authbroker.web")


@sites_router.get("/api/site/{slug}")
async def site_branding(slug: str):
    """Return `{slug, brand_name, logo_url, primary_color}` or 404."""
    directory = wiring.get_directory()
    try:
        site = await asyncio.to_thread(directory.find_site_by_slug, slug)
    except DirectoryError as exc:
        logger.warning("Branding lookup failed: %s", exc.code)
        site = None
    if site is None:
        return JSONResponse({"error": "Site not found"}, status_code=404)
    branding = site.branding()
    return JSONResponse(
        {
            "slug": site.slug,
            "brand_name": branding.brand_name,
            "logo_url": branding.logo_url,
            "primary_color": branding.primary_color,
        }
    )
