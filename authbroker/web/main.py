"Sveltia CMS auth broker"
from __future__ import annotations

from pathlib import Path
import logging
import os
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.requests import Request


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out via BROKER_ENABLE_DOTENV (default true outside pytest).
    """
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("BROKER_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    from dotenv import load_dotenv

    load_dotenv()

from authbroker.web import config as _cfg  # noqa: E402
from authbroker.web import wiring  # noqa: E402
from authbroker.web.routes.auth import auth_router  # noqa: E402
from authbroker.web.routes.sites import sites_router  # noqa: E402

# Minimal production safety checks (fail-fast on insecure config)
_cfg.ensure_secure_config_on_startup()

logger = logging.getLogger("authbroker.web")
CONFIG = _cfg.load_config()

app = FastAPI(
    title="Sveltia CMS auth broker",
    description="Releases a shared repository credential to directory-authorized editors.",
    version="0.1.0",
)

# --- Static Files & Routers -----------------------------------------------------

static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

app.include_router(auth_router)
app.include_router(sites_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(CONFIG.cors_allow_origins),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Wire collaborators early so the first request already sees real adapters.
wiring.wire_collaborators(CONFIG)

# --- Security Headers Middleware ----------------------------------------------


def _supabase_origin() -> str:
    from authbroker.identity_access.redirects import normalize_origin

    return normalize_origin(wiring.get_config().supabase_url)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    # connect-src must reach Supabase Auth from the sign-in page (supabase-js).
    supabase = _supabase_origin()
    connect_src = "'self'" + (f" {supabase}" if supabase else "")
    csp = (
        "default-src 'self'; script-src 'self' https://unpkg.com; style-src 'self'; "
        f"img-src 'self' data: https:; font-src 'self' data:; connect-src {connect_src}; "
        "frame-ancestors 'none'"
    )
    response.headers.setdefault("Content-Security-Policy", csp)
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    # Never leak callback query strings (redirect_uri, site) to third parties.
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
    response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    return response


@app.get("/")
async def index():
    return JSONResponse({"message": "Sveltia Auth Proxy is running"})


@app.get("/health")
async def health_check():
    # Minimal health endpoint used by orchestrators and tests.
    return JSONResponse({"status": "ok"}, headers={"Cache-Control": "private, no-store"})


def main() -> None:  # pragma: no cover - CLI entry
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))


if __name__ == "__main__":  # pragma: no cover
    main()
