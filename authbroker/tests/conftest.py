"""
Pytest configuration for broker tests.

Why: Force AnyIO to use the asyncio backend, keep real Supabase/GitHub
settings from the developer shell out of the suite, and install fresh fakes
for the identity validator and directory before every test.
"""
import os

import pytest

# Scrub before the app module is imported so import-time wiring stays offline.
for _var in (
    "BROKER_ENV",
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_JWT_SECRET",
    "IDENTITY_VALIDATOR",
    "GITHUB_PAT",
    "ALLOWED_REDIRECT_ORIGINS",
    "REQUIRE_SITE_BINDING",
    "CORS_ALLOW_ORIGINS",
):
    os.environ.pop(_var, None)

from authbroker.tests import fakes  # noqa: E402
from authbroker.web import wiring  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_wiring():
    """Install default fakes and config for each test; restore afterwards.

    Why:
        Routes resolve collaborators through module-level wiring. Tests that
        swap them (broken directory, strict config) must not leak into later
        tests.
    """
    prev = (wiring.get_config(), wiring.get_identity_validator(), wiring.get_directory())
    wiring.set_config(fakes.make_config())
    wiring.set_identity_validator(fakes.default_validator())
    wiring.set_directory(fakes.default_directory())
    yield
    cfg, validator, directory = prev
    wiring.set_config(cfg)
    wiring.set_identity_validator(validator)
    wiring.set_directory(directory)


@pytest.fixture(autouse=True)
def _clear_env_toggles(monkeypatch: pytest.MonkeyPatch):
    """Keep env-driven guards deterministic; tests opt into prod explicitly."""
    for var in ("BROKER_ENV", "GITHUB_PAT", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_URL", "IDENTITY_VALIDATOR"):
        monkeypatch.delenv(var, raising=False)
    yield
