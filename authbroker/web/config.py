"""
Configuration and startup security checks for the auth broker.

Why: The broker releases a repository credential with write access. We must
prevent accidental insecure deployments without burdening local development.

Permissions: The caller needs no special privileges. The functions simply read
environment variables; the guard raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

from dataclasses import dataclass
import os

from authbroker.identity_access.exchange import CREDENTIAL_TTL_SECONDS
from authbroker.identity_access.redirects import parse_origin_list


VALIDATOR_REMOTE = "remote"
VALIDATOR_JWT = "jwt"


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def _flag(name: str, default: str = "false") -> bool:
    return (os.getenv(name, default) or "").strip().lower() in ("1", "true", "yes")


def _is_placeholder(value: str) -> bool:
    v = (value or "").strip().upper()
    return not v or v == "DUMMY_DO_NOT_USE" or v.startswith("CHANGE_ME")


@dataclass(frozen=True)
class BrokerConfig:
    environment: str
    supabase_url: str
    supabase_anon_key: str
    supabase_service_role_key: str
    supabase_jwt_secret: str
    identity_validator: str
    github_pat: str
    allowed_redirect_origins: frozenset[str]
    require_site_binding: bool
    cors_allow_origins: tuple[str, ...]
    credential_ttl_seconds: int = CREDENTIAL_TTL_SECONDS

    @property
    def is_prod_like(self) -> bool:
        return _is_prod_like(self.environment)


def load_config() -> BrokerConfig:
    cors_raw = os.getenv("CORS_ALLOW_ORIGINS", "*") or "*"
    cors = tuple(o.strip() for o in cors_raw.split(",") if o.strip()) or ("*",)
    return BrokerConfig(
        environment=(os.getenv("BROKER_ENV", "dev") or "dev").lower(),
        supabase_url=(os.getenv("SUPABASE_URL", "http://localhost:54321") or "").strip().rstrip("/"),
        supabase_anon_key=(os.getenv("SUPABASE_ANON_KEY", "") or "").strip(),
        supabase_service_role_key=(os.getenv("SUPABASE_SERVICE_ROLE_KEY", "") or "").strip(),
        supabase_jwt_secret=(os.getenv("SUPABASE_JWT_SECRET", "") or "").strip(),
        identity_validator=(os.getenv("IDENTITY_VALIDATOR", VALIDATOR_REMOTE) or VALIDATOR_REMOTE).strip().lower(),
        github_pat=(os.getenv("GITHUB_PAT", "") or "").strip(),
        allowed_redirect_origins=frozenset(parse_origin_list(os.getenv("ALLOWED_REDIRECT_ORIGINS"))),
        require_site_binding=_flag("REQUIRE_SITE_BINDING"),
        cors_allow_origins=cors,
    )


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Intent: Abort process startup when obviously insecure settings are detected
    in production/staging. Development remains permissive for convenience.

    Checks:
    - GITHUB_PAT (the shared credential) must be set and not a placeholder.
    - Supabase Service Role key must be set and not a placeholder.
    - SUPABASE_URL must use https.
    - IDENTITY_VALIDATOR must be known; `jwt` requires SUPABASE_JWT_SECRET.
    """
    env = os.getenv("BROKER_ENV", "dev")
    if not _is_prod_like(env):
        return  # dev/test remain permissive

    # 1) Shared repository credential
    if _is_placeholder(os.getenv("GITHUB_PAT", "")):
        raise SystemExit(
            "Refusing to start: GITHUB_PAT is unset or a placeholder in production."
        )

    # 2) Supabase Service Role key (directory reads)
    if _is_placeholder(os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")):
        raise SystemExit(
            "Refusing to start: SUPABASE_SERVICE_ROLE_KEY is unset or a placeholder in production."
        )

    # 3) Supabase endpoint must use HTTPS in production-like environments
    url = (os.getenv("SUPABASE_URL", "") or "").strip().lower()
    if not url.startswith("https://"):
        raise SystemExit("Refusing to start: SUPABASE_URL must use https in production.")

    # 4) Token validation strategy
    validator = (os.getenv("IDENTITY_VALIDATOR", VALIDATOR_REMOTE) or "").strip().lower()
    if validator not in (VALIDATOR_REMOTE, VALIDATOR_JWT):
        raise SystemExit(f"Refusing to start: unknown IDENTITY_VALIDATOR '{validator}'.")
    if validator == VALIDATOR_JWT and _is_placeholder(os.getenv("SUPABASE_JWT_SECRET", "")):
        raise SystemExit(
            "Refusing to start: IDENTITY_VALIDATOR=jwt requires SUPABASE_JWT_SECRET in production."
        )
    if validator == VALIDATOR_REMOTE and _is_placeholder(os.getenv("SUPABASE_ANON_KEY", "")):
        raise SystemExit(
            "Refusing to start: SUPABASE_ANON_KEY is unset or a placeholder in production."
        )


__all__ = ["BrokerConfig", "ensure_secure_config_on_startup", "load_config"]
