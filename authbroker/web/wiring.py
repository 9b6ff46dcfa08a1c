"""
Wiring of the identity validator and directory adapters.

Why:
    Routes depend on two capability ports. This module holds the active
    implementations, builds them from configuration at startup and lets tests
    swap in deterministic fakes (`set_identity_validator`, `set_directory`).

Behavior:
    When a collaborator is not configured, a closed placeholder is installed:
    it rejects every token / fails every lookup, so an unconfigured deployment
    never releases a credential.
"""
from __future__ import annotations

import logging

from authbroker.identity_access.directory import DirectoryError, create_supabase_directory
from authbroker.identity_access.domain import Principal, Site, VerifiedIdentity
from authbroker.identity_access.ports import DirectoryLookup, IdentityValidator
from authbroker.identity_access.tokens import JWTTokenValidator, SupabaseTokenValidator, TokenValidationError

from .config import VALIDATOR_JWT, BrokerConfig, load_config


logger = logging.getLogger("authbroker.web")


class UnconfiguredValidator:
    def validate(self, token: str) -> VerifiedIdentity:
        raise TokenValidationError("validator_not_configured")


class UnconfiguredDirectory:
    def find_principals_by_email(self, email: str) -> list[Principal]:
        raise DirectoryError("directory_not_configured")

    def find_site_by_slug(self, slug: str) -> Site | None:
        raise DirectoryError("directory_not_configured")


_VALIDATOR: IdentityValidator = UnconfiguredValidator()
_DIRECTORY: DirectoryLookup = UnconfiguredDirectory()
_CONFIG: BrokerConfig | None = None


def get_config() -> BrokerConfig:
    """Return the active configuration, loading it from the environment once."""
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = load_config()
    return _CONFIG


def set_config(cfg: BrokerConfig | None) -> None:
    """Replace the active configuration (None reloads from env on next use)."""
    global _CONFIG
    _CONFIG = cfg


def get_identity_validator() -> IdentityValidator:
    return _VALIDATOR


def set_identity_validator(validator: IdentityValidator) -> None:
    global _VALIDATOR
    _VALIDATOR = validator


def get_directory() -> DirectoryLookup:
    return _DIRECTORY


def set_directory(directory: DirectoryLookup) -> None:
    global _DIRECTORY
    _DIRECTORY = directory


def build_identity_validator(cfg: BrokerConfig) -> IdentityValidator:
    if cfg.identity_validator == VALIDATOR_JWT:
        if not cfg.supabase_jwt_secret:
            logger.warning("IDENTITY_VALIDATOR=jwt without SUPABASE_JWT_SECRET; rejecting all tokens")
            return UnconfiguredValidator()
        return JWTTokenValidator(secret=cfg.supabase_jwt_secret)
    if not cfg.supabase_url or not cfg.supabase_anon_key:
        logger.warning("Supabase Auth not configured; rejecting all tokens")
        return UnconfiguredValidator()
    return SupabaseTokenValidator(base_url=cfg.supabase_url, api_key=cfg.supabase_anon_key)


def wire_collaborators(cfg: BrokerConfig) -> bool:
    """Install validator and directory built from `cfg`.

    Returns True when both are backed by real services. Safe to call more
    than once; failures leave the closed placeholders in place and are logged
    with the exception class and message only.
    """
    set_config(cfg)
    set_identity_validator(build_identity_validator(cfg))
    if not cfg.supabase_url or not cfg.supabase_service_role_key:
        logger.warning("Directory not configured: SUPABASE_URL/SUPABASE_SERVICE_ROLE_KEY missing")
        set_directory(UnconfiguredDirectory())
        return False
    try:
        set_directory(create_supabase_directory(cfg.supabase_url, cfg.supabase_service_role_key))
    except Exception as exc:
        logger.warning("Directory wiring skipped due to error: %s: %s", exc.__class__.__name__, str(exc))
        set_directory(UnconfiguredDirectory())
        return False
    logger.info("Directory adapter wired: Supabase")
    return not isinstance(_VALIDATOR, UnconfiguredValidator)


__all__ = [
    "UnconfiguredDirectory",
    "UnconfiguredValidator",
    "get_config",
    "get_directory",
    "get_identity_validator",
    "set_config",
    "set_directory",
    "set_identity_validator",
    "wire_collaborators",
]
