"""
Provider session token validation for the identity_access bounded context.

Why: Keep validation of Supabase access tokens outside the web adapter so we
can unit test it independently and swap the validation strategy (remote user
lookup vs. local signature check) without touching the exchange.

Security: Callers only ever learn "invalid or expired". The failure code on
`TokenValidationError` is for logs and tests. Tokens are never logged.
"""
from __future__ import annotations

from typing import Dict
import time

# Small indirection to ease monkeypatching in tests
import requests as http
from jose import jwt
from jose.exceptions import JOSEError

from .domain import VerifiedIdentity


class TokenValidationError(Exception):
    """Raised when a provider session token cannot be verified."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


def http_get(url: str, headers: Dict[str, str], timeout: float):
    return http.get(url, headers=headers, timeout=timeout)


def _require_token(token: str | None) -> str:
    if not isinstance(token, str) or not token.strip():
        raise TokenValidationError("missing_token")
    return token.strip()


def _email_from(data: object) -> str:
    email = data.get("email") if isinstance(data, dict) else None
    if not isinstance(email, str) or not email.strip():
        raise TokenValidationError("missing_email")
    return email.strip()


class SupabaseTokenValidator:
    """Ask Supabase Auth who owns the token (`GET /auth/v1/user`).

    The provider is the sole source of truth: expiry, revocation and signature
    are all checked on its side. One outbound call per validation, no retries.
    """

    def __init__(self, *, base_url: str, api_key: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    @property
    def user_endpoint(self) -> str:
        return f"{self.base_url}/auth/v1/user"

    def validate(self, token: str) -> VerifiedIdentity:
        token = _require_token(token)
        headers = {"apikey": self.api_key, "Authorization": f"Bearer {token}"}
        try:
            resp = http_get(self.user_endpoint, headers=headers, timeout=self.timeout)
        except http.RequestException as exc:
            raise TokenValidationError("provider_unreachable") from exc
        if resp.status_code != 200:
            raise TokenValidationError("provider_rejected")
        try:
            data = resp.json()
        except ValueError as exc:
            raise TokenValidationError("provider_invalid_response") from exc
        email = _email_from(data)
        user_id = data.get("id")
        return VerifiedIdentity(email=email, user_id=str(user_id) if user_id else None)


MAX_CLOCK_SKEW_SECONDS = 5  # Allow minimal skew between servers
SUPABASE_AUDIENCE = "authenticated"


class JWTTokenValidator:
    """Verify Supabase access tokens locally with the project's JWT secret.

    Avoids the round trip to Supabase Auth at the cost of not seeing
    server-side session revocation before the token's own expiry.
    """

    def __init__(self, *, secret: str, audience: str = SUPABASE_AUDIENCE):
        if not secret:
            raise ValueError("jwt secret required")
        self.secret = secret
        self.audience = audience

    def validate(self, token: str) -> VerifiedIdentity:
        token = _require_token(token)
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=["HS256"],
                audience=self.audience,
                options={
                    "verify_signature": True,
                    "verify_aud": True,
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                },
            )
        except JOSEError as exc:
            raise TokenValidationError("invalid_jwt") from exc

        _validate_temporal_claims(claims)
        email = _email_from(claims)
        sub = claims.get("sub")
        return VerifiedIdentity(email=email, user_id=str(sub) if sub else None)


def _validate_temporal_claims(claims: Dict[str, object]) -> None:
    now = time.time()
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        raise TokenValidationError("invalid_jwt")
    if exp + MAX_CLOCK_SKEW_SECONDS < now:
        raise TokenValidationError("expired")

    nbf = claims.get("nbf")
    if isinstance(nbf, (int, float)) and nbf - MAX_CLOCK_SKEW_SECONDS > now:
        raise TokenValidationError("invalid_jwt")


__all__ = [
    "JWTTokenValidator",
    "SupabaseTokenValidator",
    "TokenValidationError",
]
