"""
scheduling_api.auth.jwt

JWT issuing and validation helpers.

Responsibilities:
- Issue short-lived JWTs for OAuth2 access tokens and session cookies.
- Decode and validate JWTs with strict claim requirements (iss/aud/exp/iat/sub).

Note:
- Access tokens and session cookies use separate secrets and audiences so one can never
  be replayed as the other.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from scheduling_api.settings import Settings

SESSION_AUDIENCE = "session"


@dataclass(frozen=True, slots=True)
class JwtConfig:
    # Algorithm/issuer/audience are enforced during decoding.
    alg: str
    issuer: str
    audience: str
    secret: str


class JwtValidationError(Exception):
    pass


def access_token_config(settings: Settings) -> JwtConfig:
    return JwtConfig(
        alg=settings.jwt_alg,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
        secret=settings.jwt_secret,
    )


def session_config(settings: Settings) -> JwtConfig:
    return JwtConfig(
        alg=settings.jwt_alg,
        issuer=settings.jwt_issuer,
        audience=SESSION_AUDIENCE,
        secret=settings.session_secret,
    )


def issue_token(
    *,
    cfg: JwtConfig,
    subject: str,
    claims: dict[str, Any] | None = None,
    ttl: timedelta = timedelta(hours=1),
) -> str:
    now = datetime.now(tz=UTC)
    # Keep payload minimal and stable; extra claims never override registered ones.
    payload: dict[str, Any] = dict(claims or {})
    payload.update(
        {
            "iss": cfg.issuer,
            "aud": cfg.audience,
            "sub": subject,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
            # Unique per token so two tokens minted in the same second never collide.
            "jti": uuid.uuid4().hex,
        }
    )
    return jwt.encode(payload, cfg.secret, algorithm=cfg.alg)


def decode_and_validate(*, cfg: JwtConfig, token: str) -> dict[str, Any]:
    try:
        # jwt.decode enforces signature + registered claims (issuer/audience/exp, etc.).
        return jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            issuer=cfg.issuer,
            audience=cfg.audience,
            options={
                "require": ["exp", "iat", "iss", "aud", "sub"],
            },
        )
    except InvalidTokenError as e:
        raise JwtValidationError(str(e)) from e


# --- Module Notes -----------------------------------------------------------
# Token issuing is used by:
# - `services/oauth_tokens.py` (access tokens for OAuth platform clients)
# - `api/routers/dev_auth.py` (session cookies for local development)
