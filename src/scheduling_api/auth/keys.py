"""
scheduling_api.auth.keys

API key and opaque-secret helpers.

Responsibilities:
- Generate prefixed API keys and OAuth client secrets.
- Hash credentials for storage/lookup (SHA-256 hex).
- Compare secrets in constant time.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets


def hash_secret(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()


def generate_api_key(prefix: str) -> str:
    # 32 hex chars of entropy after the prefix.
    return f"{prefix}{secrets.token_hex(16)}"


def is_api_key(value: str, prefix: str) -> bool:
    return bool(prefix) and value.startswith(prefix)


def strip_api_key_prefix(value: str, prefix: str) -> str:
    return value[len(prefix) :] if is_api_key(value, prefix) else value


def hash_api_key(value: str, prefix: str) -> str:
    # Keys are stored hashed without their prefix so a prefix rename keeps old keys valid.
    return hash_secret(strip_api_key_prefix(value, prefix))


def generate_client_secret() -> str:
    return secrets.token_urlsafe(32)


def generate_refresh_token() -> str:
    return secrets.token_urlsafe(48)


def secrets_match(presented: str, expected_hash: str) -> bool:
    return hmac.compare_digest(hash_secret(presented), expected_hash)


# --- Module Notes -----------------------------------------------------------
# Refresh tokens are opaque; access tokens are JWTs (see `auth.jwt`) but are also stored
# hashed so deleting the row revokes them.
