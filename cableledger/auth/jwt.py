"""HS256 bearer tokens naming a tenant account.

Tokens are issued elsewhere; the ledger verifies them, checks they were minted
under the current permissions version and reads the tenant id from `sub`.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from cableledger.core.exceptions import AuthenticationError

ALGORITHM = "HS256"
ACCESS_TOKEN_USE = "access"


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64url_json(segment: str) -> dict[str, Any]:
    padded = segment + "=" * (-len(segment) % 4)
    try:
        value = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise AuthenticationError("Invalid token payload.") from exc
    if not isinstance(value, dict):
        raise AuthenticationError("Invalid token payload.")
    return value


def _signature(signing_input: str, secret: str) -> str:
    if not secret:
        raise AuthenticationError("JWT secret must be configured.")
    digest = hmac.new(secret.encode("utf-8"), signing_input.encode("utf-8"), hashlib.sha256).digest()
    return _b64url_encode(digest)


def encode_jwt(payload: dict[str, Any], secret: str, ttl: timedelta) -> str:
    """Sign a payload, stamping iat/exp/jti when absent."""
    now = datetime.now(timezone.utc)
    claims = {
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
        "jti": uuid.uuid4().hex,
        **payload,
    }
    segments = [
        _b64url_encode(json.dumps(part, separators=(",", ":"), sort_keys=True).encode("utf-8"))
        for part in ({"alg": ALGORITHM, "typ": "JWT"}, claims)
    ]
    signing_input = ".".join(segments)
    return f"{signing_input}.{_signature(signing_input, secret)}"


def decode_jwt(token: str, secret: str, verify_exp: bool = True) -> dict[str, Any]:
    """Verify signature and expiry, returning the claims."""
    parts = (token or "").split(".")
    if len(parts) != 3:
        raise AuthenticationError("Invalid token format.")
    header_segment, payload_segment, signature_segment = parts

    if _b64url_json(header_segment).get("alg") != ALGORITHM:
        raise AuthenticationError("Unsupported token algorithm.")
    expected = _signature(f"{header_segment}.{payload_segment}", secret)
    if not hmac.compare_digest(expected, signature_segment):
        raise AuthenticationError("Invalid token signature.")

    claims = _b64url_json(payload_segment)
    if verify_exp:
        if "exp" not in claims:
            raise AuthenticationError("Token is missing exp claim.")
        if int(claims["exp"]) < int(datetime.now(timezone.utc).timestamp()):
            raise AuthenticationError("Token has expired.")
    return claims


def create_access_token(
    tenant_id: int,
    secret: str,
    permissions_version: int = 1,
    ttl_minutes: int = 60,
) -> str:
    """Mint an access token for a tenant account (used by tests and tooling)."""
    return encode_jwt(
        {"sub": str(tenant_id), "permissions_version": permissions_version, "token_use": ACCESS_TOKEN_USE},
        secret=secret,
        ttl=timedelta(minutes=ttl_minutes),
    )


def principal_id_from_claims(claims: dict[str, Any]) -> int:
    if claims.get("token_use", ACCESS_TOKEN_USE) != ACCESS_TOKEN_USE:
        raise AuthenticationError("Token is not an access token.")
    try:
        return int(claims["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise AuthenticationError("Token claims are missing the principal id.") from exc


def verify_access_token(token: str, secret: str, permissions_version: int) -> int:
    """Return the tenant id named by a valid, current access token."""
    claims = decode_jwt(token, secret=secret)
    if int(claims.get("permissions_version", 1)) != permissions_version:
        raise AuthenticationError("Token permissions are out of date.")
    return principal_id_from_claims(claims)
