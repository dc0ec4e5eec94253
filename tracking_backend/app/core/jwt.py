"""
JWT token utilities for authentication.

Tokens carry the user id, email and role so role-gating does not need a
database round trip; the user's active flag is still checked per request.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from tracking_backend.app.core.config import settings


def build_token_payload(user) -> Dict[str, Any]:
    """
    Claims for a signed-in user.

    Example payload:
        {
            "sub": "ops@example.com",
            "user_id": 7,
            "role": "admin",
            "jti": "4f1c...",
        }
    """
    return {
        "sub": user.email,
        "user_id": user.id,
        "role": user.role.value,
        "jti": uuid.uuid4().hex,
    }


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to encode (see build_token_payload)
        expires_delta: Optional custom lifetime, defaults to the configured expiry

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    claims = dict(data)
    claims["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and verify a token; None when the signature or expiry check fails."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
