"""
JWT verification for candidate identity.

Tokens are issued by the identity service; this service only decodes them.
"""
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from app.core.config import settings

ACCESS_TOKEN_TYPE = "access"


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT token.

    Args:
        token: JWT token string to decode

    Returns:
        Decoded token payload if valid, None if invalid or expired
    """
    try:
        return jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        return None


def verify_token_type(payload: Dict[str, Any], expected_type: str) -> bool:
    """
    Verify that a token payload has the expected type.

    Tokens without a ``type`` claim are accepted as access tokens.
    """
    return payload.get("type", ACCESS_TOKEN_TYPE) == expected_type
