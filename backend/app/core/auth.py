"""
FastAPI authentication dependencies.
"""
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .error_responses import ErrorMessages, raise_unauthorized
from .security import ACCESS_TOKEN_TYPE, decode_token, verify_token_type

# HTTP Bearer token scheme
security = HTTPBearer()


def get_candidate_id_from_token(token: str) -> str:
    """
    Decode an access token and return the candidate id it carries.

    Raises:
        HTTPException: 401 if the token is invalid, of the wrong type, or has
            no candidate id claim
    """
    payload = decode_token(token)
    if payload is None:
        raise_unauthorized(ErrorMessages.INVALID_TOKEN)

    if not verify_token_type(payload, ACCESS_TOKEN_TYPE):
        raise_unauthorized(ErrorMessages.INVALID_TOKEN)

    candidate_id = payload.get("candidate_id") or payload.get("sub")
    if not candidate_id:
        raise_unauthorized(ErrorMessages.INVALID_TOKEN_PAYLOAD)

    return str(candidate_id)


async def get_current_candidate_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    """
    Resolve the authenticated candidate from the Bearer token.

    Candidates are opaque external identities, so no database lookup happens
    here; ownership is checked by the engine against each test instance.
    """
    return get_candidate_id_from_token(credentials.credentials)
