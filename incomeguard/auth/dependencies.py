"""
FastAPI Authentication Dependencies
===================================

Resolves the calling account from a bearer token.

Version: 0.1.0
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from incomeguard.auth.jwt import decode_token
from incomeguard.logging import bind_context, get_logger


logger = get_logger(__name__)

# Bearer token from the Authorization header; tokens are issued out of band
# with `create_access_token`
bearer_scheme = HTTPBearer(auto_error=False)


class Caller(BaseModel):
    """Authenticated account for dependency injection."""

    address: str = Field(..., description="Account address")


async def get_current_caller(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Caller:
    """
    Extract and validate the caller from a JWT token.

    Raises:
        HTTPException: 401 if token is missing or invalid
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        logger.warning("auth_token_missing")
        raise credentials_exception

    token_data = decode_token(credentials.credentials, verify_type="access")

    if token_data is None:
        logger.warning("auth_token_invalid")
        raise credentials_exception

    bind_context(caller=token_data.sub)
    logger.debug("caller_authenticated", caller=token_data.sub)

    return Caller(address=token_data.sub)
