"""
Authentication Module
=====================

JWT bearer authentication for the registry API. The token subject is the
account address that registry calls are made on behalf of.

Usage:
    from incomeguard.auth import Caller, create_access_token, get_current_caller

    token = create_access_token({"sub": "0xb0b"})

    @router.get("/me")
    async def me(caller: Caller = Depends(get_current_caller)):
        return {"address": caller.address}
"""

from incomeguard.auth.dependencies import Caller, bearer_scheme, get_current_caller
from incomeguard.auth.jwt import TokenData, create_access_token, decode_token

__all__ = [
    # JWT
    "create_access_token",
    "decode_token",
    "TokenData",
    # Dependencies
    "Caller",
    "get_current_caller",
    "bearer_scheme",
]
