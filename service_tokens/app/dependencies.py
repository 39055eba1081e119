"""
FastAPI dependencies for token-protected routes.
"""

from typing import Optional

from fastapi import Request

from shared.errors import TokenInvalid
from .tokens.manager import TokenManager
from .tokens.token import Token


class TokenAuth:
    """Resolves the request's token through the manager's parser chain.

    Use as ``Depends(TokenAuth(manager))``. With ``optional=True`` a request
    without a token yields ``None`` instead of a 401.
    """

    def __init__(self, manager: TokenManager, optional: bool = False):
        self.manager = manager
        self.optional = optional

    async def __call__(self, request: Request) -> Optional[Token]:
        token = await self.manager.parse_from_request(request)
        if token is None and not self.optional:
            raise TokenInvalid("Authentication token is missing")
        return token
