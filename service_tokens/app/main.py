"""
Token service for the Access Token Service.
"""

from typing import Optional

from fastapi import Depends

from shared.base_service import BaseService
from shared.config import JwtSettings, ServiceConfig, get_jwt_settings
from shared.errors import JwtError
from .clock import Clock
from .dependencies import TokenAuth
from .factory import build_cache, build_token_manager
from .revocation.cache import CacheBackend, RedisCache
from .tokens.schemas import (
    TokenInfoResponse,
    TokenRefreshRequest,
    TokenResponse,
    TokenRevocationRequest,
    TokenVerificationRequest,
    TokenVerificationResponse,
)
from .tokens.token import Token


class TokenService(BaseService):
    """Token service implementation."""

    def __init__(
        self,
        settings: Optional[JwtSettings] = None,
        cache: Optional[CacheBackend] = None,
        clock: Optional[Clock] = None,
        config: Optional[ServiceConfig] = None,
    ):
        super().__init__("tokens", 8020, config)
        self.settings = settings or get_jwt_settings()
        self.cache = cache if cache is not None else build_cache(self.settings, self.config, clock)
        self.manager = build_token_manager(
            self.settings,
            cache=self.cache,
            clock=clock,
            metrics=self.metrics if self.config.enable_metrics else None,
        )
        self.auth = TokenAuth(self.manager)

        self._setup_token_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.token_service = self

    async def startup(self):
        if isinstance(self.cache, RedisCache):
            await self.cache.start()

    async def shutdown(self):
        if isinstance(self.cache, RedisCache):
            await self.cache.stop()

    def _setup_token_routes(self):
        """Set up token lifecycle routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "tokens",
                "message": "Access Token Service",
                "version": "1.0.0"
            }

        @self.app.post("/auth/verify", response_model=TokenVerificationResponse)
        async def verify_token(request: TokenVerificationRequest):
            """Token verification endpoint."""
            try:
                token = await self.manager.parse(request.token)
            except JwtError as e:
                return TokenVerificationResponse(valid=False, error=e.message, code=e.code)
            return TokenVerificationResponse(valid=True, claims=dict(token.claims))

        @self.app.get("/auth/me", response_model=TokenInfoResponse)
        async def current_token(token: Token = Depends(self.auth)):
            """Describe the token presented with the request."""
            return TokenInfoResponse.from_token(token)

        @self.app.post("/auth/refresh", response_model=TokenResponse)
        async def refresh_token(request: TokenRefreshRequest):
            """Token refresh endpoint."""
            token = await self.manager.refresh(
                request.token,
                force_forever=request.force_forever,
                reset_claims=request.reset_claims,
            )
            return TokenResponse.from_token(token)

        @self.app.post("/auth/logout")
        async def logout(request: TokenRevocationRequest):
            """Token logout/revocation endpoint."""
            await self.manager.invalidate(request.token, force_forever=request.force_forever)
            return {
                "success": True,
                "message": "Logged out successfully"
            }

    async def _check_dependencies(self):
        """Check token service dependencies."""
        if not self.manager.revocation_enabled:
            return {}
        if isinstance(self.cache, RedisCache):
            healthy = await self.cache.health_check()
            return {"revocation_cache": "ok" if healthy else "error"}
        return {"revocation_cache": "ok"}


def create_app(
    settings: Optional[JwtSettings] = None,
    cache: Optional[CacheBackend] = None,
    clock: Optional[Clock] = None,
    config: Optional[ServiceConfig] = None,
):
    """Create FastAPI application."""
    service = TokenService(settings=settings, cache=cache, clock=clock, config=config)
    return service.app


if __name__ == "__main__":
    service = TokenService()
    service.run()
