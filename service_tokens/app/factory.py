"""
Builds a :class:`TokenManager` and its collaborators from settings.
"""

from typing import Any, Dict, Optional

from shared.config import BaseConfig, JwtSettings, get_jwt_settings
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .clock import Clock, SystemClock
from .parsers.chain import RequestParserChain
from .revocation.cache import CacheBackend, MemoryCache, RedisCache
from .revocation.store import RevocationStore
from .signing.codec import TokenCodec
from .signing.keys import SignerConfig
from .tokens.claims import ClaimsFactory
from .tokens.manager import TokenManager
from .validation.claim_validator import ClaimValidator

logger = get_logger("tokens.factory")


def build_cache(
    settings: JwtSettings,
    config: Optional[BaseConfig] = None,
    clock: Optional[Clock] = None,
) -> CacheBackend:
    """Pick the revocation cache backend named in ``settings``."""
    if settings.revocation_backend == "redis":
        config = config or BaseConfig()
        return RedisCache(config.redis_url)
    return MemoryCache(clock)


def expected_claims(settings: JwtSettings) -> Dict[str, Any]:
    """Issuer/audience values a parsed token must carry."""
    expected: Dict[str, Any] = {}
    if settings.required_claims.get("iss") and settings.issuer:
        expected["iss"] = settings.issuer
    if settings.required_claims.get("aud") and settings.audience:
        expected["aud"] = settings.audience
    return expected


def build_token_manager(
    settings: Optional[JwtSettings] = None,
    cache: Optional[CacheBackend] = None,
    clock: Optional[Clock] = None,
    metrics: Optional[MetricsCollector] = None,
) -> TokenManager:
    settings = settings or get_jwt_settings()
    clock = clock or SystemClock()

    codec = TokenCodec(SignerConfig.from_settings(settings))

    expected = expected_claims(settings)
    required = {
        name for name, enabled in settings.required_claims.items()
        if enabled and name not in ("iss", "aud")
    }
    validator = ClaimValidator(clock, required_claims=required, leeway=settings.leeway_seconds)

    store = RevocationStore(
        cache if cache is not None else build_cache(settings, clock=clock),
        prefix=settings.revocation_cache_prefix,
        metrics=metrics,
    )

    if settings.parser_chain:
        parser_chain = RequestParserChain.from_specs(settings.parser_chain)
    else:
        parser_chain = RequestParserChain.default()

    manager = TokenManager(
        codec=codec,
        validator=validator,
        store=store,
        claims_factory=ClaimsFactory.from_settings(settings, clock),
        parser_chain=parser_chain,
        refresh_ttl_minutes=settings.refresh_ttl_minutes,
        revocation_enabled=settings.revocation_enabled,
        grace_period_seconds=settings.revocation_grace_period_seconds,
        subject_claim_name=settings.subject_claim_name,
        expected_claims=expected,
        metrics=metrics,
    )

    logger.info(
        "Token manager configured",
        algorithm=codec.algorithm,
        revocation_enabled=settings.revocation_enabled,
        revocation_backend=settings.revocation_backend,
        parsers=len(parser_chain),
    )
    return manager
