"""
Token lifecycle: issue, parse, refresh and invalidate.

A token moves from issued to valid, and from valid to either expired or
revoked; it never becomes valid again after that. The manager itself only
holds configuration, so one instance can serve concurrent requests.
"""

from typing import Any, Dict, Mapping, Optional, Union

from starlette.requests import Request

from shared.config import MAX_TTL_MINUTES
from shared.errors import ConfigError, InvalidClaims, JwtError, TokenExpired, TokenInvalid, TokenRevoked
from shared.logging import get_logger, set_token_context
from shared.metrics import MetricsCollector
from ..clock import timestamp
from ..parsers.chain import RequestParserChain
from ..parsers.extractors import RequestData, RequestReader
from ..revocation.store import RevocationStore
from ..signing.codec import TokenCodec
from ..validation.claim_validator import ClaimValidator
from .claims import ClaimsFactory, ClaimSetBuilder
from .token import REGISTERED_CLAIMS, Token

# Five years.
PERMANENT_REVOCATION_TTL = 5 * 365 * 24 * 60 * 60

# Claims owned by the claims factory and never copied over on refresh.
PROVIDER_CLAIMS = ("iss", "aud")


class TokenManager:
    """Coordinates codec, validator, revocation store and parser chain."""

    def __init__(
        self,
        codec: TokenCodec,
        validator: ClaimValidator,
        store: RevocationStore,
        claims_factory: ClaimsFactory,
        parser_chain: Optional[RequestParserChain] = None,
        refresh_ttl_minutes: int = 20160,
        revocation_enabled: bool = True,
        grace_period_seconds: Optional[int] = None,
        subject_claim_name: str = "sub",
        expected_claims: Optional[Mapping[str, Any]] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        if refresh_ttl_minutes <= claims_factory.ttl_minutes:
            raise ConfigError("Refresh TTL must exceed the token TTL")

        self.codec = codec
        self.validator = validator
        self.store = store
        self.claims_factory = claims_factory
        self.parser_chain = parser_chain or RequestParserChain.default()
        self.refresh_ttl_minutes = refresh_ttl_minutes
        self.revocation_enabled = revocation_enabled
        self.grace_period_seconds = (
            refresh_ttl_minutes * 60 if grace_period_seconds is None else grace_period_seconds
        )
        self.subject_claim_name = subject_claim_name
        self.expected_claims = {
            name: value for name, value in (expected_claims or {}).items() if value is not None
        }
        self.metrics = metrics
        self.logger = get_logger("tokens.manager")

    @property
    def clock(self):
        return self.claims_factory.clock

    @property
    def ttl_minutes(self) -> int:
        return self.claims_factory.ttl_minutes

    def issue(
        self,
        custom_claims: Optional[Mapping[str, Any]] = None,
        subject: Any = None,
        ttl_minutes: Optional[int] = None,
    ) -> Token:
        """Sign a new token.

        A value under the configured subject claim name in ``custom_claims``
        wins over ``subject``; ``subject`` may also be an object exposing
        ``get_jwt_identifier()``. Any other registered claim name in
        ``custom_claims``, or a ``ttl_minutes`` outside 1 to
        ``MAX_TTL_MINUTES``, is rejected with :class:`InvalidClaims`.
        """
        claims = dict(custom_claims or {})
        if ttl_minutes is not None and not 1 <= ttl_minutes <= MAX_TTL_MINUTES:
            raise InvalidClaims(
                f"Token TTL must be between 1 and {MAX_TTL_MINUTES} minutes",
                details={"ttl_minutes": ttl_minutes},
            )
        factory = self.claims_factory if ttl_minutes is None else self.claims_factory.with_ttl(ttl_minutes)

        subject_value = None
        if self.subject_claim_name in claims:
            subject_value = claims.pop(self.subject_claim_name)
        elif subject is not None:
            subject_value = _identifier_of(subject)

        overridden = sorted(name for name in claims if name.lower() in REGISTERED_CLAIMS)
        if overridden:
            raise InvalidClaims(
                "Registered claims cannot be set through custom claims",
                details={"claims": overridden},
            )

        builder = ClaimSetBuilder(factory.default_claims(self.clock.now()))
        if subject_value is not None:
            builder = builder.with_claim("sub", str(subject_value))
        builder = builder.with_claims(claims)

        raw = self.codec.encode(builder.build())
        header, signed_claims = self.codec.decode(raw)
        token = Token.from_parts(raw, header, signed_claims)

        if self.metrics:
            self.metrics.record_token_issued()
        self.logger.info("Token issued", jti=token.id, sub=token.subject)
        return token

    async def parse(self, token_string: str) -> Token:
        """Verify ``token_string`` and return it as a :class:`Token`.

        Checks run signature and structure first, then the time window, then
        revocation, then issuer/audience and other required claims.
        """
        try:
            token = self.codec.verify(token_string)
            self.validator.check_timestamps(token.claims)
            if self.revocation_enabled and token.id and await self.store.has(token.id):
                raise TokenRevoked(details={"jti": token.id})
            self.validator.validate(token.claims, check_timestamps=False, expected=self.expected_claims)
        except JwtError as e:
            self._record_validation(e.code)
            self.logger.warning("Token rejected", code=e.code, reason=e.message)
            raise

        self._record_validation("ok")
        set_token_context(subject=_as_text(token.subject), token_id=token.id)
        return token

    async def parse_from_request(self, request: Union[RequestReader, Request]) -> Optional[Token]:
        """Find a token in ``request`` and parse it; ``None`` when none is present."""
        if isinstance(request, Request):
            request = await RequestData.from_starlette(request)

        raw = self.parser_chain.extract(request)
        if raw is None:
            return None
        return await self.parse(raw)

    async def refresh(
        self,
        old_token_string: str,
        force_forever: bool = False,
        reset_claims: bool = False,
    ) -> Token:
        """Exchange a token for a new one within the refresh window.

        Only the signature of the old token is checked, so an expired token
        can still be refreshed until ``exp + refresh_ttl``. The old ``jti``
        is revoked for the rest of that window (or permanently when
        ``force_forever`` is set).
        """
        if not self.revocation_enabled:
            raise ConfigError("Token refresh requires revocation to be enabled")

        old = self.codec.verify(old_token_string)
        if not old.id:
            raise TokenInvalid("Token has no jti claim and cannot be refreshed")
        exp = old.get_claim("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise TokenInvalid("Token has no expiration time and cannot be refreshed")

        if await self.store.has(old.id):
            raise TokenRevoked("Token has been revoked and cannot be refreshed", details={"jti": old.id})

        now = timestamp(self.clock.now())
        window_end = int(exp) + self.refresh_ttl_minutes * 60
        if now > window_end:
            raise TokenExpired("Token is outside the refresh window", details={"exp": exp})

        new_token = self.issue({} if reset_claims else self._carry_over(old))

        ttl = PERMANENT_REVOCATION_TTL if force_forever else max(1, window_end - now)
        await self.store.add(old.id, ttl, expires_at=now + ttl)

        if self.metrics:
            self.metrics.record_token_refreshed()
            self.metrics.record_token_revoked("refresh")
        self.logger.info("Token refreshed", jti=old.id, new_jti=new_token.id, reset_claims=reset_claims)
        return new_token

    async def invalidate(self, token: Union[Token, str], force_forever: bool = False) -> None:
        """Revoke ``token`` for the grace period, or permanently.

        Raw strings have their signature checked but not their time window.
        With revocation disabled this does nothing.
        """
        if not self.revocation_enabled:
            self.logger.info("Revocation disabled, invalidate ignored")
            return

        if isinstance(token, str):
            token = self.codec.verify(token)
        if not token.id:
            raise TokenInvalid("Token has no jti claim and cannot be revoked")

        ttl = PERMANENT_REVOCATION_TTL if force_forever else self.grace_period_seconds
        now = timestamp(self.clock.now())
        await self.store.add(token.id, ttl, expires_at=now + ttl)

        if self.metrics:
            self.metrics.record_token_revoked("forever" if force_forever else "logout")

    def _carry_over(self, old: Token) -> Dict[str, Any]:
        excluded = set(self.claims_factory.claims_to_refresh) | set(PROVIDER_CLAIMS)
        builder = ClaimSetBuilder(old.claims).without(*(
            name for name in old.claims
            if name in excluded or name.lower() in REGISTERED_CLAIMS
        ))
        if old.subject is not None and not builder.has(self.subject_claim_name):
            builder = builder.with_claim(self.subject_claim_name, old.subject)
        return builder.build()

    def _record_validation(self, status: str) -> None:
        if self.metrics:
            self.metrics.record_token_validation(status)


def _identifier_of(subject: Any) -> Any:
    getter = getattr(subject, "get_jwt_identifier", None)
    if callable(getter):
        return getter()
    return subject


def _as_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)
