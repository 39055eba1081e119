"""
Claim validation: time windows, required claims and expected values.
"""

from typing import Any, Iterable, Mapping, Optional, Set

from pydantic import BaseModel, Field

from shared.errors import MalformedToken, TokenExpired, TokenInvalid, TokenNotYetValid
from ..clock import Clock, SystemClock, timestamp

TIME_CLAIMS = ("exp", "nbf", "iat")


class ValidationPolicy(BaseModel):
    """Required claim names plus the clock-skew allowance in seconds."""
    required_claims: Set[str] = Field(default_factory=set)
    leeway: int = Field(default=0, ge=0)


class ClaimValidator:
    """Checks claim sets against a :class:`ValidationPolicy`.

    The policy belongs to the validator and can be changed through
    :meth:`set_required_claims` and :meth:`set_leeway`.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        required_claims: Iterable[str] = (),
        leeway: int = 0,
    ):
        self.clock = clock or SystemClock()
        self.policy = ValidationPolicy(required_claims=set(required_claims), leeway=max(0, leeway))

    @property
    def leeway(self) -> int:
        return self.policy.leeway

    @property
    def required_claims(self) -> Set[str]:
        return set(self.policy.required_claims)

    def set_required_claims(self, names: Iterable[str]) -> "ClaimValidator":
        self.policy = self.policy.model_copy(update={"required_claims": set(names)})
        return self

    def set_leeway(self, seconds: int) -> "ClaimValidator":
        """Set the clock-skew allowance; negative values become 0."""
        self.policy = self.policy.model_copy(update={"leeway": max(0, int(seconds))})
        return self

    def check_timestamps(
        self,
        claims: Mapping[str, Any],
        leeway: Optional[int] = None,
        required: Optional[Iterable[str]] = None,
    ) -> None:
        """Evaluate ``exp``, ``nbf`` and ``iat`` against the clock.

        Raises:
            TokenExpired: ``exp`` plus leeway is before now.
            TokenNotYetValid: ``nbf`` minus leeway is after now.
            TokenInvalid: ``iat`` lies in the future, a required time claim is
                missing, or ``exp`` does not come after ``iat``/``nbf``.
            MalformedToken: a time claim is not a number.
        """
        skew = self.leeway if leeway is None else max(0, leeway)
        required_names = self.policy.required_claims if required is None else set(required)
        now = timestamp(self.clock.now())

        exp = self._numeric(claims, "exp")
        nbf = self._numeric(claims, "nbf")
        iat = self._numeric(claims, "iat")

        if exp is not None:
            if exp + skew < now:
                raise TokenExpired(details={"exp": exp})
        elif "exp" in required_names:
            raise TokenInvalid("Expiration (exp) claim is required but not present")

        if nbf is not None:
            if nbf - skew > now:
                raise TokenNotYetValid(details={"nbf": nbf})
        elif "nbf" in required_names:
            raise TokenInvalid("Not Before (nbf) claim is required but not present")

        if iat is not None:
            if iat - skew > now:
                raise TokenInvalid("Issued At (iat) claim cannot be in the future")
        elif "iat" in required_names:
            raise TokenInvalid("Issued At (iat) claim is required but not present")

        if exp is not None:
            if iat is not None and exp <= iat:
                raise TokenInvalid("Expiration (exp) must be after Issued At (iat)")
            if nbf is not None and exp <= nbf:
                raise TokenInvalid("Expiration (exp) must be after Not Before (nbf)")

    def check_claims(
        self,
        claims: Mapping[str, Any],
        required_names: Iterable[str] = (),
        expected: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Check presence of ``required_names`` and equality with ``expected``.

        ``aud`` matches when the token audience and the expected audience
        share at least one value.
        """
        for name in required_names:
            if name not in claims:
                raise TokenInvalid(
                    f"Required claim '{name}' is missing",
                    details={"claim": name},
                )

        for name, expected_value in (expected or {}).items():
            if expected_value is None:
                continue
            if name not in claims:
                raise TokenInvalid(
                    f"Expected claim '{name}' is missing",
                    details={"claim": name},
                )
            actual = claims[name]
            if name == "aud":
                if not set(_as_list(actual)) & set(_as_list(expected_value)):
                    raise TokenInvalid(
                        "Audience (aud) claim does not match",
                        details={"claim": name},
                    )
            elif actual != expected_value:
                raise TokenInvalid(
                    f"Claim '{name}' does not match the expected value",
                    details={"claim": name},
                )

    def validate(
        self,
        claims: Mapping[str, Any],
        check_timestamps: bool = True,
        expected: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Time checks (optional) followed by claim checks; first failure wins."""
        if check_timestamps:
            self.check_timestamps(claims)
        required = [name for name in sorted(self.policy.required_claims) if name not in TIME_CLAIMS]
        self.check_claims(claims, required, expected)

    @staticmethod
    def _numeric(claims: Mapping[str, Any], name: str) -> Optional[float]:
        if name not in claims or claims[name] is None:
            return None
        value = claims[name]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise MalformedToken(
                f"Claim '{name}' must be a NumericDate",
                details={"claim": name},
            )
        return value


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]
