"""
Immutable token value returned by the codec and the manager.
"""

from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any, List, Mapping, Optional

from ..clock import from_timestamp

REGISTERED_CLAIMS = ("iss", "sub", "aud", "exp", "nbf", "iat", "jti")


@dataclass(frozen=True)
class Token:
    """A verified compact token.

    ``header`` and ``claims`` are read-only views; claim order is the order
    in which the claims appear in the payload.
    """

    header: Mapping[str, Any]
    claims: Mapping[str, Any]
    signature: str
    raw: str

    @classmethod
    def from_parts(cls, raw: str, header: Mapping[str, Any], claims: Mapping[str, Any]) -> "Token":
        return cls(
            header=MappingProxyType(dict(header)),
            claims=MappingProxyType(dict(claims)),
            signature=raw.rsplit(".", 1)[-1],
            raw=raw,
        )

    @property
    def id(self) -> Optional[str]:
        return self.claims.get("jti")

    @property
    def subject(self) -> Optional[Any]:
        return self.claims.get("sub")

    @property
    def issuer(self) -> Optional[str]:
        return self.claims.get("iss")

    @property
    def audience(self) -> List[str]:
        """Audience as a list, whether the claim holds one value or many."""
        value = self.claims.get("aud")
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return list(value)
        return [value]

    @property
    def issued_at(self) -> Optional[datetime]:
        return self._time_claim("iat")

    @property
    def not_before(self) -> Optional[datetime]:
        return self._time_claim("nbf")

    @property
    def expires_at(self) -> Optional[datetime]:
        return self._time_claim("exp")

    def get_claim(self, name: str, default: Any = None) -> Any:
        return self.claims.get(name, default)

    def has_claim(self, name: str) -> bool:
        return name in self.claims

    def custom_claims(self) -> dict:
        """Claims outside the registered set."""
        return {key: value for key, value in self.claims.items() if key not in REGISTERED_CLAIMS}

    def to_string(self) -> str:
        return self.raw

    def __str__(self) -> str:
        return self.raw

    def __repr__(self) -> str:
        return f"Token(jti={self.id!r}, sub={self.subject!r})"

    def _time_claim(self, name: str) -> Optional[datetime]:
        value = self.claims.get(name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return from_timestamp(value)
