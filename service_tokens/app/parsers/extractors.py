"""
Token extractors for inbound requests.

Each extractor reads one place in a request and returns the raw token string
or ``None``. Values are stripped; whitespace-only values count as absent.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol

from starlette.requests import Request

from shared.logging import get_logger

logger = get_logger("tokens.parsers")


class RequestReader(Protocol):
    """The parts of a request the extractors look at."""

    body: Any

    def header(self, name: str) -> Optional[str]:
        ...

    def query(self, name: str) -> Optional[str]:
        ...

    def cookie(self, name: str) -> Optional[str]:
        ...


@dataclass
class RequestData:
    """Plain request snapshot; header names are matched case-insensitively."""

    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, str] = field(default_factory=dict)
    cookies: Dict[str, str] = field(default_factory=dict)
    body: Any = None

    def __post_init__(self):
        self.headers = {key.lower(): value for key, value in self.headers.items()}

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())

    def query(self, name: str) -> Optional[str]:
        return self.query_params.get(name)

    def cookie(self, name: str) -> Optional[str]:
        return self.cookies.get(name)

    @classmethod
    async def from_starlette(cls, request: Request) -> "RequestData":
        """Snapshot a Starlette/FastAPI request, decoding a JSON or form body."""
        return cls(
            headers=dict(request.headers),
            query_params=dict(request.query_params),
            cookies=dict(request.cookies),
            body=await _read_body(request),
        )


async def _read_body(request: Request) -> Any:
    if request.method in ("GET", "HEAD", "OPTIONS"):
        return None

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        raw = await request.body()
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.debug("Ignoring undecodable JSON body")
            return None
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}
    return None


def _clean(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


class AuthorizationHeader:
    """``<prefix> <token>`` in a header; exactly one space follows the prefix."""

    kind = "header"

    def __init__(self, prefix: str = "Bearer", name: str = "Authorization"):
        self.prefix = prefix.strip()
        self.name = name

    def __call__(self, request: RequestReader) -> Optional[str]:
        value = request.header(self.name)
        if not value:
            return None
        expected = f"{self.prefix} "
        if not value.startswith(expected):
            return None
        token = value[len(expected):]
        if token[:1].isspace():
            return None
        return _clean(token)

    def __repr__(self) -> str:
        return f"AuthorizationHeader(prefix={self.prefix!r}, name={self.name!r})"


class QueryString:
    """Named query parameter."""

    kind = "query"

    def __init__(self, name: str = "token"):
        self.name = name

    def __call__(self, request: RequestReader) -> Optional[str]:
        return _clean(request.query(self.name))

    def __repr__(self) -> str:
        return f"QueryString(name={self.name!r})"


class Cookie:
    """Named cookie."""

    kind = "cookie"

    def __init__(self, name: str = "token"):
        self.name = name

    def __call__(self, request: RequestReader) -> Optional[str]:
        return _clean(request.cookie(self.name))

    def __repr__(self) -> str:
        return f"Cookie(name={self.name!r})"


class InputSource:
    """Named field of the decoded body, which may be a mapping or an object."""

    kind = "input"

    def __init__(self, name: str = "token"):
        self.name = name

    def __call__(self, request: RequestReader) -> Optional[str]:
        body = getattr(request, "body", None)
        if body is None:
            return None
        if isinstance(body, Mapping):
            return _clean(body.get(self.name))
        return _clean(getattr(body, self.name, None))

    def __repr__(self) -> str:
        return f"InputSource(name={self.name!r})"
