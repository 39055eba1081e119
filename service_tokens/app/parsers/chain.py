"""
Ordered chain of token extractors.
"""

from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple, Union

from shared.config import ParserSpec
from shared.errors import ConfigError
from .extractors import AuthorizationHeader, Cookie, InputSource, QueryString, RequestReader

Extractor = Callable[[RequestReader], Optional[str]]

EXTRACTORS: Dict[str, Callable[..., Extractor]] = {
    "header": AuthorizationHeader,
    "query": QueryString,
    "cookie": Cookie,
    "input": InputSource,
}

# Used only when no chain is configured.
DEFAULT_PARSER_SPECS: Tuple[Dict[str, Any], ...] = (
    {"type": "header"},
    {"type": "query"},
    {"type": "input"},
    {"type": "cookie"},
)


class RequestParserChain:
    """Tries each extractor in order; the first non-empty result wins."""

    def __init__(self, parsers: Iterable[Extractor]):
        self.parsers: Tuple[Extractor, ...] = tuple(parsers)

    @classmethod
    def from_specs(cls, specs: Iterable[Union[ParserSpec, Mapping[str, Any]]]) -> "RequestParserChain":
        """Build a chain from ``{"type", "name"?, "prefix"?}`` entries."""
        return cls(build_extractor(spec) for spec in specs)

    @classmethod
    def default(cls) -> "RequestParserChain":
        return cls.from_specs(DEFAULT_PARSER_SPECS)

    def extract(self, request: RequestReader) -> Optional[str]:
        for parser in self.parsers:
            token = parser(request)
            if token:
                return token
        return None

    def __len__(self) -> int:
        return len(self.parsers)

    def __repr__(self) -> str:
        return f"RequestParserChain({list(self.parsers)!r})"


def build_extractor(spec: Union[ParserSpec, Mapping[str, Any]]) -> Extractor:
    if isinstance(spec, ParserSpec):
        spec = spec.model_dump(exclude_none=True)

    kind = spec.get("type")
    factory = EXTRACTORS.get(kind)
    if factory is None:
        raise ConfigError(
            f"Unknown request parser type '{kind}'",
            details={"supported": sorted(EXTRACTORS)},
        )

    options = {key: value for key, value in spec.items() if key in ("name", "prefix") and value is not None}
    if "prefix" in options and kind != "header":
        raise ConfigError(f"Parser type '{kind}' does not take a prefix")
    return factory(**options)
