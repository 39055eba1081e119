"""
Unit tests for request token extractors and the parser chain.
"""

from types import SimpleNamespace

import pytest
from starlette.requests import Request

from service_tokens.app.parsers.chain import DEFAULT_PARSER_SPECS, RequestParserChain
from service_tokens.app.parsers.extractors import (
    AuthorizationHeader,
    Cookie,
    InputSource,
    QueryString,
    RequestData,
)
from shared.config import ParserSpec
from shared.errors import ConfigError


class TestAuthorizationHeader:
    """Test cases for AuthorizationHeader."""

    def test_bearer_token(self):
        """Test standard bearer header."""
        request = RequestData(headers={"Authorization": "Bearer abc.def.ghi"})
        assert AuthorizationHeader()(request) == "abc.def.ghi"

    def test_header_name_case_insensitive(self):
        """Test header lookup ignores case."""
        request = RequestData(headers={"authorization": "Bearer abc"})
        assert AuthorizationHeader()(request) == "abc"

    @pytest.mark.parametrize("value", [
        "Bearerabc",
        "Basic abc",
        "bearer abc",
        "Bearer ",
        "Bearer    ",
        "Bearer  abc",
        "Bearer \tabc",
        "",
    ])
    def test_rejected_values(self, value):
        """Test values without the exact prefix and a token."""
        request = RequestData(headers={"Authorization": value})
        assert AuthorizationHeader()(request) is None

    def test_custom_prefix_and_header(self):
        """Test configurable prefix and header name."""
        request = RequestData(headers={"X-Api-Token": "Token abc"})
        assert AuthorizationHeader(prefix="Token", name="X-Api-Token")(request) == "abc"

    def test_missing_header(self):
        """Test request without the header."""
        assert AuthorizationHeader()(RequestData()) is None


class TestSimpleExtractors:
    """Test cases for query, cookie and body extractors."""

    def test_query_string(self):
        """Test named query parameter."""
        assert QueryString()(RequestData(query_params={"token": " abc "})) == "abc"
        assert QueryString("jwt")(RequestData(query_params={"token": "abc"})) is None

    def test_cookie(self):
        """Test named cookie; whitespace-only is absent."""
        assert Cookie()(RequestData(cookies={"token": "abc"})) == "abc"
        assert Cookie()(RequestData(cookies={"token": "   "})) is None

    def test_input_mapping_body(self):
        """Test mapping body field."""
        assert InputSource()(RequestData(body={"token": "abc"})) == "abc"

    def test_input_object_body(self):
        """Test object body attribute."""
        assert InputSource()(RequestData(body=SimpleNamespace(token="abc"))) == "abc"

    @pytest.mark.parametrize("body", [None, {}, {"token": 123}, {"token": "  "}, ["token"]])
    def test_input_absent(self, body):
        """Test bodies without a usable field."""
        assert InputSource()(RequestData(body=body)) is None


class TestRequestParserChain:
    """Test cases for RequestParserChain."""

    def test_first_match_wins(self):
        """Test header beats query when both are present."""
        chain = RequestParserChain([AuthorizationHeader(), QueryString()])
        request = RequestData(
            headers={"Authorization": "Bearer from-header"},
            query_params={"token": "from-query"},
        )

        assert chain.extract(request) == "from-header"

    def test_falls_through(self):
        """Test later extractor used when earlier ones find nothing."""
        chain = RequestParserChain([AuthorizationHeader(), QueryString()])

        assert chain.extract(RequestData(query_params={"token": "from-query"})) == "from-query"

    def test_nothing_found(self):
        """Test empty result."""
        assert RequestParserChain.default().extract(RequestData()) is None

    def test_default_order(self):
        """Test default chain is header, query, input, cookie."""
        chain = RequestParserChain.default()

        assert [parser.kind for parser in chain.parsers] == ["header", "query", "input", "cookie"]
        assert len(DEFAULT_PARSER_SPECS) == 4

    def test_from_specs(self):
        """Test chain built from configuration entries."""
        chain = RequestParserChain.from_specs([
            {"type": "cookie", "name": "session"},
            ParserSpec(type="header", prefix="JWT"),
        ])
        request = RequestData(headers={"Authorization": "JWT abc"}, cookies={"session": "xyz"})

        assert chain.extract(request) == "xyz"
        assert chain.parsers[1].prefix == "JWT"

    def test_unknown_type(self):
        """Test unknown parser type is a configuration error."""
        with pytest.raises(ConfigError):
            RequestParserChain.from_specs([{"type": "form"}])

    def test_prefix_only_for_headers(self):
        """Test prefix is rejected for non-header parsers."""
        with pytest.raises(ConfigError):
            RequestParserChain.from_specs([{"type": "query", "prefix": "Bearer"}])


class TestRequestData:
    """Test cases for RequestData.from_starlette."""

    def _request(self, method="GET", headers=None, query=b"", body=b""):
        scope = {
            "type": "http",
            "method": method,
            "path": "/",
            "query_string": query,
            "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        }

        async def receive():
            return {"type": "http.request", "body": body, "more_body": False}

        return Request(scope, receive)

    @pytest.mark.asyncio
    async def test_headers_query_and_cookies(self):
        """Test snapshot of header, query and cookie values."""
        request = self._request(
            headers={"Authorization": "Bearer abc", "Cookie": "token=xyz"},
            query=b"token=qqq",
        )

        data = await RequestData.from_starlette(request)

        assert data.header("Authorization") == "Bearer abc"
        assert data.query("token") == "qqq"
        assert data.cookie("token") == "xyz"
        assert data.body is None

    @pytest.mark.asyncio
    async def test_json_body(self):
        """Test JSON body is decoded."""
        request = self._request(
            method="POST",
            headers={"Content-Type": "application/json"},
            body=b'{"token": "abc"}',
        )

        data = await RequestData.from_starlette(request)

        assert InputSource()(data) == "abc"

    @pytest.mark.asyncio
    async def test_invalid_json_body(self):
        """Test undecodable JSON is treated as no body."""
        request = self._request(
            method="POST",
            headers={"Content-Type": "application/json"},
            body=b"{not json",
        )

        data = await RequestData.from_starlette(request)

        assert data.body is None

    @pytest.mark.asyncio
    async def test_form_body(self):
        """Test urlencoded form body is decoded."""
        request = self._request(
            method="POST",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            body=b"token=abc",
        )

        data = await RequestData.from_starlette(request)

        assert InputSource()(data) == "abc"
