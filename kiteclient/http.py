"""HTTP transport that understands the API's JSON envelopes."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union
from urllib.parse import urlencode, urlsplit, urlunsplit

import requests
from requests.adapters import HTTPAdapter

from .errors import DATA_ERROR, NETWORK_ERROR, KiteError, new_error

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
_BODY_METHODS = frozenset({"POST", "PUT"})
_QUERY_METHODS = frozenset({"GET", "DELETE"})
_DEFAULT_TIMEOUT = 5.0

Params = Union[Mapping[str, Any], Iterable[tuple[str, Any]], None]


@dataclass
class HTTPResponse:
    """Body, status code and headers of a completed request."""

    body: bytes
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)


def _encode_params(params: Params) -> str:
    """Form-encode params with keys in sorted order, repeating list values."""
    if not params:
        return ""
    pairs = params.items() if isinstance(params, Mapping) else params
    expanded: list[tuple[str, Any]] = []
    for key, value in pairs:
        if isinstance(value, (list, tuple)):
            expanded.extend((key, item) for item in value)
        else:
            expanded.append((key, value))
    expanded.sort(key=lambda pair: pair[0])
    return urlencode(expanded)


def _with_query(url: str, query: str) -> str:
    return urlunsplit(urlsplit(url)._replace(query=query))


def _parse_json(body: bytes) -> Any:
    try:
        return json.loads(body)
    except ValueError as exc:
        raise new_error(DATA_ERROR, "Error parsing response.") from exc


def read_envelope(response: HTTPResponse) -> Any:
    """Return the data of a success envelope, or raise the error envelope."""
    if response.status_code >= 400:
        payload = _parse_json(response.body)
        if not isinstance(payload, dict):
            raise new_error(DATA_ERROR, "Error parsing response.")
        raise KiteError(
            payload.get("message") or "",
            payload.get("error_type") or "",
            response.status_code,
            payload.get("data"),
        )

    payload = _parse_json(response.body)
    if not isinstance(payload, dict):
        raise new_error(DATA_ERROR, "Error parsing response.")
    return payload.get("data")


class HTTPClient:
    """A keep-alive HTTP client for the API."""

    def __init__(
        self,
        session: requests.Session | None = None,
        logger: logging.Logger | None = None,
        debug: bool = False,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(pool_maxsize=10)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        self.session = session
        self.logger = logger or logging.getLogger(__name__)
        self.debug = debug
        self.timeout = timeout

    def do(
        self,
        method: str,
        url: str,
        params: Params = None,
        headers: Mapping[str, str] | None = None,
    ) -> HTTPResponse:
        """Send params form-encoded: in the body or as the query string."""
        return self.do_raw(method, url, _encode_params(params).encode(), headers)

    def do_raw(
        self,
        method: str,
        url: str,
        body: bytes | str = b"",
        headers: Mapping[str, str] | None = None,
    ) -> HTTPResponse:
        """Send a request with a raw body and return its response."""
        method = method.upper()
        if isinstance(body, str):
            body = body.encode()
        request_headers = dict(headers) if headers else {}

        if method in _BODY_METHODS:
            has_type = any(
                key.lower() == "content-type" and value
                for key, value in request_headers.items()
            )
            if not has_type:
                request_headers["Content-Type"] = _FORM_CONTENT_TYPE
        data = body if method in _BODY_METHODS else None

        if method in _QUERY_METHODS:
            url = _with_query(url, body.decode())

        try:
            resp = self.session.request(
                method,
                url,
                data=data,
                headers=request_headers,
                timeout=self.timeout,
                stream=True,
            )
        except (
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
            requests.exceptions.InvalidURL,
        ) as exc:
            self.logger.error("Request preparation failed: %s", exc)
            raise new_error(NETWORK_ERROR, "Request preparation failed.") from exc
        except requests.RequestException as exc:
            self.logger.error("Request failed: %s", exc)
            raise new_error(NETWORK_ERROR, "Request failed.") from exc

        try:
            content = resp.content
        except requests.RequestException as exc:
            self.logger.error("Unable to read response: %s", exc)
            raise new_error(DATA_ERROR, "Error reading response.") from exc
        finally:
            resp.close()

        if self.debug:
            target = urlsplit(resp.request.url if resp.request else url)
            uri = target.path + (f"?{target.query}" if target.query else "")
            self.logger.info(
                "%s %s -- %d %s", method, uri, resp.status_code, request_headers
            )

        return HTTPResponse(
            body=content, status_code=resp.status_code, headers=dict(resp.headers)
        )

    def do_envelope(
        self,
        method: str,
        url: str,
        params: Params = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """Make a request and return the data of its JSON envelope."""
        return read_envelope(self.do(method, url, params, headers))

    def do_json(
        self,
        method: str,
        url: str,
        params: Params = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """Make a request and return its body decoded as JSON."""
        response = self.do(method, url, params, headers)
        try:
            return json.loads(response.body)
        except ValueError as exc:
            self.logger.error(
                "Error parsing JSON response: %s | %r", exc, response.body
            )
            raise new_error(DATA_ERROR, "Error parsing response.") from exc