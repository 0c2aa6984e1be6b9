"""
Signable requests and the Amazon ECS request builder.

A SignableRequest is an immutable view of everything that goes into a SigV4
signature: method, host, path, query string, headers and a fully materialized
body. Input is validated once, when the request is created, so the signing
engine only ever sees well-formed text.

Usage:
    from ecs_client.request import SignableRequest, build_ecs_request

    request = SignableRequest.create(
        method="POST",
        host="ecs.us-east-1.amazonaws.com",
        headers={"Content-Type": "application/x-amz-json-1.1"},
        body=b"{}",
    )

    request = build_ecs_request(Region.US_EAST_1, ECSAction.LIST_CLUSTERS, {})
"""

import datetime
import json
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional, Union

from .actions import ECSAction
from .errors import EncodingError
from .region import Region

# Timestamp format of the X-Amz-Date header
AMZ_DATE_FORMAT = "%Y%m%dT%H%M%SZ"

# The MIME sublevel content type of an ECS HTTP request body
AMZ_SUBLEVEL_CONTENT_TYPE = "x-amz-json-1.1"

ECS_CONTENT_TYPE = f"application/{AMZ_SUBLEVEL_CONTENT_TYPE}"

# ECS is not compressed on the wire; requesting identity keeps the header stable
ACCEPT_ENCODING = "identity"

Body = Union[bytes, bytearray, str]


def format_amz_date(timestamp: datetime.datetime) -> str:
    """
    Format a timestamp for the X-Amz-Date header (``YYYYMMDDTHHMMSSZ``).

    Naive datetimes are taken to be UTC already.
    """
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(datetime.timezone.utc)
    return timestamp.strftime(AMZ_DATE_FORMAT)


def _check_text(label: str, value: Any) -> str:
    if not isinstance(value, str):
        raise EncodingError(
            f"{label} must be a string, got {type(value).__name__}",
            details={"field": label},
        )
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise EncodingError(f"{label} is not valid UTF-8: {e}", details={"field": label}) from e
    return value


def _materialize_body(body: Optional[Body]) -> bytes:
    if body is None:
        return b""
    if isinstance(body, str):
        try:
            return body.encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncodingError(f"Request body is not valid UTF-8: {e}") from e
    if isinstance(body, (bytes, bytearray)):
        data = bytes(body)
        try:
            data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError(f"Request body is not valid UTF-8: {e}") from e
        return data
    raise EncodingError(
        f"Request body must be bytes or str, got {type(body).__name__}"
    )


@dataclass(frozen=True)
class SignableRequest:
    """
    An HTTP request ready to be signed.

    Build instances with ``SignableRequest.create`` so headers and body are
    validated; the dataclass constructor itself does no checking.

    Attributes:
        method: HTTP method (upper case)
        host: Host the request is sent to
        path: Request path, "/" when empty
        query: Raw query string without the leading "?", may be empty
        headers: Header name -> value; names are case-insensitive
        body: Request body bytes, possibly empty
    """
    method: str
    host: str
    path: str = "/"
    query: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    @classmethod
    def create(
        cls,
        method: str,
        host: str,
        path: str = "/",
        query: str = "",
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[Body] = None,
    ) -> "SignableRequest":
        """
        Validate input and build a request.

        A ``Host`` header is added from ``host`` when the caller did not set one.

        Raises:
            EncodingError: If a header or the body is not valid UTF-8 text, a
                header name is empty or malformed, or two header names differ
                only in case
        """
        method = _check_text("method", method).upper()
        host = _check_text("host", host)
        path = _check_text("path", path) or "/"
        query = _check_text("query", query or "")

        validated: dict[str, str] = {}
        seen: set[str] = set()
        for name, value in (headers or {}).items():
            name = _check_text("header name", name)
            value = _check_text(f"header {name!r}", value)
            if not name or ":" in name or any(ch.isspace() for ch in name):
                raise EncodingError(f"Invalid header name: {name!r}", details={"header": name})
            lowered = name.lower()
            if lowered in seen:
                raise EncodingError(
                    f"Duplicate header name: {name!r}", details={"header": name}
                )
            seen.add(lowered)
            validated[name] = value

        if "host" not in seen:
            validated["Host"] = host

        return cls(
            method=method,
            host=host,
            path=path,
            query=query,
            headers=validated,
            body=_materialize_body(body),
        )

    @property
    def url(self) -> str:
        """Full https URL of the request."""
        url = f"https://{self.host}{self.path}"
        if self.query:
            url += f"?{self.query}"
        return url

    def get_header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def with_headers(self, extra: Mapping[str, str]) -> "SignableRequest":
        """
        Return a copy with ``extra`` headers set, replacing any existing header
        of the same (case-insensitive) name.
        """
        replaced = {key.lower() for key in extra}
        headers = {
            key: value
            for key, value in self.headers.items()
            if key.lower() not in replaced
        }
        for name, value in extra.items():
            headers[_check_text("header name", name)] = _check_text(f"header {name!r}", value)
        return replace(self, headers=headers)


def build_ecs_request(
    region: Region,
    action: ECSAction,
    payload: Mapping[str, Any],
    timestamp: Optional[datetime.datetime] = None,
    host: Optional[str] = None,
) -> SignableRequest:
    """
    Build an unsigned ECS JSON request for ``action``.

    Every header ECS requires is set here, since they all take part in the
    canonical headers block: Host, Accept-Encoding, Content-Type,
    Content-Length, X-Amz-Target and X-Amz-Date.

    Args:
        region: Region the request is sent to
        action: API action, used for the X-Amz-Target header
        payload: JSON-serializable request parameters
        timestamp: Request time; defaults to now (UTC)
        host: Override for the endpoint host

    Returns:
        SignableRequest ready for SigV4Auth.sign_request
    """
    timestamp = timestamp or datetime.datetime.now(datetime.timezone.utc)
    host = host or region.hostname()
    body = json.dumps(dict(payload), separators=(",", ":")).encode("utf-8")

    return SignableRequest.create(
        method="POST",
        host=host,
        path="/",
        headers={
            "Host": host,
            "Accept-Encoding": ACCEPT_ENCODING,
            "Content-Type": ECS_CONTENT_TYPE,
            "Content-Length": str(len(body)),
            "X-Amz-Target": action.target,
            "X-Amz-Date": format_amz_date(timestamp),
        },
        body=body,
    )
