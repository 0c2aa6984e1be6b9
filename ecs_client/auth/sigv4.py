"""
AWS Signature Version 4 signing for Amazon ECS requests.

This module implements Amazon's Signature Version 4 signing algorithm, which is
required to make authenticated requests to any Amazon Web Service. Signing runs
in four steps:

1. Build the canonical request and hash it
   (http://docs.aws.amazon.com/general/latest/gr/sigv4-create-canonical-request.html)
2. Build the string to sign from the hashed canonical request and the
   credential scope
   (http://docs.aws.amazon.com/general/latest/gr/sigv4-create-string-to-sign.html)
3. Derive a signing key from the secret access key and sign the string to sign
4. Put the signature into the Authorization header
   (http://docs.aws.amazon.com/general/latest/gr/sigv4-add-signature-to-request.html)

Every function here is pure: the request timestamp is captured once by the
caller and passed through all four steps, so the credential scope inside the
string to sign and the one in the Authorization header always agree.

Usage:
    from ecs_client.auth import SigV4Auth, StaticCredentialProvider

    auth = SigV4Auth(
        region="us-east-1",
        service="ecs",
        credential_provider=StaticCredentialProvider("AKID", "secret"),
    )
    signed = auth.sign_request(request)
    signed.get_header("Authorization")
"""

import datetime
import hashlib
import hmac
import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Union
from urllib.parse import quote, unquote_to_bytes, urlparse

from ..errors import CredentialError, EncodingError
from ..request import SignableRequest, format_amz_date
from .credentials import (
    AWSCredentials,
    BotoCredentialProvider,
    CredentialProvider,
    EnvironmentCredentialProvider,
    StaticCredentialProvider,
)

logger = logging.getLogger(__name__)

# The algorithm used for calculating the authentication signature.
SIGNING_ALGORITHM = "AWS4-HMAC-SHA256"

# Prefix of the secret access key when deriving the signing key.
AWS4 = "AWS4"

# Termination string used in the credential scope and key derivation.
TERMINATION_STRING = "aws4_request"

# Field names of the Authorization header.
CREDENTIAL = "Credential"
SIGNED_HEADERS = "SignedHeaders"
SIGNATURE = "Signature"

# SHA-256 of the empty string
EMPTY_BODY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

# Headers signed whatever the allow-list says; the service rejects requests
# that leave them unsigned.
REQUIRED_SIGNED_HEADERS = frozenset({"host", "x-amz-date", "x-amz-security-token"})

# Never part of the canonical request.
UNSIGNABLE_HEADERS = frozenset({"authorization"})

_AMZ_DATE_RE = re.compile(r"^\d{8}T\d{6}Z$")
_DATE_STAMP_RE = re.compile(r"^\d{8}$")
# Runs of Unicode whitespace, excluding the ASCII separators 0x1c-0x1f.
_WHITESPACE_RUN = re.compile(r"[^\S\x1c-\x1f]+")


@dataclass(frozen=True)
class CanonicalRequest:
    """Output of the canonical request step."""
    canonical_request: str
    signed_headers: str
    hashed_canonical_request: str


@dataclass(frozen=True)
class StringToSign:
    """Output of the string-to-sign step."""
    string_to_sign: str
    credential_scope: str


@dataclass(frozen=True)
class SignatureResult:
    """Everything the Authorization header needs from the signing process."""
    signature: str
    credential_scope: str
    signed_headers: str


def hash_to_hex(data: Union[bytes, str]) -> str:
    """Hash ``data`` with SHA-256 and return the lowercase hex digest."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def hex_encode(data: bytes) -> str:
    """Encode raw bytes as lowercase hex."""
    return data.hex()


def _hmac(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def fmt_canonical_header(name: str, value: str) -> str:
    """
    Format a single header in canonical form.

    The name is lowercased, runs of whitespace inside the value are collapsed
    to a single space, the value is trimmed, and the line ends with a newline:

        >>> fmt_canonical_header("X-Amz-Target", "  a   b\\tc ")
        'x-amz-target:a b c\\n'

    Whitespace means the Unicode White_Space characters (tabs, newlines,
    no-break and em spaces and so on). The ASCII separators ``\\x1c``-``\\x1f``
    are not whitespace here, although ``str.split`` would treat them as such.
    """
    return f"{name.lower()}:{_WHITESPACE_RUN.sub(' ', value).strip(' ')}\n"


def _canonical_uri(path: str) -> str:
    return quote(path or "/", safe="/-_.~")


def _decode_query_component(component: str) -> str:
    # "+" stays a literal plus; only percent escapes are decoded.
    try:
        return unquote_to_bytes(component).decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncodingError(
            f"Query string component is not valid UTF-8: {component!r}",
            details={"query": component},
        ) from e


def _canonical_query_string(query: str) -> str:
    if not query:
        return ""
    params = []
    for pair in query.split("&"):
        if not pair:
            continue
        key, _, value = pair.partition("=")
        params.append((
            quote(_decode_query_component(key), safe="-_.~"),
            quote(_decode_query_component(value), safe="-_.~"),
        ))
    return "&".join(f"{key}={value}" for key, value in sorted(params))


def select_signed_headers(
    request: SignableRequest,
    signable_headers: Optional[Iterable[str]] = None,
) -> dict[str, str]:
    """
    Pick the headers that take part in the signature.

    With no allow-list every header on the request is signed. With an
    allow-list only the listed headers are signed, plus the headers in
    REQUIRED_SIGNED_HEADERS whenever they are present. Authorization is never
    signed.

    Returns:
        Lowercase header name -> value
    """
    allowed = None
    if signable_headers is not None:
        allowed = {name.lower() for name in signable_headers} | REQUIRED_SIGNED_HEADERS

    selected: dict[str, str] = {}
    for name, value in request.headers.items():
        lowered = name.lower()
        if lowered in UNSIGNABLE_HEADERS:
            continue
        if allowed is not None and lowered not in allowed:
            continue
        if lowered in selected:
            raise EncodingError(f"Duplicate header name: {name!r}", details={"header": name})
        selected[lowered] = value
    return selected


def build_canonical_request(
    request: SignableRequest,
    signable_headers: Optional[Iterable[str]] = None,
) -> CanonicalRequest:
    """
    Build the canonical request according to
    http://docs.aws.amazon.com/general/latest/gr/sigv4-create-canonical-request.html .

    The canonical request contains the method, URI and query string, then the
    headers with lowercase names sorted by character code, then the list of
    signed headers, then the SHA-256 hash of the body. The whole request is
    hashed again so the result can go straight into the string to sign.

    Args:
        request: The request to sign
        signable_headers: Optional allow-list, see select_signed_headers

    Returns:
        CanonicalRequest with the canonical text, signed headers and hash
    """
    headers = select_signed_headers(request, signable_headers)
    names = sorted(headers, key=lambda name: name.encode("utf-8"))

    canonical_headers = "".join(fmt_canonical_header(name, headers[name]) for name in names)
    signed_headers = ";".join(names)

    canonical_request = "\n".join([
        request.method.upper(),
        _canonical_uri(request.path),
        _canonical_query_string(request.query),
        canonical_headers,
        signed_headers,
        hash_to_hex(request.body),
    ])

    return CanonicalRequest(
        canonical_request=canonical_request,
        signed_headers=signed_headers,
        hashed_canonical_request=hash_to_hex(canonical_request),
    )


def build_credential_scope(date_stamp: str, region: str, service: str) -> str:
    """
    Build the credential scope: the date portion of the X-Amz-Date header,
    the region, the service abbreviation and the termination string, each
    separated by "/", followed by a newline. For example:

        20160421/us-east-1/ecs/aws4_request\\n

    Raises:
        ValueError: If the date is not 8 digits or region/service contain "/"
    """
    if not _DATE_STAMP_RE.match(date_stamp):
        raise ValueError(f"Date stamp must be 8 digits (YYYYMMDD), got {date_stamp!r}")
    for label, value in (("region", region), ("service", service)):
        if not value or "/" in value:
            raise ValueError(f"Invalid {label} for credential scope: {value!r}")
    return f"{date_stamp}/{region}/{service}/{TERMINATION_STRING}\n"


def build_string_to_sign(
    amz_date: str,
    region: str,
    service: str,
    hashed_canonical_request: str,
) -> StringToSign:
    """
    Build the string to sign according to
    http://docs.aws.amazon.com/general/latest/gr/sigv4-create-string-to-sign.html .

    The credential scope is returned with it so the Authorization header can
    reuse the exact same value.

    Args:
        amz_date: Full request timestamp, YYYYMMDDTHHMMSSZ
        region: Region name
        service: Service abbreviation
        hashed_canonical_request: Hex SHA-256 of the canonical request
    """
    if not _AMZ_DATE_RE.match(amz_date):
        raise EncodingError(f"X-Amz-Date must be YYYYMMDDTHHMMSSZ, got {amz_date!r}")

    credential_scope = build_credential_scope(amz_date[:8], region, service)
    # the scope already ends with a newline
    string_to_sign = (
        f"{SIGNING_ALGORITHM}\n{amz_date}\n{credential_scope}{hashed_canonical_request}"
    )
    return StringToSign(string_to_sign=string_to_sign, credential_scope=credential_scope)


def derive_signing_key(secret_key: str, date_stamp: str, region: str, service: str) -> bytes:
    """
    Derive the signing key from the secret access key, the request date, the
    region and the service.

    Raises:
        CredentialError: If the secret access key is missing or empty
    """
    if not secret_key:
        raise CredentialError("AWS secret access key is missing or empty")

    k_date = _hmac(f"{AWS4}{secret_key}".encode("utf-8"), date_stamp)
    k_region = _hmac(k_date, region)
    k_service = _hmac(k_region, service)
    return _hmac(k_service, TERMINATION_STRING)


def sign(signing_key: bytes, string_to_sign: str) -> str:
    """Sign the string to sign and return the hex signature."""
    return hex_encode(_hmac(signing_key, string_to_sign))


def calculate_signature(
    request: SignableRequest,
    credentials: AWSCredentials,
    region: str,
    service: str,
    amz_date: str,
    signable_headers: Optional[Iterable[str]] = None,
) -> SignatureResult:
    """
    Calculate the Version 4 signature, following
    http://docs.aws.amazon.com/general/latest/gr/signature-version-4.html .

    ``amz_date`` must be the same value the request carries in X-Amz-Date.

    Raises:
        CredentialError: If the credentials are incomplete
        EncodingError: If ``amz_date`` is malformed
    """
    credentials.validate()

    canonical = build_canonical_request(request, signable_headers)
    logger.debug(
        "Canonical request hash %s, signed headers %s",
        canonical.hashed_canonical_request,
        canonical.signed_headers,
    )

    string_to_sign = build_string_to_sign(
        amz_date, region, service, canonical.hashed_canonical_request
    )
    logger.debug("String to sign:\n%s", string_to_sign.string_to_sign)

    signing_key = derive_signing_key(credentials.secret_key, amz_date[:8], region, service)
    signature = sign(signing_key, string_to_sign.string_to_sign)

    return SignatureResult(
        signature=signature,
        credential_scope=string_to_sign.credential_scope,
        signed_headers=canonical.signed_headers,
    )


def build_auth_header(
    access_key_id: str,
    credential_scope: str,
    signed_headers: str,
    signature: str,
) -> str:
    """
    Build the Authorization header value: the signing algorithm, then
    Credential (access key id and credential scope), SignedHeaders and
    Signature, in that order.
    """
    scope = credential_scope.rstrip("\n")
    return (
        f"{SIGNING_ALGORITHM} "
        f"{CREDENTIAL}={access_key_id}/{scope}, "
        f"{SIGNED_HEADERS}={signed_headers}, "
        f"{SIGNATURE}={signature}"
    )


class SigV4Auth:
    """
    AWS Signature Version 4 authentication handler.

    Credentials are looked up from the provider on every call; nothing is
    cached between calls, so one instance can sign requests from several
    threads at once.

    Attributes:
        region: AWS region (e.g., "us-east-1")
        service: AWS service abbreviation (e.g., "ecs")
        credential_provider: Source of the access key id and secret key
        signable_headers: Optional header allow-list, None signs every header
    """

    ALGORITHM = SIGNING_ALGORITHM

    def __init__(
        self,
        region: str,
        service: str = "ecs",
        credential_provider: Optional[CredentialProvider] = None,
        profile_name: Optional[str] = None,
        signable_headers: Optional[Iterable[str]] = None,
    ):
        """
        Initialize SigV4Auth.

        Args:
            region: AWS region
            service: AWS service abbreviation
            credential_provider: Credential source; defaults to the boto3
                chain when ``profile_name`` is given, the environment otherwise
            profile_name: Optional AWS profile name
            signable_headers: Optional header allow-list
        """
        self.region = str(region)
        self.service = service
        if credential_provider is None:
            if profile_name:
                credential_provider = BotoCredentialProvider(profile_name)
            else:
                credential_provider = EnvironmentCredentialProvider()
        self.credential_provider = credential_provider
        self.signable_headers = (
            frozenset(name.lower() for name in signable_headers)
            if signable_headers is not None
            else None
        )

    def sign_request(
        self,
        request: SignableRequest,
        timestamp: Optional[datetime.datetime] = None,
    ) -> SignableRequest:
        """
        Sign a request using AWS SigV4.

        Credentials come from the provider; see sign_with_credentials for the
        rest.

        Raises:
            CredentialError: If credentials are missing
            EncodingError: If the request cannot be canonicalized
        """
        credentials = self.credential_provider.resolve()
        return self.sign_with_credentials(request, credentials, timestamp)

    def sign_with_credentials(
        self,
        request: SignableRequest,
        credentials: AWSCredentials,
        timestamp: Optional[datetime.datetime] = None,
    ) -> SignableRequest:
        """
        Sign a request with already resolved credentials. No I/O is done.

        The request time is taken from its X-Amz-Date header when present,
        otherwise from ``timestamp`` (default: now) and added as X-Amz-Date.

        Args:
            request: The request to sign
            credentials: Credentials to sign with
            timestamp: Request time when the request has no X-Amz-Date header

        Returns:
            A new request carrying X-Amz-Date, the Authorization header and,
            for temporary credentials, X-Amz-Security-Token

        Raises:
            CredentialError: If credentials are incomplete
            EncodingError: If the request cannot be canonicalized
        """
        amz_date = request.get_header("x-amz-date")
        if amz_date is None:
            amz_date = format_amz_date(
                timestamp or datetime.datetime.now(datetime.timezone.utc)
            )

        extra_headers = {"X-Amz-Date": amz_date}
        if credentials.session_token:
            extra_headers["X-Amz-Security-Token"] = credentials.session_token
        request = request.with_headers(extra_headers)

        result = calculate_signature(
            request,
            credentials,
            self.region,
            self.service,
            amz_date,
            self.signable_headers,
        )

        authorization_header = build_auth_header(
            credentials.access_key,
            result.credential_scope,
            result.signed_headers,
            result.signature,
        )
        logger.debug(
            "Signed %s %s for %s/%s", request.method, request.path, self.region, self.service
        )
        return request.with_headers({"Authorization": authorization_header})


def create_sigv4_headers(
    method: str,
    url: str,
    region: str,
    body: Union[bytes, str] = b"",
    service: str = "ecs",
    headers: Optional[dict[str, str]] = None,
    credential_provider: Optional[CredentialProvider] = None,
    credentials: Optional[AWSCredentials] = None,
    timestamp: Optional[datetime.datetime] = None,
) -> dict[str, str]:
    """
    Convenience function to create SigV4-signed headers for a URL.

    Args:
        method: HTTP method
        url: Request URL
        region: AWS region
        body: Request body
        service: AWS service abbreviation
        headers: Optional existing headers
        credential_provider: Credential source (see SigV4Auth)
        credentials: Fixed credentials, used when no provider is given
        timestamp: Request time, defaults to now

    Returns:
        Dictionary of all request headers including Authorization
    """
    if credential_provider is None and credentials is not None:
        credential_provider = StaticCredentialProvider(
            credentials.access_key, credentials.secret_key, credentials.session_token
        )

    parsed = urlparse(url)
    request = SignableRequest.create(
        method=method,
        host=parsed.netloc,
        path=parsed.path or "/",
        query=parsed.query,
        headers=headers,
        body=body,
    )
    auth = SigV4Auth(region=region, service=service, credential_provider=credential_provider)
    return dict(auth.sign_request(request, timestamp=timestamp).headers)
