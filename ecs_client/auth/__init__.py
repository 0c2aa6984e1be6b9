"""
Authentication utilities for the ECS client.

This module provides AWS SigV4 request signing and the credential providers
that feed it.
"""

from .credentials import (
    AWSCredentials,
    BaseCredentialProvider,
    BotoCredentialProvider,
    CredentialProvider,
    EnvironmentCredentialProvider,
    StaticCredentialProvider,
    get_aws_credentials,
)
from .sigv4 import (
    EMPTY_BODY_SHA256,
    SIGNING_ALGORITHM,
    TERMINATION_STRING,
    CanonicalRequest,
    SignatureResult,
    SigV4Auth,
    StringToSign,
    build_auth_header,
    build_canonical_request,
    build_credential_scope,
    build_string_to_sign,
    calculate_signature,
    create_sigv4_headers,
    derive_signing_key,
    fmt_canonical_header,
    hash_to_hex,
    hex_encode,
)

__all__ = [
    # Credentials
    "AWSCredentials",
    "BaseCredentialProvider",
    "BotoCredentialProvider",
    "CredentialProvider",
    "EnvironmentCredentialProvider",
    "StaticCredentialProvider",
    "get_aws_credentials",
    # Signing
    "EMPTY_BODY_SHA256",
    "SIGNING_ALGORITHM",
    "TERMINATION_STRING",
    "CanonicalRequest",
    "SignatureResult",
    "SigV4Auth",
    "StringToSign",
    "build_auth_header",
    "build_canonical_request",
    "build_credential_scope",
    "build_string_to_sign",
    "calculate_signature",
    "create_sigv4_headers",
    "derive_signing_key",
    "fmt_canonical_header",
    "hash_to_hex",
    "hex_encode",
]
