"""ecs-client - a small Amazon ECS client with AWS SigV4 request signing."""

from .actions import ECSAction, ListClustersRequest, ListClustersResponse
from .auth import (
    AWSCredentials,
    BotoCredentialProvider,
    CredentialProvider,
    EnvironmentCredentialProvider,
    SigV4Auth,
    StaticCredentialProvider,
    create_sigv4_headers,
)
from .client import AsyncECSClient, ECSClient, create_ecs_client
from .config import ClientConfig
from .errors import CredentialError, ECSClientError, ECSError, EncodingError
from .region import Region
from .request import SignableRequest, build_ecs_request

__all__ = [
    # Client
    "ECSClient",
    "AsyncECSClient",
    "create_ecs_client",
    "ClientConfig",
    "Region",
    # Actions
    "ECSAction",
    "ListClustersRequest",
    "ListClustersResponse",
    # Signing
    "SigV4Auth",
    "SignableRequest",
    "build_ecs_request",
    "create_sigv4_headers",
    # Credentials
    "AWSCredentials",
    "CredentialProvider",
    "BotoCredentialProvider",
    "EnvironmentCredentialProvider",
    "StaticCredentialProvider",
    # Errors
    "ECSClientError",
    "CredentialError",
    "EncodingError",
    "ECSError",
]
