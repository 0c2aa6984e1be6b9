"""
Amazon ECS client with SigV4 authentication.

This module provides a small client for the Amazon ECS JSON API. Every request
is built, signed and only then handed to httpx; if signing fails the request
is never sent.

Usage:
    from ecs_client import ECSClient, Region

    # Credentials come from AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY
    with ECSClient(Region.US_WEST_2) as client:
        response = client.list_clusters()
        for cluster_arn in response.cluster_arns:
            print(cluster_arn)

    # Async variant
    async with AsyncECSClient(Region.US_WEST_2) as client:
        arns = await client.list_all_clusters()
"""

import asyncio
import datetime
import logging
from typing import Any, Optional, Union

import httpx
from opentelemetry import trace

from .actions import ECSAction, ListClustersRequest, ListClustersResponse
from .auth import AWSCredentials, CredentialProvider, SigV4Auth
from .config import ClientConfig
from .errors import ECSClientError, ECSError
from .region import Region
from .request import SignableRequest, build_ecs_request
from .tracing import add_request_span_attributes, traced

logger = logging.getLogger(__name__)

# Service abbreviation used in the credential scope
ECS_SERVICE = "ecs"


class _BaseECSClient:
    """Request building, signing and response parsing shared by both clients."""

    def __init__(
        self,
        region: Union[Region, str] = Region.US_EAST_1,
        credential_provider: Optional[CredentialProvider] = None,
        profile_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        timeout_seconds: float = 30.0,
    ):
        """
        Initialize the client.

        Args:
            region: Region requests are sent to
            credential_provider: Credential source; defaults to the environment
                (or the boto3 chain when ``profile_name`` is given)
            profile_name: Optional AWS profile name
            endpoint_url: Optional endpoint override, e.g. "http://localhost:4566"
            timeout_seconds: HTTP timeout per request
        """
        self.region = self._coerce_region(region)
        self.credential_provider = credential_provider
        self.profile_name = profile_name
        self.endpoint_url = endpoint_url.rstrip("/") if endpoint_url else None
        self.timeout_seconds = timeout_seconds
        self.sigv4_auth = self._create_auth()

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        credential_provider: Optional[CredentialProvider] = None,
    ):
        """Create a client from a ClientConfig."""
        return cls(
            region=config.aws_region,
            credential_provider=credential_provider,
            profile_name=config.profile_name or None,
            endpoint_url=config.endpoint_url or None,
            timeout_seconds=config.timeout_seconds,
        )

    @staticmethod
    def _coerce_region(region: Union[Region, str]) -> Region:
        if isinstance(region, Region):
            return region
        return Region.from_name(region)

    def _create_auth(self) -> SigV4Auth:
        return SigV4Auth(
            region=self.region.value,
            service=ECS_SERVICE,
            credential_provider=self.credential_provider,
            profile_name=self.profile_name,
        )

    def set_region(self, region: Union[Region, str]) -> None:
        """Set the region to which the client sends requests."""
        self.region = self._coerce_region(region)
        self.sigv4_auth = self._create_auth()

    @property
    def host(self) -> str:
        """Host requests are sent to."""
        if self.endpoint_url:
            return self.endpoint_url.split("://", 1)[-1].split("/", 1)[0]
        return self.region.hostname(ECS_SERVICE)

    @property
    def url(self) -> str:
        """URL requests are posted to."""
        return f"{self.endpoint_url}/" if self.endpoint_url else f"https://{self.host}/"

    def prepare_request(
        self,
        action: ECSAction,
        payload: dict[str, Any],
        timestamp: Optional[datetime.datetime] = None,
        credentials: Optional[AWSCredentials] = None,
    ) -> SignableRequest:
        """
        Build and sign a request for ``action``.

        Args:
            action: ECS API action
            payload: JSON request body
            timestamp: Request time, defaults to now
            credentials: Already resolved credentials; the provider is asked
                when omitted

        Raises:
            CredentialError: If credentials are missing
            EncodingError: If the request cannot be canonicalized
        """
        request = build_ecs_request(
            self.region, action, payload, timestamp=timestamp, host=self.host
        )
        if credentials is None:
            return self.sigv4_auth.sign_request(request)
        return self.sigv4_auth.sign_with_credentials(request, credentials)

    def _parse_response(self, action: ECSAction, response: httpx.Response) -> dict[str, Any]:
        add_request_span_attributes(
            trace.get_current_span(),
            action=action.value,
            region=self.region.value,
            host=self.host,
            status_code=response.status_code,
        )

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = None

        if response.status_code >= 400:
            error = ECSError.from_response(response.status_code, body)
            logger.warning("%s failed: %s", action.value, error)
            raise error

        if not isinstance(body, dict):
            raise ECSClientError(
                f"Unexpected {action.value} response body",
                error_code="INVALID_RESPONSE",
                details={"status_code": response.status_code},
            )
        return body


class ECSClient(_BaseECSClient):
    """
    Synchronous Amazon ECS client.

    Attributes:
        region: Region requests are sent to
        sigv4_auth: SigV4 signer for the current region
    """

    def __init__(
        self,
        region: Union[Region, str] = Region.US_EAST_1,
        credential_provider: Optional[CredentialProvider] = None,
        profile_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        timeout_seconds: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ):
        super().__init__(
            region=region,
            credential_provider=credential_provider,
            profile_name=profile_name,
            endpoint_url=endpoint_url,
            timeout_seconds=timeout_seconds,
        )
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.Client(timeout=timeout_seconds)

    def __enter__(self) -> "ECSClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client if this client created it."""
        if self._owns_http_client:
            self._http_client.close()

    def _invoke(self, action: ECSAction, payload: dict[str, Any]) -> dict[str, Any]:
        signed = self.prepare_request(action, payload)
        logger.debug("Sending %s to %s", action.value, self.url)
        try:
            response = self._http_client.post(
                self.url,
                content=signed.body,
                headers=dict(signed.headers),
            )
        except httpx.HTTPError as e:
            raise ECSClientError(
                f"{action.value} request failed: {e}",
                error_code="TRANSPORT_ERROR",
            ) from e
        return self._parse_response(action, response)

    @traced(name="ecs.list_clusters")
    def list_clusters(
        self, request: Optional[ListClustersRequest] = None
    ) -> ListClustersResponse:
        """
        Return one page of cluster ARNs.

        Args:
            request: Paging parameters; defaults to the first page

        Raises:
            CredentialError: If credentials are missing (nothing is sent)
            ECSError: If ECS rejects the request
            ECSClientError: On transport failures
        """
        request = request or ListClustersRequest()
        body = self._invoke(ECSAction.LIST_CLUSTERS, request.to_dict())
        return ListClustersResponse.from_dict(body)

    def list_all_clusters(self, page_size: Optional[int] = None) -> list[str]:
        """Follow ``nextToken`` until every cluster ARN has been collected."""
        cluster_arns: list[str] = []
        request = ListClustersRequest(max_results=page_size)
        while True:
            response = self.list_clusters(request)
            cluster_arns.extend(response.cluster_arns)
            if not response.next_token:
                return cluster_arns
            request = ListClustersRequest(max_results=page_size, next_token=response.next_token)


class AsyncECSClient(_BaseECSClient):
    """Asynchronous Amazon ECS client backed by ``httpx.AsyncClient``."""

    def __init__(
        self,
        region: Union[Region, str] = Region.US_EAST_1,
        credential_provider: Optional[CredentialProvider] = None,
        profile_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        timeout_seconds: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(
            region=region,
            credential_provider=credential_provider,
            profile_name=profile_name,
            endpoint_url=endpoint_url,
            timeout_seconds=timeout_seconds,
        )
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout_seconds)

    async def __aenter__(self) -> "AsyncECSClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this client created it."""
        if self._owns_http_client:
            await self._http_client.aclose()

    async def _invoke(self, action: ECSAction, payload: dict[str, Any]) -> dict[str, Any]:
        # Provider lookups may hit files or the metadata endpoint
        credentials = await asyncio.to_thread(self.sigv4_auth.credential_provider.resolve)
        signed = self.prepare_request(action, payload, credentials=credentials)
        logger.debug("Sending %s to %s", action.value, self.url)
        try:
            response = await self._http_client.post(
                self.url,
                content=signed.body,
                headers=dict(signed.headers),
            )
        except httpx.HTTPError as e:
            raise ECSClientError(
                f"{action.value} request failed: {e}",
                error_code="TRANSPORT_ERROR",
            ) from e
        return self._parse_response(action, response)

    @traced(name="ecs.list_clusters")
    async def list_clusters(
        self, request: Optional[ListClustersRequest] = None
    ) -> ListClustersResponse:
        """Async version of ECSClient.list_clusters."""
        request = request or ListClustersRequest()
        body = await self._invoke(ECSAction.LIST_CLUSTERS, request.to_dict())
        return ListClustersResponse.from_dict(body)

    async def list_all_clusters(self, page_size: Optional[int] = None) -> list[str]:
        """Async version of ECSClient.list_all_clusters."""
        cluster_arns: list[str] = []
        request = ListClustersRequest(max_results=page_size)
        while True:
            response = await self.list_clusters(request)
            cluster_arns.extend(response.cluster_arns)
            if not response.next_token:
                return cluster_arns
            request = ListClustersRequest(max_results=page_size, next_token=response.next_token)


def create_ecs_client(
    config: Optional[ClientConfig] = None,
    credential_provider: Optional[CredentialProvider] = None,
) -> ECSClient:
    """
    Factory function to create an ECS client from configuration.

    Args:
        config: Client configuration; loaded from the environment if omitted
        credential_provider: Optional credential source

    Returns:
        ECSClient instance
    """
    return ECSClient.from_config(config or ClientConfig.from_env(), credential_provider)
