"""Tests for the ECS client."""

import json
import threading
from unittest.mock import MagicMock

import httpx
import pytest

from ecs_client import (
    AsyncECSClient,
    ClientConfig,
    CredentialError,
    ECSClient,
    ECSClientError,
    ECSError,
    ListClustersRequest,
    Region,
    StaticCredentialProvider,
    create_ecs_client,
)
from ecs_client.actions import ECSAction

CLUSTER_ARN = "arn:aws:ecs:us-west-2:123456789012:cluster/default"


def make_client(handler, provider, **kwargs) -> ECSClient:
    return ECSClient(
        region=kwargs.pop("region", Region.US_WEST_2),
        credential_provider=provider,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        **kwargs,
    )


class TestECSClientConfig:
    """Tests for client construction."""

    def test_default_region(self, static_provider):
        client = ECSClient(credential_provider=static_provider)

        assert client.region is Region.US_EAST_1
        assert client.url == "https://ecs.us-east-1.amazonaws.com/"
        client.close()

    def test_region_from_string(self, static_provider):
        client = ECSClient(region="eu-central-1", credential_provider=static_provider)

        assert client.region is Region.EU_CENTRAL_1
        assert client.sigv4_auth.region == "eu-central-1"
        assert client.sigv4_auth.service == "ecs"
        client.close()

    def test_unsupported_region(self, static_provider):
        with pytest.raises(ValueError, match="Unsupported region"):
            ECSClient(region="mars-north-1", credential_provider=static_provider)

    def test_set_region(self, static_provider):
        client = ECSClient(credential_provider=static_provider)
        client.set_region(Region.AP_SOUTHEAST_2)

        assert client.host == "ecs.ap-southeast-2.amazonaws.com"
        assert client.sigv4_auth.region == "ap-southeast-2"
        client.close()

    def test_endpoint_override(self, static_provider):
        client = ECSClient(
            credential_provider=static_provider,
            endpoint_url="http://localhost:4566/",
        )

        assert client.host == "localhost:4566"
        assert client.url == "http://localhost:4566/"
        client.close()

    def test_from_config(self, static_provider):
        config = ClientConfig(aws_region="us-west-1", timeout_seconds=5.0)
        client = ECSClient.from_config(config, credential_provider=static_provider)

        assert client.region is Region.US_WEST_1
        assert client.timeout_seconds == 5.0
        client.close()

    def test_create_ecs_client(self, static_provider):
        client = create_ecs_client(ClientConfig(aws_region="us-west-2"), static_provider)

        assert isinstance(client, ECSClient)
        assert client.region is Region.US_WEST_2
        client.close()


class TestListClusters:
    """Tests for ECSClient.list_clusters."""

    def test_sends_signed_request(self, recording_handler, static_provider):
        recording_handler.responses = [
            httpx.Response(200, json={"clusterArns": [CLUSTER_ARN]}),
        ]
        client = make_client(recording_handler, static_provider)

        response = client.list_clusters()

        assert response.cluster_arns == [CLUSTER_ARN]
        assert response.next_token is None

        sent = recording_handler.requests[0]
        assert str(sent.url) == "https://ecs.us-west-2.amazonaws.com/"
        assert sent.method == "POST"
        assert sent.headers["x-amz-target"] == "AmazonEC2ContainerServiceV20141113.ListClusters"
        assert sent.headers["content-type"] == "application/x-amz-json-1.1"
        assert json.loads(sent.content) == {}

        authorization = sent.headers["authorization"]
        assert authorization.startswith("AWS4-HMAC-SHA256 Credential=AKIDEXAMPLE/")
        assert "/us-west-2/ecs/aws4_request, " in authorization
        assert (
            "SignedHeaders=accept-encoding;content-length;content-type;host;x-amz-date;x-amz-target, "
            in authorization
        )
        assert sent.headers["x-amz-date"][:8] in authorization

    def test_sends_paging_parameters(self, recording_handler, static_provider):
        client = make_client(recording_handler, static_provider)

        client.list_clusters(ListClustersRequest(max_results=10, next_token="abc"))

        assert json.loads(recording_handler.requests[0].content) == {
            "maxResults": 10,
            "nextToken": "abc",
        }

    def test_missing_credentials_sends_nothing(self, recording_handler):
        client = make_client(recording_handler, StaticCredentialProvider("AKIDEXAMPLE", ""))

        with pytest.raises(CredentialError):
            client.list_clusters()
        assert recording_handler.requests == []

    def test_error_response(self, recording_handler, static_provider):
        recording_handler.responses = [
            httpx.Response(
                400,
                json={"__type": "ClientException", "message": "Invalid maxResults"},
            ),
        ]
        client = make_client(recording_handler, static_provider)

        with pytest.raises(ECSError) as exc_info:
            client.list_clusters()

        assert exc_info.value.status_code == 400
        assert exc_info.value.error_type == "ClientException"
        assert "Invalid maxResults" in str(exc_info.value)

    def test_error_response_without_json(self, recording_handler, static_provider):
        recording_handler.responses = [httpx.Response(503, text="Service Unavailable")]
        client = make_client(recording_handler, static_provider)

        with pytest.raises(ECSError) as exc_info:
            client.list_clusters()

        assert exc_info.value.status_code == 503
        assert exc_info.value.error_type == ""

    def test_transport_error(self, static_provider):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler, static_provider)

        with pytest.raises(ECSClientError) as exc_info:
            client.list_clusters()

        assert exc_info.value.error_code == "TRANSPORT_ERROR"
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_list_all_clusters_paginates(self, recording_handler, static_provider):
        recording_handler.responses = [
            httpx.Response(200, json={"clusterArns": ["arn:1", "arn:2"], "nextToken": "page2"}),
            httpx.Response(200, json={"clusterArns": ["arn:3"]}),
        ]
        client = make_client(recording_handler, static_provider)

        cluster_arns = client.list_all_clusters(page_size=2)

        assert cluster_arns == ["arn:1", "arn:2", "arn:3"]
        bodies = [json.loads(request.content) for request in recording_handler.requests]
        assert bodies == [{"maxResults": 2}, {"maxResults": 2, "nextToken": "page2"}]

    def test_prepare_request_signs(self, static_provider, fixed_timestamp):
        client = ECSClient(credential_provider=static_provider)

        signed = client.prepare_request(ECSAction.LIST_CLUSTERS, {}, timestamp=fixed_timestamp)

        assert signed.get_header("X-Amz-Date") == "20160421T120000Z"
        assert signed.get_header("Authorization").startswith(
            "AWS4-HMAC-SHA256 Credential=AKIDEXAMPLE/20160421/us-east-1/ecs/aws4_request, "
        )
        client.close()

    def test_context_manager_closes_owned_client(self, static_provider):
        with ECSClient(credential_provider=static_provider) as client:
            http_client = client._http_client

        assert http_client.is_closed


class TestAsyncECSClient:
    """Tests for AsyncECSClient."""

    @pytest.mark.asyncio
    async def test_list_clusters(self, recording_handler, static_provider):
        recording_handler.responses = [
            httpx.Response(200, json={"clusterArns": [CLUSTER_ARN], "nextToken": None}),
        ]
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))

        async with AsyncECSClient(
            Region.US_WEST_2,
            credential_provider=static_provider,
            http_client=http_client,
        ) as client:
            response = await client.list_clusters()

        assert response.cluster_arns == [CLUSTER_ARN]
        assert recording_handler.requests[0].headers["authorization"].startswith(
            "AWS4-HMAC-SHA256 "
        )
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_list_all_clusters(self, recording_handler, static_provider):
        recording_handler.responses = [
            httpx.Response(200, json={"clusterArns": ["arn:1"], "nextToken": "next"}),
            httpx.Response(200, json={"clusterArns": ["arn:2"]}),
        ]
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        client = AsyncECSClient(credential_provider=static_provider, http_client=http_client)

        assert await client.list_all_clusters() == ["arn:1", "arn:2"]
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_missing_credentials_sends_nothing(self, recording_handler):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        client = AsyncECSClient(
            credential_provider=StaticCredentialProvider("", "secret"),
            http_client=http_client,
        )

        with pytest.raises(CredentialError):
            await client.list_clusters()
        assert recording_handler.requests == []
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_credentials_resolved_off_event_loop(self, recording_handler, credentials):
        class ThreadRecordingProvider(StaticCredentialProvider):
            def __init__(self):
                super().__init__(credentials.access_key, credentials.secret_key)
                self.threads = []

            def resolve(self):
                self.threads.append(threading.get_ident())
                return super().resolve()

        provider = ThreadRecordingProvider()
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        client = AsyncECSClient(credential_provider=provider, http_client=http_client)

        await client.list_clusters()

        assert provider.threads
        assert threading.get_ident() not in provider.threads
        assert recording_handler.requests[0].headers["authorization"].startswith(
            "AWS4-HMAC-SHA256 Credential=AKIDEXAMPLE/"
        )
        await http_client.aclose()


class TestPrepareRequestWithCredentials:
    """Tests for signing with credentials resolved by the caller."""

    def test_provider_not_consulted(self, credentials, fixed_timestamp):
        provider = MagicMock()
        client = ECSClient(credential_provider=provider)

        signed = client.prepare_request(
            ECSAction.LIST_CLUSTERS, {}, timestamp=fixed_timestamp, credentials=credentials
        )

        provider.resolve.assert_not_called()
        assert signed.get_header("Authorization").startswith(
            "AWS4-HMAC-SHA256 Credential=AKIDEXAMPLE/20160421/us-east-1/ecs/aws4_request, "
        )
        client.close()
