"""
Pytest configuration and fixtures for ecs-client tests.

Fixtures supply fixed credentials and timestamps so signatures are
reproducible without touching the process environment.

Usage:
    def test_something(static_provider, fixed_timestamp):
        auth = SigV4Auth(region="us-east-1", credential_provider=static_provider)
        signed = auth.sign_request(request, timestamp=fixed_timestamp)
"""

import datetime

import httpx
import pytest

from ecs_client.auth import AWSCredentials, StaticCredentialProvider


# Values from the AWS SigV4 test suite
TEST_ACCESS_KEY_ID = "AKIDEXAMPLE"
TEST_SECRET_ACCESS_KEY = "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY"


# ============================================================================
# Credential Fixtures
# ============================================================================

@pytest.fixture
def credentials() -> AWSCredentials:
    """Fixed long-term credentials."""
    return AWSCredentials(
        access_key=TEST_ACCESS_KEY_ID,
        secret_key=TEST_SECRET_ACCESS_KEY,
    )


@pytest.fixture
def static_provider() -> StaticCredentialProvider:
    """Credential provider returning the fixed test credentials."""
    return StaticCredentialProvider(TEST_ACCESS_KEY_ID, TEST_SECRET_ACCESS_KEY)


@pytest.fixture
def session_provider() -> StaticCredentialProvider:
    """Credential provider returning temporary credentials with a session token."""
    return StaticCredentialProvider(
        TEST_ACCESS_KEY_ID,
        TEST_SECRET_ACCESS_KEY,
        session_token="FwoGZXIvYXdzEBYaDK...",
    )


# ============================================================================
# Time Fixtures
# ============================================================================

@pytest.fixture
def fixed_timestamp() -> datetime.datetime:
    """A fixed request time: 2016-04-21 12:00:00 UTC."""
    return datetime.datetime(2016, 4, 21, 12, 0, 0, tzinfo=datetime.timezone.utc)


# ============================================================================
# Mock HTTP Fixtures
# ============================================================================

class RecordingHandler:
    """httpx.MockTransport handler that records requests and replays responses."""

    def __init__(self, responses: list[httpx.Response] | None = None):
        self.requests: list[httpx.Request] = []
        self.responses = list(responses or [])

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responses:
            return self.responses.pop(0)
        return httpx.Response(200, json={"clusterArns": []})


@pytest.fixture
def recording_handler() -> RecordingHandler:
    """Handler returning an empty ListClusters page unless responses are queued."""
    return RecordingHandler()


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires real AWS credentials)",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is passed."""
    if config.getoption("--run-integration", default=False):
        return

    skip_integration = pytest.mark.skip(
        reason="Integration tests skipped. Use --run-integration to run."
    )

    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires AWS credentials and network access)",
    )
