"""Configuration for the ECS client."""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass
class ClientConfig:
    """Configuration for ECSClient."""

    # Region requests are sent to
    aws_region: str = "us-east-1"

    # Optional endpoint override (e.g. a local mock), full URL
    endpoint_url: str = ""

    # Optional AWS profile; when empty credentials come from the environment
    profile_name: str = ""

    # HTTP timeout for a single request
    timeout_seconds: float = 30.0

    # OpenTelemetry configuration
    otel_endpoint: str = ""
    otel_console_export: bool = False

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Load configuration from environment variables."""
        return cls(
            aws_region=os.getenv("AWS_REGION", cls.aws_region),
            endpoint_url=os.getenv("ECS_ENDPOINT_URL", ""),
            profile_name=os.getenv("AWS_PROFILE", ""),
            timeout_seconds=float(os.getenv("ECS_TIMEOUT_SECONDS", cls.timeout_seconds)),
            otel_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", ""),
            otel_console_export=os.getenv("OTEL_CONSOLE_EXPORT", "").lower() == "true",
        )
