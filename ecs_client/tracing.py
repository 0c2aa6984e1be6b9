"""OpenTelemetry tracing configuration for the ECS client.

This module sets up distributed tracing with support for:
- Application-level setup through init_tracing (nothing global is touched
  until it is called)
- AWS X-Ray integration via OTLP exporter
- Spans around ECS API calls with request metadata attributes
"""

import asyncio
import os
from functools import wraps
from typing import Any, Callable, TypeVar, ParamSpec

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.propagators.aws import AwsXRayPropagator
from opentelemetry.sdk.extension.aws.trace import AwsXRayIdGenerator
from opentelemetry.propagate import set_global_textmap
from opentelemetry.trace import Status, StatusCode

P = ParamSpec("P")
T = TypeVar("T")

_tracer: trace.Tracer | None = None
_initialized = False


def init_tracing(
    service_name: str = "ecs-client",
    otlp_endpoint: str | None = None,
    enable_console_export: bool = False,
) -> trace.Tracer:
    """Initialize OpenTelemetry tracing for an application.

    Installs the global tracer provider and the X-Ray propagator. Library code
    never calls this; entry points such as scripts/list_clusters.py do.

    Args:
        service_name: Name of the service for tracing
        otlp_endpoint: OTLP collector endpoint (e.g., "http://localhost:4317")
                      If None, uses OTEL_EXPORTER_OTLP_ENDPOINT env var
        enable_console_export: If True, also export spans to console (for debugging)

    Returns:
        Configured tracer instance
    """
    global _tracer, _initialized

    if _initialized and _tracer is not None:
        return _tracer

    resource = Resource.create({
        SERVICE_NAME: service_name,
        "service.version": "0.1.0",
        "deployment.environment": os.getenv("ENVIRONMENT", "development"),
    })

    provider = TracerProvider(
        resource=resource,
        id_generator=AwsXRayIdGenerator(),
    )

    set_global_textmap(AwsXRayPropagator())

    endpoint = otlp_endpoint or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if endpoint:
        otlp_exporter = OTLPSpanExporter(endpoint=endpoint, insecure=True)
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    if enable_console_export or os.getenv("OTEL_CONSOLE_EXPORT", "").lower() == "true":
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)

    _tracer = trace.get_tracer(service_name)
    _initialized = True

    return _tracer


def get_tracer() -> trace.Tracer:
    """Get a tracer for ECS client spans.

    Returns the tracer built by init_tracing when the application called it,
    otherwise a tracer from the global provider. No provider or propagator is
    installed here, so without application setup the spans are no-ops.
    """
    if _tracer is None:
        return trace.get_tracer(__name__)
    return _tracer


def traced(
    name: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator to add tracing to a function.

    Args:
        name: Span name (defaults to function name)
        attributes: Additional span attributes

    Returns:
        Decorated function with tracing
    """
    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        span_name = name or func.__name__

        @wraps(func)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            tracer = get_tracer()
            with tracer.start_as_current_span(span_name) as span:
                if attributes:
                    for key, value in attributes.items():
                        span.set_attribute(key, value)
                try:
                    result = func(*args, **kwargs)
                    span.set_status(Status(StatusCode.OK))
                    return result
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    raise

        @wraps(func)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            tracer = get_tracer()
            with tracer.start_as_current_span(span_name) as span:
                if attributes:
                    for key, value in attributes.items():
                        span.set_attribute(key, value)
                try:
                    result = await func(*args, **kwargs)  # type: ignore
                    span.set_status(Status(StatusCode.OK))
                    return result
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    raise

        if asyncio.iscoroutinefunction(func):
            return async_wrapper  # type: ignore
        return sync_wrapper

    return decorator


def add_request_span_attributes(
    span: trace.Span,
    action: str | None = None,
    region: str | None = None,
    host: str | None = None,
    status_code: int | None = None,
) -> None:
    """Add ECS request attributes to a span.

    Only request metadata is recorded; credentials and signatures never are.

    Args:
        span: The span to add attributes to
        action: ECS API action
        region: AWS region
        host: Endpoint host
        status_code: HTTP response status
    """
    if action:
        span.set_attribute("ecs.action", action)
    if region:
        span.set_attribute("aws.region", region)
    if host:
        span.set_attribute("http.host", host)
    if status_code is not None:
        span.set_attribute("http.status_code", status_code)
