"""
Ember Ascent - Telemetry Module
OpenTelemetry tracing for LLM calls
"""
import asyncio
import functools
import os
from collections.abc import Callable
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Status, StatusCode

from ember_ascent.core.config import settings

# Service name from environment or default
SERVICE_NAME = os.getenv("OTEL_SERVICE_NAME", "ember-ascent-api")
OTLP_ENDPOINT = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")

TRACER_NAME = "ember_ascent.ai"

_tracer: trace.Tracer | None = None


def init_telemetry() -> trace.Tracer:
    """
    Initialize OpenTelemetry with an OTLP exporter.
    Call this once at application startup.
    """
    global _tracer

    if _tracer is not None:
        return _tracer

    resource = Resource.create({
        "service.name": SERVICE_NAME,
        "service.version": settings.APP_VERSION,
        "deployment.environment": settings.ENVIRONMENT,
    })

    provider = TracerProvider(resource=resource)

    try:
        otlp_exporter = OTLPSpanExporter(endpoint=OTLP_ENDPOINT, insecure=not settings.is_production)
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
    except Exception as e:
        print(f"[Telemetry] Failed to configure OTLP exporter: {e}")
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _tracer = trace.get_tracer(TRACER_NAME, settings.APP_VERSION)

    print(f"[Telemetry] Initialized with service: {SERVICE_NAME}, endpoint: {OTLP_ENDPOINT}")
    return _tracer


def get_tracer() -> trace.Tracer:
    """Return the configured tracer, or the global (no-op until initialized) one."""
    if _tracer is None:
        return trace.get_tracer(TRACER_NAME)
    return _tracer


@contextmanager
def agent_span(name: str, agent_name: str, attributes: dict | None = None):
    """
    Context manager for creating spans around AI operations.

    Usage:
        with agent_span("generate_explanation", "ExplanationGenerator") as span:
            span.set_attribute("question.id", question_id)
    """
    tracer = get_tracer()
    with tracer.start_as_current_span(name) as span:
        span.set_attribute("agent.name", agent_name)
        span.set_attribute("agent.operation", name)

        if attributes:
            for key, value in attributes.items():
                span.set_attribute(key, str(value) if value is not None else "")

        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise


def traced(operation_name: str | None = None, agent_name: str | None = None):
    """
    Decorator for tracing async AI methods.

    Usage:
        @traced("generate_explanation")
        async def generate(self, question_text: str):
            ...
    """
    def decorator(func: Callable) -> Callable:
        if not asyncio.iscoroutinefunction(func):
            raise TypeError("traced() only wraps coroutine functions")

        op_name = operation_name or func.__name__

        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            agent = agent_name
            if agent is None and args:
                agent = args[0].__class__.__name__

            attributes = {
                f"input.{k}": str(v)[:200] for k, v in kwargs.items()
                if isinstance(v, (str, int, float, bool))
            }

            with agent_span(op_name, agent or "unknown", attributes) as span:
                result = await func(*args, **kwargs)
                span.set_attribute("output.type", type(result).__name__)
                return result

        return wrapper

    return decorator


def trace_llm_call(
    model: str,
    prompt_tokens: int = 0,
    completion_tokens: int = 0,
    total_tokens: int = 0,
):
    """Record token usage on the current span."""
    span = trace.get_current_span()
    if span:
        span.set_attribute("llm.model", model)
        span.set_attribute("llm.tokens.prompt", prompt_tokens)
        span.set_attribute("llm.tokens.completion", completion_tokens)
        span.set_attribute("llm.tokens.total", total_tokens)
