"""Tracing helpers built on the OpenTelemetry API.

Exporters are configured by the host process (for example through the
``opentelemetry-instrument`` launcher or an SDK ``TracerProvider``). Without a
configured provider the API hands out non-recording tracers, so spans created
here cost next to nothing.

PII guidance:
- NEVER put message text, citation bodies, or attachment content in span
  attributes
- Lengths, counts, sequence numbers and stream types are fine
"""

from __future__ import annotations

from opentelemetry import trace


def get_tracer(name: str) -> trace.Tracer:
    """Get an OpenTelemetry tracer for custom instrumentation.

    Args:
        name: The name of the tracer, typically __name__ of the calling module.

    Example:
        from core.observability import get_tracer

        tracer = get_tracer(__name__)

        async def deliver(message: OutgoingMessage) -> None:
            with tracer.start_as_current_span("deliver") as span:
                span.set_attribute("message.length", len(message.text))
                ...
    """
    return trace.get_tracer(name)
