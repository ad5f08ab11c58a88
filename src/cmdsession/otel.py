"""OpenTelemetry helpers for cmdsession.

Spans are only exported when enabled by environment; otherwise
:func:`start_span` yields ``None`` and does nothing.
"""

from __future__ import annotations

import contextlib
import logging
import os
import typing as t

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from .__about__ import __version__

logger = logging.getLogger(__name__)

_OTEL_READY = False


def _env_flag(name: str) -> bool | None:
    raw = os.environ.get(name)
    if raw is None:
        return None
    value = raw.strip().lower()
    if not value:
        return None
    if value in {"1", "true"}:
        return True
    if value in {"0", "false"}:
        return False
    return None


def otel_enabled() -> bool:
    """Return True when OTEL export is enabled by environment.

    Examples
    --------
    >>> from cmdsession.otel import otel_enabled
    >>> _ = otel_enabled()
    """
    flag = _env_flag("CMDSESSION_OTEL")
    if flag is not None:
        return flag
    return bool(
        os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT")
        or os.environ.get("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT")
    )


def _ensure_provider() -> bool:
    global _OTEL_READY
    if _OTEL_READY:
        return True
    if not otel_enabled():
        return False

    provider = trace.get_tracer_provider()
    if provider.__class__.__name__ != "ProxyTracerProvider":
        _OTEL_READY = True
        return True

    try:
        resource = Resource.create(
            {
                "service.name": "cmdsession",
                "service.version": __version__,
            }
        )
        tracer_provider = TracerProvider(resource=resource)
        tracer_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter()))
        trace.set_tracer_provider(tracer_provider)
    except Exception:
        logger.debug("cmdsession otel init failed", exc_info=True)
        return False
    else:
        _OTEL_READY = True
        return True


@contextlib.contextmanager
def start_span(name: str, **attributes: t.Any) -> t.Iterator[t.Any]:
    """Start a span named ``name`` when export is enabled.

    Examples
    --------
    >>> from cmdsession.otel import start_span
    >>> with start_span("cmdsession.test", command_length=4):
    ...     pass
    """
    if not _ensure_provider():
        yield None
        return
    tracer = trace.get_tracer("cmdsession")
    with tracer.start_as_current_span(name, attributes=attributes or None) as span:
        yield span


__all__ = [
    "otel_enabled",
    "start_span",
]
