"""MLflow tracing helpers for backend calls and orchestration steps.

Usage:

    from marinecompliance.observability.tracing import trace, start_span

    @trace(name="enhanced_check", span_type="TOOL")
    async def check_compliance(params): ...

    with start_span("primary_attempt") as span:
        span.set_inputs({...})

Span bookkeeping must never change an analysis result, so attribute
writes are best-effort and only logged when they fail.
"""

import logging
from contextlib import contextmanager

import mlflow

logger = logging.getLogger(__name__)


def trace(name: str | None = None, **kwargs):
    """Decorator: wrap a sync or async function in an MLflow trace span."""
    return mlflow.trace(name=name, **kwargs) if name else mlflow.trace(**kwargs)


@contextmanager
def start_span(name: str = "span", **kwargs):
    """Context manager: MLflow span around one orchestration step."""
    with mlflow.start_span(name=name, **kwargs) as span:
        yield span


def annotate(span, inputs: dict | None = None, outputs: dict | None = None) -> None:
    """Attach inputs/outputs to a span without letting tracing errors escape."""
    try:
        if inputs is not None:
            span.set_inputs(inputs)
        if outputs is not None:
            span.set_outputs(outputs)
    except Exception as e:  # noqa: BLE001
        logger.debug("Span annotation skipped: %s", e)


def set_tracking_uri(uri: str) -> None:
    mlflow.set_tracking_uri(uri)


def set_experiment(name: str) -> None:
    mlflow.set_experiment(name)


def enable_async_logging() -> None:
    mlflow.config.enable_async_logging()


def init_tracking(tracking_uri: str, experiment_name: str) -> bool:
    """Point MLflow at the tracking server. Returns False when it is unreachable."""
    try:
        set_tracking_uri(tracking_uri)
        set_experiment(experiment_name)
        enable_async_logging()
    except Exception as e:  # noqa: BLE001
        logger.warning("MLflow tracking unavailable (%s); continuing without it", e)
        return False
    logger.info("MLflow tracing enabled: %s", tracking_uri)
    return True
