"""Shared test fixtures."""

import mlflow
import pytest


@pytest.fixture(autouse=True)
def _disable_mlflow_tracing():
    """Disable MLflow tracing during tests; nothing is written to mlruns/"""
    mlflow.tracing.disable()
    yield
    mlflow.tracing.enable()
