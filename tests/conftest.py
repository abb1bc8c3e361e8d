"""Shared test fixtures."""

import mlflow
import pytest

from citywise.core.types import ProjectAttributes, ProjectType


@pytest.fixture(autouse=True)
def _disable_mlflow_tracing():
    """Disable MLflow tracing during tests — no side effects, no mlruns/ writes."""
    mlflow.tracing.disable()
    yield
    mlflow.tracing.enable()


@pytest.fixture
def adu_attrs() -> ProjectAttributes:
    """900 sq ft ADU with structural, plumbing and 200A electrical work."""
    return ProjectAttributes(
        project_type=ProjectType.ADU,
        jurisdiction="Phoenix",
        square_footage=900,
        structural_changes=True,
        plumbing_work=True,
        electrical_work=True,
        electrical_service_amps=200,
    )


@pytest.fixture
def remodel_attrs() -> ProjectAttributes:
    """300 sq ft remodel with no trade flags."""
    return ProjectAttributes(
        project_type=ProjectType.REMODEL,
        jurisdiction="Phoenix",
        square_footage=300,
    )
