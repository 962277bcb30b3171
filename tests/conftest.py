"""Shared fixtures: the embedded 2025 scale and in-memory storage."""

import pytest

from prevoyance.audit import AuditLogger
from prevoyance.calculations import AVSCalculator, ScaleResolver
from prevoyance.orchestrator import PensionAnalysisFlow
from prevoyance.services.storage import (
    EmbeddedScaleRepository,
    InMemoryAuditStorage,
    InMemoryPensionStorage,
)


@pytest.fixture
def resolver():
    return ScaleResolver(EmbeddedScaleRepository(), cap_income_above_scale=False)


@pytest.fixture
def calculator(resolver):
    return AVSCalculator(resolver, max_contribution_years=44)


@pytest.fixture
def storage():
    return InMemoryPensionStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def flow(calculator, storage, audit_storage):
    return PensionAnalysisFlow(
        calculator=calculator,
        storage=storage,
        audit_logger=AuditLogger(audit_storage),
    )
