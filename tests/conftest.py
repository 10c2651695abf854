"""
Pytest configuration and fixtures for apim-quality tests

This module provides shared fixtures and fake collaborators for unit and
integration tests. No test talks to a real management service or search index.
"""
import asyncio
from typing import Any

import pytest

from apim_quality.core.criteria import CriteriaRegistry
from apim_quality.core.errors import ApplicationNotFoundError
from apim_quality.core.models import Application, ApplicationFilter, EvaluationContext
from apim_quality.streaming.sources.throttling import throttle, with_deadline


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Tests wiring several components with fake collaborators"
    )


# =======================
# FAKE COLLABORATORS
# =======================

class FakeManagementApi:
    """
    In-memory management service.

    Args:
        applications: Applications in listing order
        item_delay: Seconds spent fetching each listed Application
        first_page_delay: Seconds spent before the first Application is available
    """

    def __init__(self, applications: list[Application], item_delay: float = 0.0, first_page_delay: float = 0.0):
        self.applications = applications
        self.item_delay = item_delay
        self.first_page_delay = first_page_delay
        self.get_calls: list[str] = []
        self.list_calls: list[tuple[Any, float, float]] = []

    async def get_application(self, application_id: str) -> Application:
        self.get_calls.append(application_id)
        for application in self.applications:
            if application.id == application_id:
                return application
        raise ApplicationNotFoundError(application_id)

    async def iter_applications(self, application_filter: ApplicationFilter | None = None):
        if self.first_page_delay:
            await asyncio.sleep(self.first_page_delay)
        for application in self.applications:
            if self.item_delay:
                await asyncio.sleep(self.item_delay)
            if application_filter is None or application_filter.matches(application):
                yield application

    def list_applications(self, application_filter, delay_period: float, timeout: float):
        self.list_calls.append((application_filter, delay_period, timeout))
        return with_deadline(
            throttle(self.iter_applications(application_filter), delay_period / 1000),
            timeout / 1000,
        )


class FakeSearch:
    """
    In-memory search collaborator reporting a configured total per Application id.

    Args:
        totals: Total hits per Application id (0 when absent)
        delays: Seconds before answering, per Application id
        errors: Exception raised instead of answering, per Application id
    """

    def __init__(
        self,
        totals: dict[str, int] | None = None,
        delays: dict[str, float] | None = None,
        errors: dict[str, Exception] | None = None,
    ):
        self.totals = totals or {}
        self.delays = delays or {}
        self.errors = errors or {}
        self.calls: list[dict[str, Any]] = []

    async def search_hits(self, index, from_time, to_time, match_fields, max_results):
        fields = dict(match_fields)
        key = fields.get("application")
        self.calls.append({
            "index": index,
            "from": from_time,
            "to": to_time,
            "fields": fields,
            "max_results": max_results,
        })
        if key in self.delays:
            await asyncio.sleep(self.delays[key])
        if key in self.errors:
            raise self.errors[key]
        yield {"meta": {"total": self.totals.get(key, 0)}, "hit": None}


# =======================
# MODEL FIXTURES
# =======================

LONG_DESCRIPTION = "Invoicing back-office consuming the billing APIs"


@pytest.fixture
def make_application():
    """
    Factory building Applications with sensible defaults

    Returns:
        Callable(id, name=..., description=...) -> Application
    """
    def _make(application_id: str, name: str = "Billing - Invoicing - FR", description: str = LONG_DESCRIPTION, **kwargs):
        return Application(id=application_id, name=name, description=description, **kwargs)

    return _make


@pytest.fixture
def applications(make_application) -> list[Application]:
    """Three Applications: compliant, badly named, short description"""
    return [
        make_application("app-a", name="Billing - Invoicing - FR"),
        make_application("app-b", name="invalid_name!"),
        make_application("app-c", name="Catalog", description="Too short"),
    ]


@pytest.fixture
def management_api(applications) -> FakeManagementApi:
    return FakeManagementApi(applications)


@pytest.fixture
def search() -> FakeSearch:
    return FakeSearch(totals={"app-a": 3, "app-b": 0, "app-c": 1})


@pytest.fixture
def registry() -> CriteriaRegistry:
    """Registry with the shipped criteria"""
    return CriteriaRegistry()


@pytest.fixture
def context(management_api, search) -> EvaluationContext:
    return EvaluationContext(
        management_api=management_api,
        search=search,
        search_index="gravitee-request-*",
        runtime_from="now-1M",
        runtime_to="now",
    )
