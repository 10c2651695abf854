"""
Integration tests for the quality pipeline.

Wires the discovery source, the criteria registry, the orchestrator and the
CSV sink together, with fake management and search collaborators.
"""

import asyncio
import io

import pytest

from apim_quality.core.errors import ApplicationNotFoundError, DiscoveryTimeoutError, EvaluationError
from apim_quality.core.models import EnabledCriteriaSet, EvaluationContext
from apim_quality.observability.metrics import REGISTRY, MetricsCollector
from apim_quality.streaming.pipeline import QualityPipeline
from apim_quality.streaming.sinks.csv_report_sink import CsvReportSink
from apim_quality.streaming.sources.application_source import ApplicationSource

from conftest import FakeManagementApi, FakeSearch


def _pipeline(management_api, search, criteria, output: io.StringIO, **source_options):
    source_options.setdefault("delay_period", 0)
    context = EvaluationContext(
        management_api=management_api,
        search=search,
        search_index="gravitee-request-*",
    )
    source = ApplicationSource(management_api, **source_options)
    sink = CsvReportSink(criteria, output)
    return QualityPipeline(source, criteria, context, sink, metrics=MetricsCollector()), sink


@pytest.mark.integration
class TestQualityPipeline:
    """Tests for QualityPipeline end to end"""

    @pytest.mark.asyncio
    async def test_structural_criteria_table(self, management_api, search, registry):
        output = io.StringIO()
        pipeline, _ = _pipeline(management_api, search, registry.get_enabled_criteria(False), output)

        reports = await pipeline.run()

        assert sorted(report.application.id for report in reports) == ["app-a", "app-b", "app-c"]
        lines = output.getvalue().splitlines()
        assert lines[0] == "Resource id,Resource name,APP-DF01,APP-DF02"
        assert sorted(lines[1:]) == [
            "app-a,Billing - Invoicing - FR,true,true",
            "app-b,invalid_name!,false,true",
            "app-c,Catalog,true,false",
        ]
        assert search.calls == []

    @pytest.mark.asyncio
    async def test_runtime_criteria_table(self, management_api, search, registry):
        output = io.StringIO()
        pipeline, _ = _pipeline(management_api, search, registry.get_enabled_criteria(True), output)

        await pipeline.run()

        lines = output.getvalue().splitlines()
        assert lines[0] == "Resource id,Resource name,APP-DF01,APP-DF02,APP-R00"
        assert sorted(lines[1:]) == [
            "app-a,Billing - Invoicing - FR,true,true,true",
            "app-b,invalid_name!,false,true,false",
            "app-c,Catalog,true,false,true",
        ]
        assert sorted(call["fields"]["application"] for call in search.calls) == ["app-a", "app-b", "app-c"]

    @pytest.mark.asyncio
    async def test_slow_application_reported_last_with_same_columns(self, management_api, registry):
        search = FakeSearch(totals={"app-a": 3, "app-b": 0, "app-c": 1}, delays={"app-a": 0.1})
        output = io.StringIO()
        pipeline, _ = _pipeline(management_api, search, registry.get_enabled_criteria(True), output)

        reports = await pipeline.run()

        assert reports[-1].application.id == "app-a"
        assert all(report.references == ["APP-DF01", "APP-DF02", "APP-R00"] for report in reports)
        assert output.getvalue().splitlines()[-1] == "app-a,Billing - Invoicing - FR,true,true,true"

    @pytest.mark.asyncio
    async def test_results_sorted_even_when_runtime_finishes_first(self, make_application, registry):
        class SlowNaming:
            """Naming evaluator slower than the runtime lookup."""

            def __init__(self, evaluator):
                self.evaluator = evaluator

            async def evaluate(self, application, context):
                await asyncio.sleep(0.05)
                return await self.evaluator.evaluate(application, context)

        enabled = registry.get_enabled_criteria(True)
        naming, *others = enabled.criteria
        criteria = EnabledCriteriaSet(
            criteria=(naming.model_copy(update={"evaluator": SlowNaming(naming.evaluator)}), *others),
            runtime_enabled=True,
        )

        management_api = FakeManagementApi([make_application("app-a")])
        output = io.StringIO()
        pipeline, _ = _pipeline(management_api, FakeSearch(totals={"app-a": 1}), criteria, output)

        reports = await pipeline.run()

        assert reports[0].references == ["APP-DF01", "APP-DF02", "APP-R00"]
        assert output.getvalue().splitlines()[1] == "app-a,Billing - Invoicing - FR,true,true,true"

    @pytest.mark.asyncio
    async def test_single_identifier(self, management_api, search, registry):
        output = io.StringIO()
        pipeline, _ = _pipeline(management_api, search, registry.get_enabled_criteria(False), output, filter_by_id="app-c")

        reports = await pipeline.run()

        assert [report.application.id for report in reports] == ["app-c"]
        assert output.getvalue().splitlines()[1:] == ["app-c,Catalog,true,false"]
        assert management_api.list_calls == []

    @pytest.mark.asyncio
    async def test_single_identifier_not_found(self, management_api, search, registry):
        output = io.StringIO()
        pipeline, sink = _pipeline(management_api, search, registry.get_enabled_criteria(False), output, filter_by_id="missing")

        with pytest.raises(ApplicationNotFoundError):
            await pipeline.run()

        assert output.getvalue() == ""
        assert isinstance(sink.error, ApplicationNotFoundError)

    @pytest.mark.asyncio
    async def test_no_application_renders_header_only(self, search, registry):
        output = io.StringIO()
        pipeline, _ = _pipeline(FakeManagementApi([]), search, registry.get_enabled_criteria(False), output)

        assert await pipeline.run() == []
        assert output.getvalue() == "Resource id,Resource name,APP-DF01,APP-DF02\n"

    @pytest.mark.asyncio
    async def test_discovery_timeout_renders_nothing(self, applications, search, registry):
        management_api = FakeManagementApi(applications, item_delay=0.05)
        output = io.StringIO()
        pipeline, sink = _pipeline(management_api, search, registry.get_enabled_criteria(True), output, timeout=80)

        with pytest.raises(DiscoveryTimeoutError):
            await pipeline.run()

        assert output.getvalue() == ""
        assert isinstance(sink.error, DiscoveryTimeoutError)
        # Applications discovered before the timeout were still evaluated
        assert 1 <= len(pipeline.reports) < len(applications)

    @pytest.mark.asyncio
    async def test_evaluation_failure_aborts_run(self, management_api, registry):
        search = FakeSearch(
            totals={"app-a": 3, "app-c": 1},
            delays={"app-a": 0.5, "app-c": 0.5},
            errors={"app-b": ConnectionError("search index unreachable")},
        )
        output = io.StringIO()
        pipeline, sink = _pipeline(management_api, search, registry.get_enabled_criteria(True), output)

        with pytest.raises(EvaluationError) as exc_info:
            await pipeline.run()

        assert exc_info.value.reference == "APP-R00"
        assert exc_info.value.application_id == "app-b"
        assert isinstance(exc_info.value.cause, ConnectionError)
        assert output.getvalue() == ""
        assert sink.error is exc_info.value
        # Slower Applications were cancelled and never reached the sink
        assert pipeline.reports == []

    @pytest.mark.asyncio
    async def test_non_boolean_result_is_an_evaluation_error(self, make_application, registry):
        class Broken:
            async def evaluate(self, application, context):
                return "yes"

        naming, length = registry.get_enabled_criteria(False).criteria
        criteria = EnabledCriteriaSet(criteria=(naming, length.model_copy(update={"evaluator": Broken()})))

        output = io.StringIO()
        pipeline, _ = _pipeline(FakeManagementApi([make_application("app-a")]), None, criteria, output)

        with pytest.raises(EvaluationError) as exc_info:
            await pipeline.run()

        assert isinstance(exc_info.value.cause, TypeError)
        assert output.getvalue() == ""

    @pytest.mark.asyncio
    async def test_throttled_discovery(self, applications, search, registry):
        loop = asyncio.get_running_loop()
        output = io.StringIO()
        pipeline, _ = _pipeline(FakeManagementApi(applications), search, registry.get_enabled_criteria(False), output, delay_period=50)

        start = loop.time()
        await pipeline.run()

        assert loop.time() - start >= 0.09
        assert len(output.getvalue().splitlines()) == 4

    @pytest.mark.asyncio
    async def test_metrics_recorded(self, management_api, search, registry):
        def sample(name, labels=None):
            return REGISTRY.get_sample_value(name, labels or {}) or 0.0

        reported_before = sample("apim_quality_applications_reported_total")
        naming_failed_before = sample(
            "apim_quality_criteria_evaluations_total", {"reference": "APP-DF01", "complied": "false"}
        )

        pipeline, _ = _pipeline(management_api, search, registry.get_enabled_criteria(False), io.StringIO())
        await pipeline.run()

        assert sample("apim_quality_applications_reported_total") - reported_before == 3
        assert sample(
            "apim_quality_criteria_evaluations_total", {"reference": "APP-DF01", "complied": "false"}
        ) - naming_failed_before == 1
