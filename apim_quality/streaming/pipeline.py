"""
Quality pipeline orchestration.

Coordinates the flow: discovery source → criteria evaluation (per Application) → report sink
"""

import asyncio
import logging
import time

from apim_quality.core.errors import EvaluationError
from apim_quality.core.models import (
    Application,
    ApplicationReport,
    EnabledCriteriaSet,
    EvaluationContext,
    QualityCriterion,
    QualityResult,
)
from apim_quality.observability.logger import log_operation
from apim_quality.observability.metrics import MetricsCollector

logger = logging.getLogger(__name__)


class QualityPipeline:
    """
    Main quality extraction orchestrator.

    Handles the complete flow:
    1. Read Applications from the discovery source
    2. Evaluate every enabled criterion of each Application concurrently
    3. Reassemble the results in reference order
    4. Forward each ApplicationReport to the sink as soon as it is complete
    5. Complete the sink, or fail it if anything went wrong

    Evaluations of different Applications run concurrently and without bound:
    the discovery source's delay period is what limits the request rate.
    """

    def __init__(
        self,
        source,
        criteria: EnabledCriteriaSet,
        context: EvaluationContext,
        sink,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize quality pipeline.

        Args:
            source: Discovery source exposing an async `stream()` of Applications
            criteria: Enabled criteria of the run, shared with the sink
            context: Collaborators handed to the evaluators
            sink: Report sink exposing on_next / on_error / on_complete
            metrics: Metrics collector (a new one if None)
        """
        self.source = source
        self.criteria = criteria
        self.context = context
        self.sink = sink
        self.metrics = metrics or MetricsCollector()
        self.reports: list[ApplicationReport] = []

        logger.info(
            f"Initialized QualityPipeline with criteria {criteria.references} "
            f"(runtime: {criteria.runtime_enabled})"
        )

    async def evaluate_criterion(self, criterion: QualityCriterion, application: Application) -> QualityResult:
        """
        Evaluate one criterion for one Application.

        Raises:
            EvaluationError: If the evaluator fails or does not return a boolean
        """
        start = time.monotonic()
        try:
            complied = await criterion.evaluate(application, self.context)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise EvaluationError(criterion.reference, application.id, e) from e

        if not isinstance(complied, bool):
            raise EvaluationError(
                criterion.reference,
                application.id,
                TypeError(f"evaluator returned {type(complied).__name__}, expected bool"),
            )

        self.metrics.record_criterion_evaluated(criterion.reference, complied, time.monotonic() - start)
        return QualityResult(
            reference=criterion.reference,
            description=criterion.description,
            complied=complied,
        )

    async def evaluate_application(self, application: Application) -> ApplicationReport:
        """
        Evaluate every enabled criterion of an Application.

        Evaluations are started together and collected in completion order;
        the report is built once all of them have resolved, sorted by reference.

        Raises:
            EvaluationError: On the first failing evaluation, the others are cancelled
        """
        start = time.monotonic()
        tasks = [
            asyncio.create_task(self.evaluate_criterion(criterion, application))
            for criterion in self.criteria.criteria
        ]

        results: list[QualityResult] = []
        try:
            for next_result in asyncio.as_completed(tasks):
                results.append(await next_result)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        results.sort(key=lambda result: result.reference)
        report = ApplicationReport(application=application, results=tuple(results))

        self.metrics.record_application_reported(time.monotonic() - start)
        logger.debug(f"Application {application.id} evaluated: {report.compliance()}")
        return report

    async def _evaluate_and_forward(self, application: Application) -> ApplicationReport:
        report = await self.evaluate_application(application)
        self.reports.append(report)
        self.sink.on_next(report)
        return report

    async def _discover(self, pending: set[asyncio.Task], events: asyncio.Queue) -> int:
        """Start one evaluation task per discovered Application."""
        mode = "single" if getattr(self.source, "filter_by_id", None) else "listing"
        discovered = 0

        async for application in self.source.stream():
            discovered += 1
            self.metrics.record_application_discovered(mode)
            logger.info(f'Get quality metrics for Application "{application.name}" ({application.id})')

            task = asyncio.create_task(self._evaluate_and_forward(application))
            task.add_done_callback(events.put_nowait)
            pending.add(task)

        logger.info(f"Discovery completed: {discovered} Application(s)")
        return discovered

    async def run(self) -> list[ApplicationReport]:
        """
        Run the extraction to completion.

        Returns:
            ApplicationReports in the order they reached the sink

        Raises:
            DiscoveryTimeoutError, ApplicationNotFoundError, AuthenticationError:
                When discovery fails; in-flight evaluations are awaited first
            EvaluationError: When an evaluation fails; the whole run is aborted
        """
        pending: set[asyncio.Task] = set()
        events: asyncio.Queue = asyncio.Queue()

        with log_operation("Extracting Application quality", logger=logger, criteria=self.criteria.references):
            discovery = asyncio.create_task(self._discover(pending, events))
            discovery.add_done_callback(events.put_nowait)
            discovery_done = False

            try:
                while not discovery_done or pending:
                    task = await events.get()

                    if task is discovery:
                        discovery_done = True
                        error = task.exception()
                        if error is not None:
                            await self._fail_discovery(error, pending)
                        continue

                    pending.discard(task)
                    error = task.exception()
                    if error is not None:
                        await self._fail_evaluation(error, discovery, pending)
            finally:
                leftovers = [task for task in (discovery, *pending) if not task.done()]
                for task in leftovers:
                    task.cancel()
                if leftovers:
                    await asyncio.gather(*leftovers, return_exceptions=True)

            self.sink.on_complete()

        return list(self.reports)

    async def _fail_discovery(self, error: BaseException, pending: set[asyncio.Task]) -> None:
        """Let in-flight evaluations finish, then fail the sink."""
        logger.error(f"Application discovery failed: {error}")
        self.metrics.record_error(error, "discovery")
        if pending:
            logger.info(f"Waiting for {len(pending)} in-flight evaluation(s)")
            await asyncio.gather(*pending, return_exceptions=True)
            pending.clear()
        self.sink.on_error(error)
        raise error

    async def _fail_evaluation(
        self,
        error: BaseException,
        discovery: asyncio.Task,
        pending: set[asyncio.Task],
    ) -> None:
        """Stop discovery and every other evaluation, then fail the sink."""
        logger.error(f"Application evaluation failed, aborting: {error}")
        self.metrics.record_error(error, "evaluation")
        others = [task for task in (discovery, *pending) if not task.done()]
        for task in others:
            task.cancel()
        await asyncio.gather(*others, return_exceptions=True)
        pending.clear()
        self.sink.on_error(error)
        raise error
