"""
Prometheus metrics collection for apim-quality

This module provides metrics instrumentation for monitoring
Application discovery, criteria evaluation and run outcomes.
"""
import os
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Private registry: the extraction runs as a CLI, not inside a host process
REGISTRY = CollectorRegistry()


# =======================
# DISCOVERY METRICS
# =======================

applications_discovered_total = Counter(
    name="apim_quality_applications_discovered_total",
    documentation="Total number of Applications discovered on the management service",
    labelnames=["mode"],  # mode: single, listing
    registry=REGISTRY,
)

applications_reported_total = Counter(
    name="apim_quality_applications_reported_total",
    documentation="Total number of Applications whose quality was fully evaluated",
    registry=REGISTRY,
)

# =======================
# EVALUATION METRICS
# =======================

criteria_evaluations_total = Counter(
    name="apim_quality_criteria_evaluations_total",
    documentation="Total number of criterion evaluations",
    labelnames=["reference", "complied"],  # complied: true, false
    registry=REGISTRY,
)

criterion_evaluation_duration_seconds = Histogram(
    name="apim_quality_criterion_evaluation_duration_seconds",
    documentation="Time spent evaluating one criterion for one Application",
    labelnames=["reference"],
    buckets=[0.001, 0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
    registry=REGISTRY,
)

application_evaluation_duration_seconds = Histogram(
    name="apim_quality_application_evaluation_duration_seconds",
    documentation="Time spent evaluating every enabled criterion for one Application",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
    registry=REGISTRY,
)

# =======================
# ERROR METRICS
# =======================

errors_total = Counter(
    name="apim_quality_errors_total",
    documentation="Total number of errors",
    labelnames=["error_type", "component"],  # component: discovery, evaluation, report
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format
    """
    return generate_latest(REGISTRY)


def start_metrics_server(port: Optional[int] = None) -> None:
    """
    Start HTTP server for Prometheus metrics

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)
    """
    # Lazy import: the exporter is only needed when --metrics-port is given
    from prometheus_client import start_http_server

    metrics_port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(metrics_port, registry=REGISTRY)


# =======================
# METRICS COLLECTOR CLASS
# =======================

class MetricsCollector:
    """
    Metrics collector for the quality pipeline components.

    This class provides a unified interface for collecting metrics
    from the discovery source, the evaluation orchestrator and the sink.
    """

    def record_application_discovered(self, mode: str = "listing") -> None:
        applications_discovered_total.labels(mode=mode).inc()

    def record_criterion_evaluated(self, reference: str, complied: bool, duration_seconds: float = 0.0) -> None:
        """
        Record one criterion evaluation.

        Args:
            reference: Criterion reference
            complied: Evaluation outcome
            duration_seconds: Time taken by the evaluation
        """
        criteria_evaluations_total.labels(reference=reference, complied=str(complied).lower()).inc()
        if duration_seconds > 0:
            criterion_evaluation_duration_seconds.labels(reference=reference).observe(duration_seconds)

    def record_application_reported(self, duration_seconds: float = 0.0) -> None:
        applications_reported_total.inc()
        if duration_seconds > 0:
            application_evaluation_duration_seconds.observe(duration_seconds)

    def record_error(self, error: BaseException, component: str) -> None:
        errors_total.labels(error_type=type(error).__name__, component=component).inc()
