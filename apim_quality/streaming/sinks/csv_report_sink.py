"""
CSV report sink for Application quality reports.

Accumulates every ApplicationReport and renders the whole table at once
when the upstream stream completes.
"""

import csv
import logging
import sys
from typing import TextIO

from apim_quality.core.models import ApplicationReport, EnabledCriteriaSet

logger = logging.getLogger(__name__)

CSV_SEPARATOR = ","
HEADER_PREFIX = ["Resource id", "Resource name"]


class CsvReportSink:
    """
    Report sink writing the quality table as CSV.

    The header columns come from the EnabledCriteriaSet; each line lists the
    compliance flags in the order of its ApplicationReport, which is the same
    reference order. Lines are written in the order reports were received.
    Nothing is written if the upstream stream fails.
    """

    def __init__(
        self,
        criteria: EnabledCriteriaSet,
        output: TextIO | None = None,
        separator: str = CSV_SEPARATOR,
    ):
        """
        Initialize CSV report sink.

        Args:
            criteria: Enabled criteria of the run
            output: Output stream (defaults to sys.stdout at render time)
            separator: CSV field separator
        """
        self.criteria = criteria
        self.output = output
        self.separator = separator
        self.reports: list[ApplicationReport] = []
        self.completed = False
        self.error: BaseException | None = None

    def on_next(self, report: ApplicationReport) -> None:
        """Accumulate one ApplicationReport."""
        if self.completed or self.error is not None:
            raise RuntimeError("Report sink is already closed")
        if len(report.results) != len(self.criteria):
            raise ValueError(
                f"Report of Application {report.application.id} has {len(report.results)} "
                f"result(s), expected {len(self.criteria)}"
            )
        self.reports.append(report)

    def on_error(self, error: BaseException) -> None:
        """Discard accumulated reports: a partial table is never rendered."""
        if self.completed:
            return
        self.error = error
        logger.error(
            f"Quality extraction failed, {len(self.reports)} accumulated report(s) discarded: {error}"
        )
        self.reports = []

    def on_complete(self) -> None:
        """Render the header and one line per accumulated report."""
        if self.completed:
            raise RuntimeError("Report sink is already completed")
        if self.error is not None:
            raise RuntimeError("Report sink cannot complete after an error")

        self.completed = True
        logger.info(f"Applications quality, in CSV format ({len(self.reports)} Application(s))")

        writer = csv.writer(
            self.output or sys.stdout,
            delimiter=self.separator,
            lineterminator="\n",
        )
        writer.writerows(self.rows())

    def header(self) -> list[str]:
        return HEADER_PREFIX + self.criteria.references

    def rows(self) -> list[list[str]]:
        """Header followed by the report lines."""
        rows = [self.header()]
        for report in self.reports:
            rows.append(
                [report.application.id, report.application.name]
                + [str(complied).lower() for complied in report.compliance()]
            )
        return rows

    def get_stats(self) -> dict[str, int]:
        return {
            "total_reports": len(self.reports),
            "total_criteria": len(self.criteria),
        }
