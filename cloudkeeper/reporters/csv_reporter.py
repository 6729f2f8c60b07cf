"""
CSV Reporter Module
===================

Exports lifecycle run results to CSV for auditing.

Classes
-------
CSVReporter
    Main reporter class for CSV export.

Example
-------
>>> from cloudkeeper.reporters import CSVReporter
>>>
>>> reporter = CSVReporter(output_path="ami-cleanup.csv")
>>> filepath = reporter.report(summary, command="ami-cleanup", region="us-east-1")

Output Format
-------------
The CSV file includes:
1. Metadata header rows (prefixed with #)
2. Empty separator row
3. Column headers
4. One row per recorded result

Example output::

    # Run Metadata
    # Command:,ami-cleanup
    # Region:,us-east-1
    # Succeeded:,2
    # Failed:,0
    # Started:,2024-01-15T10:30:00+00:00

    Region,Action,Resource ID,Status,Detail,Error,Timestamp
    us-east-1,deregister,ami-123,success,,,2024-01-15T10:30:01+00:00
"""

from __future__ import annotations

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

from cloudkeeper.cleaners.results import MutationResult, MutationSummary

# Module logger
logger = logging.getLogger(__name__)


class CSVReporter:
    """
    Reporter for exporting run results to CSV format.

    Parameters
    ----------
    output_path : str, optional
        Path for the output file. If not provided, generates a
        timestamped filename in the current directory.
    """

    COLUMNS = [
        "Region",
        "Action",
        "Resource ID",
        "Status",
        "Detail",
        "Error",
        "Timestamp",
    ]

    def __init__(self, output_path: Optional[str] = None) -> None:
        """Initialize the CSV reporter with an optional output path."""
        self.output_path = output_path
        logger.debug(f"Initialized CSVReporter (output_path={output_path})")

    def _get_output_path(self, command: str) -> Path:
        if self.output_path:
            return Path(self.output_path)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return Path(f"{command}_{timestamp}.csv")

    def report(self, summary: MutationSummary, command: str, region: str) -> str:
        """
        Export a run summary to CSV.

        Parameters
        ----------
        summary : MutationSummary
            Results of the run.
        command : str
            Command that produced the results, used in the metadata and
            the generated filename.
        region : str
            Region the command ran against.

        Returns
        -------
        str
            Path to the created CSV file.
        """
        output_path = self._get_output_path(command)

        logger.info(f"Exporting {summary.total} results to {output_path}")

        with open(output_path, "w", newline="", encoding="utf-8") as csvfile:
            writer = csv.writer(csvfile, quoting=csv.QUOTE_MINIMAL)

            writer.writerow(["# Run Metadata"])
            writer.writerow(["# Command:", command])
            writer.writerow(["# Region:", region])
            writer.writerow(["# Succeeded:", summary.succeeded])
            writer.writerow(["# Failed:", summary.failed])
            writer.writerow(["# Retained:", summary.retained])
            writer.writerow(["# Skipped:", summary.skipped])
            writer.writerow(["# Dry-run:", summary.dry_run])
            writer.writerow(["# Started:", summary.start_time.isoformat()])
            writer.writerow([])

            writer.writerow(self.COLUMNS)
            for result in summary.results:
                writer.writerow(self._format_result_row(result))

        logger.info(f"CSV export complete: {output_path}")
        return str(output_path)

    @staticmethod
    def _format_result_row(result: MutationResult) -> List[Any]:
        return [
            result.region,
            result.action,
            result.resource_id,
            result.status.value,
            result.detail or "",
            result.error_message or "",
            result.timestamp.isoformat(),
        ]

    def __repr__(self) -> str:
        """Return string representation."""
        return f"CSVReporter(output_path={self.output_path!r})"
