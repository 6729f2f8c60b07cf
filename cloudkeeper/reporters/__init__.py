"""
Report Generators
=================

Output formatters for lifecycle run results.

Available Reporters
-------------------
CLIReporter
    Rich terminal output: mode banner, progress lines, summary table.
CSVReporter
    CSV export of every recorded result.

Example
-------
>>> from cloudkeeper.reporters import CLIReporter, CSVReporter
>>>
>>> cli = CLIReporter()
>>> cli.report(summary, title="AMI Cleanup")
>>>
>>> filepath = CSVReporter(output_path="run.csv").report(
...     summary, command="ami-cleanup", region="us-east-1"
... )

See Also
--------
cloudkeeper.cleaners.results.MutationSummary : Input data structure.
"""

from cloudkeeper.reporters.cli_reporter import CLIReporter
from cloudkeeper.reporters.csv_reporter import CSVReporter

__all__ = [
    "CLIReporter",
    "CSVReporter",
]
