"""Reporters for outputting compatibility results."""

from .json_reporter import JSONReporter
from .csv_reporter import CSVReporter

__all__ = ["JSONReporter", "CSVReporter"]
