from .csv_export import csv_filename, run_to_csv
from .html_report import build_report_context

__all__ = [
    "build_report_context",
    "csv_filename",
    "run_to_csv",
]
