"""Exporter library: election results as CSV."""

from ballot_api.lib.exporter.csv_writer import RESULT_COLUMNS, render_results_csv, result_rows, write_results_csv

__all__ = [
    "RESULT_COLUMNS",
    "render_results_csv",
    "result_rows",
    "write_results_csv",
]
