"""CSV export writer for election results."""

import csv
import io
from collections.abc import Iterator
from pathlib import Path
from typing import Any, TextIO

# Characters that trigger formula execution in spreadsheet applications
_FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")

RESULT_COLUMNS = [
    "Election ID",
    "Election Title",
    "Position",
    "Rank",
    "Candidate",
    "Photo Path",
    "Votes",
    "Percentage",
]


def _sanitize_cell(value: object) -> object:
    """Prefix formula-triggering strings with a single quote."""
    if isinstance(value, str) and value and value[0] in _FORMULA_PREFIXES:
        return f"'{value}"
    return value


def result_rows(results: dict[str, Any]) -> Iterator[list[object]]:
    """Flatten a results payload into one row per candidate per position.

    Args:
        results: Results payload with ``id``, ``title`` and ``positions``,
            each position holding its ranked ``candidates``.

    Yields:
        Rows matching ``RESULT_COLUMNS``; rank is 1-based within the position.
    """
    for position in results["positions"]:
        for rank, candidate in enumerate(position["candidates"], start=1):
            yield [
                results["id"],
                results["title"],
                position["title"],
                rank,
                candidate["name"],
                candidate.get("photo_path") or "",
                candidate["votes"],
                candidate["percentage"],
            ]


def _write(handle: TextIO, results: dict[str, Any]) -> int:
    writer = csv.writer(handle)
    writer.writerow(RESULT_COLUMNS)
    count = 0
    for row in result_rows(results):
        writer.writerow([_sanitize_cell(cell) for cell in row])
        count += 1
    return count


def render_results_csv(results: dict[str, Any]) -> str:
    """Render a results payload as CSV text."""
    buffer = io.StringIO()
    _write(buffer, results)
    return buffer.getvalue()


def write_results_csv(output_path: Path, results: dict[str, Any]) -> int:
    """Write a results payload to a CSV file.

    Returns:
        Number of candidate rows written (header excluded).
    """
    with output_path.open("w", newline="", encoding="utf-8") as f:
        return _write(f, results)
