"""
Gibli aerosensor CSV adapter.

Parses CSV exports from the aerosensor into a RawTable, then hands off to
unit normalization (aero_ingest.services.canonicalizer) and, for
irregular timers, resampling (aero_ingest.services.resampler).
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol, Sequence, Union

import numpy as np
import pandas as pd

from aero_ingest.models.raw import RECOGNIZED_COLUMNS, REQUIRED_COLUMNS, RawTable
from aero_ingest.models.telemetry import IntervalStatistics, NormalizedRecord
from aero_ingest.services.canonicalizer import normalize_units
from aero_ingest.services.resampler import (
    analyze_time_intervals,
    needs_resampling,
    resample_record,
)


logger = logging.getLogger(__name__)

# Max offending line numbers quoted in the row-length warning
_MISMATCH_LOG_LIMIT = 5

# Marker cell appended to each line before tokenizing
_ROW_END = "\x1f"


class CsvParseError(ValueError):
    """Structural problem that prevents parsing a CSV file."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.details = details or {}


class EmptyInput(CsvParseError):
    """Input has no header or no data rows."""


class MissingColumns(CsvParseError):
    """Header lacks one or more required columns."""

    def __init__(self, missing_columns: Sequence[str]):
        self.missing_columns = list(missing_columns)
        listing = "\n".join(f"  - {name}" for name in self.missing_columns)
        super().__init__(
            f"Missing required columns:\n{listing}",
            details={"missing_columns": self.missing_columns},
        )


class ResampleMode(str, Enum):
    """When to project parsed data onto the uniform 1 Hz grid."""

    AUTO = "auto"      # only when the timer interval spread is too large
    ALWAYS = "always"
    NEVER = "never"


@dataclass
class IngestResult:
    """Outcome of ingesting one CSV file."""

    record: NormalizedRecord
    intervals: IntervalStatistics  # computed on the timestamps as recorded
    resampled: bool
    mismatched_rows: list[int] = field(default_factory=list)


# ============================================================================
# Header handling
# ============================================================================

def read_csv_rows(content: str) -> tuple[list[str], pd.DataFrame, list[int]]:
    """
    Tokenize CSV text into header cells, data rows and their 1-based line numbers.

    Blank lines are not data rows and are skipped. Cells are kept as text;
    a cell a row does not have is NaN, so short and long rows both survive
    tokenization and are reported during extraction.
    """
    if content.startswith("\ufeff"):
        content = content[1:]

    numbered = [
        (i + 1, line)
        for i, line in enumerate(content.splitlines())
        if line.strip()
    ]
    if len(numbered) < 2:
        raise EmptyInput("CSV file is empty or has no data rows")

    # Every line gets a trailing marker cell so row widths survive padding.
    # Upper bound on cells per line; quoted commas only overcount.
    width = max(line.count(",") for _, line in numbered) + 2
    cleaned = "\n".join(f"{line},{_ROW_END}" for _, line in numbered)
    try:
        df = pd.read_csv(
            io.StringIO(cleaned),
            header=None,
            names=list(range(width)),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
        )
    except pd.errors.ParserError as e:
        raise CsvParseError(f"Malformed CSV: {e}") from e

    past_end = (df == _ROW_END).to_numpy().cumsum(axis=1) > 0
    df = df.mask(past_end)
    width_used = int(_row_widths(df).max())
    df = df.iloc[:, :width_used]

    header = [_strip_cell(cell) for cell in df.iloc[0].dropna()]
    rows = df.iloc[1:].reset_index(drop=True)

    if len(rows) == len(numbered) - 1:
        line_numbers = [n for n, _ in numbered[1:]]
    else:
        # A quoted cell spanned lines; fall back to row positions
        line_numbers = [i + 2 for i in range(len(rows))]
    return header, rows, line_numbers


def _strip_cell(cell):
    return cell.strip() if isinstance(cell, str) else cell


def _row_widths(df: pd.DataFrame) -> np.ndarray:
    """Number of cells actually present in each row (text cells, even empty ones)."""
    present = df.notna().to_numpy()
    if present.shape[1] == 0:
        return np.zeros(len(df), dtype=int)
    last = present.shape[1] - np.argmax(present[:, ::-1], axis=1)
    return np.where(present.any(axis=1), last, 0)


def validate_columns(header: Sequence[str]) -> None:
    """Raise MissingColumns listing every absent required column, in order."""
    present = set(header)
    missing = [name for name in REQUIRED_COLUMNS if name not in present]
    if missing:
        raise MissingColumns(missing)


def resolve_column_plan(
    header: Sequence[str],
    columns: Sequence[str] = RECOGNIZED_COLUMNS,
) -> dict[str, int]:
    """Map each recognized column found in the header to its first index."""
    plan: dict[str, int] = {}
    for name in columns:
        if name in header:
            plan[name] = list(header).index(name)
    return plan


# ============================================================================
# Extraction
# ============================================================================

def extract_raw_table(
    header: Sequence[str],
    rows: Union[pd.DataFrame, Sequence[Sequence[str]]],
    line_numbers: Optional[Sequence[int]] = None,
) -> RawTable:
    """
    Extract every recognized column as a float array.

    `rows` is either the frame from read_csv_rows or a list of cell lists.
    Missing, empty, 'NaN', infinite or otherwise non-numeric cells become
    NaN. Rows with the wrong number of cells are reported but still used;
    a short row yields NaN for its missing trailing cells.
    """
    if isinstance(rows, pd.DataFrame):
        df = rows.reset_index(drop=True)
        df.columns = range(df.shape[1])
    else:
        # Ragged rows are padded with None
        df = pd.DataFrame([list(row) for row in rows]) if len(rows) else pd.DataFrame()

    n_rows = len(df)
    if line_numbers is None:
        line_numbers = [i + 2 for i in range(n_rows)]

    widths = _row_widths(df)
    mismatched = [
        line_numbers[i] for i in range(n_rows) if widths[i] != len(header)
    ]
    if mismatched:
        shown = ", ".join(str(n) for n in mismatched[:_MISMATCH_LOG_LIMIT])
        more = "" if len(mismatched) <= _MISMATCH_LOG_LIMIT else ", ..."
        logger.warning(
            "%d rows have a column count different from the header (%d); lines: %s%s",
            len(mismatched),
            len(header),
            shown,
            more,
        )

    n_cells = df.shape[1]

    columns: dict[str, np.ndarray] = {}
    for name, index in resolve_column_plan(header).items():
        if index >= n_cells:
            columns[name] = np.full(n_rows, np.nan, dtype=np.float64)
            continue
        cells = df[index].map(_strip_cell)
        values = pd.to_numeric(cells, errors="coerce").to_numpy(dtype=np.float64, na_value=np.nan)
        columns[name] = np.where(np.isfinite(values), values, np.nan)

    return RawTable(
        header=list(header),
        row_count=n_rows,
        columns=columns,
        mismatched_rows=mismatched,
    )


def parse_raw_table(content: str) -> RawTable:
    """Validate and extract a CSV document without normalizing units."""
    header, rows, line_numbers = read_csv_rows(content)
    validate_columns(header)
    return extract_raw_table(header, rows, line_numbers)


# ============================================================================
# Pipeline
# ============================================================================

def ingest_csv(
    content: str,
    resample: ResampleMode = ResampleMode.AUTO,
    coord_scale: Optional[float] = None,
    resample_threshold: Optional[float] = None,
) -> IngestResult:
    """
    Run the full ingestion pipeline on CSV text.

    Raises EmptyInput or MissingColumns for structural problems; value-level
    problems end up as NaN in the record.
    """
    mode = ResampleMode(resample)

    raw = parse_raw_table(content)
    record = normalize_units(raw, coord_scale=coord_scale)
    intervals = analyze_time_intervals(record.timestamps)

    if mode is ResampleMode.ALWAYS:
        do_resample = True
    elif mode is ResampleMode.NEVER:
        do_resample = False
    else:
        do_resample = needs_resampling(intervals, resample_threshold)

    if do_resample and not np.isfinite(record.timestamps).any():
        logger.warning("Timer column has no valid values; keeping samples as recorded")
        do_resample = False

    if do_resample:
        logger.info(
            "Resampling to 1 Hz (interval std %.3fs, mean %.3fs)",
            intervals.standard_deviation,
            intervals.mean,
        )
        record = resample_record(record)

    logger.info(
        "Parsed %d rows into %d data points spanning %.1fs",
        raw.row_count,
        record.data_point_count,
        record.time_range_seconds,
    )

    return IngestResult(
        record=record,
        intervals=intervals,
        resampled=do_resample,
        mismatched_rows=list(raw.mismatched_rows),
    )


def parse_gibli_csv(content: str, **kwargs) -> NormalizedRecord:
    """Parse aerosensor CSV text and return the unified record."""
    return ingest_csv(content, **kwargs).record


def read_csv_text(filepath: Path) -> str:
    with open(filepath, "r", encoding="utf-8-sig") as f:
        return f.read()


def parse_gibli_file(filepath: Path, **kwargs) -> IngestResult:
    """Read and ingest an aerosensor CSV file."""
    return ingest_csv(read_csv_text(Path(filepath)), **kwargs)


# ============================================================================
# Adapters
# ============================================================================

class TelemetryAdapter(Protocol):
    """Adapter interface for telemetry sources."""

    name: str

    def can_parse(self, filepath: Path) -> bool:
        ...

    def parse(self, filepath: Path) -> IngestResult:
        ...


class GibliCsvAdapter:
    """Adapter for Gibli aerosensor CSV exports."""

    name = "gibli_csv"

    def can_parse(self, filepath: Path) -> bool:
        return filepath.suffix.lower() == ".csv"

    def parse(self, filepath: Path) -> IngestResult:
        return parse_gibli_file(filepath)


# FIT files are decoded by an external module and have no adapter here
ADAPTERS: list[TelemetryAdapter] = [
    GibliCsvAdapter(),
]


def _select_adapter(filepath: Path) -> TelemetryAdapter:
    for adapter in ADAPTERS:
        if adapter.can_parse(filepath):
            return adapter
    raise ValueError(f"No adapter available for file: {filepath}")


def parse_telemetry_file(filepath: Path) -> IngestResult:
    """
    Parse an arbitrary telemetry file via adapter selection.
    """
    filepath = Path(filepath)
    adapter = _select_adapter(filepath)
    return adapter.parse(filepath)
