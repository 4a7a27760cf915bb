"""
Batch Data Loader

Loads spreadsheet extracts of sales transactions (Excel, CSV or Parquet)
into the fact table. Cells are mapped by position onto the fact columns;
rows that cannot be stored are reported as ``Row N: ...`` errors and skipped.

Every successful load replaces the whole table.
"""

import io
import re
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import polars as pl
import structlog
from prometheus_client import Counter, Histogram
from pydantic import BaseModel

from sales_analytics.analytics.exceptions import IngestionError
from sales_analytics.analytics.numbers import to_nullable_number
from sales_analytics.database.models import (
    FACT_COLUMNS,
    NULLABLE_TEXT_COLUMNS,
    OPTIONAL_NUMERIC_COLUMNS,
    REQUIRED_NUMERIC_COLUMNS,
)
from sales_analytics.database.store import SalesStore

logger = structlog.get_logger(__name__)

EXCEL_EPOCH = datetime(1899, 12, 30)

_DAY_FIRST_RE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{2,4})$")


# =============================================================================
# METRICS
# =============================================================================

UPLOAD_ROWS = Counter(
    "sales_upload_rows_total",
    "Spreadsheet rows processed by uploads",
    ["status"],
)

UPLOAD_DURATION = Histogram(
    "sales_upload_duration_seconds",
    "Time spent parsing and storing an upload",
    ["format"],
)


class FileFormat(str, Enum):
    """Supported file formats"""
    EXCEL = "excel"
    CSV = "csv"
    PARQUET = "parquet"


class LoadStatus(str, Enum):
    """Batch load status"""
    COMPLETED = "completed"
    PARTIAL = "partial"


class LoadResult(BaseModel):
    """Result of a batch load operation"""
    source: str
    sheet: str
    status: LoadStatus
    inserted: int = 0
    errors: List[str] = []
    load_duration_seconds: float = 0


@dataclass
class ParseResult:
    sheet: str
    rows: List[Dict[str, Any]] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def detect_format(filename: str) -> FileFormat:
    suffix = Path(filename).suffix.lower()
    if suffix in (".xlsx", ".xlsm", ".xls", ".xlsb", ".ods"):
        return FileFormat.EXCEL
    if suffix in (".csv", ".txt"):
        return FileFormat.CSV
    if suffix == ".parquet":
        return FileFormat.PARQUET
    raise IngestionError(f"Unsupported file type: {suffix or filename}")


def to_delivery_date(raw: Any) -> datetime:
    """
    Convert a delivery date cell to a naive UTC datetime.

    Accepts datetimes, dates, Excel serial numbers, ISO-8601 strings and
    day-first ``dd/mm/yyyy`` or ``dd-mm-yy`` strings.

    Raises:
        ValueError: The value is not a recognizable date
    """
    if isinstance(raw, datetime):
        if raw.tzinfo is not None:
            return raw.astimezone(timezone.utc).replace(tzinfo=None)
        return raw

    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day)

    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return EXCEL_EPOCH + timedelta(days=float(raw))

    if isinstance(raw, str):
        text = raw.strip()
        serial = to_nullable_number(text)
        if serial is not None:
            return EXCEL_EPOCH + timedelta(days=serial)

        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            parsed = None
        if parsed is not None:
            return to_delivery_date(parsed)

        match = _DAY_FIRST_RE.match(text)
        if match:
            day, month, year = match.groups()
            numeric_year = int(f"20{year}") if len(year) == 2 else int(year)
            return datetime(numeric_year, int(month), int(day))

    raise ValueError(f"Unrecognized delivery_date value: {raw}")


def _is_blank_row(cells: Sequence[Any]) -> bool:
    return all(cell is None or (isinstance(cell, str) and not cell.strip()) for cell in cells)


def _text_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_rows(rows: Sequence[Sequence[Any]], sheet: str, first_line: int = 2) -> ParseResult:
    """
    Map positional data rows onto fact rows.

    Args:
        rows: Data rows without the header
        sheet: Sheet or file name reported back to the caller
        first_line: Spreadsheet line number of the first data row
    """
    result = ParseResult(sheet=sheet)
    expected = len(FACT_COLUMNS)

    for offset, cells in enumerate(rows):
        line_no = first_line + offset
        if _is_blank_row(cells):
            continue

        if len(cells) < expected:
            result.errors.append(f"Row {line_no}: expected {expected} columns, received {len(cells)}")
            continue

        draft = dict(zip(FACT_COLUMNS, cells))

        try:
            draft["delivery_date"] = to_delivery_date(draft["delivery_date"])
        except (ValueError, OverflowError) as e:
            result.errors.append(f"Row {line_no}: {e}")
            continue

        for name in OPTIONAL_NUMERIC_COLUMNS + REQUIRED_NUMERIC_COLUMNS:
            draft[name] = to_nullable_number(draft[name])

        if any(draft[name] is None for name in REQUIRED_NUMERIC_COLUMNS):
            result.errors.append(
                f"Row {line_no}: missing required numeric field(s) ({', '.join(REQUIRED_NUMERIC_COLUMNS)})"
            )
            continue

        for name in FACT_COLUMNS:
            if name in NULLABLE_TEXT_COLUMNS:
                draft[name] = _text_or_none(draft[name])
            elif name not in OPTIONAL_NUMERIC_COLUMNS + REQUIRED_NUMERIC_COLUMNS + ("delivery_date",):
                draft[name] = "" if draft[name] is None else str(draft[name])

        result.rows.append(draft)

    return result


class BatchLoader:
    """
    Spreadsheet loader performing a full-table replace.

    Example:
        loader = BatchLoader(store)
        result = await loader.load_bytes(content, "sales.xlsx")
    """

    def __init__(self, store: SalesStore):
        self.store = store

    def _read_excel(self, source: Union[bytes, Path]) -> Tuple[str, pl.DataFrame]:
        """First sheet of the workbook (calamine engine)."""
        sheets = pl.read_excel(source, sheet_id=0, engine="calamine")
        if not sheets:
            raise IngestionError("Workbook has no sheets")
        name = next(iter(sheets))
        return name, sheets[name]

    def _read_csv(self, source: Union[bytes, Path]) -> pl.DataFrame:
        # Every cell as text; conversion happens per row
        data = io.BytesIO(source) if isinstance(source, bytes) else source
        return pl.read_csv(data, infer_schema_length=0)

    def _read_parquet(self, source: Union[bytes, Path]) -> pl.DataFrame:
        data = io.BytesIO(source) if isinstance(source, bytes) else source
        return pl.read_parquet(data)

    def read_frame(self, source: Union[bytes, Path], filename: str) -> Tuple[str, pl.DataFrame]:
        """Read a source into a DataFrame and the name reported as its sheet."""
        file_format = detect_format(filename)
        if file_format == FileFormat.EXCEL:
            return self._read_excel(source)
        if file_format == FileFormat.CSV:
            return Path(filename).name, self._read_csv(source)
        return Path(filename).name, self._read_parquet(source)

    def parse(self, source: Union[bytes, Path], filename: str) -> ParseResult:
        sheet, df = self.read_frame(source, filename)
        if df.height == 0:
            raise IngestionError("Sheet is empty or missing data rows", sheet=sheet)
        return parse_rows(df.rows(), sheet)

    async def load_bytes(self, content: bytes, filename: str) -> LoadResult:
        """
        Parse an uploaded file and replace the fact table with its rows.

        Raises:
            IngestionError: The file holds no row that can be stored
        """
        started = time.perf_counter()
        logger.info("Starting batch load", source=filename, size=len(content))

        parsed = self.parse(content, filename)
        return await self._store(parsed, filename, started)

    async def load_file(self, path: Union[str, Path]) -> LoadResult:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        started = time.perf_counter()
        logger.info("Starting batch load", source=str(path))

        parsed = self.parse(path, path.name)
        return await self._store(parsed, str(path), started)

    async def _store(self, parsed: ParseResult, source: str, started: float) -> LoadResult:
        if not parsed.rows:
            if parsed.errors:
                count = len(parsed.errors)
                message = (
                    f"No valid rows to insert. Found {count} issue{'' if count == 1 else 's'}, "
                    f"including: {parsed.errors[0]}."
                )
            else:
                message = "No valid rows to insert; the sheet may be empty."
            UPLOAD_ROWS.labels(status="rejected").inc(len(parsed.errors))
            logger.warning("Batch load rejected", source=source, errors=len(parsed.errors))
            raise IngestionError(message, errors=parsed.errors, sheet=parsed.sheet)

        inserted = await self.store.replace_all(parsed.rows)
        duration = time.perf_counter() - started

        UPLOAD_ROWS.labels(status="inserted").inc(inserted)
        UPLOAD_ROWS.labels(status="rejected").inc(len(parsed.errors))
        UPLOAD_DURATION.labels(format=detect_format(source).value).observe(duration)

        logger.info(
            "Batch load completed",
            source=source,
            sheet=parsed.sheet,
            rows_loaded=inserted,
            rows_failed=len(parsed.errors),
            duration_seconds=round(duration, 3),
        )

        return LoadResult(
            source=source,
            sheet=parsed.sheet,
            status=LoadStatus.PARTIAL if parsed.errors else LoadStatus.COMPLETED,
            inserted=inserted,
            errors=parsed.errors,
            load_duration_seconds=duration,
        )
