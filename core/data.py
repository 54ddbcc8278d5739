from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, Dict, List, Mapping, Optional

import pandas as pd

from core.aggregations import aggregate_metrics, group_metrics, timeseries
from core.coerce import coerce_date_series, coerce_numeric_series, coerce_text
from core.errors import CsvParseError, UploadReadError
from core.fields import DIMENSION_FIELDS, METRIC_FIELDS, PLACEHOLDER, coerce_mapping, unmapped_fields
from core.filters import DashboardFilters, date_bounds, dimension_values, filter_live, normalize_filters


logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024
EXPORT_CSV_NAME = "filtered_meta_data.csv"
NORMALIZED_COLUMNS = ["date", *DIMENSION_FIELDS, *METRIC_FIELDS]

ProgressCallback = Callable[[float], None]


@dataclass(frozen=True)
class ParsedCsv:
    rows: pd.DataFrame
    headers: List[str]
    errors: List[str] = field(default_factory=list)


def empty_raw_rows() -> pd.DataFrame:
    return pd.DataFrame()


def empty_normalized() -> pd.DataFrame:
    return pd.DataFrame(columns=NORMALIZED_COLUMNS)


def column_as_series(df: pd.DataFrame, col: str) -> pd.Series:
    if col not in df.columns:
        return pd.Series("", index=df.index, dtype=object)
    val = df[col]
    if isinstance(val, pd.DataFrame):
        return val.iloc[:, 0]
    return val


# ---------------- Ingestion ----------------
def read_upload(
    stream: BinaryIO,
    *,
    total_size: Optional[int] = None,
    on_progress: Optional[ProgressCallback] = None,
    chunk_size: int = READ_CHUNK_SIZE,
) -> str:
    """Read an uploaded file in chunks and decode it as UTF-8 text.

    ``on_progress`` receives the fraction of bytes read after each chunk when
    ``total_size`` is known, and a final ``1.0`` once the read completes.
    """
    chunks: List[bytes] = []
    read = 0
    try:
        while True:
            chunk = stream.read(chunk_size)
            if not chunk:
                break
            chunks.append(chunk)
            read += len(chunk)
            if on_progress is not None and total_size:
                on_progress(min(read / total_size, 1.0))
    except OSError as exc:
        logger.exception("Upload read failed after %d bytes", read)
        raise UploadReadError("Could not read file") from exc

    try:
        text = b"".join(chunks).decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise UploadReadError("Failed to read file: not UTF-8 text") from exc
    if on_progress is not None:
        on_progress(1.0)
    logger.info("Read upload: %d bytes", read)
    return text


def _short_record_errors(text: str, width: int) -> List[str]:
    # pandas pads missing trailing fields silently, so count them per record.
    errors: List[str] = []
    try:
        records = (fields for fields in csv.reader(io.StringIO(text)) if fields)
        next(records, None)
        for position, fields in enumerate(records, start=2):
            if len(fields) < width:
                errors.append(f"Row {position}: too few fields")
    except csv.Error as exc:
        raise CsvParseError(f"Parse error: {exc}", errors=[str(exc)]) from exc
    return errors


def parse_csv_text(text: str) -> ParsedCsv:
    """Parse CSV text with a header row into string cells.

    Rows with fewer fields than the header are padded with ``""`` and noted
    in ``errors``; structural problems raise :class:`CsvParseError`.
    """
    if not text or not text.strip():
        raise CsvParseError("CSV file is empty; a header row is required")
    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as exc:
        raise CsvParseError("CSV file has no header row") from exc
    except (pd.errors.ParserError, csv.Error, ValueError) as exc:
        logger.warning("CSV parse error: %s", exc)
        raise CsvParseError(f"Parse error: {exc}", errors=[str(exc)]) from exc
    if not isinstance(df.index, pd.RangeIndex):
        # pandas reads one extra leading field per row as an implied index.
        raise CsvParseError("Parse error: rows have more fields than the header")

    headers = [str(c) for c in df.columns]
    df.columns = headers
    errors = _short_record_errors(text, len(headers))
    if errors:
        logger.warning("CSV has %d short rows", len(errors))
    df = df.fillna("").reset_index(drop=True)
    logger.info("Parsed CSV: %d rows, headers=%s", len(df), headers)
    return ParsedCsv(rows=df, headers=headers, errors=errors)


def load_upload(
    stream: BinaryIO,
    *,
    total_size: Optional[int] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> ParsedCsv:
    text = read_upload(stream, total_size=total_size, on_progress=on_progress)
    return parse_csv_text(text)


# ---------------- Normalization ----------------
def normalize_rows(raw_rows: pd.DataFrame, mapping: Mapping[str, Optional[str]]) -> pd.DataFrame:
    """Map raw rows onto the canonical shape and drop rows without a usable date."""
    if raw_rows is None or raw_rows.empty:
        return empty_normalized()
    mapping = coerce_mapping(mapping)

    def source(key: str) -> pd.Series:
        col = mapping.get(key)
        if col is None:
            return pd.Series("", index=raw_rows.index, dtype=object)
        return column_as_series(raw_rows, col)

    out = pd.DataFrame(index=raw_rows.index)
    out["date"] = coerce_date_series(source("date"))
    for key in DIMENSION_FIELDS:
        out[key] = source(key).map(lambda v: coerce_text(v, PLACEHOLDER)).astype(object)
    for key in METRIC_FIELDS:
        out[key] = coerce_numeric_series(source(key))

    valid = out["date"].notna()
    dropped = int((~valid).sum())
    if dropped:
        logger.info("Dropped %d of %d rows with unparsable dates", dropped, len(out))
    return out.loc[valid, NORMALIZED_COLUMNS].reset_index(drop=True)


def export_rows_csv(df: pd.DataFrame) -> str:
    if df is None or df.empty:
        return empty_normalized().to_csv(index=False)
    return df.reindex(columns=NORMALIZED_COLUMNS).to_csv(index=False)


# ---------------- Public API (Streamlit) ----------------
def build_data_context(
    raw_rows: pd.DataFrame,
    mapping: Mapping[str, Optional[str]],
    headers: Optional[List[str]] = None,
) -> Dict[str, object]:
    raw_rows = raw_rows if raw_rows is not None else empty_raw_rows()
    mapping = coerce_mapping(mapping)
    if headers is None:
        headers = [str(c) for c in raw_rows.columns]
    normalized = normalize_rows(raw_rows, mapping)
    return {
        "raw_rows": raw_rows,
        "headers": list(headers),
        "mapping": mapping,
        "unmapped": unmapped_fields(mapping),
        "normalized": normalized,
        "dropped_rows": int(len(raw_rows) - len(normalized)),
    }


def prepare_context(filters: dict | DashboardFilters, data_ctx: Dict[str, object]) -> Dict[str, object]:
    filt = filters if isinstance(filters, DashboardFilters) else normalize_filters(filters)
    normalized: pd.DataFrame = data_ctx.get("normalized", empty_normalized())

    filtered = filter_live(normalized, filt)
    first_date, last_date = date_bounds(normalized)
    return {
        "filters": filt,
        "raw_rows": data_ctx.get("raw_rows", empty_raw_rows()),
        "headers": data_ctx.get("headers", []),
        "mapping": data_ctx.get("mapping", {}),
        "unmapped": data_ctx.get("unmapped", []),
        "dropped_rows": data_ctx.get("dropped_rows", 0),
        "normalized": normalized,
        "filtered": filtered,
        "kpis": aggregate_metrics(filtered),
        "groups": group_metrics(filtered, filt.group_by),
        "timeseries": timeseries(filtered),
        "dimension_values": dimension_values(normalized),
        "date_bounds": {"first": first_date, "last": last_date},
    }
