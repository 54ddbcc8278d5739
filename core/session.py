"""Immutable dashboard session state.

Every change returns a new :class:`DashboardState`; derived tables are rebuilt
from it by :func:`core.data.build_data_context` and
:func:`core.data.prepare_context`.

Uploads are tagged with a generation token. Reading a file is the only slow
step, so a read that finishes after a newer upload has started is discarded
instead of overwriting the newer data.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from pydantic import ValidationError

from core.data import ParsedCsv, build_data_context, empty_raw_rows
from core.errors import StateImportError
from core.fields import FieldMapping, auto_detect_mapping, coerce_mapping, default_mapping, override_mapping
from core.filters import DashboardFilters, normalize_filters
from core.schemas import DashboardFiltersModel, SessionSnapshotModel


logger = logging.getLogger(__name__)

EXPORT_STATE_NAME = "meta_dashboard_state.json"


@dataclass(frozen=True, eq=False)
class DashboardState:
    raw_rows: pd.DataFrame = field(default_factory=empty_raw_rows)
    headers: Tuple[str, ...] = ()
    mapping: FieldMapping = field(default_factory=default_mapping)
    filters: DashboardFilters = field(default_factory=DashboardFilters)
    file_name: str = ""
    generation: int = 0
    # Filters captured when the date preview was last requested.
    preview_filters: Optional[DashboardFilters] = None

    @classmethod
    def empty(cls) -> "DashboardState":
        return cls()

    @property
    def has_data(self) -> bool:
        return not self.raw_rows.empty

    def data_context(self) -> Dict[str, object]:
        return build_data_context(self.raw_rows, self.mapping, list(self.headers))

    def begin_upload(self) -> Tuple["DashboardState", int]:
        token = self.generation + 1
        return replace(self, generation=token), token

    def apply_upload(self, token: int, parsed: ParsedCsv, file_name: str = "") -> "DashboardState":
        if token != self.generation:
            logger.info("Discarding stale upload %r (token %d, current %d)", file_name, token, self.generation)
            return self
        mapping = auto_detect_mapping(parsed.headers)
        logger.info("Loaded %d rows from %r", len(parsed.rows), file_name)
        return replace(
            self,
            raw_rows=parsed.rows,
            headers=tuple(parsed.headers),
            mapping=mapping,
            file_name=file_name,
            preview_filters=None,
        )

    def with_mapping(self, field_key: str, header: Optional[str]) -> "DashboardState":
        headers = list(self.headers) if self.headers else None
        return replace(self, mapping=override_mapping(self.mapping, field_key, header, headers=headers))

    def with_filters(self, **changes: Any) -> "DashboardState":
        raw = DashboardFiltersModel(**{**asdict(self.filters), **changes}).model_dump()
        return replace(self, filters=normalize_filters(raw))

    def request_preview(self) -> "DashboardState":
        """Snapshot the current filters for the on-demand date preview."""
        return replace(self, preview_filters=self.filters)

    def reset(self) -> "DashboardState":
        # Bumping the generation also discards any read still in flight.
        return DashboardState(generation=self.generation + 1)


def _records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    return df.astype(object).where(df.notna(), None).to_dict(orient="records")


def export_state(state: DashboardState) -> str:
    snapshot = SessionSnapshotModel(
        rows=_records(state.raw_rows),
        mapping=dict(state.mapping),
        date_from=state.filters.date_from,
        date_to=state.filters.date_to,
    )
    return json.dumps(snapshot.model_dump(by_alias=True), indent=2, ensure_ascii=False)


def import_state(state: DashboardState, text: str | bytes, file_name: str = "") -> DashboardState:
    """Restore rows, mapping and date bounds from an exported snapshot.

    Raises :class:`StateImportError` on invalid input; ``state`` itself is
    never modified.
    """
    try:
        snapshot = SessionSnapshotModel.model_validate_json(text)
    except ValidationError as exc:
        logger.warning("Rejected session snapshot %r: %s", file_name, exc)
        raise StateImportError("Invalid JSON state file") from exc

    rows = pd.DataFrame.from_records(snapshot.rows) if snapshot.rows else empty_raw_rows()
    if not rows.empty:
        rows = rows.where(rows.notna(), "")
    mapping = coerce_mapping(snapshot.mapping) if snapshot.mapping is not None else state.mapping
    headers = tuple(str(c) for c in rows.columns)
    filters = replace(state.filters, date_from=snapshot.date_from, date_to=snapshot.date_to)
    logger.info("Imported session snapshot %r with %d rows", file_name, len(rows))
    return replace(
        state,
        raw_rows=rows,
        headers=headers,
        mapping=mapping,
        filters=filters,
        file_name=file_name or "Imported state",
        generation=state.generation + 1,
        preview_filters=None,
    )
