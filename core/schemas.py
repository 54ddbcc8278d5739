from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SessionSnapshotModel(BaseModel):
    """Shape of the exported ``meta_dashboard_state.json`` file."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    rows: List[Dict[str, Any]] = Field(default_factory=list)
    mapping: Optional[Dict[str, Optional[str]]] = None
    date_from: str = Field(default="", alias="dateFrom")
    date_to: str = Field(default="", alias="dateTo")

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def _null_date_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class DashboardFiltersModel(BaseModel):
    campaign: str = "all"
    adset: str = "all"
    ad: str = "all"
    date_from: str = ""
    date_to: str = ""
    group_by: str = "campaign"
    preview_limit: int = 20
