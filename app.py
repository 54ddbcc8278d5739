import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st

from core import data as dc
from core.errors import DashboardError
from core.fields import CANONICAL_FIELDS, FIELD_LABELS, mapping_choices
from core.filters import ALL, DashboardFilters, dimension_values
from core.formatting import format_currency
from core.metrics_breakdown import compute_breakdown
from core.metrics_debug import compute_debug
from core.metrics_overview import compute_overview
from core.metrics_table import compute_date_range, compute_table
from core.session import EXPORT_STATE_NAME, DashboardState, export_state, import_state

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

SAMPLE_CSV = """date,campaign,adset,ad,spend,impressions,clicks,conversions,revenue
2025-08-01,Prospecting - TOF,Lookalike 2%,UGC_01,250,52000,1400,22,1200
2025-08-01,Retargeting - MOF,ATC 14d,Carousel_02,120,18000,900,35,1750
2025-08-01,Retargeting - BOF,ViewContent 7d,Static_Offer,80,9000,420,19,1100
2025-08-02,Prospecting - TOF,Interest_Fashion,UGC_02,180,41000,1000,15,800
2025-08-02,Retargeting - MOF,ATC 14d,Carousel_02,110,17000,820,28,1400
2025-08-02,Retargeting - BOF,ViewContent 7d,Static_Offer,70,8500,380,17,950
2025-08-03,Prospecting - TOF,Lookalike 2%,UGC_01,220,50000,1320,20,1150
2025-08-03,Retargeting - MOF,ATC 14d,Carousel_03,130,19000,940,33,1680
2025-08-03,Retargeting - BOF,ViewContent 7d,Static_Offer,85,9700,450,18,980
2025-08-04,Prospecting - TOF,Lookalike 2%,UGC_01,300,58000,1600,25,1400
2025-08-05,Retargeting - MOF,ATC 14d,Carousel_02,140,20000,1050,40,2000
"""

UNMAPPED_LABEL = "(not mapped)"


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(filters: DashboardFilters) -> str:
    chips = [
        f"Campaign: {filters.campaign if filters.campaign != ALL else 'All'}",
        f"Ad Set: {filters.adset if filters.adset != ALL else 'All'}",
        f"Ad: {filters.ad if filters.ad != ALL else 'All'}",
        f"Group by: {FIELD_LABELS[filters.group_by]}",
    ]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def render_page_header(title: str, breadcrumb: str, filters: DashboardFilters, export_df: Optional[pd.DataFrame] = None):
    inject_base_styles()
    c1, c2 = st.columns([7, 3])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Export CSV",
                data=dc.export_rows_csv(export_df).encode("utf-8"),
                file_name=dc.EXPORT_CSV_NAME,
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{format_filter_summary(filters)}</div>", unsafe_allow_html=True)


def get_state() -> DashboardState:
    if "dashboard_state" not in st.session_state:
        st.session_state["dashboard_state"] = DashboardState.empty()
    return st.session_state["dashboard_state"]


def set_state(state: DashboardState) -> None:
    st.session_state["dashboard_state"] = state


# ---------- Ingestion ----------
def handle_upload(state: DashboardState, uploaded) -> DashboardState:
    signature = (uploaded.name, uploaded.size)
    if st.session_state.get("_upload_signature") == signature:
        return state
    st.session_state["_upload_signature"] = signature

    state, token = state.begin_upload()
    progress = st.progress(0.0, text=f"Reading {uploaded.name}")
    try:
        parsed = dc.load_upload(
            uploaded,
            total_size=uploaded.size,
            on_progress=lambda frac: progress.progress(frac, text=f"Reading {uploaded.name}: {frac:.0%}"),
        )
    except DashboardError as exc:
        logger.exception("Upload of %s failed", uploaded.name)
        progress.empty()
        st.error(str(exc))
        return state
    progress.empty()
    if parsed.errors:
        st.warning(f"{len(parsed.errors)} rows had fewer fields than the header; missing cells were left blank.")
    return state.apply_upload(token, parsed, uploaded.name)


def handle_state_import(state: DashboardState, uploaded) -> DashboardState:
    signature = (uploaded.name, uploaded.size)
    if st.session_state.get("_import_signature") == signature:
        return state
    st.session_state["_import_signature"] = signature
    try:
        return import_state(state, uploaded.getvalue(), uploaded.name)
    except DashboardError as exc:
        logger.exception("State import of %s failed", uploaded.name)
        st.error(str(exc))
        return state


# ---------- UI setup ----------
st.set_page_config(page_title="Meta Ads Dashboard", layout="wide")
inject_base_styles()
st.title("Meta Ads Dashboard")
st.caption("Upload • Explore • Share")

state = get_state()

with st.sidebar:
    st.markdown("### Data")
    uploaded = st.file_uploader("Upload CSV export", type=["csv"])
    if uploaded is not None:
        state = handle_upload(state, uploaded)
    b1, b2 = st.columns(2)
    if b1.button("Load sample"):
        state, token = state.begin_upload()
        state = state.apply_upload(token, dc.parse_csv_text(SAMPLE_CSV), "sample.csv")
    if b2.button("Reset"):
        state = state.reset()

    with st.expander("Session state", expanded=False):
        snapshot = st.file_uploader("Import state (JSON)", type=["json"])
        if snapshot is not None:
            state = handle_state_import(state, snapshot)
        st.download_button(
            "Export state",
            data=export_state(state).encode("utf-8"),
            file_name=EXPORT_STATE_NAME,
            mime="application/json",
        )

set_state(state)
if not state.has_data:
    st.info("Upload a CSV export (or load the sample) to get started.")
    st.stop()

if state.file_name:
    st.caption(f"File: {state.file_name}")

# ----- Column mapping -----
with st.expander("Column mapping", expanded=False):
    cols = st.columns(3)
    for idx, (key, label) in enumerate(CANONICAL_FIELDS):
        options, index = mapping_choices(state.headers, state.mapping.get(key))
        choice = cols[idx % 3].selectbox(
            label,
            options=options,
            index=index,
            format_func=lambda h: UNMAPPED_LABEL if h is None else str(h),
            key=f"map_{key}_{state.generation}",
        )
        if choice != options[index]:
            state = state.with_mapping(key, choice)
    set_state(state)

data_ctx = state.data_context()
normalized: pd.DataFrame = data_ctx["normalized"]
if normalized.empty:
    st.error("No rows with a recognised date. Check the Date column mapping.")
    st.stop()

# ----- Sidebar: navigation + filters -----
dims = dimension_values(normalized)
with st.sidebar:
    st.markdown("---")
    st.markdown("### Navigate")
    nav_choice = st.radio("Navigate", ["Overview", "By dimension", "Table", "Data Quality / Debug"], index=0)

    st.markdown("---")
    st.markdown("### Filters")

    def _pick(label: str, key: str) -> str:
        opts = dims[key]
        current = state.filters.dimension_value(key)
        return st.selectbox(label, options=opts, index=opts.index(current) if current in opts else 0, key=f"filter_{key}_{state.generation}")

    campaign = _pick("Campaign", "campaign")
    adset = _pick("Ad Set", "adset")
    ad = _pick("Ad", "ad")
    group_by = st.selectbox(
        "Group by",
        options=["campaign", "adset", "ad"],
        index=["campaign", "adset", "ad"].index(state.filters.group_by),
        format_func=lambda k: FIELD_LABELS[k],
    )

state = state.with_filters(campaign=campaign, adset=adset, ad=ad, group_by=group_by)
set_state(state)
filters = state.filters
ctx = dc.prepare_context(filters, data_ctx)


def render_kpi_cards(cards: List[Dict[str, Any]]):
    for start in range(0, len(cards), 5):
        cols = st.columns(5)
        for col, item in zip(cols, cards[start : start + 5]):
            col.metric(item["title"], item["display"], help=item["hint"])


def render_overview():
    payload = compute_overview(filters, ctx)
    render_page_header("Overview", "Dashboard / Overview", filters, export_df=ctx["filtered"])
    if payload["row_count"] == 0:
        st.info("No rows match the selected filters.")
    render_kpi_cards(payload["cards"])
    charts = payload["charts"]
    if charts:
        c1, c2 = st.columns(2)
        with c1, card("Spend vs Revenue"):
            st.vega_lite_chart(charts["spend_revenue"], use_container_width=True)
        with c2, card("Clicks & Conversions"):
            st.vega_lite_chart(charts["engagement"], use_container_width=True)


def render_breakdown():
    payload = compute_breakdown(filters, ctx)
    render_page_header(f"By {payload['label']}", "Dashboard / Breakdown", filters, export_df=ctx["filtered"])
    if not payload["groups"]:
        st.info("No rows match the selected filters.")
        return
    with card(f"Spend and revenue by {payload['label']}"):
        st.vega_lite_chart(payload["charts"]["breakdown"], use_container_width=True)
    groups = pd.DataFrame(payload["groups"]).rename(columns={"key": payload["label"]})
    st.dataframe(groups, hide_index=True, use_container_width=True)


def render_table():
    payload = compute_table(filters, ctx)
    render_page_header("Raw table", "Dashboard / Table", filters, export_df=ctx["filtered"])
    st.caption(f"{payload['row_count']:,} rows")
    st.dataframe(pd.DataFrame(payload["rows"]), hide_index=True, use_container_width=True)

    with card("Date range preview"):
        first, last = ctx["date_bounds"]["first"], ctx["date_bounds"]["last"]
        c1, c2, c3 = st.columns([2, 2, 1])
        date_from = c1.text_input(
            "From (YYYY-MM-DD)", value=filters.date_from, placeholder=first or "", key=f"date_from_{state.generation}"
        )
        date_to = c2.text_input(
            "To (YYYY-MM-DD)", value=filters.date_to, placeholder=last or "", key=f"date_to_{state.generation}"
        )
        fetch = c3.button("Fetch")
        current = state.with_filters(date_from=date_from, date_to=date_to)
        if fetch:
            current = current.request_preview()
        set_state(current)
        if current.preview_filters is not None:
            preview = compute_date_range(current.preview_filters, ctx)
            m1, m2, m3 = st.columns(3)
            m1.metric("Records", f"{preview['row_count']:,}")
            m2.metric("Spend", format_currency(preview["spend"], 0))
            m3.metric("Revenue", format_currency(preview["revenue"], 0))
            if preview["row_count"] == 0 and preview["available_dates"]:
                st.warning("No records in this range. Available dates: " + ", ".join(preview["available_dates"]))
            st.dataframe(pd.DataFrame(preview["preview"]), hide_index=True, use_container_width=True)


def render_debug():
    payload = compute_debug(filters, ctx)
    render_page_header("Data Quality / Debug", "Dashboard / Debug", filters)
    st.json(payload["row_counts"])
    st.dataframe(pd.DataFrame(payload["mapping"]), hide_index=True, use_container_width=True)
    if payload["unmapped_fields"]:
        st.warning("Unmapped fields: " + ", ".join(FIELD_LABELS[k] for k in payload["unmapped_fields"]))
    c1, c2 = st.columns(2)
    with c1:
        st.markdown("**First raw row**")
        st.json(payload["first_raw_row"] or {})
    with c2:
        st.markdown("**First normalized row**")
        st.json(payload["first_normalized_row"] or {})


if nav_choice == "Overview":
    render_overview()
elif nav_choice == "By dimension":
    render_breakdown()
elif nav_choice == "Table":
    render_table()
else:
    render_debug()
