"""
Receipt Spending Dashboard

A Streamlit dashboard for exploring a warehouse-club receipt export.
Run with: streamlit run app.py
"""

import io
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

import streamlit as st
import pandas as pd
import plotly.graph_objects as go

from receipt_analytics import AnalyticsConfig, AnalyticsResult, compute_all
from receipt_analytics.log import get_logger
from receipt_clients import CostcoReceiptLoader, LoadedReceipts, ReceiptDataError

logger = get_logger(__name__)

# Page config
st.set_page_config(
    page_title="Receipt Spending Dashboard",
    page_icon="🧾",
    layout="wide",
)

st.title("🧾 Receipt Spending Dashboard")
st.caption("Upload a receipt export (CSV or Excel) to analyze your purchases")

FREQUENCY_TABLE_ROWS = 100
PURCHASE_COLOR = "#3498db"
RETURN_COLOR = "#e74c3c"
SAVINGS_COLOR = "#2ecc71"
INSIGHT_ICONS = {"warning": "⚠️", "success": "✅", "info": "💡"}
STATUS_EMOJI = {"urgent": "🔴", "limited": "🟡", "anytime": "🟢", "expired": "⚫"}


class ChartRegistry:
    """
    Plotly figures built for one uploaded file.

    Lives in st.session_state, so each browser session owns its own
    registry and figures are rebuilt when a different file is uploaded.
    """

    def __init__(self, file_id: str):
        self.file_id = file_id
        self._figures: dict[str, go.Figure] = {}

    def get(self, name: str, build) -> go.Figure:
        if name not in self._figures:
            self._figures[name] = build()
        return self._figures[name]


def chart_registry(file_id: str) -> ChartRegistry:
    registry = st.session_state.get("charts")
    if registry is None or registry.file_id != file_id:
        registry = ChartRegistry(file_id)
        st.session_state["charts"] = registry
    return registry


@st.cache_data
def load_receipts(content: bytes, filename: str) -> LoadedReceipts:
    """Read and normalize an upload (cached per file content)."""
    loader = CostcoReceiptLoader()
    raw = loader.read(io.BytesIO(content), filename=filename)
    return loader.load_frame(raw, source_name=filename)


def _layout(fig: go.Figure, title: str, height: int = 320, **kwargs) -> go.Figure:
    fig.update_layout(
        title=title,
        height=height,
        margin=dict(t=40, b=20, l=20, r=20),
        **kwargs,
    )
    return fig


def monthly_figure(result: AnalyticsResult) -> go.Figure:
    monthly = result.monthly
    fig = go.Figure(
        data=[
            go.Bar(x=monthly["month"], y=monthly["purchases"], name="Purchases", marker_color=PURCHASE_COLOR),
            go.Bar(x=monthly["month"], y=monthly["returns"], name="Returns", marker_color=RETURN_COLOR),
        ]
    )
    return _layout(fig, "Monthly Spending", barmode="group", yaxis_title="$")


def department_figure(result: AnalyticsResult) -> go.Figure:
    departments = result.departments
    fig = go.Figure(
        data=[go.Pie(labels=departments["department"], values=departments["total"], hole=0.4)]
    )
    return _layout(fig, "Spending by Department", height=380)


def basket_figure(result: AnalyticsResult) -> go.Figure:
    basket = result.basket_size
    fig = go.Figure(
        data=[go.Scatter(x=basket["month"], y=basket["avg_items"], mode="lines+markers", line_color=PURCHASE_COLOR)]
    )
    return _layout(fig, "Average Items per Trip", yaxis_title="Items")


def top_items_figure(table: pd.DataFrame, value_col: str, title: str, axis_title: str) -> go.Figure:
    ranked = table.iloc[::-1]
    fig = go.Figure(
        data=[
            go.Bar(
                x=ranked[value_col],
                y=ranked["label"],
                orientation="h",
                hovertext=ranked["name"],
                marker_color=PURCHASE_COLOR,
            )
        ]
    )
    return _layout(fig, title, height=520, xaxis_title=axis_title)


def savings_figure(result: AnalyticsResult) -> go.Figure:
    breakdown = result.savings_breakdown
    fig = go.Figure(
        data=[go.Pie(labels=breakdown["category"], values=breakdown["amount"], hole=0.4)]
    )
    return _layout(fig, "Savings Breakdown")


def monthly_savings_figure(result: AnalyticsResult) -> go.Figure:
    savings = result.monthly_savings
    fig = go.Figure(
        data=[go.Bar(x=savings["month"], y=savings["savings"], marker_color=SAVINGS_COLOR)]
    )
    return _layout(fig, "Monthly Savings", yaxis_title="$")


def _dates(series: pd.Series) -> pd.Series:
    return pd.to_datetime(series).dt.strftime("%Y-%m-%d").fillna("-")


uploaded = st.file_uploader("Receipt export", type=["csv", "xlsx", "xls"])
if uploaded is None:
    st.info("Upload a file to get started")
    st.stop()

try:
    with st.spinner("Analyzing receipts..."):
        loaded = load_receipts(uploaded.getvalue(), uploaded.name)
        result = compute_all(loaded.records, config=AnalyticsConfig.from_env())
except ReceiptDataError as exc:
    logger.warning("Rejected upload %s: %s", uploaded.name, exc)
    st.error(str(exc))
    st.stop()

charts = chart_registry(f"{uploaded.name}:{uploaded.size}")
summary = result.summary
st.caption(f"{uploaded.name}: {len(loaded.records):,} items loaded")

# --- Key Metrics Row ---
st.header("Key Metrics")
col1, col2, col3, col4 = st.columns(4)

with col1:
    st.metric(
        "Total Spent",
        f"${summary.total_spent:,.2f}",
        delta=f"${summary.total_return_amount:,.2f} returned",
        delta_color="off",
    )

with col2:
    st.metric(
        "Trips",
        f"{summary.total_trips}",
        delta=f"${summary.avg_per_trip:,.2f} per trip",
        delta_color="off",
    )

with col3:
    st.metric(
        "Items Purchased",
        f"{summary.total_items_purchased:,.0f}",
        delta=f"{summary.total_items_returned:,.0f} returned",
        delta_color="inverse",
    )

with col4:
    st.metric("Total Savings", f"${summary.total_savings:,.2f}")

st.divider()

spending_tab, items_tab, savings_tab, returns_tab, insights_tab, quality_tab = st.tabs(
    ["📈 Spending", "🛒 Items", "💰 Savings", "↩️ Returns", "💡 Insights", "🔧 Data Quality"]
)

with spending_tab:
    left_col, right_col = st.columns([2, 1])
    with left_col:
        st.plotly_chart(charts.get("monthly", lambda: monthly_figure(result)), use_container_width=True)
        st.plotly_chart(charts.get("basket", lambda: basket_figure(result)), use_container_width=True)
    with right_col:
        st.plotly_chart(charts.get("departments", lambda: department_figure(result)), use_container_width=True)

with items_tab:
    left_col, right_col = st.columns(2)
    with left_col:
        st.plotly_chart(
            charts.get(
                "top_frequency",
                lambda: top_items_figure(result.top_frequency, "count", "Most Purchased Items", "Units"),
            ),
            use_container_width=True,
        )
    with right_col:
        st.plotly_chart(
            charts.get(
                "top_spend",
                lambda: top_items_figure(result.top_spend, "total_spent", "Top Items by Spend", "$"),
            ),
            use_container_width=True,
        )

    st.subheader("Purchase Frequency")
    freq = result.frequency_table.head(FREQUENCY_TABLE_ROWS).copy()
    freq_display = pd.DataFrame(
        {
            "SKU": freq["sku"],
            "Item": freq["name"],
            "Times Bought": freq["count"],
            "Total Spent": freq["total_spent"].round(2),
            "First Purchase": _dates(freq["first_date"]),
            "Last Purchase": _dates(freq["last_date"]),
        }
    )
    st.dataframe(
        freq_display,
        use_container_width=True,
        hide_index=True,
        column_config={"Total Spent": st.column_config.NumberColumn(format="$%.2f")},
    )
    st.caption(f"Showing top {len(freq_display)} of {len(result.frequency_table)} items")

    st.subheader("Price Changes")
    if len(result.price_changes) > 0:
        changes = result.price_changes
        st.dataframe(
            pd.DataFrame(
                {
                    "Item": changes["name"],
                    "Old Price": changes["old_price"],
                    "New Price": changes["new_price"],
                    "Change": changes["change"],
                    "Change %": changes["change_percent"],
                    "First Seen": _dates(changes["first_date"]),
                    "Last Seen": _dates(changes["last_date"]),
                }
            ),
            use_container_width=True,
            hide_index=True,
            column_config={
                "Old Price": st.column_config.NumberColumn(format="$%.2f"),
                "New Price": st.column_config.NumberColumn(format="$%.2f"),
                "Change": st.column_config.NumberColumn(format="$%.2f"),
                "Change %": st.column_config.NumberColumn(format="%.2f%%"),
            },
        )
    else:
        st.info("No price changes detected")

with savings_tab:
    if len(result.savings_breakdown) > 0:
        left_col, right_col = st.columns(2)
        with left_col:
            st.plotly_chart(charts.get("savings", lambda: savings_figure(result)), use_container_width=True)
        with right_col:
            st.plotly_chart(
                charts.get("monthly_savings", lambda: monthly_savings_figure(result)),
                use_container_width=True,
            )
    else:
        st.info("No savings recorded in this export")

    st.subheader("Best Discounts")
    if len(result.top_discounts) > 0:
        discounts = result.top_discounts
        st.dataframe(
            pd.DataFrame(
                {
                    "Item": discounts["name"],
                    "Unit Price": discounts["unit_price"],
                    "Saved": discounts["savings"],
                    "Discount %": discounts["discount_percent"],
                }
            ),
            use_container_width=True,
            hide_index=True,
            column_config={
                "Unit Price": st.column_config.NumberColumn(format="$%.2f"),
                "Saved": st.column_config.NumberColumn(format="$%.2f"),
                "Discount %": st.column_config.NumberColumn(format="%.1f%%"),
            },
        )
    else:
        st.info("No instant-savings discounts found")

with returns_tab:
    eligibility = result.return_eligibility
    col1, col2, col3 = st.columns(3)
    col1.metric("Potential Refund", f"${eligibility.total_potential_refund:,.2f}")
    col2.metric("Returnable Items", f"{eligibility.total_returnable_items:,.0f}")
    col3.metric("Expiring Soon", f"{len(eligibility.urgent)}")

    st.subheader("Still Returnable")
    if eligibility.entries:
        status_filter = st.multiselect(
            "Filter by status:",
            ["urgent", "limited", "anytime", "expired"],
            default=["urgent", "limited", "anytime"],
        )
        rows = [
            {
                "Status": f"{STATUS_EMOJI[e.status]} {e.status.upper()}",
                "Item": e.name,
                "Department": e.department,
                "Qty": e.quantity,
                "Refund": e.refund_estimate,
                "Purchased": e.purchase_date.strftime("%Y-%m-%d") if e.purchase_date else "-",
                "Policy": e.policy_label,
                "Days Left": e.days_remaining,
            }
            for e in eligibility.entries
            if e.status in status_filter
        ]
        st.dataframe(
            pd.DataFrame(rows),
            use_container_width=True,
            hide_index=True,
            column_config={"Refund": st.column_config.NumberColumn(format="$%.2f")},
        )
        with st.expander("By department"):
            for label, group in eligibility.departments.items():
                st.markdown(f"**{label}**: {len(group.items)} item(s), ${group.total_refund:,.2f}")
    else:
        st.info("No unreturned items in returnable departments")

    st.subheader("Return History")
    if len(result.returns_table) > 0:
        history = result.returns_table.copy()
        history["date"] = _dates(history["date"])
        history.columns = ["Date", "Item", "Qty", "Refund"]
        st.dataframe(
            history,
            use_container_width=True,
            hide_index=True,
            column_config={"Refund": st.column_config.NumberColumn(format="$%.2f")},
        )
    else:
        st.info("No returns in this export")

with insights_tab:
    for insight in result.insights:
        body = f"**{insight.title}**  \n{insight.text}"
        icon = INSIGHT_ICONS[insight.kind]
        if insight.kind == "warning":
            st.warning(body, icon=icon)
        elif insight.kind == "success":
            st.success(body, icon=icon)
        else:
            st.info(body, icon=icon)

with quality_tab:
    report = loaded.quality_report
    if report.issues:
        for issue in report.issues:
            icon = "🔴" if issue.severity == "critical" else "🟡" if issue.severity == "warning" else "🔵"
            st.markdown(f"{icon} {issue.column}: {issue.description}")
            if issue.sample_values:
                st.caption("Examples: " + ", ".join(str(v) for v in issue.sample_values))
    else:
        st.markdown("✅ No issues found")

# --- Footer ---
st.divider()
st.caption(
    "Built with Streamlit | "
    f"{len(loaded.records):,} line items | "
    f"{summary.total_trips} trips | "
    f"{len(result.frequency_table)} distinct items"
)
