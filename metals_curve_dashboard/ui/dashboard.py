"""Streamlit dashboard for gold and silver term structure.

Tabs:
- Curves: today vs prior curves, macro panel, stress and shape signals
- History: per-tenor price history for one metal
- Guide: how each signal is derived
"""

import streamlit as st
import pandas as pd
import plotly.graph_objects as go
from datetime import datetime

from metals_curve_dashboard.config import (
    REGIME_CARRY_THRESHOLD,
    SHAPE_SLOPE_THRESHOLD,
    STRESS_THRESHOLDS,
    TRACKED_METALS,
    Settings,
)
from metals_curve_dashboard.indicators import CurveCalculator, CurveDashboardResult
from metals_curve_dashboard.indicators.calculator import CurveSignals
from metals_curve_dashboard.indicators.curve_metrics import pct_vs_spot
from metals_curve_dashboard.models.market_data import Curve, Metal


METAL_STYLE = {
    Metal.GOLD: {"today": "#f59e0b", "prior": "#92400e", "digits": 1, "label": "Gold"},
    Metal.SILVER: {"today": "#93c5fd", "prior": "#475569", "digits": 2, "label": "Silver"},
}

REGIME_COLORS = {
    "Contango": "#10b981",
    "Flat": "#f59e0b",
    "Backwardation": "#ef4444",
    "No data": "#6b7280",
}


def format_number(value: float | None, digits: int = 2) -> str:
    """Format a nullable number for display."""
    if value is None:
        return "—"
    return f"{value:,.{digits}f}"


def format_delta(delta: float | None, digits: int = 2) -> tuple[str, str]:
    """Format a change with color."""
    if delta is None:
        return "N/A", "#6b7280"
    if delta == 0:
        return "0", "#6b7280"
    if delta > 0:
        return f"+{delta:.{digits}f}", "#10b981"
    return f"{delta:.{digits}f}", "#ef4444"


# =============================================================================
# TAB 1: CURVES
# =============================================================================

def render_header(result: CurveDashboardResult) -> None:
    """Render as-of and prior dates."""
    prior = result.prior_date.strftime("%Y-%m-%d") if result.prior_date else "none"
    st.markdown(
        f"""<div style="color: #64748b; font-size: 0.75rem; margin-bottom: 1rem;">
            As of <span style="color: #e2e8f0;">{result.as_of_date.strftime('%Y-%m-%d')}</span>
            | Prior <span style="color: #e2e8f0;">{prior}</span>
            | Updated {datetime.now().strftime('%H:%M')}
        </div>""",
        unsafe_allow_html=True,
    )


def _macro_card(title: str, value: str, delta: float | None, digits: int = 2) -> str:
    delta_str, delta_color = format_delta(delta, digits)
    return f"""<div style="background: #1e293b; border: 1px solid #334155; border-radius: 8px; padding: 1rem; min-width: 160px;">
        <div style="color: #94a3b8; font-size: 0.7rem; text-transform: uppercase; letter-spacing: 0.1em;">{title}</div>
        <div style="color: #f1f5f9; font-size: 1.5rem; font-weight: 600; font-family: 'SF Mono', monospace;">{value}</div>
        <div style="color: {delta_color}; font-size: 0.8rem; font-family: 'SF Mono', monospace;">{delta_str} (1d)</div>
    </div>"""


def render_macro_panel(result: CurveDashboardResult) -> None:
    """Render macro cards with day-over-day changes."""
    macro = result.macro
    delta = result.macro_delta

    if delta.deficit_flag_today is None:
        flag = "—"
    else:
        flag = "On" if delta.deficit_flag_today else "Off"
    if delta.deficit_flag_changed:
        flag += " (changed)"

    cols = st.columns(4)
    cards = [
        _macro_card("Real 10Y Yield", f"{format_number(macro.real_10y)}%", delta.real_10y_delta),
        _macro_card("Dollar Index", format_number(macro.dollar_index), delta.dollar_index_delta),
        _macro_card("Deficit Flag", flag, None),
        _macro_card(
            "Gold Front-Month",
            format_number(macro.gold_front_month, 1),
            delta.gold_front_month_delta,
            1,
        ),
    ]
    for col, card in zip(cols, cards):
        with col:
            st.markdown(card, unsafe_allow_html=True)

    if result.inconsistent_macro_fields:
        st.warning(
            "Macro fields differ across rows of the same date: "
            + ", ".join(result.inconsistent_macro_fields)
        )


def render_curve_chart(curve: Curve) -> None:
    """Render absolute today vs prior curve for one metal."""
    style = METAL_STYLE[curve.metal]
    tenors = curve.tenors

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=tenors, y=[p.price_today for p in curve.points],
        mode="lines+markers", line=dict(color=style["today"], width=3),
        name=f"{style['label']} Today",
    ))
    fig.add_trace(go.Scatter(
        x=tenors, y=[p.price_prior for p in curve.points],
        mode="lines", line=dict(color=style["prior"], width=2, dash="dash"),
        name=f"{style['label']} Prior",
    ))
    fig.update_layout(
        height=280, margin=dict(l=0, r=0, t=30, b=0),
        paper_bgcolor="rgba(0,0,0,0)", plot_bgcolor="rgba(0,0,0,0)",
        title=dict(text=f"{style['label']} (Absolute)", font=dict(size=12, color="#94a3b8"), x=0),
        xaxis=dict(title="Tenor (months)", gridcolor="#1e293b", tickfont=dict(color="#64748b")),
        yaxis=dict(gridcolor="#1e293b", tickfont=dict(color="#64748b")),
        legend=dict(orientation="h", y=1.1, font=dict(size=10, color="#94a3b8")),
        hovermode="x unified",
    )
    st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})


def render_spot_relative_chart(curves: dict[Metal, Curve]) -> None:
    """Render both curves as % vs today's spot."""
    fig = go.Figure()
    for metal, curve in curves.items():
        style = METAL_STYLE[metal]
        points = pct_vs_spot(curve)
        tenors = [p.tenor_months for p in points]
        fig.add_trace(go.Scatter(
            x=tenors, y=[p.pct_today for p in points],
            mode="lines", line=dict(color=style["today"], width=3),
            name=f"{style['label']} % Today",
        ))
        fig.add_trace(go.Scatter(
            x=tenors, y=[p.pct_prior for p in points],
            mode="lines", line=dict(color=style["prior"], width=2, dash="dash"),
            name=f"{style['label']} % Prior",
        ))
    fig.update_layout(
        height=320, margin=dict(l=0, r=0, t=30, b=0),
        paper_bgcolor="rgba(0,0,0,0)", plot_bgcolor="rgba(0,0,0,0)",
        title=dict(text="Curve Shape (% vs Spot)", font=dict(size=12, color="#94a3b8"), x=0),
        xaxis=dict(title="Tenor (months)", gridcolor="#1e293b", tickfont=dict(color="#64748b")),
        yaxis=dict(tickformat=".1%", gridcolor="#1e293b", tickfont=dict(color="#64748b")),
        legend=dict(orientation="h", y=1.1, font=dict(size=10, color="#94a3b8")),
        hovermode="x unified",
    )
    st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})


def render_signal_panel(signals: CurveSignals) -> None:
    """Render shape, regime and stress signals for one metal."""
    style = METAL_STYLE[signals.metal]
    regime = signals.regime_today
    color = REGIME_COLORS.get(regime.label, "#6b7280")

    if signals.front_end_stressed is None:
        stress_text, stress_color = "No data", "#6b7280"
    elif signals.front_end_stressed:
        stress_text, stress_color = "STRESSED", "#ef4444"
    else:
        stress_text, stress_color = "Normal", "#10b981"

    momentum = signals.momentum
    if momentum.pct is None:
        momentum_text = momentum.label
    else:
        momentum_text = f"{momentum.label} {momentum.pct:+.2f}% ({momentum.tag})"

    rows = [
        ("Shape", signals.shape_today),
        ("Shape (prior)", signals.shape_prior),
        ("0M→12M carry", format_number(signals.carry_0_12, style["digits"])),
        ("Front slope Δ", signals.front_interpretation),
        ("Back slope Δ", signals.back_interpretation),
        ("Move driver", signals.move_driver),
        ("Front-month momentum", momentum_text),
    ]
    rows_html = "".join(
        f"""<div style="display: flex; justify-content: space-between; padding: 0.4rem 0; border-bottom: 1px solid #334155;">
            <span style="color: #94a3b8; font-size: 0.8rem;">{name}</span>
            <span style="color: #e2e8f0; font-family: 'SF Mono', monospace; font-size: 0.85rem;">{value}</span>
        </div>"""
        for name, value in rows
    )

    st.markdown(
        f"""<div style="background: #1e293b; border: 1px solid #334155; border-left: 4px solid {color}; border-radius: 8px; padding: 1rem 1.5rem;">
            <div style="display: flex; justify-content: space-between; align-items: center; margin-bottom: 0.75rem;">
                <span style="color: #f1f5f9; font-weight: 600;">{style['label']}</span>
                <span style="background: {color}22; border: 1px solid {color}; color: {color}; padding: 0.2rem 0.75rem; border-radius: 4px; font-size: 0.8rem;">{regime.label}</span>
            </div>
            <div style="color: #64748b; font-size: 0.75rem; margin-bottom: 0.5rem;">{regime.detail}</div>
            <div style="display: flex; justify-content: space-between; margin-bottom: 0.5rem;">
                <span style="color: #94a3b8; font-size: 0.8rem;">Front-end stress</span>
                <span style="color: {stress_color}; font-weight: 600; font-size: 0.85rem;">{stress_text} · streak {signals.stress_streak}d</span>
            </div>
            {rows_html}
        </div>""",
        unsafe_allow_html=True,
    )


def render_curve_table(curves: dict[Metal, Curve]) -> None:
    """Render tenor table with today, prior and change per metal."""
    tenors = sorted({t for curve in curves.values() for t in curve.tenors})
    table = pd.DataFrame({"Tenor (months)": tenors})
    for metal, curve in curves.items():
        label = METAL_STYLE[metal]["label"]
        today = []
        prior = []
        for t in tenors:
            point = curve.point(t)
            today.append(point.price_today if point else None)
            prior.append(point.price_prior if point else None)
        table[f"{label} Today"] = today
        table[f"{label} Prior"] = prior
        table[f"{label} Δ"] = [
            a - b if a is not None and b is not None else None
            for a, b in zip(today, prior)
        ]
    st.dataframe(table, use_container_width=True, hide_index=True)


def render_curves_tab(result: CurveDashboardResult) -> None:
    """Render the main curves tab."""
    render_header(result)
    render_macro_panel(result)

    st.markdown("<div style='height: 0.5rem;'></div>", unsafe_allow_html=True)

    render_spot_relative_chart(result.curves)

    col1, col2 = st.columns(2)
    for col, metal in zip((col1, col2), TRACKED_METALS):
        with col:
            render_curve_chart(result.curves[metal])
            render_signal_panel(result.signals[metal])

    divergence = result.divergence
    if divergence.correlation is None:
        st.info("Gold/silver move correlation: insufficient overlapping tenors")
    elif divergence.diverging:
        st.warning(
            f"Gold and silver curves diverging (day-over-day correlation {divergence.correlation:.2f})"
        )
    else:
        st.caption(f"Gold/silver day-over-day correlation {divergence.correlation:.2f}")

    with st.expander("Curve table"):
        render_curve_table(result.curves)

    with st.expander("Raw JSON"):
        st.json(result.to_dict())


# =============================================================================
# TAB 2: HISTORY
# =============================================================================

def render_history_tab(calc: CurveCalculator, days: int) -> None:
    """Render per-tenor price history for the selected metal."""
    metal = st.radio(
        "Metal",
        options=[m.value for m in TRACKED_METALS],
        horizontal=True,
        label_visibility="collapsed",
    )
    history = calc.get_history(metal, days=days)
    if history.empty:
        st.info("Insufficient history for chart")
        return

    fig = go.Figure()
    for tenor in history.columns:
        fig.add_trace(go.Scatter(
            x=history.index, y=history[tenor],
            mode="lines", name=f"{tenor}M",
            hovertemplate=f"{tenor}M: %{{y:.2f}}<extra></extra>",
        ))
    fig.update_layout(
        height=360, margin=dict(l=0, r=0, t=30, b=0),
        paper_bgcolor="rgba(0,0,0,0)", plot_bgcolor="rgba(0,0,0,0)",
        title=dict(text=f"{metal.title()} price by tenor", font=dict(size=12, color="#94a3b8"), x=0),
        xaxis=dict(gridcolor="#1e293b", tickfont=dict(color="#64748b", size=10), tickformat="%b %d"),
        yaxis=dict(gridcolor="#1e293b", tickfont=dict(color="#64748b", size=10)),
        legend=dict(orientation="h", y=1.1, font=dict(size=10, color="#94a3b8")),
        hovermode="x unified",
    )
    st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})


# =============================================================================
# TAB 3: GUIDE
# =============================================================================

def render_guide_tab() -> None:
    """Render the signal reference guide."""
    st.markdown("## Signal Reference Guide")
    gold = STRESS_THRESHOLDS[Metal.GOLD]
    silver = STRESS_THRESHOLDS[Metal.SILVER]
    st.markdown(f"""
    **Curve shape** uses the 0M→12M slope per month: above {SHAPE_SLOPE_THRESHOLD:g} is
    steepening, below -{SHAPE_SLOPE_THRESHOLD:g} is inverted, anything else is flat/mild.

    **Regime** uses the 12M minus spot price: above {REGIME_CARRY_THRESHOLD:g} is contango,
    below -{REGIME_CARRY_THRESHOLD:g} is backwardation.

    **Front-end stress** fires when |1M − spot| exceeds {gold:g} for gold or {silver:g}
    for silver. The streak counts consecutive most recent days under stress and
    stops at the first calm day or missing price.

    **Move driver** compares today-vs-prior slope changes at the front (0M→3M) and
    back (3M→12M) of the curve.

    **Divergence** flags days where gold and silver curves moved in opposite
    directions across tenors (negative correlation of day-over-day changes).
    """)


# =============================================================================
# MAIN APP
# =============================================================================

def main() -> None:
    """Main dashboard entry point."""
    st.set_page_config(
        page_title="Metals Curve Monitor",
        page_icon="",
        layout="wide",
        initial_sidebar_state="collapsed",
    )

    st.markdown(
        """
        <style>
            .stApp { background-color: #0f172a; }
            .stMarkdown, .stText, p, span, label { color: #e2e8f0; }
            h1, h2, h3, h4 { color: #f1f5f9 !important; font-weight: 600 !important; }
            #MainMenu, footer, header { visibility: hidden; }
        </style>
        """,
        unsafe_allow_html=True,
    )

    st.markdown(
        """<div style="display: flex; justify-content: space-between; align-items: center; padding: 0.5rem 0 1rem 0; border-bottom: 1px solid #334155; margin-bottom: 1rem;">
            <div>
                <h1 style="margin: 0; font-size: 1.5rem; color: #f1f5f9;">Gold &amp; Silver Term Structure</h1>
                <div style="color: #64748b; font-size: 0.75rem; margin-top: 0.25rem;">Curve, stress and macro monitor</div>
            </div>
            <div style="color: #64748b; font-size: 0.7rem; text-align: right;">
                Data: daily CSV feed<br>Refresh: Daily EOD
            </div>
        </div>""",
        unsafe_allow_html=True,
    )

    period_options = {
        "30 Days": 30,
        "90 Days": 90,
        "180 Days": 180,
        "1 Year": 365,
    }

    col_period, col_spacer = st.columns([1, 4])
    with col_period:
        selected_period = st.selectbox(
            "History Period",
            options=list(period_options.keys()),
            index=1,
            label_visibility="collapsed",
        )
    history_days = period_options[selected_period]

    with st.spinner("Loading..."):
        calc = CurveCalculator(Settings())
        result = calc.calculate()

    if result is None:
        st.error("No data available. Run: python -m metals_curve_dashboard.data.csv_ingest")
        return

    tab1, tab2, tab3 = st.tabs(["Curves", "History", "Guide"])

    with tab1:
        render_curves_tab(result)

    with tab2:
        render_history_tab(calc, history_days)

    with tab3:
        render_guide_tab()


if __name__ == "__main__":
    main()
