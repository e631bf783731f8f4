import asyncio
import os
import sys

import pandas as pd
import plotly.express as px
import streamlit as st
from loguru import logger

from roblox_pulse.config import settings
from roblox_pulse.main import load_dashboard_snapshot
from roblox_pulse.pipeline.orchestrator import SnapshotResult
from roblox_pulse.presentation import DashboardView, build_view, error_view


# --- 1. 초기 설정 (Logging & Page Config) ---
def setup_logging():
    logger.remove()
    log_level = os.getenv("LOG_LEVEL", settings.log_level).upper()
    logger.add(sys.stderr, level=log_level)


setup_logging()

st.set_page_config(
    page_title="Roblox Pulse",
    page_icon=":video_game:",
    layout="wide",
    initial_sidebar_state="collapsed",
)

CARDS_PER_ROW = 4


# --- 2. Data Layer ---
# 예외는 캐시되지 않으므로 실패 직후 새로고침하면 바로 다시 조회함
@st.cache_data(ttl=60)
def fetch_snapshot() -> SnapshotResult:
    return asyncio.run(load_dashboard_snapshot())


def load_view() -> DashboardView:
    """실시간 집계 → 저장된 스냅샷 순으로 시도하고, 둘 다 실패하면 오류 화면을 반환"""
    try:
        result = fetch_snapshot()
    except Exception as e:
        logger.exception("Failed to load snapshot")
        return error_view(str(e))

    return build_view(
        result.snapshot,
        placeholder_url=settings.placeholder_image_url,
        source=result.source,
    )


# --- 3. UI Layer (Main) ---
def render_cards(view: DashboardView) -> None:
    for start in range(0, len(view.cards), CARDS_PER_ROW):
        columns = st.columns(CARDS_PER_ROW)
        for column, card in zip(columns, view.cards[start : start + CARDS_PER_ROW]):
            with column:
                st.image(card.thumbnail_url, width="stretch")
                if card.link_url:
                    st.markdown(f"#### [{card.name}]({card.link_url})")
                else:
                    st.markdown(f"#### {card.name}")
                st.markdown(f"👥 **{card.active_text}** &nbsp; 👣 **{card.visits_text}**")


def main():
    st.title("🎮 Roblox Pulse")
    st.markdown("### Live Player Stats")

    with st.spinner("Fetching stats..."):
        view = load_view()

    # --- KPI Section ---
    st.divider()
    m_col1, m_col2, m_col3 = st.columns(3)
    with m_col1:
        st.metric("Active Players", view.total_active_text)
    with m_col2:
        st.metric("Total Visits", view.total_visits_text)
    with m_col3:
        st.metric("Last Updated", view.last_updated_text)

    if view.error:
        st.error("데이터를 불러오지 못했습니다. 잠시 후 다시 시도하세요.")
        return

    if view.source == "cache":
        st.warning("실시간 조회에 실패하여 마지막으로 저장된 스냅샷을 표시합니다.")

    if not view.cards:
        st.info("표시할 게임이 없습니다.")
        return

    # --- Active Players Chart ---
    st.divider()
    st.subheader("🔥 동시 접속자 순위")
    chart_df = pd.DataFrame(
        {"game": [c.name for c in view.cards], "playing": [c.active_count for c in view.cards]}
    )
    fig = px.bar(
        chart_df,
        x="playing",
        y="game",
        orientation="h",
        labels={"playing": "Active Players", "game": "Game"},
        color="playing",
        color_continuous_scale="Reds",
    )
    fig.update_layout(height=400, yaxis={"categoryorder": "total ascending"})
    st.plotly_chart(fig, width="stretch")

    # --- Game Cards ---
    st.divider()
    st.subheader("🕹️ 게임 목록")
    render_cards(view)


if __name__ == "__main__":
    main()
