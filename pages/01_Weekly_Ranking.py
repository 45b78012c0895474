# pages/01_Weekly_Ranking.py
from __future__ import annotations

import os, sys
import streamlit as st

# --- Make imports work when this file lives in /pages ---
APP_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if APP_DIR not in sys.path:
    sys.path.insert(0, APP_DIR)

from app import load_ranking, policy_selector, ranking_or_stop
from config import FULL_PAGE_LIMIT, WINDOW_DAYS
from ranking_view import build_display_table, find_viewer_row, format_metric, metric_label, rank_badge, split_podium

st.set_page_config(page_title="Weekly Ranking", page_icon="🏆", layout="wide")
st.title(f"🏆 Top {FULL_PAGE_LIMIT} Students of the Week")
st.caption(f"Based on lesson scores from the last {WINDOW_DAYS} days")

col1, col2 = st.columns([4, 1])
with col1:
    policy = policy_selector("page_policy")
with col2:
    if st.button("🔄 Refresh", use_container_width=True):
        load_ranking.clear()
        st.rerun()

viewer_id = st.query_params.get("student")
ranking = ranking_or_stop(FULL_PAGE_LIMIT, policy)

if ranking.empty:
    st.info(f"No activity in the last {WINDOW_DAYS} days.")
    st.stop()

label = metric_label(policy)
podium, rest = split_podium(ranking)

# Podium order: second, first, third
podium_cols = st.columns(3)
for col, pos in zip(podium_cols, (1, 0, 2)):
    if pos >= len(podium):
        continue
    row = podium.iloc[pos]
    with col:
        st.metric(
            f"{rank_badge(row['Rank'])} {row['Name']}",
            f"{format_metric(row['Metric'], policy)} {label.lower()}",
            f"{int(row['CompletedCount'])} lessons",
            delta_color="off",
        )

viewer = find_viewer_row(ranking, viewer_id)
if viewer is not None:
    st.success(
        f"You are #{int(viewer['Rank'])} this week with "
        f"{format_metric(viewer['Metric'], policy)} {label.lower()}."
    )
elif viewer_id:
    st.info(f"You are not in the top {FULL_PAGE_LIMIT} yet. Complete a lesson to join the ranking!")

if not rest.empty:
    table = build_display_table(rest, policy, current_student_id=viewer_id)
    st.dataframe(table.drop(columns=["You"]), hide_index=True, use_container_width=True)

st.download_button(
    "⬇️ Download CSV",
    data=ranking.to_csv(index=False).encode("utf-8"),
    file_name="weekly_ranking.csv",
    mime="text/csv",
)
