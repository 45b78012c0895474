# app.py
from __future__ import annotations

from datetime import datetime, timezone

import pandas as pd
import streamlit as st

from config import DEFAULT_POLICY, WIDGET_LIMIT, WINDOW_DAYS, load_ranking_config
from ranking_loading import load_weekly_ranking
from ranking_logic import RankingPolicy
from ranking_view import build_display_table, metric_label


@st.cache_data(ttl=300, show_spinner="Loading ranking...")
def load_ranking(limit: int, policy: str, now_minute: str) -> pd.DataFrame:
    """Load the ranking; *now_minute* pins the window and busts the cache each minute."""
    cfg = load_ranking_config()
    return load_weekly_ranking(
        now=pd.Timestamp(now_minute),
        limit=limit,
        policy=policy,
        activity_csv=cfg["ACTIVITY_CSV"],
        names_csv=cfg["NAMES_CSV"],
        activity_collection=cfg["ACTIVITY_COLLECTION"],
        profiles_collection=cfg["PROFILES_COLLECTION"],
    )


def ranking_or_stop(limit: int, policy: str) -> pd.DataFrame:
    """Return the ranking, or show the error and stop the script run."""
    try:
        return load_ranking(limit, policy, current_minute())
    except Exception as exc:  # network / config errors
        st.error(f"Failed to load ranking: {exc}")
        st.stop()


def current_minute() -> str:
    return datetime.now(timezone.utc).replace(second=0, microsecond=0).isoformat()


def policy_selector(key: str) -> str:
    options = [p.value for p in RankingPolicy]
    return st.radio(
        "Rank by",
        options,
        index=options.index(DEFAULT_POLICY),
        format_func=lambda p: "Average score" if p == RankingPolicy.AVERAGE.value else "Completed lessons",
        horizontal=True,
        key=key,
    )


def main():
    st.set_page_config(page_title="Weekly Ranking", page_icon="🏆")
    st.title("🏆 Weekly Ranking")
    st.caption(f"Based on lessons completed in the last {WINDOW_DAYS} days")

    policy = policy_selector("widget_policy")
    viewer_id = st.query_params.get("student")

    if st.button("🔄 Refresh"):
        load_ranking.clear()
        st.rerun()

    ranking = ranking_or_stop(WIDGET_LIMIT, policy)
    if ranking.empty:
        st.info(f"No activity in the last {WINDOW_DAYS} days.")
        return

    table = build_display_table(ranking, policy, current_student_id=viewer_id)
    st.dataframe(table.drop(columns=["You"]), hide_index=True, use_container_width=True)
    st.caption(f"{metric_label(policy)} over the last {WINDOW_DAYS} days")
    st.page_link("pages/01_Weekly_Ranking.py", label="See the full top 100", icon="📋")


if __name__ == "__main__":
    main()
