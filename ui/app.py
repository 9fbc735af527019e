"""Main Streamlit app entrypoint.

Run:
    streamlit run ui/app.py

"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import streamlit as st
import structlog

# Ensure project root is on PYTHONPATH when Streamlit runs this file
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ui.database.db import db_session


structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
)


st.set_page_config(
    page_title="Course Schedule Builder",
    page_icon="🗓️",
    layout="wide",
)


def _inject_css() -> None:
    st.markdown(
        """
        <style>
        .block-container { padding-top: 1.2rem; }
        div[data-testid="stMetric"] { background: #0b1220; border: 1px solid rgba(255,255,255,0.08); padding: 12px; border-radius: 12px; }
        </style>
        """,
        unsafe_allow_html=True,
    )


def main() -> None:
    _inject_css()

    st.sidebar.title("Schedule Builder")
    st.sidebar.caption("Conflict-free weekly schedules from course listings")

    st.title("Dashboard")
    st.write(
        "Open the Schedule Builder page from the sidebar, enter course codes such as "
        "`CSCI-350, MATH-225`, and browse a diverse sample of conflict-free weekly schedules."
    )

    with db_session() as conn:
        from ui.database import crud

        last = crud.load_last_result(conn)

    st.divider()
    if last is None:
        st.info("No saved result yet. Generated schedules are kept here for 7 days.")
        return

    st.subheader("Last result")
    c1, c2, c3 = st.columns(3)
    c1.metric("Courses", last["input_text"] or "-")
    c2.metric("Schedules", len(last["schedules"]))
    c3.metric("Viewing", f"#{last['current_index'] + 1}" if last["schedules"] else "-")
    st.caption(f"Saved {last['saved_at']:%Y-%m-%d %H:%M} UTC")


if __name__ == "__main__":
    main()
