"""Historical trends: columns fetched in parallel from the SiteWatch API."""

import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))))

from dotenv import load_dotenv
load_dotenv()

import datetime as _dt
import logging

import plotly.express as px
import streamlit as st

logger = logging.getLogger(__name__)

st.set_page_config(page_title="Historical Trends", page_icon="📈", layout="wide")
st.title("📈 Historical Trends")
st.caption("Ranges over 7 days are hourly means, over 30 days daily means")

from src.sitewatch.dashboard.resources import get_history_client, get_site_list, release_topics, session_id
from src.sitewatch.history.client import HistoryRequestError
from src.sitewatch.history.columns import PARAMETERS, columns_for
from src.sitewatch.history.sampling import choose_sampling

sites = get_site_list()
client = get_history_client()
release_topics()

# ─── Sidebar Controls ─────────────────────────────────────────────────────────
with st.sidebar:
    st.header("⚙️ Controls")
    site = st.selectbox("Site", sites, format_func=lambda s: s.name)
    parameter = st.selectbox("Parameter", PARAMETERS)
    today = _dt.date.today()
    date_start = st.date_input("Start Date", value=today - _dt.timedelta(days=7), max_value=today)
    date_end = st.date_input("End Date", value=today, max_value=today)
    fetch = st.button("Fetch data", type="primary")

if date_end < date_start:
    st.error("End date must not be before the start date.")
    st.stop()

columns = columns_for(parameter, site.table_name)
st.caption(f"Table `{site.table_name}` · sampling: **{choose_sampling(date_start, date_end).value}** · columns: {', '.join(columns)}")

if fetch:
    with st.spinner("Fetching historical data…"):
        try:
            frame = client.fetch(
                site.table_name, columns, date_start.isoformat(), date_end.isoformat(), key=session_id()
            )
        except HistoryRequestError as e:
            logger.warning(f"History request failed: {e}")
            st.error(f"Failed to fetch data: {e.message}")
            st.stop()
    if frame is None:
        st.info("A newer request from this session replaced this one; showing the latest result.")
    else:
        st.session_state["history_frame"] = frame
        st.session_state["history_title"] = f"{parameter} — {site.name}"

frame = st.session_state.get("history_frame")
if frame is None:
    st.info("Select parameters and fetch data to view the chart.")
    st.stop()

if frame.empty:
    st.info("No data in the selected range.")
    st.stop()

plot_df = frame.reset_index().melt(id_vars="timestamp", var_name="column", value_name="value").dropna()
fig = px.line(plot_df, x="timestamp", y="value", color="column", title=st.session_state.get("history_title"))
fig.update_layout(height=450, legend=dict(orientation="h", yanchor="bottom", y=1.02))
st.plotly_chart(fig, use_container_width=True)

missing = [c for c in frame.columns if frame[c].isna().all()]
if missing:
    st.caption(f"No data for: {', '.join(missing)}")

with st.expander("Raw rows"):
    st.dataframe(frame, use_container_width=True)
