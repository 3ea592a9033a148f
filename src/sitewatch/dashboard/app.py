"""SiteWatch Streamlit Dashboard, main entry point.

Usage:
    streamlit run src/sitewatch/dashboard/app.py

Or via the run script:
    python scripts/run_dashboard.py
"""

import os
import sys

# Ensure project root is in path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))))

from dotenv import load_dotenv
load_dotenv()

import time

import pandas as pd
import streamlit as st

st.set_page_config(
    page_title="SiteWatch — Mining Site Monitor",
    page_icon="⛏️",
    layout="wide",
    initial_sidebar_state="expanded",
)

from src.sitewatch import config
from src.sitewatch.bus.transport import ConnectionState
from src.sitewatch.dashboard.resources import get_bus, get_site_list, watch_topics

STATE_BADGES = {
    ConnectionState.CONNECTED: "🟢 Live",
    ConnectionState.CONNECTING: "🟡 Connecting…",
    ConnectionState.DISCONNECTED: "🔴 Offline",
    ConnectionState.SIMULATED_FALLBACK: "🟠 Simulated data",
}

# ─── Home page content ───────────────────────────────────────────────────────
st.title("⛏️ SiteWatch — Remote Site Monitoring")
st.markdown("---")

bus = get_bus()
sites = get_site_list()

# Overview only needs the headline topics of every site
overview_topics = []
for site in sites:
    overview_topics += site.topics.network + [t for t in site.topics.power if t.endswith("Total Active Power")]
watch_topics(overview_topics)

col1, col2, col3, col4 = st.columns(4)
col1.metric("Sites", len(sites), delta=f"{sum(s.status == 'development' for s in sites)} in development")
col2.metric("Live feed", STATE_BADGES.get(bus.state, bus.state.value))
col3.metric("Topics", len(bus.registry))
col4.metric("Broker", config.MQTT_URL.split("//")[-1])

if bus.state is ConnectionState.SIMULATED_FALLBACK:
    st.warning("Broker unreachable — values below are simulated and do not reflect the sites.")

rows = []
for site in sites:
    total_power = sum(bus.value(t) for t in site.topics.power if t.endswith("Total Active Power"))
    network = site.topics.network[0] if site.topics.network else None
    rows.append({
        "Site": site.name,
        "Status": site.status,
        "Network": "up" if network and bus.value(network) >= 1 else "down",
        "Total power (kW)": round(total_power / 1000, 1),
    })

st.subheader("📋 Sites")
st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)

st.markdown("""
Use the **sidebar** to navigate between views:

| Page | Purpose |
|------|---------|
| 🔴 Live Monitor | Power, environment, water and airflow readings for one site |
| 📈 Historical Trends | Daily/hourly/raw series from the site database |
| 📶 Site Status | Site and camera reachability |
""")

st.sidebar.success("Select a page above ☝️")
auto_refresh = st.sidebar.checkbox("Auto-refresh (5s)", value=True)
if auto_refresh:
    time.sleep(5)
    st.rerun()
