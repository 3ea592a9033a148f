"""Site and camera reachability, as reported by the SiteWatch API."""

import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))))

from dotenv import load_dotenv
load_dotenv()

import pandas as pd
import requests
import streamlit as st

st.set_page_config(page_title="Site Status", page_icon="📶", layout="wide")
st.title("📶 Site Status")

from src.sitewatch import config
from src.sitewatch.dashboard.resources import release_topics

release_topics()


@st.cache_data(ttl=60)
def load_status():
    response = requests.get(f"{config.API_BASE_URL}/api/site-status", timeout=120)
    response.raise_for_status()
    return response.json()


if st.button("🔄 Refresh"):
    load_status.clear()

with st.spinner("Probing sites and cameras…"):
    try:
        statuses = load_status()
    except requests.RequestException as e:
        st.error(f"Site status unavailable: {e}")
        st.stop()

col1, col2 = st.columns(2)
col1.metric("Sites online", f"{sum(s['status'] == 'online' for s in statuses)} / {len(statuses)}")
cameras = [c for s in statuses for c in s["cameras"]]
col2.metric("Cameras online", f"{sum(c['status'] == 'online' for c in cameras)} / {len(cameras)}")

rows = [
    {
        "Site": s["name"],
        "Status": s["status"],
        "Cameras": ", ".join(f"{c['name']}: {c['status']}" for c in s["cameras"]),
    }
    for s in statuses
]
st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
