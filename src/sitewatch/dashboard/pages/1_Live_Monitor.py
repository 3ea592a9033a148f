"""Live readings for one site, straight from the message bus."""

import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))))

from dotenv import load_dotenv
load_dotenv()

import time

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

st.set_page_config(page_title="Live Monitor", page_icon="🔴", layout="wide")
st.title("🔴 Live Site Monitor")
st.caption("Values arrive over MQTT — the page refreshes every 5 seconds")

from src.sitewatch.bus.transport import ConnectionState
from src.sitewatch.dashboard.resources import get_bus, get_site_list, watch_topics

bus = get_bus()
sites = get_site_list()

# ─── Sidebar Controls ─────────────────────────────────────────────────────────
with st.sidebar:
    st.header("⚙️ Controls")
    site = st.selectbox("Site", sites, format_func=lambda s: s.name)
    auto_refresh = st.checkbox("Auto-refresh (5s)", value=True)
    st.markdown("---")
    st.markdown("**Connection**")
    st.code(f"State: {bus.state.value}\nTopics: {len(bus.registry)}", language="text")

watch_topics(site.topics.all())

if site.status == "development":
    st.info("This site is still being commissioned — some sensors may not report yet.")
if bus.state is ConnectionState.SIMULATED_FALLBACK:
    st.warning("Broker unreachable — showing simulated values.")
elif bus.state is not ConnectionState.CONNECTED:
    st.warning(f"Live feed {bus.state.value}.")


def readings(topics):
    return [(topic.split("/")[-1], bus.value(topic)) for topic in topics]


# ─── Power ─────────────────────────────────────────────────────────────────────
st.subheader("⚡ Power")
total_topics = [t for t in site.topics.power if t.endswith("Total Active Power")]
col1, col2, col3 = st.columns(3)
col1.metric("Total active power", f"{sum(bus.value(t) for t in total_topics) / 1000:.1f} kW")
currents = [v for _, v in readings(site.topics.current)]
col2.metric("Avg current", f"{(sum(currents) / len(currents)) if currents else 0:.1f} A")
voltages = [v for name, v in readings(site.topics.voltage) if name.startswith("Phase V")]
col3.metric("Avg phase voltage", f"{(sum(voltages) / len(voltages)) if voltages else 0:.1f} V")

power_rows = [
    {"Topic": topic, "Value": bus.latest(topic).payload if bus.latest(topic) else "—"}
    for topic in site.topics.current + site.topics.voltage + site.topics.power
]
with st.expander("Analyser details"):
    st.dataframe(pd.DataFrame(power_rows), use_container_width=True, hide_index=True)

# ─── Environment ───────────────────────────────────────────────────────────────
st.subheader("🌡️ Temperature & Humidity")
rooms = ["Filter room", "Mining room", "RPi room", "Exhaust"]
env = go.Figure()
env.add_bar(name="Temperature (°C)", x=rooms, y=[v for _, v in readings(site.topics.temperature)])
env.add_bar(name="Humidity (%)", x=rooms, y=[v for _, v in readings(site.topics.humidity)])
env.update_layout(height=350, barmode="group", legend=dict(orientation="h", yanchor="bottom", y=1.02))
st.plotly_chart(env, use_container_width=True)

# ─── Water / Airflow / Network ────────────────────────────────────────────────
col1, col2, col3 = st.columns(3)
water = bus.value(site.topics.water[0]) if site.topics.water else 0
col1.metric("💧 Water level", f"{water:.0f} %")
airflow = bus.value(site.topics.airflow[0]) if site.topics.airflow else 0
col2.metric("🌬️ Airflow", f"{airflow:.1f} m/s")
network = bus.value(site.topics.network[0]) if site.topics.network else 0
col3.metric("📶 Network", "Up" if network >= 1 else "Down")

# ─── Auto-refresh ──────────────────────────────────────────────────────────────
if auto_refresh:
    time.sleep(5)
    st.rerun()
