"""Process-wide objects shared by every dashboard page and session."""

import atexit
import logging
import uuid
from typing import Iterable, List

import streamlit as st

from src.sitewatch.bus.client import MessageBusClient
from src.sitewatch.bus.sessions import SessionSubscriptions
from src.sitewatch.history.client import HistoricalClient
from src.sitewatch.sites.catalog import SiteConfig, get_sites

logger = logging.getLogger(__name__)


@st.cache_resource
def get_bus() -> MessageBusClient:
    bus = MessageBusClient.from_config()
    atexit.register(bus.disconnect)
    return bus


@st.cache_resource
def get_session_subscriptions() -> SessionSubscriptions:
    return SessionSubscriptions(get_bus())


@st.cache_resource
def get_history_client() -> HistoricalClient:
    client = HistoricalClient()
    atexit.register(client.close)
    return client


def get_site_list() -> List[SiteConfig]:
    return get_sites()


def session_id() -> str:
    """Stable id for the current browser session."""
    if "session_id" not in st.session_state:
        st.session_state["session_id"] = uuid.uuid4().hex
    return st.session_state["session_id"]


def watch_topics(topics: Iterable[str]) -> None:
    """Subscribe this session to exactly ``topics``, dropping what the previous page needed."""
    get_session_subscriptions().watch(session_id(), topics)


def release_topics() -> None:
    """Called by pages that show no live values."""
    get_session_subscriptions().release(session_id())
