"""Display helpers shared by the Streamlit pages."""

import logging
from typing import Optional

import streamlit as st

from .config import config
from .models import MetricName, Session
from .session_store import SessionStore

PERMISSIONS = {
    "public_profile": {
        "label": "public_profile",
        "description": "Your name and profile picture",
    },
    "pages_show_list": {
        "label": "pages_show_list",
        "description": "List of Facebook Pages you manage",
    },
    "pages_read_engagement": {
        "label": "pages_read_engagement",
        "description": "Page posts, reactions, likes and follower counts",
    },
    "read_insights": {
        "label": "read_insights",
        "description": "Page insights such as engagement and impressions",
    },
}

METRIC_LABELS = {
    MetricName.REACTIONS: "Reactions",
    MetricName.LIKES: "Likes",
    MetricName.FOLLOWERS: "Followers",
    MetricName.ENGAGEMENT: "Engagement",
    MetricName.IMPRESSIONS: "Impressions",
}

UNAVAILABLE = "N/A"


def format_metric(value: Optional[int]) -> str:
    """Thousands-separated count, or N/A when the metric had no data."""
    if value is None:
        return UNAVAILABLE
    return f"{value:,}"


def show_permission_badge(permission_key: str) -> None:
    """Display a permission badge caption."""
    perm = PERMISSIONS.get(permission_key)
    if perm:
        st.caption(f"🔑 Permission: `{perm['label']}` -- {perm['description']}")


SESSION_KEY = "session"


def bootstrap() -> None:
    """Per-script setup shared by every Streamlit page."""
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def current_session(store: Optional[SessionStore] = None) -> Optional[Session]:
    """The logged-in session, restored from disk on the first run of a browser session."""
    if SESSION_KEY not in st.session_state:
        st.session_state[SESSION_KEY] = (store or SessionStore()).restore()
    return st.session_state[SESSION_KEY]


def sign_in(session: Session, store: Optional[SessionStore] = None) -> None:
    (store or SessionStore()).persist(session)
    st.session_state[SESSION_KEY] = session


def sign_out(store: Optional[SessionStore] = None) -> None:
    (store or SessionStore()).clear()
    st.session_state.clear()
    st.session_state[SESSION_KEY] = None
