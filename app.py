"""Main Streamlit application entry point."""

import streamlit as st

from pageinsights.config import config
from pageinsights.display import bootstrap, current_session
from pageinsights.routes import DASHBOARD_PAGE, resolve_route

st.set_page_config(
    page_title="Page Insights",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
)
bootstrap()

missing = config.validate()
if missing:
    st.title("📊 Page Insights")
    st.error(f"⚠️ Missing configuration: {', '.join(missing)}")
    st.info("Set the required environment variables (or a .env file) and restart.")
    st.stop()

st.switch_page(resolve_route(DASHBOARD_PAGE, current_session()))
