"""Two-screen navigation: login and dashboard."""

from typing import Optional

from .models import Session


LOGIN_PAGE = "pages/1_🔐_Login.py"
DASHBOARD_PAGE = "pages/2_📊_Dashboard.py"


def resolve_route(requested: str, session: Optional[Session]) -> str:
    """
    Page that should actually be shown for `requested`.

    Without a session everything leads to the login screen; a logged-in user
    asking for the login screen is sent on to the dashboard.
    """
    if session is None:
        return LOGIN_PAGE
    if requested == LOGIN_PAGE:
        return DASHBOARD_PAGE
    return requested
