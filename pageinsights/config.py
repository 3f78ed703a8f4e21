"""Configuration management for pageinsights."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration from environment variables."""

    FB_APP_ID: str = os.getenv("FB_APP_ID", "")
    FB_APP_SECRET: str = os.getenv("FB_APP_SECRET", "")
    OAUTH_REDIRECT_URI: str = os.getenv("OAUTH_REDIRECT_URI", "")

    # Facebook Graph API
    GRAPH_API_VERSION: str = os.getenv("GRAPH_API_VERSION", "v21.0")
    GRAPH_API_BASE_URL: str = f"https://graph.facebook.com/{GRAPH_API_VERSION}"

    # Timeouts in seconds
    HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "10"))
    FETCH_TIMEOUT: float = float(os.getenv("FETCH_TIMEOUT", "30"))

    # Cursor pagination
    MAX_PAGES: int = int(os.getenv("MAX_PAGES", "10"))
    PAGE_LIMIT: int = int(os.getenv("PAGE_LIMIT", "100"))

    # Persisted login
    SESSION_FILE: Path = Path(
        os.getenv("SESSION_FILE", "~/.pageinsights/session.json")
    ).expanduser()

    # Insights
    DEFAULT_DATE_PRESET: str = os.getenv("DEFAULT_DATE_PRESET", "last_28d")
    INSIGHTS_PERIOD: str = os.getenv("INSIGHTS_PERIOD", "total_over_range")
    INSIGHTS_METRICS: dict[str, str] = {
        "engagement": "page_post_engagements",
        "impressions": "page_posts_impressions",
    }

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def validate(cls) -> list[str]:
        """Validate required configuration. Returns list of missing keys."""
        required = ["FB_APP_ID", "FB_APP_SECRET", "OAUTH_REDIRECT_URI"]
        missing = [key for key in required if not getattr(cls, key)]
        return missing


config = Config()
