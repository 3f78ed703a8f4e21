"""Facebook Login (OAuth redirect flow) for the dashboard."""

import base64
import hashlib
import hmac
import json
import logging
import secrets
import time
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlencode

import pydantic

from .config import config
from .errors import AuthError
from .graph_api import GraphAPIError, GraphClient, GraphRequest
from .models import Session


logger = logging.getLogger(__name__)

SCOPES = ("public_profile", "pages_show_list", "pages_read_engagement", "read_insights")

_STATE_TTL_SECONDS = 600
_STATE_FUTURE_SKEW_SECONDS = 60
_DEFAULT_TOKEN_LIFETIME_SECONDS = 60 * 24 * 3600


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _unb64url(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def _signature(payload: bytes) -> bytes:
    return hmac.new(config.FB_APP_SECRET.encode("utf-8"), payload, hashlib.sha256).digest()


def generate_state() -> str:
    """Return a signed CSRF state that survives Streamlit session resets."""
    payload = json.dumps(
        {"iat": int(time.time()), "nonce": secrets.token_urlsafe(16)},
        separators=(",", ":"),
    ).encode("utf-8")
    return f"{_b64url(payload)}.{_b64url(_signature(payload))}"


def validate_state(state: Optional[str]) -> bool:
    """Check the signature and age of a state produced by generate_state()."""
    if not state or "." not in state:
        return False
    encoded_payload, encoded_signature = state.split(".", 1)
    try:
        payload = _unb64url(encoded_payload)
        signature = _unb64url(encoded_signature)
    except ValueError:
        return False

    if not hmac.compare_digest(signature, _signature(payload)):
        return False

    try:
        issued_at = json.loads(payload.decode("utf-8")).get("iat")
    except (UnicodeDecodeError, ValueError, AttributeError):
        return False
    if not isinstance(issued_at, int):
        return False

    age = int(time.time()) - issued_at
    return -_STATE_FUTURE_SKEW_SECONDS <= age <= _STATE_TTL_SECONDS


def get_oauth_url(state: Optional[str] = None) -> str:
    """Generate the Facebook Login dialog URL."""
    params = {
        "client_id": config.FB_APP_ID,
        "redirect_uri": config.OAUTH_REDIRECT_URI,
        "state": state or generate_state(),
        "scope": ",".join(SCOPES),
        "response_type": "code",
    }
    return f"https://www.facebook.com/{config.GRAPH_API_VERSION}/dialog/oauth?{urlencode(params)}"


def exchange_code_for_token(code: str, client: Optional[GraphClient] = None) -> dict:
    """Exchange the authorization code for a short-lived user token."""
    client = client or GraphClient()
    try:
        return client.get(GraphRequest.code_exchange(code))
    except GraphAPIError as e:
        raise AuthError(f"Login failed: {e}", upstream=str(e)) from e


def get_long_lived_token(short_lived_token: str, client: Optional[GraphClient] = None) -> dict:
    """Exchange a short-lived user token for a long-lived one (about 60 days)."""
    client = client or GraphClient()
    try:
        data = client.get(GraphRequest.long_lived_exchange(short_lived_token))
    except GraphAPIError as e:
        raise AuthError(f"Login failed: {e}", upstream=str(e)) from e

    try:
        expires_in = int(data.get("expires_in") or _DEFAULT_TOKEN_LIFETIME_SECONDS)
    except (TypeError, ValueError):
        logger.warning("Ignoring unreadable expires_in %r", data.get("expires_in"))
        expires_in = _DEFAULT_TOKEN_LIFETIME_SECONDS
    data["expires_at"] = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    return data


def fetch_profile(user_token: str, client: Optional[GraphClient] = None) -> dict:
    """Fetch id, name and picture of the logged-in user."""
    client = client or GraphClient()
    try:
        return client.get(GraphRequest.me(), user_token)
    except GraphAPIError as e:
        raise AuthError(f"Could not load your Facebook profile: {e}", upstream=str(e)) from e


def complete_login(code: str, client: Optional[GraphClient] = None) -> Session:
    """Run the whole redirect callback and return the new session."""
    client = client or GraphClient()

    short_token = exchange_code_for_token(code, client).get("access_token")
    if not short_token:
        raise AuthError("Login failed: no access token was returned.")

    long_token_data = get_long_lived_token(short_token, client)
    user_token = long_token_data.get("access_token") or short_token

    profile = fetch_profile(user_token, client)
    if not profile.get("id") or not profile.get("name"):
        raise AuthError("Login failed: your Facebook profile is missing an id or name.")

    try:
        return Session(
            subject_id=profile["id"],
            display_name=profile["name"],
            avatar_url=_avatar_url(profile),
            access_token=user_token,
            expires_at=long_token_data["expires_at"],
        )
    except pydantic.ValidationError as e:
        logger.warning("Rejected profile for login: %s", e)
        raise AuthError("Login failed: your Facebook profile could not be read.") from e


def _avatar_url(profile: dict) -> str:
    """Profile picture URL, or the public picture redirect when Facebook sent none."""
    picture = profile.get("picture")
    data = picture.get("data") if isinstance(picture, dict) else None
    url = data.get("url") if isinstance(data, dict) else None
    if isinstance(url, str) and url:
        return url
    return f"{config.GRAPH_API_BASE_URL}/{profile['id']}/picture"
