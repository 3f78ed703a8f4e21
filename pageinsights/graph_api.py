"""Facebook Graph API request builder and client."""

import logging
import time
from typing import Any, Iterator, Optional

import requests
from pydantic import BaseModel, ConfigDict, Field

from .config import config
from .models import Window


logger = logging.getLogger(__name__)

PAGE_LIST_FIELDS = "id,name,access_token"
PROFILE_FIELDS = "id,name,picture"
FEED_FIELDS = "id,reactions.summary(total_count),likes.summary(total_count)"
PAGE_COUNT_FIELDS = "fan_count,followers_count"


class GraphAPIError(Exception):
    """Facebook Graph API error."""

    def __init__(self, message: str, code: Optional[int] = None, subcode: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.subcode = subcode


class GraphRequest(BaseModel):
    """One Graph API GET, with its query parameters spelled out per endpoint."""

    model_config = ConfigDict(frozen=True)

    path: str
    params: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def me(cls) -> "GraphRequest":
        return cls(path="me", params={"fields": PROFILE_FIELDS})

    @classmethod
    def accounts(cls, limit: Optional[int] = None) -> "GraphRequest":
        return cls(
            path="me/accounts",
            params={"fields": PAGE_LIST_FIELDS, "limit": str(limit or config.PAGE_LIMIT)},
        )

    @classmethod
    def businesses(cls) -> "GraphRequest":
        return cls(path="me/businesses")

    @classmethod
    def owned_pages(cls, business_id: str, limit: Optional[int] = None) -> "GraphRequest":
        return cls(
            path=f"{business_id}/owned_pages",
            params={"fields": PAGE_LIST_FIELDS, "limit": str(limit or config.PAGE_LIMIT)},
        )

    @classmethod
    def page_token(cls, page_id: str) -> "GraphRequest":
        return cls(path=page_id, params={"fields": "access_token"})

    @classmethod
    def page_counts(cls, page_id: str) -> "GraphRequest":
        return cls(path=page_id, params={"fields": PAGE_COUNT_FIELDS})

    @classmethod
    def feed(cls, page_id: str, limit: Optional[int] = None) -> "GraphRequest":
        return cls(
            path=f"{page_id}/feed",
            params={"fields": FEED_FIELDS, "limit": str(limit or config.PAGE_LIMIT)},
        )

    @classmethod
    def insights(cls, page_id: str, metrics: list[str], window: Window, period: str) -> "GraphRequest":
        params = {"metric": ",".join(metrics), "period": period}
        params.update(window.query_params())
        return cls(path=f"{page_id}/insights", params=params)

    @classmethod
    def code_exchange(cls, code: str) -> "GraphRequest":
        return cls(
            path="oauth/access_token",
            params={
                "client_id": config.FB_APP_ID,
                "client_secret": config.FB_APP_SECRET,
                "redirect_uri": config.OAUTH_REDIRECT_URI,
                "code": code,
            },
        )

    @classmethod
    def long_lived_exchange(cls, short_lived_token: str) -> "GraphRequest":
        return cls(
            path="oauth/access_token",
            params={
                "grant_type": "fb_exchange_token",
                "client_id": config.FB_APP_ID,
                "client_secret": config.FB_APP_SECRET,
                "fb_exchange_token": short_lived_token,
            },
        )


def _safe_json(response: requests.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class GraphClient:
    """Graph API client. Does not retry; every failure is a GraphAPIError."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        deadline: Optional[float] = None,
    ):
        self.base_url = base_url or config.GRAPH_API_BASE_URL
        self.timeout = timeout or config.HTTP_TIMEOUT
        # time.monotonic() value after which no request is sent
        self.deadline = deadline

    def with_deadline(self, deadline: float) -> "GraphClient":
        """Copy of this client that stops sending requests at `deadline`."""
        return GraphClient(self.base_url, self.timeout, deadline)

    def _request_timeout(self) -> float:
        if self.deadline is None:
            return self.timeout
        remaining = self.deadline - time.monotonic()
        if remaining <= 0:
            raise GraphAPIError("Deadline passed before the request was sent")
        return min(self.timeout, remaining)

    def _send(self, url: str, params: Optional[dict] = None) -> dict:
        timeout = self._request_timeout()
        try:
            response = requests.get(url, params=params, timeout=timeout)
        except requests.RequestException as e:
            raise GraphAPIError(f"Network error: {e}") from e

        data = _safe_json(response)
        error = data.get("error")
        if response.status_code != 200 or error:
            error = error if isinstance(error, dict) else {}
            raise GraphAPIError(
                error.get("message") or f"HTTP {response.status_code}",
                error.get("code"),
                error.get("error_subcode"),
            )
        return data

    def get(self, request: GraphRequest, access_token: Optional[str] = None) -> dict:
        """Issue a single request and return the decoded JSON body."""
        params = dict(request.params)
        if access_token is not None:
            params["access_token"] = access_token
        logger.debug("GET /%s", request.path)
        return self._send(f"{self.base_url}/{request.path}", params)

    def paginate(
        self,
        request: GraphRequest,
        access_token: Optional[str] = None,
        max_pages: Optional[int] = None,
    ) -> Iterator[dict]:
        """
        Yield every item of a list endpoint, following `paging.next` cursors.

        Stops after `max_pages` responses and logs a warning if more remained.
        """
        max_pages = max_pages or config.MAX_PAGES
        data = self.get(request, access_token)
        pages_read = 1

        while True:
            items = data.get("data", [])
            for item in items if isinstance(items, list) else []:
                if isinstance(item, dict):
                    yield item

            next_url = (data.get("paging") or {}).get("next")
            if not next_url:
                return
            if pages_read >= max_pages:
                logger.warning(
                    "Stopped reading /%s after %d pages; more results remain",
                    request.path,
                    pages_read,
                )
                return

            # The cursor URL already carries the query and the token.
            data = self._send(next_url)
            pages_read += 1
