"""Discovery of the Facebook Pages a user administers."""

import logging
from typing import Iterable, Optional

from .errors import AuthError
from .graph_api import GraphAPIError, GraphClient, GraphRequest
from .models import Page


logger = logging.getLogger(__name__)


def _to_pages(entries: Iterable[dict]) -> list[Page]:
    """Keep upstream order, drop entries without id/name and repeated ids."""
    pages: list[Page] = []
    seen_page_ids: set[str] = set()

    for entry in entries:
        page_id = entry.get("id")
        name = entry.get("name")
        if not isinstance(page_id, str) or not page_id or not isinstance(name, str) or not name:
            logger.warning("Skipping page entry without id or name: %r", page_id)
            continue
        if page_id in seen_page_ids:
            continue
        seen_page_ids.add(page_id)

        token = entry.get("access_token")
        if not isinstance(token, str) or not token:
            token = None
        pages.append(Page(id=page_id, name=name, access_token=token))

    return pages


def _business_pages(user_token: str, client: GraphClient) -> list[dict]:
    """Pages owned through Business Manager, used when /me/accounts is empty."""
    try:
        businesses = list(client.paginate(GraphRequest.businesses(), user_token))
    except GraphAPIError as e:
        logger.warning("Business Manager lookup failed: %s", e)
        return []

    owned: list[dict] = []
    for business in businesses:
        business_id = business.get("id")
        if not isinstance(business_id, str) or not business_id:
            continue
        try:
            owned.extend(client.paginate(GraphRequest.owned_pages(business_id), user_token))
        except GraphAPIError as e:
            logger.warning("Could not list pages of business %s: %s", business_id, e)
    return owned


def list_pages(user_token: str, client: Optional[GraphClient] = None) -> list[Page]:
    """
    List the pages the user administers, in the order Facebook returns them.

    Page access tokens are requested inline; pages that come back without one
    get theirs from resolve_page_token() when first selected.

    Raises:
        AuthError: the listing request failed.
    """
    client = client or GraphClient()
    try:
        entries = list(client.paginate(GraphRequest.accounts(), user_token))
    except GraphAPIError as e:
        raise AuthError(f"Could not load your pages: {e}", upstream=str(e)) from e

    if not entries:
        entries = _business_pages(user_token, client)

    return _to_pages(entries)


def resolve_page_token(page_id: str, user_token: str, client: Optional[GraphClient] = None) -> str:
    """Look up the page-scoped access token for one page."""
    client = client or GraphClient()
    try:
        data = client.get(GraphRequest.page_token(page_id), user_token)
    except GraphAPIError as e:
        raise AuthError(str(e), upstream=str(e)) from e

    token = data.get("access_token")
    if not isinstance(token, str) or not token:
        raise AuthError(f"No page access token returned for page {page_id}")
    return token
