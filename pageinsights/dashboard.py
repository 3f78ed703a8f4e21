"""State behind the dashboard screen: page list and metric load state."""

import logging
from datetime import date
from threading import Lock
from typing import Literal, Optional, Union

from .aggregator import MetricsAggregator
from .directory import list_pages
from .errors import AuthError, FetchError, TokenResolutionError, ValidationError
from .graph_api import GraphClient
from .models import Failed, Idle, LoadState, Loading, Page, Ready, Session, Window


logger = logging.getLogger(__name__)

ListingStatus = Literal["idle", "ready", "empty", "error"]


class DashboardController:
    """
    Owns the page list and the single current LoadState for one session.

    Every fetch takes a generation number. Only the newest generation may
    publish, so a slow fetch that finishes after a newer one is dropped.
    """

    def __init__(
        self,
        session: Session,
        aggregator: Optional[MetricsAggregator] = None,
        client: Optional[GraphClient] = None,
    ):
        self.session = session
        self.client = client or GraphClient()
        self.aggregator = aggregator or MetricsAggregator(self.client)
        self.pages: list[Page] = []
        self.pages_error: Optional[str] = None
        self._pages_loaded = False
        self._state: LoadState = Idle()
        self._generation = 0
        self._lock = Lock()

    @property
    def state(self) -> LoadState:
        return self._state

    def load_pages(self) -> list[Page]:
        """Fetch the administrable pages; failures are kept in pages_error."""
        try:
            self.pages = list_pages(self.session.access_token, self.client)
            self.pages_error = None
        except AuthError as e:
            logger.warning("Page listing failed for %s: %s", self.session.subject_id, e)
            self.pages = []
            self.pages_error = str(e)
        self._pages_loaded = True
        return self.pages

    def listing_status(self) -> ListingStatus:
        if not self._pages_loaded:
            return "idle"
        if self.pages_error is not None:
            return "error"
        return "ready" if self.pages else "empty"

    def find_page(self, page_id: Optional[str]) -> Optional[Page]:
        return next((page for page in self.pages if page.id == page_id), None)

    def begin_fetch(self, page_id: str) -> int:
        with self._lock:
            self._generation += 1
            self._state = Loading(page_id=page_id)
            return self._generation

    def publish(self, generation: int, state: LoadState) -> bool:
        """Make `state` current unless a newer fetch has started since."""
        with self._lock:
            if generation != self._generation:
                logger.info("Discarding stale result of fetch #%d (latest is #%d)", generation, self._generation)
                return False
            self._state = state
            return True

    def select_page(self, page_id: Optional[str], window: Optional[Window] = None) -> LoadState:
        """Fetch metrics for the chosen page and publish the outcome."""
        page = self.find_page(page_id)
        if page is None:
            message = "Select a page to see its metrics." if not page_id else "That page is not in your page list."
            generation = self.begin_fetch(page_id or "")
            self.publish(generation, Failed(message=message, kind="validation"))
            return self._state

        generation = self.begin_fetch(page.id)
        try:
            metrics = self.aggregator.fetch_metrics(page, window, self.session.access_token)
            outcome: LoadState = Ready(metrics=metrics)
        except TokenResolutionError as e:
            outcome = Failed(message=str(e), kind="auth")
        except FetchError as e:
            outcome = Failed(message=str(e), kind="fetch")

        if self.publish(generation, outcome) and page.access_token is None and isinstance(outcome, Ready):
            self._remember_token(page)
        return self._state

    def submit_range(self, page_id: Optional[str], since: Union[date, str], until: Union[date, str]) -> LoadState:
        """Fetch over a custom date range entered by the user."""
        try:
            if isinstance(since, str) or isinstance(until, str):
                window = Window.parse(str(since), str(until))
            else:
                window = Window.explicit(since, until)
        except ValidationError as e:
            generation = self.begin_fetch(page_id or "")
            self.publish(generation, Failed(message=str(e), kind="validation"))
            return self._state
        return self.select_page(page_id, window)

    def _remember_token(self, page: Page) -> None:
        token = self.aggregator.page_token(page)
        self.pages = [p.model_copy(update={"access_token": token}) if p.id == page.id else p for p in self.pages]
