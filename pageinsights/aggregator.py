"""Page metrics aggregation over the Graph API."""

import logging
import time
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any, Iterable, Optional

from .config import config
from .directory import resolve_page_token
from .errors import AuthError, FetchError, TokenResolutionError
from .graph_api import GraphAPIError, GraphClient, GraphRequest
from .models import MetricName, MetricSet, Page, Window


logger = logging.getLogger(__name__)

GENERIC_FETCH_MESSAGE = "Failed to fetch page metrics."

Counts = dict[MetricName, Optional[int]]


def _as_count(value: Any) -> Optional[int]:
    """Numeric value of an insights entry; dict breakdowns are summed."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, dict):
        return sum(count for count in map(_as_count, value.values()) if count is not None)
    return None


def _summary_total(item: dict, field: str) -> int:
    """`{field}.summary.total_count` of a feed item, 0 when absent."""
    edge = item.get(field)
    summary = edge.get("summary") if isinstance(edge, dict) else None
    total = summary.get("total_count") if isinstance(summary, dict) else None
    count = _as_count(total)
    return count if count is not None else 0


class MetricStrategy:
    """One kind of Graph query contributing some of the metrics."""

    produces: tuple[MetricName, ...] = ()

    def run(self, client: GraphClient, page_id: str, page_token: str, window: Window) -> Counts:
        raise NotImplementedError


class FeedWalkStrategy(MetricStrategy):
    """Sum reaction and like totals over every post in the page feed."""

    produces = (MetricName.REACTIONS, MetricName.LIKES)

    def __init__(self, max_pages: Optional[int] = None):
        self.max_pages = max_pages

    def run(self, client, page_id, page_token, window):
        reactions = 0
        likes = 0
        for item in client.paginate(GraphRequest.feed(page_id), page_token, self.max_pages):
            reactions += _summary_total(item, "reactions")
            likes += _summary_total(item, "likes")
        return {MetricName.REACTIONS: reactions, MetricName.LIKES: likes}


class PageCountsStrategy(MetricStrategy):
    """Follower count from the page object itself."""

    produces = (MetricName.FOLLOWERS,)

    def run(self, client, page_id, page_token, window):
        data = client.get(GraphRequest.page_counts(page_id), page_token)
        followers = _as_count(data.get("followers_count"))
        if followers is None:
            followers = _as_count(data.get("fan_count"))
        return {MetricName.FOLLOWERS: followers}


class InsightsStrategy(MetricStrategy):
    """
    Named page insights over the window.

    The first value reported for each metric is used. A metric missing from
    the response, or reported without values, is unavailable (None).
    """

    def __init__(self, metric_map: Optional[dict[MetricName, str]] = None, period: Optional[str] = None):
        if metric_map is None:
            metric_map = {MetricName(name): graph_name for name, graph_name in config.INSIGHTS_METRICS.items()}
        self.metric_map = metric_map
        self.period = period or config.INSIGHTS_PERIOD
        self.produces = tuple(metric_map)

    def run(self, client, page_id, page_token, window):
        request = GraphRequest.insights(page_id, list(self.metric_map.values()), window, self.period)
        data = client.get(request, page_token)

        items = data.get("data")
        reported: dict[str, Any] = {}
        for item in items if isinstance(items, list) else []:
            name = item.get("name") if isinstance(item, dict) else None
            if isinstance(name, str) and name not in reported:
                reported[name] = item.get("values")

        results: Counts = {}
        for metric, graph_name in self.metric_map.items():
            values = reported.get(graph_name)
            first = values[0] if isinstance(values, list) and values else None
            results[metric] = _as_count(first.get("value")) if isinstance(first, dict) else None
        return results


def default_strategies() -> list[MetricStrategy]:
    return [FeedWalkStrategy(), PageCountsStrategy(), InsightsStrategy()]


class MetricsAggregator:
    """Fetch and reduce the dashboard metrics for one page."""

    def __init__(
        self,
        client: Optional[GraphClient] = None,
        strategies: Optional[list[MetricStrategy]] = None,
        timeout: Optional[float] = None,
    ):
        self.client = client or GraphClient()
        self.strategies = strategies if strategies is not None else default_strategies()
        self.timeout = timeout or config.FETCH_TIMEOUT
        self._page_tokens: dict[str, str] = {}

    def page_token(self, page: Page, user_token: Optional[str] = None) -> str:
        """
        Page-scoped token: inline from the listing, cached, or looked up.

        Raises:
            TokenResolutionError: no token could be obtained. The user token is
                never used in its place.
        """
        if page.access_token:
            return page.access_token
        if page.id in self._page_tokens:
            return self._page_tokens[page.id]
        if not user_token:
            raise TokenResolutionError("Could not obtain an access token for this page: you are not logged in.")

        try:
            token = resolve_page_token(page.id, user_token, self.client)
        except AuthError as e:
            raise TokenResolutionError(
                f"Could not obtain an access token for this page: {e}", upstream=e.upstream
            ) from e

        self._page_tokens[page.id] = token
        return token

    def fetch_metrics(
        self,
        page: Page,
        window: Optional[Window] = None,
        user_token: Optional[str] = None,
        metrics: Optional[Iterable[MetricName]] = None,
    ) -> MetricSet:
        """
        Fetch all requested metrics for `page` over `window`.

        The strategies run concurrently and must all succeed; otherwise no
        MetricSet is returned.

        Raises:
            TokenResolutionError: the page token could not be resolved.
            FetchError: any query failed or the fetch timed out.
        """
        window = window or Window.default()
        wanted = set(metrics) if metrics is not None else set(MetricName)
        page_token = self.page_token(page, user_token)

        strategies = [s for s in self.strategies if wanted.intersection(s.produces)]
        values: Counts = {name: None for name in MetricName if name in wanted}
        for partial in self._run_all(strategies, page.id, page_token, window):
            for name, value in partial.items():
                if name in wanted:
                    values[name] = value

        return MetricSet(page_id=page.id, window=window, values=values)

    def _run_all(self, strategies: list[MetricStrategy], page_id: str, page_token: str, window: Window) -> list[Counts]:
        pool = ThreadPoolExecutor(max_workers=max(1, len(strategies)), thread_name_prefix="metrics")
        try:
            client = self.client.with_deadline(time.monotonic() + self.timeout)
            futures = [pool.submit(s.run, client, page_id, page_token, window) for s in strategies]
            done, pending = wait(futures, timeout=self.timeout, return_when=FIRST_EXCEPTION)

            for strategy, future in zip(strategies, futures):
                if future in done and future.exception() is not None:
                    error = future.exception()
                    if not isinstance(error, GraphAPIError):
                        logger.exception(
                            "%s failed for page %s", type(strategy).__name__, page_id, exc_info=error
                        )
                        raise FetchError(GENERIC_FETCH_MESSAGE) from error
                    logger.warning("%s failed for page %s: %s", type(strategy).__name__, page_id, error)
                    raise _fetch_error(error) from error

            if pending:
                raise FetchError(f"Timed out after {self.timeout:g}s while fetching page metrics.")
            return [future.result() for future in futures]
        finally:
            pool.shutdown(wait=False, cancel_futures=True)


def _fetch_error(error: GraphAPIError) -> FetchError:
    message = str(error)
    if not message:
        return FetchError(GENERIC_FETCH_MESSAGE)
    return FetchError(f"Failed to fetch page metrics: {message}", upstream=message)
