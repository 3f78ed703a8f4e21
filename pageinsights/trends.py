"""Daily insights series for the trend chart."""

from typing import Optional

import pandas as pd

from .config import config
from .errors import FetchError
from .graph_api import GraphAPIError, GraphClient, GraphRequest
from .models import Window


COLUMNS = ["end_time", "metric", "value"]


def fetch_daily_series(
    page_id: str,
    page_token: str,
    window: Window,
    client: Optional[GraphClient] = None,
    metrics: Optional[dict[str, str]] = None,
) -> pd.DataFrame:
    """
    Fetch per-day insight values for the configured metrics.

    Returns:
        DataFrame with end_time, metric and value columns, one row per
        reported day. `metric` holds the dashboard metric name.
    """
    client = client or GraphClient()
    metrics = metrics or config.INSIGHTS_METRICS
    names_by_graph_metric = {graph_name: name for name, graph_name in metrics.items()}

    request = GraphRequest.insights(page_id, list(metrics.values()), window, "day")
    try:
        data = client.get(request, page_token)
    except GraphAPIError as e:
        raise FetchError(f"Failed to fetch the daily trend: {e}", upstream=str(e)) from e

    items = data.get("data")
    rows = []
    for item in items if isinstance(items, list) else []:
        graph_name = item.get("name") if isinstance(item, dict) else None
        name = names_by_graph_metric.get(graph_name) if isinstance(graph_name, str) else None
        if name is None:
            continue
        entries = item.get("values")
        for entry in entries if isinstance(entries, list) else []:
            if not isinstance(entry, dict):
                continue
            value = entry.get("value")
            if isinstance(value, dict):
                value = sum(v for v in value.values() if isinstance(v, (int, float)))
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            rows.append({"end_time": entry.get("end_time"), "metric": name, "value": value})

    df = pd.DataFrame(rows, columns=COLUMNS)
    df["end_time"] = pd.to_datetime(df["end_time"], utc=True, errors="coerce")
    df = df.dropna(subset=["end_time"])
    return df.sort_values(["metric", "end_time"], ignore_index=True)
