import pandas as pd
import pytest

from conftest import _MockResponse
from pageinsights.errors import FetchError
from pageinsights.models import Window
from pageinsights.trends import COLUMNS, fetch_daily_series


WINDOW = Window.parse("2024-01-01", "2024-01-03")


def test_daily_series_rows_per_metric_and_day(fake_graph):
    fake_graph.add(
        "page-1/insights",
        {
            "data": [
                {
                    "name": "page_posts_impressions",
                    "period": "day",
                    "values": [
                        {"value": 30, "end_time": "2024-01-03T08:00:00+0000"},
                        {"value": 20, "end_time": "2024-01-02T08:00:00+0000"},
                    ],
                },
                {
                    "name": "page_post_engagements",
                    "period": "day",
                    "values": [
                        {"value": {"like": 2, "love": 1}, "end_time": "2024-01-02T08:00:00+0000"},
                        {"value": "n/a", "end_time": "2024-01-03T08:00:00+0000"},
                    ],
                },
                {"name": "page_unrequested_metric", "values": [{"value": 1, "end_time": "2024-01-02T08:00:00+0000"}]},
            ]
        },
    )

    df = fetch_daily_series("page-1", "page-token", WINDOW)

    assert list(df.columns) == COLUMNS
    assert df["metric"].tolist() == ["engagement", "impressions", "impressions"]
    assert df["value"].tolist() == [3, 20, 30]
    assert df["end_time"].iloc[1] == pd.Timestamp("2024-01-02T08:00:00Z")
    params = fake_graph.calls[0][1]
    assert params["period"] == "day"
    assert params["since"] == "2024-01-01"
    assert params["access_token"] == "page-token"


def test_daily_series_empty(fake_graph):
    fake_graph.add("page-1/insights", {"data": []})

    df = fetch_daily_series("page-1", "page-token", WINDOW)

    assert df.empty
    assert list(df.columns) == COLUMNS


def test_daily_series_failure_raises_fetch_error(fake_graph):
    fake_graph.add("page-1/insights", _MockResponse(400, {"error": {"message": "(#100) Invalid metric"}}))

    with pytest.raises(FetchError, match="Invalid metric"):
        fetch_daily_series("page-1", "page-token", WINDOW)


@pytest.mark.parametrize(
    "body",
    [
        {"data": None},
        {"data": [{"name": ["x"], "values": []}]},
        {"data": ["junk", {"name": "page_posts_impressions", "values": None}]},
        {"data": [{"name": "page_posts_impressions", "values": [None, {"value": 4, "end_time": "not a date"}]}]},
    ],
)
def test_daily_series_skips_malformed_entries(fake_graph, body):
    fake_graph.add("page-1/insights", body)

    df = fetch_daily_series("page-1", "page-token", WINDOW)

    assert df.empty
    assert list(df.columns) == COLUMNS
