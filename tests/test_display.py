from pageinsights.display import METRIC_LABELS, PERMISSIONS, UNAVAILABLE, format_metric
from pageinsights.models import MetricName
from pageinsights.oauth import SCOPES


def test_format_metric_uses_thousands_separators():
    assert format_metric(1234567) == "1,234,567"
    assert format_metric(999) == "999"


def test_format_metric_keeps_zero_distinct_from_unavailable():
    assert format_metric(0) == "0"
    assert format_metric(None) == UNAVAILABLE


def test_every_metric_has_a_label():
    assert set(METRIC_LABELS) == set(MetricName)


def test_every_requested_scope_has_a_permission_badge():
    assert set(SCOPES) <= set(PERMISSIONS)
