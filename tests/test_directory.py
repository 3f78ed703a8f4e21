import pytest

from conftest import _MockResponse
from pageinsights.directory import list_pages, resolve_page_token
from pageinsights.errors import AuthError


def test_list_pages_preserves_order_and_inline_tokens(fake_graph):
    fake_graph.add(
        "me/accounts",
        {
            "data": [
                {"id": "page-2", "name": "Bakery", "access_token": "token-2"},
                {"id": "page-1", "name": "Bookshop"},
                {"id": "page-3", "name": "Cafe", "access_token": ""},
            ]
        },
    )

    pages = list_pages("user-token")

    assert [page.id for page in pages] == ["page-2", "page-1", "page-3"]
    assert [page.access_token for page in pages] == ["token-2", None, None]
    assert fake_graph.calls[0][1]["access_token"] == "user-token"
    assert fake_graph.calls[0][1]["fields"] == "id,name,access_token"


def test_list_pages_drops_entries_without_id_or_name_and_duplicates(fake_graph):
    fake_graph.add(
        "me/accounts",
        {
            "data": [
                {"id": "page-1", "name": "Bookshop"},
                {"id": "", "name": "No id"},
                {"id": "page-2"},
                {"id": "page-3", "name": ""},
                {"name": "Missing id"},
                {"id": "page-1", "name": "Bookshop again"},
                {"id": "page-4", "name": "Florist"},
            ]
        },
    )

    pages = list_pages("user-token")

    assert [(page.id, page.name) for page in pages] == [("page-1", "Bookshop"), ("page-4", "Florist")]
    assert all(page.id and page.name for page in pages)


def test_list_pages_follows_pagination(fake_graph):
    fake_graph.add(
        "me/accounts",
        {"data": [{"id": "page-1", "name": "A"}], "paging": {"next": fake_graph.next_url("me/accounts?after=x")}},
    )
    fake_graph.add("me/accounts?after=x", {"data": [{"id": "page-2", "name": "B"}]})

    pages = list_pages("user-token")

    assert [page.id for page in pages] == ["page-1", "page-2"]


def test_list_pages_business_manager_fallback(fake_graph):
    fake_graph.add("me/accounts", {"data": []})
    fake_graph.add("me/businesses", {"data": [{"id": "biz-1"}, {"id": "biz-2"}]})
    fake_graph.add(
        "biz-1/owned_pages",
        {"data": [{"id": "page-1", "name": "Page 1", "access_token": "token-1"}, {"id": "page-2", "name": "Page 2"}]},
    )
    fake_graph.add("biz-2/owned_pages", {"data": [{"id": "page-1", "name": "Page 1 Duplicate"}]})

    pages = list_pages("user-token")

    assert [page.id for page in pages] == ["page-1", "page-2"]
    assert pages[0].access_token == "token-1"
    assert "me/businesses" in fake_graph.paths()


def test_list_pages_fallback_failure_yields_no_pages(fake_graph):
    fake_graph.add("me/accounts", {"data": []})
    fake_graph.add("me/businesses", _MockResponse(403, {"error": {"message": "Missing business_management", "code": 200}}))

    assert list_pages("user-token") == []


def test_list_pages_skips_failing_business(fake_graph):
    fake_graph.add("me/accounts", {"data": []})
    fake_graph.add("me/businesses", {"data": [{"id": "biz-1"}, {"id": "biz-2"}]})
    fake_graph.add("biz-1/owned_pages", _MockResponse(400, {"error": {"message": "No access"}}))
    fake_graph.add("biz-2/owned_pages", {"data": [{"id": "page-9", "name": "Gallery"}]})

    assert [page.id for page in list_pages("user-token")] == ["page-9"]


def test_list_pages_failure_raises_auth_error(fake_graph):
    fake_graph.add("me/accounts", _MockResponse(400, {"error": {"message": "Error validating access token", "code": 190}}))

    with pytest.raises(AuthError) as excinfo:
        list_pages("expired-token")

    assert excinfo.value.upstream == "Error validating access token"
    assert "Error validating access token" in str(excinfo.value)


def test_resolve_page_token(fake_graph):
    fake_graph.add("page-1", {"id": "page-1", "access_token": "page-token"})

    assert resolve_page_token("page-1", "user-token") == "page-token"
    assert fake_graph.calls == [("page-1", {"fields": "access_token", "access_token": "user-token"})]


def test_resolve_page_token_missing_token(fake_graph):
    fake_graph.add("page-1", {"id": "page-1"})

    with pytest.raises(AuthError, match="No page access token"):
        resolve_page_token("page-1", "user-token")


def test_resolve_page_token_upstream_error(fake_graph):
    fake_graph.add("page-1", _MockResponse(403, {"error": {"message": "(#200) Permissions error"}}))

    with pytest.raises(AuthError) as excinfo:
        resolve_page_token("page-1", "user-token")

    assert excinfo.value.upstream == "(#200) Permissions error"
