from services.keyword_filter.PageFilter import PageFilter
from shared.clients.wiki.models.Page import Page


def make_page(page_id: str, title: str, storage: str | None = None) -> Page:
    body = {"storage": {"representation": "storage", "value": storage}} if storage is not None else None
    return Page.model_validate({"id": page_id, "title": title, "body": body})


PAGES = [
    make_page("1", "OAuth Login Flow"),
    make_page("2", "Release notes", "<p>The new LOGIN endpoint</p>"),
    make_page("3", "Office party"),
]


def test_match_is_case_insensitive_over_title_and_body(helper_config):
    page_filter = PageFilter(helper_config)

    title_hit = page_filter.match_keywords(PAGES[0], ["oauth", "deploy"])
    body_hit = page_filter.match_keywords(PAGES[1], ["login"])
    miss = page_filter.match_keywords(PAGES[2], ["login"])

    assert title_hit.matches and title_hit.matched_keywords == ["oauth"]
    assert body_hit.matches and body_hit.matched_keywords == ["login"]
    assert not miss.matches and miss.matched_keywords == []


def test_filter_keeps_order_of_matching_pages(helper_config):
    filtered = PageFilter(helper_config).filter_pages_by_keywords(PAGES, ["login"])
    assert [page.id for page in filtered] == ["1", "2"]


def test_empty_keywords_pass_everything_through_by_default(helper_config):
    filtered = PageFilter(helper_config).filter_pages_by_keywords(PAGES, [])
    assert [page.id for page in filtered] == ["1", "2", "3"]


def test_empty_keywords_filter_everything_when_requested(helper_config):
    page_filter = PageFilter(helper_config)

    assert page_filter.filter_pages_by_keywords(PAGES, [], match_all_when_empty=False) == []
    assert not page_filter.match_keywords(PAGES[0], [], match_all_when_empty=False).matches
