import os
from unittest.mock import AsyncMock, MagicMock

import pytest

from services.keyword_filter.ContentCache import ContentCache
from services.keyword_filter.KeywordExtractor import KeywordExtractor
from services.keyword_filter.PageFilter import PageFilter
from services.wiki_fetch.WikiFetchService import WikiFetchService, format_pages_with_full_content
from shared.clients.wiki.models.Page import Page


def full_page(page_id: str, title: str, html: str) -> Page:
    return Page.model_validate({"id": page_id, "title": title, "body": {"storage": {"value": html}, "view": {"value": html}}})


def make_wiki_client(listing: list[Page], full: list[Page]) -> MagicMock:
    client = MagicMock()
    client.do_fetch_all_space_pages = AsyncMock(return_value=listing)
    client.do_fetch_pages_by_ids = AsyncMock(return_value=full)
    client.get_page_url.side_effect = lambda page_id: f"https://wiki.example.com/pages/viewpage.action?pageId={page_id}"
    return client


def make_service(helper_config, wiki_client, sync_service=None) -> WikiFetchService:
    extractor = KeywordExtractor(helper_config, content_cache=ContentCache(helper_config), page_filter=PageFilter(helper_config))
    return WikiFetchService(helper_config, wiki_client=wiki_client, keyword_extractor=extractor, sync_service=sync_service)


def test_digest_header_and_footer():
    pages = [full_page("1", "Login", "<p>OAuth login flow</p>")]
    markdown = format_pages_with_full_content(pages, total_fetched=40, filter_enabled=True)

    assert markdown.startswith("# Project Documentation\n\n**Total Pages Fetched**: 40\n**Pages Included**: 1\n")
    assert "**Filtering**: Enabled (1 of 40 pages matched keywords)" in markdown
    assert "## Login(1) \nOAuth login flow" in markdown
    assert "*Phase 2: Retrieved full content for 1 pages*" in markdown
    assert "<p>" not in markdown


@pytest.mark.asyncio
async def test_unfiltered_run_fetches_every_listed_page(helper_config, tmp_path):
    listing = [Page(id="1", title="Login"), Page(id="2", title="Deploy")]
    client = make_wiki_client(listing, [full_page("1", "Login", "<p>a</p>"), full_page("2", "Deploy", "<p>b</p>")])

    path = await make_service(helper_config, client).fetch_and_save_pages()

    client.do_fetch_all_space_pages.assert_awaited_once_with(expand=[])
    client.do_fetch_pages_by_ids.assert_awaited_once_with(["1", "2"])
    assert path == os.path.join(str(tmp_path), "Project.md")
    with open(path, encoding="utf-8") as f:
        assert "**Filtering**: Disabled (all pages included)" in f.read()


@pytest.mark.asyncio
async def test_filtered_run_only_fetches_matching_pages(helper_config, tmp_path, env):
    env.setenv("WIKI_FILTER_ENABLED", "true")
    with open(os.path.join(str(tmp_path), "Jira.md"), "w", encoding="utf-8") as f:
        f.write("# JIRA Issue: ABC-1\n\n## Summary\noauth oauth oauth\n\n## Description\noauth\n")
    listing = [Page(id="1", title="OAuth setup"), Page(id="2", title="Holiday plan")]
    client = make_wiki_client(listing, [full_page("1", "OAuth setup", "<p>a</p>")])

    await make_service(helper_config, client).fetch_and_save_pages()

    client.do_fetch_pages_by_ids.assert_awaited_once_with(["1"])
    with open(os.path.join(str(tmp_path), "pages.txt"), encoding="utf-8") as f:
        assert f.read() == "1\n"


@pytest.mark.asyncio
async def test_empty_listing_is_fatal(helper_config):
    with pytest.raises(Exception, match="No pages found"):
        await make_service(helper_config, make_wiki_client([], [])).fetch_and_save_pages()


@pytest.mark.asyncio
async def test_empty_full_fetch_is_fatal(helper_config):
    client = make_wiki_client([Page(id="1", title="Login")], [])
    with pytest.raises(Exception, match="No pages retrieved with full content"):
        await make_service(helper_config, client).fetch_and_save_pages()


@pytest.mark.asyncio
async def test_storage_failure_does_not_fail_the_run(helper_config, tmp_path):
    client = make_wiki_client([Page(id="1", title="Login")], [full_page("1", "Login", "<p>a</p>")])
    sync_service = MagicMock()
    sync_service.initialize = AsyncMock(return_value=True)
    sync_service.store_wiki_pages = AsyncMock(side_effect=Exception("qdrant down"))

    path = await make_service(helper_config, client, sync_service).fetch_and_save_pages(store_in_vector=True)

    assert os.path.isfile(path)
    sync_service.store_wiki_pages.assert_awaited_once()


@pytest.mark.asyncio
async def test_unreachable_vector_store_skips_storage(helper_config):
    client = make_wiki_client([Page(id="1", title="Login")], [full_page("1", "Login", "<p>a</p>")])
    sync_service = MagicMock()
    sync_service.initialize = AsyncMock(return_value=False)
    sync_service.store_wiki_pages = AsyncMock()

    await make_service(helper_config, client, sync_service).fetch_and_save_pages(store_in_vector=True)

    sync_service.store_wiki_pages.assert_not_awaited()


@pytest.mark.asyncio
async def test_page_summary_lists_every_page(helper_config):
    client = make_wiki_client([Page(id="1", title="Login"), Page(id="2", title="Deploy")], [])

    path = await make_service(helper_config, client).create_page_summary()

    assert os.path.basename(path) == "ConfluenceSummary.md"
    with open(path, encoding="utf-8") as f:
        content = f.read()
    assert "**Total Pages**: 2" in content
    assert "## 2. Deploy" in content
    assert "[View Page](https://wiki.example.com/pages/viewpage.action?pageId=2)" in content
