"""Two-phase wiki retrieval.

Phase 1 lists every page of the space without bodies. When filtering is
enabled the listing is narrowed with keywords from the saved ticket
markdown. Phase 2 fetches full content only for the surviving pages, which
are written to a markdown digest and optionally stored in the RAG backend.
"""

import os
from datetime import datetime

import pytz

from services.keyword_filter.KeywordExtractor import KeywordExtractor
from services.wiki_rag_sync.SyncService import SyncService
from shared.clients.wiki.WikiClientInterface import WikiClientInterface
from shared.clients.wiki.models.Page import Page
from shared.helper.HelperConfig import HelperConfig
from shared.helper.content_helper import build_content, extract_page_content, strip_html_tags


def format_pages_with_full_content(pages: list[Page], total_fetched: int, filter_enabled: bool) -> str:
    """Render the documentation digest of the phase-2 pages.

    Args:
        pages (list[Page]): Pages with full content.
        total_fetched (int): Number of pages in the phase-1 listing.
        filter_enabled (bool): Whether keyword filtering selected the pages.

    Returns:
        str: Markdown with a statistics header and footer.
    """
    parts = []
    for page in pages:
        parts.append(f"## {page.title}({page.id}) \n\n")
        parts.append(extract_page_content(page) + " \n\n")
    body = strip_html_tags(build_content(parts))

    if filter_enabled:
        filtering_note = f"**Filtering**: Enabled ({len(pages)} of {total_fetched} pages matched keywords)\n"
    else:
        filtering_note = "**Filtering**: Disabled (all pages included)\n"

    return build_content([
        "# Project Documentation\n\n",
        f"**Total Pages Fetched**: {total_fetched}\n",
        f"**Pages Included**: {len(pages)}\n",
        filtering_note,
        f"**Generated on**: {datetime.now(pytz.utc).isoformat()}\n",
        "**Source**: Confluence Space (Two-phase fetch)\n\n",
        "---\n\n",
        body,
        "\n\n---\n",
        "*Documentation generated from Confluence using two-phase approach*\n",
        f"*Phase 1: Filtered {total_fetched} pages*\n",
        f"*Phase 2: Retrieved full content for {len(pages)} pages*\n",
        "*Filtered based on adaptive ticket keyword extraction*\n" if filter_enabled else "",
    ])


class WikiFetchService:
    """Runs the two-phase fetch and writes the wiki markdown files."""

    def __init__(
        self,
        helper_config: HelperConfig,
        wiki_client: WikiClientInterface,
        keyword_extractor: KeywordExtractor,
        sync_service: SyncService | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._wiki_client = wiki_client
        self._keyword_extractor = keyword_extractor
        self._sync_service = sync_service
        self.filter_enabled = helper_config.get_bool_val("WIKI_FILTER_ENABLED", default=False)
        self.output_dir = os.path.abspath(helper_config.get_string_val("OUTPUT_DIR", default="./tmp"))
        self.wiki_path = helper_config.get_output_path("WIKI_MARKDOWN_FILENAME", "Project.md")

    ##########################################
    ############## TWO-PHASE RUN #############
    ##########################################

    async def select_page_ids(self, pages: list[Page]) -> list[str]:
        """IDs to fetch in phase 2: the keyword matches when filtering is enabled, else every page."""
        if not self.filter_enabled:
            self.logging.info("Using all %d pages (filtering disabled)", len(pages))
            return [page.id for page in pages]

        self.logging.info("Applying adaptive keyword filtering...")
        result = self._keyword_extractor.extract_keywords_with_adaptive_count(pages)
        self.logging.info(
            "Filtered to %d pages from %d total (keywords: %s)",
            len(result.filtered_pages), len(pages), ", ".join(result.keywords),
        )
        return [page.id for page in result.filtered_pages]

    async def fetch_and_save_pages(self, output_path: str | None = None, store_in_vector: bool = False) -> str:
        """Run both phases and write the documentation digest.

        Args:
            output_path (str | None): Target file; defaults to the configured wiki markdown file.
            store_in_vector (bool): Also store the phase-2 pages in the RAG backend.
                A storage failure is logged and does not fail the run.

        Returns:
            str: The path written.

        Raises:
            Exception: If phase 1 finds no pages or phase 2 retrieves none.
            FileNotFoundError: If filtering is enabled and the ticket markdown is missing.
        """
        self.logging.info("=== Phase 1: Fetching pages for filtering ===", color="cyan")
        minimal_pages = await self._wiki_client.do_fetch_all_space_pages(expand=[])
        if not minimal_pages:
            raise Exception("No pages found in the specified Confluence space")

        page_ids = await self.select_page_ids(minimal_pages)

        self.logging.info("=== Phase 2: Fetching full content for filtered pages ===", color="cyan")
        full_pages = await self._wiki_client.do_fetch_pages_by_ids(page_ids)
        if not full_pages:
            raise Exception("No pages retrieved with full content")

        self.logging.info("Formatting %d pages with full content...", len(full_pages))
        markdown = format_pages_with_full_content(full_pages, len(minimal_pages), self.filter_enabled)
        path = output_path or self.wiki_path
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(markdown)
        self.logging.info("Wiki documentation saved to: %s (%d pages)", path, len(full_pages), color="green")

        if store_in_vector and self._sync_service is not None:
            await self._store_pages(full_pages)

        return path

    async def _store_pages(self, pages: list[Page]) -> None:
        try:
            if await self._sync_service.initialize():
                await self._sync_service.store_wiki_pages(pages)
        except Exception as e:
            self.logging.warning("Failed to store wiki pages in vector database: %s", e)

    ##########################################
    ################ SUMMARY #################
    ##########################################

    async def create_page_summary(self, output_path: str | None = None) -> str:
        """Write an index (ConfluenceSummary.md) of every page in the space.

        Raises:
            Exception: If the space has no pages.
        """
        self.logging.info("Fetching wiki pages for summary...")
        pages = await self._wiki_client.do_fetch_all_space_pages(expand=[])
        if not pages:
            raise Exception("No pages found in the specified Confluence space")

        parts = [
            "# Confluence Pages Summary\n\n",
            f"**Total Pages**: {len(pages)}\n",
            f"**Generated on**: {datetime.now(pytz.utc).isoformat()}\n\n",
            "---\n\n",
        ]
        for index, page in enumerate(pages, start=1):
            parts.append(
                f"## {index}. {page.title}\n\n"
                f"- **Page ID**: {page.id}\n"
                f"- **Link**: [View Page]({self._wiki_client.get_page_url(page.id)})\n\n"
            )
        parts.append("---\n*Summary generated from Confluence*")

        path = output_path or os.path.join(self.output_dir, "ConfluenceSummary.md")
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(build_content(parts))
        self.logging.info("Wiki summary saved to: %s (%d pages)", path, len(pages), color="green")
        return path
