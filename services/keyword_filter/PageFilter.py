"""Keyword matching over wiki pages."""

from pydantic import BaseModel

from shared.clients.wiki.models.Page import Page
from shared.helper.HelperConfig import HelperConfig


class FilterResult(BaseModel):
    """Outcome of matching one page against a keyword list."""

    matches: bool
    matched_keywords: list[str] = []


class PageFilter:
    """Selects the pages whose title or storage body mentions a keyword.

    Matching is a case-insensitive substring test; a page matches if at
    least one keyword is found. What an empty keyword list means depends on
    the caller, so it is passed explicitly: match_all_when_empty=True lets
    every page through, False rejects every page.
    """

    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()

    @staticmethod
    def _searchable_text(page: Page) -> str:
        return f"{page.title or ''} {page.get_storage_value()}".lower()

    def match_keywords(self, page: Page, keywords: list[str], match_all_when_empty: bool = True) -> FilterResult:
        """Check which keywords occur in a page.

        Args:
            page (Page): The page to test.
            keywords (list[str]): Keywords to look for.
            match_all_when_empty (bool): Result for an empty keyword list.

        Returns:
            FilterResult: Whether the page matches and which keywords hit.
        """
        if not keywords:
            return FilterResult(matches=match_all_when_empty)
        text = self._searchable_text(page)
        matched = [keyword for keyword in keywords if keyword.lower() in text]
        return FilterResult(matches=bool(matched), matched_keywords=matched)

    def filter_pages_by_keywords(self, pages: list[Page], keywords: list[str], match_all_when_empty: bool = True) -> list[Page]:
        """Return the matching pages in their original order."""
        filtered = []
        for page in pages:
            result = self.match_keywords(page, keywords, match_all_when_empty)
            if result.matches:
                if result.matched_keywords:
                    self.logging.debug("Page '%s' (%s) matched: %s", page.title, page.id, ", ".join(result.matched_keywords))
                filtered.append(page)
        self.logging.info("%d of %d pages matched keywords [%s]", len(filtered), len(pages), ", ".join(keywords))
        return filtered
