"""Keyword extraction from the saved ticket markdown.

Two strategies derive keywords from the reference document: local frequency
weighting (section-weighted for ticket markdown) and a remote AI completion.
The adaptive variant widens the keyword set when too few pages match.
"""

import os
import re
from collections import Counter

from pydantic import BaseModel

from services.keyword_filter.ContentCache import ContentCache
from services.keyword_filter.PageFilter import PageFilter
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.clients.wiki.models.Page import Page
from shared.helper.HelperConfig import HelperConfig

STOP_WORDS = frozenset([
    "a", "an", "and", "are", "as", "at", "be", "been", "by", "for", "from",
    "has", "have", "he", "in", "is", "it", "its", "of", "on", "that", "the",
    "to", "was", "will", "with", "this", "they", "their", "these", "those",
    "what", "when", "where", "who", "which", "why", "how", "can", "could",
    "should", "would", "may", "might", "must", "shall", "we", "you", "your",
    "our", "my", "i", "me", "him", "her", "them", "us", "need", "needs",
    "or", "but", "if", "then", "else", "so", "no", "not", "only", "just",
    "more", "most", "less", "least", "very", "all", "any", "some", "many",
    "much", "few", "little", "own", "same", "other", "another", "such",
    "there", "here", "also", "too", "than", "into", "upon", "up", "down",
    "out", "off", "over", "under", "about", "through", "during", "before",
    "after", "above", "below", "between", "within", "without", "along",
])

PRIORITY_TERMS = frozenset([
    "api", "endpoint", "virtual", "background", "administrator", "admin",
    "user", "users", "manage", "management", "add", "update", "delete",
    "create", "crud", "set", "default", "image", "images", "upload",
    "backend", "frontend", "database", "authentication", "authorization",
    "permission", "permissions", "role", "roles", "service", "services",
    "implementation", "implement", "feature", "functionality", "requirement",
])

PRIORITY_MULTIPLIER = 3
LONG_WORD_MULTIPLIER = 1.5
LONG_WORD_MIN_LENGTH = 8

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_SUMMARY_RE = re.compile(r"## Summary\s+(.*?)(?=##|$)", re.DOTALL)
_DESCRIPTION_RE = re.compile(r"## Description\s+(.*?)$", re.DOTALL)
_DETAILS_RE = re.compile(r"## Details\s+(.*?)(?=##|$)", re.DOTALL)
_ISSUE_KEY_RE = re.compile(r"# JIRA Issue: (\S+)")

AI_SYSTEM_PROMPT = """You are a senior technical architect with 15+ years of experience in software development, system design, and technical analysis.
Analyze the given JIRA ticket and extract the most important technical keywords that would be relevant for:
1. Finding related documentation
2. Identifying similar features or components
3. Understanding technical dependencies
4. Searching for implementation patterns

Focus on:
- Technical terms and concepts
- System components and services
- Implementation approaches
- Business domain terms
- Integration points

Return ONLY {count} most important keywords, one per line, without numbering or additional text.
Keywords should be lowercase and technical in nature."""

AI_USER_PROMPT = "Extract the {count} most important technical keywords from this JIRA ticket:\n\n{content}"


class KeywordInfo(BaseModel):
    word: str
    frequency: int
    weight: float


class AdaptiveKeywordResult(BaseModel):
    """Keywords of the last attempt and the pages they matched."""

    keywords: list[str]
    filtered_pages: list[Page]
    attempts: int


def extract_keywords_from_text(text: str) -> list[KeywordInfo]:
    """Score the words of a text.

    Words are lowercased alphanumeric tokens longer than two characters that
    are not stop words. The weight is the frequency, tripled for priority
    terms and multiplied by 1.5 for words longer than seven characters.

    Returns:
        list[KeywordInfo]: Keywords by descending weight; ties keep first-seen order.
    """
    words = _NON_ALNUM_RE.sub(" ", text.lower()).split()
    frequencies = Counter(word for word in words if len(word) > 2 and word not in STOP_WORDS)

    keywords = []
    for word, frequency in frequencies.items():
        weight = float(frequency)
        if word in PRIORITY_TERMS:
            weight *= PRIORITY_MULTIPLIER
        if len(word) >= LONG_WORD_MIN_LENGTH:
            weight *= LONG_WORD_MULTIPLIER
        keywords.append(KeywordInfo(word=word, frequency=frequency, weight=weight))

    # sorted() is stable
    return sorted(keywords, key=lambda k: k.weight, reverse=True)


def build_section_weighted_text(markdown: str) -> str:
    """Repeat the Summary section three times, Description twice and Details once, then append the whole document."""
    parts = []
    summary = _SUMMARY_RE.search(markdown)
    if summary and summary.group(1):
        parts.append((summary.group(1) + " ") * 3)
    description = _DESCRIPTION_RE.search(markdown)
    if description and description.group(1):
        parts.append((description.group(1) + " ") * 2)
    details = _DETAILS_RE.search(markdown)
    if details and details.group(1):
        parts.append(details.group(1) + " ")
    parts.append(markdown)
    return "".join(parts)


def parse_ai_keywords(response: str, count: int) -> list[str]:
    """Turn an AI reply into keywords: one per line, lowercase, no preamble lines."""
    keywords = []
    for line in response.split("\n"):
        line = line.strip().lower()
        if not line or ":" in line or "keyword" in line:
            continue
        keywords.append(line)
    return keywords[:count]


class KeywordExtractor:
    """Extracts keywords from the ticket markdown and filters pages with them."""

    def __init__(
        self,
        helper_config: HelperConfig,
        content_cache: ContentCache,
        page_filter: PageFilter,
        llm_client: LLMClientInterface | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._content_cache = content_cache
        self._page_filter = page_filter
        self._llm_client = llm_client

        self.ticket_path = helper_config.get_output_path("TICKET_MARKDOWN_FILENAME", "Jira.md")
        self.page_ids_path = helper_config.get_output_path("PAGE_IDS_FILENAME", "pages.txt")
        self.stop_on_ai_error = helper_config.get_bool_val("STOP_ON_AI_ERROR", default=False)
        self.initial_count = int(helper_config.get_number_val("KEYWORD_INITIAL_COUNT", default=5))
        self.escalated_count = int(helper_config.get_number_val("KEYWORD_ESCALATED_COUNT", default=10))
        self.min_matches = int(helper_config.get_number_val("KEYWORD_MIN_MATCHES", default=10))

    ##########################################
    ############# LOCAL KEYWORDS #############
    ##########################################

    def extract_ticket_keywords(self, path: str | None = None, count: int = 5) -> list[str]:
        """Top keywords of the ticket markdown, weighted towards its Summary and Description.

        Args:
            path (str | None): Ticket markdown file; defaults to the configured one.
            count (int): Number of keywords to return.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        markdown = self._content_cache.read(path or self.ticket_path)
        keywords = [k.word for k in extract_keywords_from_text(build_section_weighted_text(markdown))[:count]]
        self.logging.info("Extracted %d keywords: %s", len(keywords), ", ".join(keywords))
        return keywords

    def extract_keywords_with_adaptive_count(self, pages: list[Page], path: str | None = None) -> AdaptiveKeywordResult:
        """Filter pages by ticket keywords, widening the keyword set once if recall is low.

        Starts with the initial keyword count. If fewer than the minimum number
        of pages match, the keywords are recomputed with the escalated count
        (the top words may change, the set is not just extended) and the pages
        are filtered again. The surviving page IDs are written to the page-IDs
        file.

        Args:
            pages (list[Page]): Pages from the minimal listing.
            path (str | None): Ticket markdown file; defaults to the configured one.

        Returns:
            AdaptiveKeywordResult: The last keywords, their matches and the number of attempts.
        """
        self.logging.info("Starting adaptive keyword extraction with %d total pages", len(pages))

        keywords = self.extract_ticket_keywords(path, self.initial_count)
        filtered = self._page_filter.filter_pages_by_keywords(pages, keywords, match_all_when_empty=False)
        attempts = 1

        if len(filtered) < self.min_matches:
            self.logging.info(
                "Only %d pages found with %d keywords, retrying with %d keywords...",
                len(filtered), self.initial_count, self.escalated_count,
            )
            keywords = self.extract_ticket_keywords(path, self.escalated_count)
            filtered = self._page_filter.filter_pages_by_keywords(pages, keywords, match_all_when_empty=False)
            attempts = 2

        self.save_page_ids(filtered)
        return AdaptiveKeywordResult(keywords=keywords, filtered_pages=filtered, attempts=attempts)

    ##########################################
    ############### AI KEYWORDS ##############
    ##########################################

    async def extract_keywords_with_ai(self, content: str, count: int = 10) -> list[str]:
        """Ask the LLM for the most important technical keywords of a ticket.

        Args:
            content (str): The ticket markdown.
            count (int): Number of keywords to request.

        Returns:
            list[str]: The keywords; [] if the request failed and STOP_ON_AI_ERROR is off.

        Raises:
            Exception: If the request failed and STOP_ON_AI_ERROR is on.
        """
        issue_key = _ISSUE_KEY_RE.search(content)
        self.logging.info(
            "Extracting %d keywords for %s using AI...", count, issue_key.group(1) if issue_key else "UNKNOWN",
        )
        try:
            if self._llm_client is None:
                raise ValueError("No LLM client configured")
            response = await self._llm_client.do_complete(
                AI_USER_PROMPT.format(count=count, content=content),
                system_prompt=AI_SYSTEM_PROMPT.format(count=count),
            )
        except Exception as e:
            self.logging.error("AI keyword extraction failed: %s", e)
            if self.stop_on_ai_error:
                raise Exception(f"AI keyword extraction failed: {e}") from e
            self.logging.warning("Continuing without AI-generated keywords (STOP_ON_AI_ERROR=false)")
            return []

        keywords = parse_ai_keywords(response, count)
        if keywords:
            self.logging.info("AI extracted keywords: %s", ", ".join(keywords), color="green")
        else:
            self.logging.warning("No keywords extracted by AI")
        return keywords

    async def extract_keywords_from_ticket_file_with_ai(self, path: str | None = None, count: int = 10) -> list[str]:
        """Run the AI keyword extraction on the saved ticket markdown.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        return await self.extract_keywords_with_ai(self._content_cache.read(path or self.ticket_path), count)

    ##########################################
    ############### PAGE IDS #################
    ##########################################

    def save_page_ids(self, pages: list[Page]) -> None:
        """Write one page ID per line to the page-IDs file. Failures are logged only."""
        try:
            os.makedirs(os.path.dirname(self.page_ids_path), exist_ok=True)
            with open(self.page_ids_path, "w", encoding="utf-8") as f:
                f.write("".join(f"{page.id}\n" for page in pages))
        except OSError as e:
            self.logging.error("Failed to save page IDs to %s: %s", self.page_ids_path, e)
            return
        self.logging.info("Saved %d page IDs to: %s", len(pages), self.page_ids_path)

    def load_page_ids(self) -> list[str]:
        """Read the page-IDs file, skipping blank lines and "#" comments.

        Returns:
            list[str]: The IDs; [] if the file is missing or unreadable.
        """
        if not os.path.isfile(self.page_ids_path):
            self.logging.warning("Page IDs file not found: %s", self.page_ids_path)
            return []
        try:
            with open(self.page_ids_path, "r", encoding="utf-8") as f:
                lines = [line.strip() for line in f.read().split("\n")]
        except OSError as e:
            self.logging.error("Failed to load page IDs from %s: %s", self.page_ids_path, e)
            return []
        page_ids = [line for line in lines if line and not line.startswith("#")]
        self.logging.info("Loaded %d page IDs from: %s", len(page_ids), self.page_ids_path)
        return page_ids
