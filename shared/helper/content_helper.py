"""Text helpers shared by the fetch and storage pipelines."""

import re
from typing import Iterator, Sequence, TypeVar

from shared.clients.wiki.models.Page import Page

T = TypeVar("T")

_TAG_RE = re.compile(r"<[^>]*>")
_URL_RE = re.compile(r"https?://\S+")
_REMOVED_LITERALS = ("{", "}", "@sourcefuse.com")

NO_CONTENT = "No content available"


def strip_html_tags(raw: str) -> str:
    """Strip markup and noise from wiki HTML.

    Removes tags and bare http(s) URLs, collapses double newlines (two passes,
    so runs of up to four newlines end up as one) and drops brace characters
    and the company mail domain. Unbalanced markup passes through as-is.

    Args:
        raw (str): HTML or storage-format text.

    Returns:
        str: The cleaned text.
    """
    text = _TAG_RE.sub("", raw)
    text = _URL_RE.sub("", text)
    text = text.replace("\n\n", "\n").replace("\n\n", "\n")
    for literal in _REMOVED_LITERALS:
        text = text.replace(literal, "")
    return text


def build_content(parts: Sequence[str], separator: str = "") -> str:
    """Join content parts in one pass."""
    return separator.join(parts)


def chunk_list(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive batches of at most `size` items.

    Raises:
        ValueError: If size is not positive.
    """
    if size <= 0:
        raise ValueError(f"Batch size must be positive, got {size}")
    for i in range(0, len(items), size):
        yield items[i:i + size]


def extract_page_content(page: Page) -> str:
    """Return the rendered view of a page, else its storage body, else a placeholder."""
    view = page.get_view_value()
    if view:
        return view.strip()
    storage = page.get_storage_value()
    if storage:
        return storage.strip()
    return NO_CONTENT
