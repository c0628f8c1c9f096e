import re

from services.keyword_filter.ContentCache import ContentCache
from services.wiki_rag_sync.EmbeddingService import EmbeddingService
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.VectorPoint import SearchHit
from shared.helper.HelperConfig import HelperConfig
from server.models.requests import SearchRequest
from server.models.responses import SearchResponse, SearchResultItem, StatsResponse

MAX_QUERY_LENGTH = 1000

_HEADER_RE = re.compile(r"^#+ ", re.MULTILINE)
_BOLD_RE = re.compile(r"\*\*(.*?)\*\*")
_LIST_LABEL_RE = re.compile(r"- \*\*.*?\*\*: ")
_BLANK_LINES_RE = re.compile(r"\n{2,}")
_SUMMARY_RE = re.compile(r"Summary\s+(.*?)(?=Details|Description|$)", re.DOTALL)
_DESCRIPTION_RE = re.compile(r"Description\s+(.*?)$", re.DOTALL)
_WHITESPACE_RE = re.compile(r"\s+")


def extract_searchable_content(markdown: str) -> str:
    """Build a search query from ticket markdown.

    Strips headings and bold markers, flattens newlines and keeps the Summary
    and Description text (the whole text if neither is found). The result is
    whitespace-collapsed and capped at 1000 characters.
    """
    content = _HEADER_RE.sub("", markdown)
    content = _BOLD_RE.sub(r"\1", content)
    content = _LIST_LABEL_RE.sub("", content)
    content = _BLANK_LINES_RE.sub(" ", content)
    content = content.replace("\n", " ").strip()

    query = ""
    summary = _SUMMARY_RE.search(content)
    if summary and summary.group(1):
        query += summary.group(1).strip() + " "
    description = _DESCRIPTION_RE.search(content)
    if description and description.group(1):
        query += description.group(1).strip()
    if not query.strip():
        query = content

    return _WHITESPACE_RE.sub(" ", query).strip()[:MAX_QUERY_LENGTH]


class QueryService:
    """Handles semantic search queries: embed -> search -> map results."""

    def __init__(
        self,
        helper_config: HelperConfig,
        rag_client: RAGClientInterface,
        embedding_service: EmbeddingService,
        content_cache: ContentCache | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self.helper_config = helper_config
        self._rag_client = rag_client
        self._embedding_service = embedding_service
        # without a run-scoped cache every call rereads the ticket file
        self._content_cache = content_cache
        self.ticket_path = helper_config.get_output_path("TICKET_MARKDOWN_FILENAME", "Jira.md")

    ##########################################
    ############### CORE #####################
    ##########################################

    @staticmethod
    def _to_item(hit: SearchHit) -> SearchResultItem:
        payload = hit.payload
        return SearchResultItem(
            id=str(hit.id),
            score=hit.score,
            source=payload.get("source"),
            title=str(payload.get("title", "")),
            content=payload.get("content"),
            url=payload.get("url"),
            page_id=payload.get("page_id"),
            issue_key=payload.get("issue_key"),
            chunk_index=payload.get("chunk_index"),
            total_chunks=payload.get("total_chunks"),
            embedding_mocked=bool(payload.get("embedding_mocked", False)),
        )

    async def search(self, request: SearchRequest) -> SearchResponse:
        """Embed a query and return the most similar stored chunks.

        Args:
            request (SearchRequest): Query text, result limit and optional source filter.

        Returns:
            SearchResponse: The matching chunks with metadata, best first.
        """
        self.logging.info(
            "QueryService.search: query='%s', limit=%d, source=%s",
            request.query[:100], request.limit, request.source or "any",
        )

        embedding = await self._embedding_service.generate_single_embedding(request.query)
        if embedding.mocked:
            self.logging.warning("Query embedding is mocked; results carry no semantic signal.")

        conditions = {"source": request.source} if request.source else None
        hits = await self._rag_client.do_search(embedding.vectors[0], limit=request.limit, conditions=conditions)

        items = [self._to_item(hit) for hit in hits]
        self.logging.info("QueryService.search: returning %d result(s).", len(items))
        return SearchResponse(
            query=request.query,
            results=items,
            total=len(items),
            query_embedding_mocked=embedding.mocked,
        )

    async def find_related_pages(self, limit: int = 10, ticket_markdown: str | None = None, ticket_path: str | None = None) -> SearchResponse:
        """Search wiki chunks related to a ticket.

        Args:
            limit (int): Maximum number of results.
            ticket_markdown (str | None): Ticket markdown; read from the ticket file when omitted.
            ticket_path (str | None): Ticket file; defaults to the configured one.

        Raises:
            FileNotFoundError: If the ticket file is needed and missing.
            ValueError: If the ticket markdown is empty.
        """
        if ticket_markdown is None:
            content_cache = self._content_cache or ContentCache(self.helper_config)
            ticket_markdown = content_cache.read(ticket_path or self.ticket_path)
        if not ticket_markdown.strip():
            raise ValueError("Ticket markdown is empty or invalid")

        query = extract_searchable_content(ticket_markdown)
        self.logging.info("Searching wiki pages related to ticket: '%s...'", query[:100])
        response = await self.search(SearchRequest(query=query, limit=limit, source="confluence"))
        self.logging.info("Found %d related wiki chunks", response.total)
        return response

    async def get_stats(self) -> StatsResponse:
        """Status and point counts of the collection."""
        info = await self._rag_client.do_get_collection_info()
        return StatsResponse(
            collection=info.name,
            status=info.status,
            points_count=info.points_count,
            indexed_vectors_count=info.indexed_vectors_count,
            segments_count=info.segments_count,
            vector_size=info.vector_size,
            distance=info.distance,
        )

    async def clear(self) -> None:
        """Delete all stored points."""
        await self._rag_client.do_clear_collection()
        self.logging.info("All documents cleared from vector database", color="yellow")
