"""Vector storage service.

Splits wiki pages and ticket issues into overlapping chunks, embeds them
through the EmbeddingService and upserts the resulting points into the RAG
backend with a flat metadata payload.
"""

import asyncio

from pydantic import BaseModel

from services.wiki_rag_sync.EmbeddingService import EmbeddingService
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.VectorPoint import VectorPayload, VectorPoint
from shared.clients.ticket.TicketClientInterface import TicketClientInterface
from shared.clients.ticket.models.Issue import Issue
from shared.clients.wiki.WikiClientInterface import WikiClientInterface
from shared.clients.wiki.models.Page import Page
from shared.helper.HelperConfig import HelperConfig
from shared.helper.TextChunker import TextChunker
from shared.helper.adf_helper import describe
from shared.helper.content_helper import chunk_list, extract_page_content, strip_html_tags
from shared.models.document import DocumentChunk

CHUNK_SIZE = 1000         # characters per text chunk
CHUNK_OVERLAP = 200       # character overlap between consecutive chunks
PAGE_BATCH_SIZE = 50      # pages per outer batch
EMBED_BATCH_SIZE = 5      # chunks per embedding + upsert call
MIN_CONTENT_LENGTH = 50   # pages with less text are skipped
PAGE_BATCH_DELAY = 0.2    # seconds between page batches
EMBED_BATCH_DELAY = 0.05  # seconds between embedding batches


class StoreStats(BaseModel):
    processed_pages: int = 0
    skipped_pages: int = 0
    failed_pages: int = 0
    total_chunks: int = 0
    mocked_chunks: int = 0


def build_page_content(page: Page) -> str:
    """Searchable text of a page: its title, plus the cleaned body when a storage body exists."""
    content = f"Title: {page.title}\n\n"
    if page.get_storage_value():
        content += strip_html_tags(extract_page_content(page))
    return content.strip()


def build_issue_content(issue: Issue) -> str:
    """Searchable text of an issue with its description flattened to plain text."""
    content = (
        f"Title: {issue.fields.summary}\n\n"
        f"Issue Key: {issue.key}\n"
        f"Issue Type: {issue.get_type_name()}\n"
        f"Status: {issue.get_status_name()}\n"
        f"Priority: {issue.get_priority_name()}\n\n"
    )
    if issue.fields.description:
        content += f"Description: {describe(issue.fields.description, plain=True)}\n\n"
    return content.strip()


class SyncService:
    """Stores wiki pages and issues in the RAG backend."""

    def __init__(
        self,
        helper_config: HelperConfig,
        rag_client: RAGClientInterface,
        embedding_service: EmbeddingService,
        wiki_client: WikiClientInterface | None = None,
        ticket_client: TicketClientInterface | None = None,
        chunker: TextChunker | None = None,
        page_batch_delay: float = PAGE_BATCH_DELAY,
        embed_batch_delay: float = EMBED_BATCH_DELAY,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._rag_client = rag_client
        self._embedding_service = embedding_service
        self._wiki_client = wiki_client
        self._ticket_client = ticket_client
        self._chunker = chunker or TextChunker(CHUNK_SIZE, CHUNK_OVERLAP)
        self._page_batch_delay = page_batch_delay
        self._embed_batch_delay = embed_batch_delay

    ##########################################
    ################# SETUP ##################
    ##########################################

    async def initialize(self) -> bool:
        """Make sure the collection exists.

        Returns:
            bool: False if the backend is unreachable or the collection cannot
                be created. Callers then continue without vector storage.
        """
        self.logging.info("Initializing vector database...")
        try:
            collections = await self._rag_client.do_list_collections()
            name = self._rag_client.get_collection_name()
            if name in collections:
                self.logging.info("Collection %s already exists", name)
            else:
                vector_size = self._embedding_service.vector_size
                distance = self._embedding_service.distance
                self.logging.info("Creating collection: %s (vector size %d, distance %s)", name, vector_size, distance)
                await self._rag_client.do_create_collection(vector_size=vector_size, distance=distance)
                self.logging.info("Collection %s created successfully", name, color="green")
        except Exception as e:
            self.logging.warning("Vector database initialization failed: %s", e)
            self.logging.warning("Continuing without vector storage...")
            return False
        return True

    ##########################################
    ################ STORAGE #################
    ##########################################

    async def _store_chunks(self, chunks: list[DocumentChunk], stats: StoreStats) -> None:
        """Embed and upsert chunks in small batches, one embedding call and one upsert per batch."""
        for batch in chunk_list(chunks, EMBED_BATCH_SIZE):
            embedding = await self._embedding_service.generate_embeddings([chunk.content for chunk in batch])
            points = [
                VectorPoint(
                    id=chunk.id,
                    vector=vector,
                    payload=VectorPayload.from_chunk(chunk, embedding_mocked=embedding.mocked),
                )
                for chunk, vector in zip(batch, embedding.vectors)
            ]
            await self._rag_client.do_upsert_points(points)
            stats.total_chunks += len(points)
            if embedding.mocked:
                stats.mocked_chunks += len(points)
            await asyncio.sleep(self._embed_batch_delay)

    async def store_wiki_pages(self, pages: list[Page]) -> StoreStats:
        """Chunk, embed and store wiki pages.

        Pages are handled in sequential batches with a short pause between
        batches. Pages with too little text are skipped. A failing page is
        logged and counted, the remaining pages are still stored.

        Args:
            pages (list[Page]): Pages with full content.

        Returns:
            StoreStats: Page and chunk counters.
        """
        self.logging.info("Processing %d wiki pages...", len(pages))
        stats = StoreStats()
        done = 0

        for batch_start in range(0, len(pages), PAGE_BATCH_SIZE):
            batch = pages[batch_start:batch_start + PAGE_BATCH_SIZE]
            self.logging.info(
                "Processing pages %d to %d of %d", batch_start + 1, batch_start + len(batch), len(pages),
            )
            for page in batch:
                done += 1
                if done % 10 == 0:
                    self.logging.info("Progress: %d/%d pages processed", done, len(pages))

                content = build_page_content(page)
                if len(content) < MIN_CONTENT_LENGTH:
                    stats.skipped_pages += 1
                    continue

                try:
                    chunks = self._chunker.create_document_chunks(content, {
                        "source": "confluence",
                        "title": page.title,
                        "page_id": page.id,
                        "url": self._wiki_client.get_page_url(page.id) if self._wiki_client else None,
                    })
                    await self._store_chunks(chunks, stats)
                    stats.processed_pages += 1
                except Exception as e:
                    stats.failed_pages += 1
                    self.logging.error("Error processing page %s: %s", page.id, e)

            if batch_start + PAGE_BATCH_SIZE < len(pages):
                await asyncio.sleep(self._page_batch_delay)

        self.logging.info(
            "Stored %d pages (%d chunks, %d skipped, %d failed)",
            stats.processed_pages, stats.total_chunks, stats.skipped_pages, stats.failed_pages,
            color="green",
        )
        if stats.mocked_chunks:
            self.logging.warning("%d chunks were stored with mock embeddings", stats.mocked_chunks)
        return stats

    async def store_issue(self, issue: Issue) -> StoreStats:
        """Chunk, embed and store one issue.

        Raises:
            Exception: If embedding or upsert fails.
        """
        self.logging.info("Processing ticket issue: %s", issue.key)
        stats = StoreStats()
        chunks = self._chunker.create_document_chunks(build_issue_content(issue), {
            "source": "jira",
            "title": issue.fields.summary,
            "issue_key": issue.key,
            "type": issue.get_type_name() or None,
            "url": self._ticket_client.get_issue_url(issue.key) if self._ticket_client else None,
        })
        await self._store_chunks(chunks, stats)
        stats.processed_pages = 1
        self.logging.info("Stored ticket issue %s (%d chunks)", issue.key, stats.total_chunks, color="green")
        return stats
