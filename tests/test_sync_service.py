import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from services.wiki_rag_sync.EmbeddingService import EmbeddingResult, EmbeddingService
from services.wiki_rag_sync.SyncService import SyncService, build_issue_content, build_page_content
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.clients.ticket.models.Issue import Issue
from shared.clients.wiki.models.Page import Page
from shared.models.document import ChunkMetadata, DocumentChunk

LONG_HTML = "<p>" + "The login service issues OAuth tokens for every client. " * 3 + "</p>"


def storage_page(page_id: str, html: str) -> Page:
    return Page.model_validate({"id": page_id, "title": f"Page {page_id}", "body": {"storage": {"value": html}}})


def fake_embedding_service(mocked: bool = False) -> MagicMock:
    service = MagicMock()
    service.vector_size = 4
    service.distance = "Cosine"
    service.generate_embeddings = AsyncMock(
        side_effect=lambda texts: EmbeddingResult(vectors=[[0.1, 0.2, 0.3, 0.4] for _ in texts], mocked=mocked)
    )
    return service


def fake_rag_client(collections: list[str] | None = None) -> MagicMock:
    client = MagicMock()
    client.get_collection_name.return_value = "documentation"
    client.do_list_collections = AsyncMock(return_value=collections or [])
    client.do_create_collection = AsyncMock()
    client.do_upsert_points = AsyncMock()
    return client


def twelve_chunks() -> list[DocumentChunk]:
    return [
        DocumentChunk(id=f"c{i}", content=f"chunk {i}", metadata=ChunkMetadata(source="confluence", title="T", chunk_index=i, total_chunks=12))
        for i in range(12)
    ]


def make_service(helper_config, rag_client, embedding_service, chunker=None) -> SyncService:
    return SyncService(
        helper_config,
        rag_client=rag_client,
        embedding_service=embedding_service,
        chunker=chunker,
        page_batch_delay=0,
        embed_batch_delay=0,
    )


def test_page_content_uses_title_and_cleaned_storage():
    content = build_page_content(storage_page("1", "<p>Hello <b>world</b></p>"))
    assert content == "Title: Page 1\n\nHello world"
    assert build_page_content(Page(id="2", title="Only title")) == "Title: Only title"


def test_issue_content_flattens_the_description():
    issue = Issue.model_validate({"key": "ABC-1", "fields": {"summary": "Add login", "description": "Implement OAuth", "status": {"name": "Done"}}})
    content = build_issue_content(issue)

    assert content.startswith("Title: Add login\n\nIssue Key: ABC-1\n")
    assert "Status: Done\n" in content
    assert content.endswith("Description: Implement OAuth")


@pytest.mark.asyncio
async def test_twelve_chunks_take_three_embed_and_upsert_calls(helper_config):
    chunker = MagicMock()
    chunker.create_document_chunks.return_value = twelve_chunks()
    embedding_service = fake_embedding_service()
    rag_client = fake_rag_client()

    stats = await make_service(helper_config, rag_client, embedding_service, chunker).store_wiki_pages([storage_page("1", LONG_HTML)])

    batch_sizes = [len(call.args[0]) for call in embedding_service.generate_embeddings.call_args_list]
    assert batch_sizes == [5, 5, 2]
    assert rag_client.do_upsert_points.await_count == 3
    assert [len(call.args[0]) for call in rag_client.do_upsert_points.call_args_list] == [5, 5, 2]
    assert stats.processed_pages == 1
    assert stats.total_chunks == 12


@pytest.mark.asyncio
async def test_short_pages_are_skipped_and_failures_counted(helper_config):
    rag_client = fake_rag_client()
    rag_client.do_upsert_points = AsyncMock(side_effect=[Exception("upsert failed"), None])
    pages = [storage_page("1", "<p>tiny</p>"), storage_page("2", LONG_HTML), storage_page("3", LONG_HTML)]

    stats = await make_service(helper_config, rag_client, fake_embedding_service()).store_wiki_pages(pages)

    assert stats.skipped_pages == 1
    assert stats.failed_pages == 1
    assert stats.processed_pages == 1


@pytest.mark.asyncio
async def test_mocked_embeddings_are_flagged_in_the_payload(helper_config):
    rag_client = fake_rag_client()

    stats = await make_service(helper_config, rag_client, fake_embedding_service(mocked=True)).store_wiki_pages([storage_page("1", LONG_HTML)])

    points = rag_client.do_upsert_points.call_args.args[0]
    assert all(point.payload.embedding_mocked for point in points)
    assert all(point.payload.source == "confluence" and point.payload.page_id == "1" for point in points)
    assert stats.mocked_chunks == stats.total_chunks


@pytest.mark.asyncio
async def test_store_issue_tags_chunks_as_jira(helper_config):
    rag_client = fake_rag_client()
    issue = Issue.model_validate({"key": "ABC-1", "fields": {"summary": "Add login", "issuetype": {"name": "Story"}}})

    stats = await make_service(helper_config, rag_client, fake_embedding_service()).store_issue(issue)

    point = rag_client.do_upsert_points.call_args.args[0][0]
    assert point.payload.source == "jira"
    assert point.payload.issue_key == "ABC-1"
    assert point.payload.type == "Story"
    assert stats.total_chunks == 1


@pytest.mark.asyncio
async def test_initialize_creates_a_missing_collection(helper_config):
    rag_client = fake_rag_client()

    assert await make_service(helper_config, rag_client, fake_embedding_service()).initialize()
    rag_client.do_create_collection.assert_awaited_once_with(vector_size=4, distance="Cosine")


@pytest.mark.asyncio
async def test_initialize_keeps_an_existing_collection(helper_config):
    rag_client = fake_rag_client(["documentation"])

    assert await make_service(helper_config, rag_client, fake_embedding_service()).initialize()
    rag_client.do_create_collection.assert_not_awaited()


@pytest.mark.asyncio
async def test_initialize_reports_an_unreachable_store(helper_config):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    rag_client = RAGClientManager(helper_config).get_client()
    await rag_client.boot(transport=httpx.MockTransport(handler))

    assert not await make_service(helper_config, rag_client, EmbeddingService(helper_config)).initialize()
    await rag_client.close()


@pytest.mark.asyncio
async def test_qdrant_collection_payload(helper_config, fake_qdrant):
    rag_client = RAGClientManager(helper_config).get_client()
    await rag_client.boot(transport=httpx.MockTransport(fake_qdrant.handler))

    await make_service(helper_config, rag_client, EmbeddingService(helper_config)).initialize()
    await rag_client.close()

    assert fake_qdrant.collections["documentation"] == {
        "vectors": {"size": 4, "distance": "Cosine"},
        "optimizers_config": {"default_segment_number": 2},
        "replication_factor": 1,
    }


@pytest.mark.asyncio
async def test_collection_uses_the_configured_distance(helper_config, env, fake_qdrant):
    env.setenv("LLM_DISTANCE", "Dot")
    llm_client = LLMClientManager(helper_config).get_client()
    rag_client = RAGClientManager(helper_config).get_client()
    await rag_client.boot(transport=httpx.MockTransport(fake_qdrant.handler))

    await make_service(helper_config, rag_client, EmbeddingService(helper_config, llm_client)).initialize()
    await rag_client.close()

    assert fake_qdrant.collections["documentation"]["vectors"] == {"size": 4, "distance": "Dot"}


@pytest.mark.asyncio
@pytest.mark.parametrize("page_count, pauses", [(50, 0), (51, 1), (101, 2)])
async def test_no_pause_after_the_last_page_batch(helper_config, monkeypatch, page_count, pauses):
    sleep = AsyncMock()
    monkeypatch.setattr(asyncio, "sleep", sleep)
    service = SyncService(
        helper_config,
        rag_client=fake_rag_client(),
        embedding_service=fake_embedding_service(),
        page_batch_delay=0.2,
        embed_batch_delay=0,
    )
    # pages this short are skipped, so only page batches pause
    pages = [storage_page(str(i), "<p>x</p>") for i in range(page_count)]

    stats = await service.store_wiki_pages(pages)

    assert stats.skipped_pages == page_count
    assert sleep.await_count == pauses
    assert all(call.args == (0.2,) for call in sleep.await_args_list)
