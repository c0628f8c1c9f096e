"""FastAPI application entry point for ticket_wiki_ai_bridge."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.clients.llm.LLMClientManager import LLMClientManager
from services.wiki_rag_sync.EmbeddingService import EmbeddingService
from services.wiki_rag_sync.SyncService import SyncService
from server.core.QueryService import QueryService
from server.routers.QueryRouter import router as query_router

load_dotenv()
logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)

    rag_client = RAGClientManager(helper_config=app.state.helper_config).get_client()
    llm_client = LLMClientManager(helper_config=app.state.helper_config).get_client()

    logging.info("Booting all clients...")
    for client in [rag_client, llm_client]:
        await client.boot()
    logging.info("All clients booted successfully.")

    app.state.rag_client = rag_client
    app.state.llm_client = llm_client
    embedding_service = EmbeddingService(helper_config=app.state.helper_config, llm_client=llm_client)
    app.state.query_service = QueryService(
        helper_config=app.state.helper_config,
        rag_client=rag_client,
        embedding_service=embedding_service,
    )

    sync_service = SyncService(helper_config=app.state.helper_config, rag_client=rag_client, embedding_service=embedding_service)
    await check_connections(rag_client, llm_client, sync_service)

    # while the app is running...
    yield

    logging.info("Shutting down, closing all clients...")
    for client in [rag_client, llm_client]:
        await client.close()
    logging.info("All clients closed.")


app = FastAPI(
    title="ticket_wiki_ai_bridge",
    description=(
        "Bridges an issue tracker (Jira) and a wiki (Confluence) with an LLM and a vector database. "
        "Wiki pages and tickets are chunked, embedded and indexed into Qdrant, "
        "and served via POST /query and POST /query/related."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(query_router)


async def check_connections(rag_client: RAGClientInterface, llm_client: LLMClientInterface, sync_service: SyncService) -> None:
    """Check connectivity to the backends on startup and prepare the collection.

    The RAG backend is required and its collection is created when missing. An
    unreachable LLM backend is logged only, since queries fall back to mock
    embeddings when EMBED_MOCK_ON_FAILURE is on.

    Raises:
        Exception: If the RAG backend is not reachable or the collection cannot be created.
    """
    result: httpx.Response = await rag_client.do_healthcheck()
    if not result.is_success:
        raise Exception(
            f"RAG client '{rag_client.__class__.__name__}' is not reachable "
            f"(status {result.status_code}). Cannot serve queries."
        )
    if not await sync_service.initialize():
        raise Exception(f"Collection '{rag_client.get_collection_name()}' could not be prepared. Cannot serve queries.")

    try:
        result = await llm_client.do_healthcheck()
    except httpx.HTTPError as e:
        logging.warning("LLM client is not reachable: %s. Query embeddings may be mocked.", e)
        return
    if not result.is_success:
        logging.warning(
            "LLM client is not reachable (status %d). Query embeddings may be mocked.",
            result.status_code,
        )


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting ticket_wiki_ai_bridge API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
