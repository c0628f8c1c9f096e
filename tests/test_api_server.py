import importlib

import httpx
import pytest
import pytest_asyncio

from services.wiki_rag_sync.EmbeddingService import EmbeddingService
from services.wiki_rag_sync.SyncService import SyncService
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.rag.RAGClientManager import RAGClientManager


@pytest.fixture
def api_server(env, tmp_path):
    # the module configures file logging under ROOT_DIR on import
    env.setenv("ROOT_DIR", str(tmp_path))
    return importlib.import_module("server.api_server")


def models_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"data": [{"id": "primary/model"}]})


@pytest_asyncio.fixture
async def llm_client(helper_config):
    client = LLMClientManager(helper_config).get_client()
    await client.boot(transport=httpx.MockTransport(models_handler))
    yield client
    await client.close()


def sync_service_for(helper_config, rag_client, llm_client) -> SyncService:
    return SyncService(helper_config, rag_client, EmbeddingService(helper_config, llm_client))


@pytest.mark.asyncio
async def test_startup_creates_a_missing_collection(api_server, helper_config, fake_qdrant, llm_client):
    rag_client = RAGClientManager(helper_config).get_client()
    await rag_client.boot(transport=httpx.MockTransport(fake_qdrant.handler))

    await api_server.check_connections(rag_client, llm_client, sync_service_for(helper_config, rag_client, llm_client))
    await rag_client.close()

    assert fake_qdrant.collections["documentation"]["vectors"] == {"size": 4, "distance": "Cosine"}


@pytest.mark.asyncio
async def test_startup_keeps_an_existing_collection(api_server, helper_config, fake_qdrant, llm_client):
    fake_qdrant.collections["documentation"] = {"vectors": {"size": 4, "distance": "Dot"}}
    rag_client = RAGClientManager(helper_config).get_client()
    await rag_client.boot(transport=httpx.MockTransport(fake_qdrant.handler))

    await api_server.check_connections(rag_client, llm_client, sync_service_for(helper_config, rag_client, llm_client))
    await rag_client.close()

    assert fake_qdrant.collections["documentation"]["vectors"]["distance"] == "Dot"
    assert not any(request.method == "PUT" for request in fake_qdrant.requests)


@pytest.mark.asyncio
async def test_startup_fails_when_the_collection_cannot_be_created(api_server, helper_config, llm_client):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/healthz":
            return httpx.Response(200, text="healthz check passed")
        return httpx.Response(500, json={"status": {"error": "storage unavailable"}})

    rag_client = RAGClientManager(helper_config).get_client()
    await rag_client.boot(transport=httpx.MockTransport(handler))

    with pytest.raises(Exception, match="Collection 'documentation' could not be prepared"):
        await api_server.check_connections(rag_client, llm_client, sync_service_for(helper_config, rag_client, llm_client))
    await rag_client.close()
