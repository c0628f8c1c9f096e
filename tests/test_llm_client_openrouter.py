import json

import httpx
import pytest

from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.llm.openrouter.LLMClientOpenrouter import LLMClientOpenrouter


def chat_reply(model: str, content: str = "login, oauth") -> dict:
    return {
        "model": model,
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"total_tokens": 12, "prompt_tokens": 10, "completion_tokens": 2},
    }


async def booted_client(helper_config, handler) -> LLMClientOpenrouter:
    client = LLMClientManager(helper_config).get_client()
    await client.boot(transport=httpx.MockTransport(handler))
    return client


def test_models_come_from_config(helper_config):
    client = LLMClientOpenrouter(helper_config)
    assert client.get_chat_models() == ["primary/model", "fallback/a", "fallback/b"]
    assert client.vector_size == 4


@pytest.mark.asyncio
async def test_chat_payload_and_headers(helper_config):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=chat_reply("primary/model"))

    client = await booted_client(helper_config, handler)
    reply = await client.do_complete("Extract keywords", system_prompt="Be brief", options={"max_tokens": 200})
    await client.close()

    assert reply == "login, oauth"
    request = seen[0]
    assert request.url.path == "/api/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer llm-key"
    assert "HTTP-Referer" in request.headers
    body = json.loads(request.content)
    assert body["model"] == "primary/model"
    assert body["max_tokens"] == 200
    assert body["messages"] == [
        {"role": "system", "content": "Be brief"},
        {"role": "user", "content": "Extract keywords"},
    ]


@pytest.mark.asyncio
async def test_rate_limited_model_falls_back(helper_config):
    models = []

    def handler(request: httpx.Request) -> httpx.Response:
        model = json.loads(request.content)["model"]
        models.append(model)
        if model == "primary/model":
            return httpx.Response(429, json={"error": {"code": 429, "message": "Rate limit exceeded"}})
        return httpx.Response(200, json=chat_reply(model, "from fallback"))

    client = await booted_client(helper_config, handler)
    reply = await client.do_chat([{"role": "user", "content": "hi"}])
    await client.close()

    assert reply == "from fallback"
    assert models == ["primary/model", "fallback/a"]


@pytest.mark.asyncio
async def test_error_reported_with_200_status_is_rate_limit_aware(helper_config):
    models = []

    def handler(request: httpx.Request) -> httpx.Response:
        model = json.loads(request.content)["model"]
        models.append(model)
        if model == "primary/model":
            return httpx.Response(200, json={"error": {"message": "primary/model is temporarily rate-limited upstream"}})
        return httpx.Response(200, json=chat_reply(model))

    client = await booted_client(helper_config, handler)
    await client.do_chat([{"role": "user", "content": "hi"}])
    await client.close()

    assert models == ["primary/model", "fallback/a"]


@pytest.mark.asyncio
async def test_other_errors_do_not_fall_back(helper_config):
    models = []

    def handler(request: httpx.Request) -> httpx.Response:
        models.append(json.loads(request.content)["model"])
        return httpx.Response(400, json={"error": {"code": 400, "message": "Invalid request"}})

    client = await booted_client(helper_config, handler)
    with pytest.raises(Exception, match="OpenRouter API error: Invalid request"):
        await client.do_chat([{"role": "user", "content": "hi"}])
    await client.close()

    assert models == ["primary/model"]


@pytest.mark.asyncio
async def test_rate_limit_on_the_last_model_raises(helper_config):
    models = []

    def handler(request: httpx.Request) -> httpx.Response:
        models.append(json.loads(request.content)["model"])
        return httpx.Response(429, json={"error": {"code": 429, "message": "Rate limit exceeded"}})

    client = await booted_client(helper_config, handler)
    with pytest.raises(Exception, match="Rate limit exceeded"):
        await client.do_chat([{"role": "user", "content": "hi"}])
    await client.close()

    assert models == ["primary/model", "fallback/a", "fallback/b"]


@pytest.mark.asyncio
async def test_embeddings_follow_input_order(helper_config):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/embeddings"
        return httpx.Response(200, json={"data": [
            {"index": 1, "embedding": [2.0, 2.0, 2.0, 2.0]},
            {"index": 0, "embedding": [1.0, 1.0, 1.0, 1.0]},
        ]})

    client = await booted_client(helper_config, handler)
    vectors = await client.do_embed(["first", "second"])
    await client.close()

    assert vectors == [[1.0, 1.0, 1.0, 1.0], [2.0, 2.0, 2.0, 2.0]]


@pytest.mark.asyncio
async def test_failed_embedding_request_raises(helper_config):
    client = await booted_client(helper_config, lambda request: httpx.Response(503, text="unavailable"))
    with pytest.raises(Exception, match="status 503"):
        await client.do_embed("text")
    await client.close()
