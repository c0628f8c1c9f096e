import json
import logging
import math

import httpx
import pytest

from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger


BASE_ENV = {
    "TICKET_JIRA_BASE_URL": "https://jira.example.com",
    "TICKET_JIRA_EMAIL": "dev@example.com",
    "TICKET_JIRA_API_TOKEN": "jira-token",
    "TICKET_JIRA_PROJECT_KEY": "ABC",
    "WIKI_CONFLUENCE_BASE_URL": "https://wiki.example.com",
    "WIKI_CONFLUENCE_EMAIL": "dev@example.com",
    "WIKI_CONFLUENCE_API_TOKEN": "wiki-token",
    "WIKI_CONFLUENCE_SPACE_KEY": "DOC",
    "LLM_OPENROUTER_BASE_URL": "https://llm.example.com/api/v1",
    "LLM_OPENROUTER_API_KEY": "llm-key",
    "LLM_OPENROUTER_FALLBACK_MODELS": "[fallback/a,fallback/b]",
    "LLM_CHAT_MODEL": "primary/model",
    "LLM_VECTOR_SIZE": "4",
    "RAG_QDRANT_BASE_URL": "http://qdrant.test",
    "RAG_QDRANT_COLLECTION": "documentation",
}

CLEARED_ENV = [
    "WIKI_FILTER_ENABLED", "STOP_ON_AI_ERROR", "EMBED_MOCK_ON_FAILURE",
    "KEYWORD_INITIAL_COUNT", "KEYWORD_ESCALATED_COUNT", "KEYWORD_MIN_MATCHES",
    "WIKI_PAGE_LIMIT", "WIKI_FETCH_CONCURRENCY", "TICKET_MARKDOWN_FILENAME",
    "WIKI_MARKDOWN_FILENAME", "PAGE_IDS_FILENAME", "API_SERVER_API_KEY", "LLM_DISTANCE",
]


@pytest.fixture
def env(monkeypatch, tmp_path):
    for key in CLEARED_ENV:
        monkeypatch.delenv(key, raising=False)
    for key, value in BASE_ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path))
    return monkeypatch


@pytest.fixture
def helper_config(env):
    return HelperConfig(logger=ColorLogger(logging.getLogger("ticket_wiki_ai_bridge.tests")))


class FakeQdrant:
    """In-memory stand-in for the Qdrant REST API, served through httpx.MockTransport."""

    def __init__(self):
        self.collections: dict[str, dict] = {}
        self.points: dict[str, dict[str, dict]] = {}
        self.requests: list[httpx.Request] = []

    @staticmethod
    def _ok(result) -> httpx.Response:
        return httpx.Response(200, json={"result": result, "status": "ok", "time": 0.001})

    @staticmethod
    def _cosine(a: list[float], b: list[float]) -> float:
        dot = sum(x * y for x, y in zip(a, b))
        norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
        return dot / norm if norm else 0.0

    @staticmethod
    def _matches(payload: dict, filter: dict | None) -> bool:
        for condition in (filter or {}).get("must", []):
            if payload.get(condition["key"]) != condition["match"]["value"]:
                return False
        return True

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.strip("/").split("/")
        body = json.loads(request.content) if request.content else {}

        if parts == ["healthz"]:
            return httpx.Response(200, text="healthz check passed")
        if parts == ["collections"] and request.method == "GET":
            return self._ok({"collections": [{"name": name} for name in self.collections]})

        name = parts[1]
        if len(parts) == 2 and request.method == "PUT":
            self.collections[name] = body
            self.points.setdefault(name, {})
            return self._ok(True)
        if name not in self.collections:
            return httpx.Response(404, json={"status": {"error": f"Collection `{name}` doesn't exist!"}})
        if len(parts) == 2 and request.method == "GET":
            return self._ok({
                "status": "green",
                "points_count": len(self.points[name]),
                "indexed_vectors_count": 0,
                "segments_count": 2,
                "config": {"params": {"vectors": self.collections[name]["vectors"]}},
            })
        if parts[2:] == ["points"] and request.method == "PUT":
            for point in body["points"]:
                self.points[name][point["id"]] = point
            return self._ok({"operation_id": 1, "status": "completed"})
        if parts[2:] == ["points", "search"]:
            hits = [
                {"id": point["id"], "version": 1, "score": self._cosine(body["vector"], point["vector"]), "payload": point["payload"]}
                for point in self.points[name].values()
                if self._matches(point["payload"], body.get("filter"))
            ]
            hits.sort(key=lambda hit: hit["score"], reverse=True)
            return self._ok(hits[:body["limit"]])
        if parts[2:] == ["points", "delete"]:
            # an empty filter matches every point
            self.points[name] = {
                point_id: point for point_id, point in self.points[name].items()
                if not self._matches(point["payload"], body.get("filter"))
            }
            return self._ok({"operation_id": 2, "status": "completed"})
        return httpx.Response(404)


@pytest.fixture
def fake_qdrant():
    return FakeQdrant()


def keyword_embedding(text: str) -> list[float]:
    """Deterministic 4-dimensional embedding for tests."""
    text = text.lower()
    return [
        1.0 + text.count("login"),
        1.0 + text.count("oauth"),
        1.0 + text.count("deploy"),
        1.0,
    ]


def _embeddings_response(request: httpx.Request) -> httpx.Response:
    body = json.loads(request.content)
    data = [{"object": "embedding", "index": i, "embedding": keyword_embedding(text)} for i, text in enumerate(body["input"])]
    return httpx.Response(200, json={"object": "list", "data": data, "model": body["model"]})


@pytest.fixture
def embeddings_handler():
    """MockTransport handler answering OpenRouter /embeddings requests with keyword_embedding() vectors."""
    return _embeddings_response
