"""Embedding service with an optional random-vector fallback."""

import random

from pydantic import BaseModel

from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig


class EmbeddingResult(BaseModel):
    """Vectors for a batch of texts.

    mocked is True when the vectors are random filler instead of real embeddings.
    """

    vectors: list[list[float]]
    mocked: bool = False


class EmbeddingService:
    """Generates embeddings through the LLM client.

    When the client is missing or fails and EMBED_MOCK_ON_FAILURE is on
    (the default), random vectors in [-0.5, 0.5) are returned and flagged as
    mocked. With the flag off the failure is raised.
    """

    def __init__(self, helper_config: HelperConfig, llm_client: LLMClientInterface | None = None) -> None:
        self.logging = helper_config.get_logger()
        self._llm_client = llm_client
        self.mock_on_failure = helper_config.get_bool_val("EMBED_MOCK_ON_FAILURE", default=True)
        if llm_client:
            self.vector_size, self.distance = llm_client.get_embedding_settings()
        else:
            self.vector_size = int(helper_config.get_number_val("LLM_VECTOR_SIZE", default=1536))
            self.distance = helper_config.get_string_val("LLM_DISTANCE", default="Cosine")

    def is_configured(self) -> bool:
        return self._llm_client is not None and self._llm_client.is_booted()

    def _mock_vectors(self, count: int) -> list[list[float]]:
        return [[random.random() - 0.5 for _ in range(self.vector_size)] for _ in range(count)]

    def _fallback(self, texts: list[str], reason: str) -> EmbeddingResult:
        if not self.mock_on_failure:
            raise Exception(f"Embedding failed: {reason}")
        self.logging.warning("%s. Using mock embeddings for %d texts.", reason, len(texts))
        return EmbeddingResult(vectors=self._mock_vectors(len(texts)), mocked=True)

    async def generate_embeddings(self, texts: list[str]) -> EmbeddingResult:
        """Embed a batch of texts.

        Args:
            texts (list[str]): The texts to embed.

        Returns:
            EmbeddingResult: One vector per text, in input order.

        Raises:
            Exception: If embedding fails and EMBED_MOCK_ON_FAILURE is off.
        """
        if not texts:
            return EmbeddingResult(vectors=[])
        if not self.is_configured():
            return self._fallback(texts, "Embedding service not configured")

        try:
            vectors = await self._llm_client.do_embed(texts)
        except Exception as e:
            return self._fallback(texts, f"Embedding request failed: {e}")

        if len(vectors) != len(texts):
            return self._fallback(texts, f"Embedding backend returned {len(vectors)} vectors for {len(texts)} texts")
        return EmbeddingResult(vectors=vectors)

    async def generate_single_embedding(self, text: str) -> EmbeddingResult:
        return await self.generate_embeddings([text])
