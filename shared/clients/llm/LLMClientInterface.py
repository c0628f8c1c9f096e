from abc import abstractmethod

import httpx
from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class LLMClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # embedding config
        self.embed_distance = helper_config.get_string_val(f"{self.get_client_type().upper()}_DISTANCE", default="Cosine")
        self.embed_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_MODEL", default="openai/text-embedding-3-small")
        self.vector_size = int(helper_config.get_number_val(f"{self.get_client_type().upper()}_VECTOR_SIZE", default=1536))

        # chat / completion config
        self.chat_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_CHAT_MODEL", default="deepseek/deepseek-chat-v3-0324:free")
        self.temperature = float(helper_config.get_number_val(f"{self.get_client_type().upper()}_TEMPERATURE", default=0.7))

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "llm"

    def get_fallback_models(self) -> list[str]:
        """Returns the ordered models tried after the chat model is rate-limited. Empty by default."""
        return []

    def get_chat_models(self) -> list[str]:
        """Returns the chat model followed by the fallback models."""
        return [self.chat_model] + [m for m in self.get_fallback_models() if m != self.chat_model]

    def get_embedding_settings(self) -> tuple[int, str]:
        """Returns the configured (vector_size, distance) of the embedding model."""
        return self.vector_size, self.embed_distance

    ################ ENDPOINTS ##################
    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """Returns the endpoint path for embedding requests (e.g. "/embeddings")."""
        pass

    @abstractmethod
    def _get_endpoint_chat(self) -> str:
        """Returns the endpoint path for chat/completion requests (e.g. "/chat/completions")."""
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the backend-specific request body for an embedding request.

        Args:
            texts (list[str]): The texts to embed.

        Returns:
            dict: JSON-serialisable request body (e.g. {"model": "...", "input": [...]}).
        """
        pass

    @abstractmethod
    def get_chat_payload(self, messages: list[dict], model: str, options: dict | None = None) -> dict:
        """Build the backend-specific request body for a chat/completion request.

        Args:
            messages (list[dict]): OpenAI-format messages
                (e.g. [{"role": "user", "content": "..."}]).
            model (str): The model to ask.
            options (dict | None): Extra request fields (e.g. {"max_tokens": 200}).

        Returns:
            dict: JSON-serialisable request body.
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Extract embedding vectors from a raw embedding API response.

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the input texts.
        """
        pass

    @abstractmethod
    def extract_chat_response(self, response_data: dict) -> str:
        """Extract the assistant reply text from a raw chat API response.

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            str: The assistant reply text.
        """
        pass

    @abstractmethod
    def is_rate_limited(self, response: httpx.Response, response_data: dict) -> bool:
        """Tell whether a failed chat response means the model is rate-limited.

        Args:
            response (httpx.Response): The raw response.
            response_data (dict): The parsed JSON body ({} if it was not JSON).
        """
        pass

    @abstractmethod
    def describe_chat_error(self, response: httpx.Response, response_data: dict) -> str:
        """Build the error message for a failed chat response."""
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_embed(self, texts: list[str] | str) -> list[list[float]]:
        """Send an embedding request and return the extracted vectors.

        Args:
            texts (list[str] | str): One or more texts to embed.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the inputs.

        Raises:
            Exception: If the backend answers with a non-200 status.
        """
        texts = [texts] if isinstance(texts, str) else texts
        self.logging.debug("Generating embeddings for %d texts...", len(texts))
        body = self.get_embed_payload(texts)
        response = await self.do_request(method="POST", endpoint=self.get_endpoint_embedding(), json=body)
        if response.status_code != 200:
            self.logging.error(
                "Embedding request failed: status %d, body: %s",
                response.status_code,
                response.text[:200],
            )
            raise Exception("Embedding request failed with status %d." % response.status_code)
        return self.extract_embeddings_from_response(response.json())

    async def do_chat(self, messages: list[dict], options: dict | None = None) -> str:
        """Send a chat/completion request and return the assistant reply text.

        The chat model is tried first. While a model is rate-limited the next
        fallback model is tried; any other failure, or a rate limit on the last
        model, raises.

        Args:
            messages (list[dict]): OpenAI-format messages
                (e.g. [{"role": "user", "content": "..."}]).
            options (dict | None): Extra request fields merged into the payload.

        Returns:
            str: The assistant reply text.

        Raises:
            Exception: If every model failed or a non-rate-limit error occurred.
            ValueError: If the response does not contain a valid reply.
        """
        models = self.get_chat_models()
        for i, model in enumerate(models):
            is_fallback = i > 0
            self.logging.info("Sending chat request (model: %s)%s...", model, " [fallback]" if is_fallback else "")
            try:
                response = await self.do_request(
                    method="POST",
                    endpoint=self._get_endpoint_chat(),
                    json=self.get_chat_payload(messages, model=model, options=options),
                )
            except httpx.HTTPError as e:
                raise Exception(f"{self._get_engine_name()} request failed: {e}") from e

            try:
                data = response.json()
            except ValueError:
                data = {}
            if not isinstance(data, dict):
                data = {}

            # some providers report errors with a 200 status
            if response.is_success and not data.get("error"):
                return self.extract_chat_response(data)

            if self.is_rate_limited(response, data) and i < len(models) - 1:
                self.logging.warning("Model %s is rate-limited, trying next fallback...", model)
                continue

            self.logging.error("Chat request failed (model: %s): %s", model, response.text[:500])
            raise Exception(self.describe_chat_error(response, data))

        raise Exception(f"All {self._get_engine_name()} models failed or are rate-limited")

    async def do_complete(self, prompt: str, system_prompt: str | None = None, options: dict | None = None) -> str:
        """Single-prompt completion with an optional system prompt."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return await self.do_chat(messages, options=options)
