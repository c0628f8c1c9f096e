import httpx

from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

DEFAULT_FALLBACK_MODELS = [
    "meta-llama/llama-3.2-3b-instruct:free",
    "microsoft/phi-3-mini-128k-instruct:free",
    "huggingfaceh4/zephyr-7b-beta:free",
    "openchat/openchat-7b:free",
    "gryphe/mythomist-7b:free",
]


class LLMClientOpenrouter(LLMClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://openrouter.ai/api/v1", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default=None, val_type="string")
        self._fallback_models = self.get_config_val("FALLBACK_MODELS", default=DEFAULT_FALLBACK_MODELS, val_type="list")
        self._referer = self.get_config_val("REFERER", default="https://github.com/ticket-wiki-ai-bridge", val_type="string")
        self._title = self.get_config_val("TITLE", default="Ticket Wiki AI Bridge", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "OpenRouter"

    def get_fallback_models(self) -> list[str]:
        return list(self._fallback_models)

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://openrouter.ai/api/v1"),
            EnvConfig(env_key="API_KEY", val_type="string", default=None),
            EnvConfig(env_key="FALLBACK_MODELS", val_type="list", default=DEFAULT_FALLBACK_MODELS),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "HTTP-Referer": self._referer,
            "X-Title": self._title,
        }

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/models"

    def get_endpoint_embedding(self) -> str:
        return "/embeddings"

    def _get_endpoint_chat(self) -> str:
        return "/chat/completions"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, texts: list[str]) -> dict:
        return {"model": self.embed_model, "input": texts, "encoding_format": "float"}

    def get_chat_payload(self, messages: list[dict], model: str, options: dict | None = None) -> dict:
        """Build the OpenRouter chat request body.

        Args:
            messages (list[dict]): OpenAI-format messages.
            model (str): The model to ask.
            options (dict | None): Extra fields; they override the defaults.

        Returns:
            dict: {"model": "...", "messages": [...], "temperature": 0.7, ...}
        """
        payload = {"model": model, "messages": messages, "temperature": self.temperature}
        if options:
            payload.update(options)
        return payload

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Extract embedding vectors from an OpenAI-compatible /embeddings response.

        Items carry an "index"; they are sorted by it so the vectors line up
        with the input texts.

        Raises:
            ValueError: If the response does not contain embeddings.
        """
        data = response_data.get("data")
        if not data:
            raise ValueError("No embeddings received from OpenRouter")
        items = sorted(data, key=lambda item: item.get("index", 0))
        return [item["embedding"] for item in items]

    def extract_chat_response(self, response_data: dict) -> str:
        choices = response_data.get("choices") or []
        if not choices:
            raise ValueError("No response content received from OpenRouter")
        usage = response_data.get("usage")
        if usage:
            self.logging.info(
                "Chat request succeeded with %s. Tokens used: %s (prompt: %s, completion: %s)",
                response_data.get("model", "?"),
                usage.get("total_tokens"),
                usage.get("prompt_tokens"),
                usage.get("completion_tokens"),
                color="green",
            )
        return choices[0].get("message", {}).get("content") or ""

    def is_rate_limited(self, response: httpx.Response, response_data: dict) -> bool:
        error = response_data.get("error") or {}
        if not isinstance(error, dict):
            error = {}
        message = str(error.get("message") or "")
        return (
            response.status_code == 429
            or str(error.get("code")) == "429"
            or "rate-limited" in message
            or "temporarily" in message
        )

    def describe_chat_error(self, response: httpx.Response, response_data: dict) -> str:
        error = response_data.get("error")
        if isinstance(error, dict):
            return f"OpenRouter API error: {error.get('message') or error.get('type') or 'Provider returned error'}"
        return f"OpenRouter request failed: {response.status_code} {response.reason_phrase}"
