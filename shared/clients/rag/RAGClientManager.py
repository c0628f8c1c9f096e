from shared.helper.HelperConfig import HelperConfig
from shared.clients.rag.RAGClientInterface import RAGClientInterface

class RAGClientManager:
    """
    Manager class to instantiate the configured RAG client.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Reads the RAG engine from ENV configuration (RAG_ENGINE, default "qdrant").

        Returns:
            str: Capitalised engine name (e.g. "Qdrant").
        """
        engine = self.helper_config.get_string_val("RAG_ENGINE", default="qdrant")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> RAGClientInterface:
        """
        Instantiates the RAG client for the configured engine.

        Returns:
            RAGClientInterface: The RAG client instance.

        Raises:
            ValueError: If the engine is not supported.
        """
        engine = self._get_engine_from_env()
        className = f"RAGClient{engine}"
        try:
            module = __import__(
                f"shared.clients.rag.{engine.lower()}.{className}",
                fromlist=[className],
            )
            client_class = getattr(module, className)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported RAG engine specified: '{engine}'. Error: {e}")
        client = client_class(helper_config=self.helper_config)
        self.logging.debug(f"Instantiated RAG client for engine: {engine}")
        return client

    def get_client(self) -> RAGClientInterface:
        """
        Returns the instantiated RAG client.
        """
        return self.client
