from shared.helper.HelperConfig import HelperConfig
from shared.clients.wiki.WikiClientInterface import WikiClientInterface


class WikiClientManager:
    """
    Manager class to instantiate the configured wiki client.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Reads the wiki engine from ENV configuration (WIKI_ENGINE, default "confluence").

        Returns:
            str: Capitalised engine name (e.g. "Confluence").
        """
        engine = self.helper_config.get_string_val("WIKI_ENGINE", default="confluence")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> WikiClientInterface:
        """
        Instantiates the wiki client for the configured engine.

        Returns:
            WikiClientInterface: The wiki client instance.

        Raises:
            ValueError: If the engine is not supported.
        """
        engine = self._get_engine_from_env()
        className = f"WikiClient{engine}"
        try:
            module = __import__(
                f"shared.clients.wiki.{engine.lower()}.{className}",
                fromlist=[className],
            )
            client_class = getattr(module, className)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported wiki engine specified: '{engine}'. Error: {e}")
        client = client_class(helper_config=self.helper_config)
        self.logging.debug(f"Instantiated wiki client for engine: {engine}")
        return client

    def get_client(self) -> WikiClientInterface:
        """
        Returns the instantiated wiki client.
        """
        return self.client
