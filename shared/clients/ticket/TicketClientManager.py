from shared.helper.HelperConfig import HelperConfig
from shared.clients.ticket.TicketClientInterface import TicketClientInterface


class TicketClientManager:
    """
    Manager class to instantiate the configured ticket client.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Reads the ticket engine from ENV configuration (TICKET_ENGINE, default "jira").

        Returns:
            str: Capitalised engine name (e.g. "Jira").
        """
        engine = self.helper_config.get_string_val("TICKET_ENGINE", default="jira")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> TicketClientInterface:
        """
        Instantiates the ticket client for the configured engine.

        Returns:
            TicketClientInterface: The ticket client instance.

        Raises:
            ValueError: If the engine is not supported.
        """
        engine = self._get_engine_from_env()
        className = f"TicketClient{engine}"
        try:
            module = __import__(
                f"shared.clients.ticket.{engine.lower()}.{className}",
                fromlist=[className],
            )
            client_class = getattr(module, className)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported ticket engine specified: '{engine}'. Error: {e}")
        client = client_class(helper_config=self.helper_config)
        self.logging.debug(f"Instantiated ticket client for engine: {engine}")
        return client

    def get_client(self) -> TicketClientInterface:
        """
        Returns the instantiated ticket client.
        """
        return self.client
