from abc import abstractmethod
import json

from shared.clients.rag.models.VectorPoint import CollectionInfo, SearchHit, VectorPoint
from shared.clients.ClientInterface import ClientInterface

from shared.helper.HelperConfig import HelperConfig


class RAGClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "rag"
        """
        return "rag"

    @abstractmethod
    def get_collection_name(self) -> str:
        """
        Returns the name of the configured collection.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_collections(self) -> str:
        """
        Returns the endpoint path for listing collections (e.g. "/collections").
        """
        pass

    @abstractmethod
    def _get_endpoint_collection(self) -> str:
        """
        Returns the endpoint path of the configured collection, used for
        creating it and reading its info (e.g. "/collections/documentation").
        """
        pass

    @abstractmethod
    def _get_endpoint_points(self) -> str:
        """
        Returns the endpoint path for points upsert requests.

        Returns:
            str: The endpoint path for points requests (e.g. "/collections/my_col/points")
        """
        pass

    @abstractmethod
    def _get_endpoint_search(self) -> str:
        """
        Returns the endpoint path for similarity search requests.

        Returns:
            str: The endpoint path (e.g. "/collections/my_col/points/search")
        """
        pass

    @abstractmethod
    def _get_endpoint_delete_points(self) -> str:
        """
        Returns the endpoint path for deleting points by filter.

        Returns:
            str: The endpoint path (e.g. "/collections/my_col/points/delete")
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_create_collection_payload(self, vector_size: int, distance: str) -> dict:
        """
        Builds the request payload for creating the collection.

        Args:
            vector_size (int): The size of the vectors in the collection.
            distance (str): The distance metric for the vectors (e.g. "Cosine").
        """
        pass

    @abstractmethod
    def get_upsert_payload(self, points: list[VectorPoint]) -> dict:
        """
        Builds the request payload for a points upsert.
        """
        pass

    @abstractmethod
    def get_upsert_params(self) -> dict:
        """
        Returns the query parameters for a points upsert (e.g. {"wait": "true"}).
        """
        pass

    @abstractmethod
    def get_filter(self, conditions: dict | None) -> dict:
        """
        Turns exact-match payload conditions into a backend filter.

        Args:
            conditions (dict | None): Payload key/value pairs that must all match,
                e.g. {"source": "confluence"}. None or {} matches every point.

        Returns:
            dict: The backend-specific filter.
        """
        pass

    @abstractmethod
    def get_search_payload(self, vector: list[float], limit: int, filter: dict | None = None) -> dict:
        """
        Builds the request payload for a similarity search.

        Args:
            vector (list[float]): The query vector.
            limit (int): The maximum number of results to return.
            filter (dict | None): Backend filter from get_filter().
        """
        pass

    @abstractmethod
    def get_delete_payload(self, filter: dict) -> dict:
        """
        Builds the backend-specific request payload for a filter-based delete.

        Args:
            filter (dict): The filter that identifies which points to delete.

        Returns:
            dict: The payload for the delete request.
        """
        pass

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def extract_collection_names(self, raw_response: dict) -> list[str]:
        """
        Extracts the collection names from a raw collection listing response.
        """
        pass

    @abstractmethod
    def extract_search_hits(self, raw_response: dict) -> list[SearchHit]:
        """
        Extracts the scored points from a raw search response.
        """
        pass

    @abstractmethod
    def extract_collection_info(self, raw_response: dict) -> CollectionInfo:
        """
        Extracts status and counts from a raw collection info response.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_list_collections(self) -> list[str]:
        """List the names of all collections. Doubles as the reachability check.

        Raises:
            Exception: If the backend answers with a non-2xx status.
            httpx.HTTPError: If the backend is unreachable.
        """
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_collections(), raise_on_error=True)
        return self.extract_collection_names(resp.json())

    async def do_create_collection(self, vector_size: int = 1536, distance: str = "Cosine") -> None:
        """Create the configured collection in the rag backend.

        Args:
            vector_size (int): The size of the vectors in the collection.
            distance (str): The distance metric for the vectors.
        """
        await self.do_request(
            method="PUT",
            json=self.get_create_collection_payload(vector_size, distance),
            endpoint=self._get_endpoint_collection(),
            raise_on_error=True,
        )

    async def do_get_collection_info(self) -> CollectionInfo:
        """Read status and point counts of the configured collection."""
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_collection(), raise_on_error=True)
        return self.extract_collection_info(resp.json())

    async def do_upsert_points(self, points: list[VectorPoint]) -> None:
        """Upsert points into the rag backend collection.
        Inserts new points or replaces existing ones if a point with the same ID already exists.
        Returns once the backend has applied the write.

        Args:
            points (list[VectorPoint]): The points to upsert.
        """
        await self.do_request(
            method="PUT",
            content=json.dumps(self.get_upsert_payload(points)),
            params=self.get_upsert_params(),
            endpoint=self._get_endpoint_points(),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )

    async def do_search(self, vector: list[float], limit: int = 10, conditions: dict | None = None) -> list[SearchHit]:
        """Find the points most similar to a vector.

        Args:
            vector (list[float]): The query vector.
            limit (int): The maximum number of results to return.
            conditions (dict | None): Exact-match payload conditions, e.g. {"source": "jira"}.

        Returns:
            list[SearchHit]: Hits ordered by descending score.
        """
        filter = self.get_filter(conditions) if conditions else None
        resp = await self.do_request(
            method="POST",
            content=json.dumps(self.get_search_payload(vector, limit, filter)),
            endpoint=self._get_endpoint_search(),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )
        return self.extract_search_hits(resp.json())

    async def do_delete_points_by_filter(self, filter: dict) -> None:
        """Deletes all points matching the given filter from the RAG backend.

        Args:
            filter (dict): The filter that identifies which points to delete.
        """
        await self.do_request(
            method="POST",
            content=json.dumps(self.get_delete_payload(filter)),
            endpoint=self._get_endpoint_delete_points(),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )

    async def do_clear_collection(self) -> None:
        """Delete every point of the configured collection. The collection itself stays."""
        await self.do_delete_points_by_filter(self.get_filter(None))
