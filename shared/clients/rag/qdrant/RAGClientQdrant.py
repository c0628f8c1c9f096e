from shared.helper.HelperConfig import HelperConfig
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.VectorPoint import CollectionInfo, SearchHit, VectorPoint
from shared.models.config import EnvConfig


class RAGClientQdrant(RAGClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="http://127.0.0.1:6333", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._collection_name = self.get_config_val("COLLECTION", default="documentation", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Qdrant"

    def get_collection_name(self) -> str:
        return self._collection_name

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="http://127.0.0.1:6333"),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="COLLECTION", val_type="string", default="documentation"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"api-key": f"{self._api_key}"}
        else:
            return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/healthz"

    def _get_endpoint_collections(self) -> str:
        return "/collections"

    def _get_endpoint_collection(self) -> str:
        return f"/collections/{self._collection_name}"

    def _get_endpoint_points(self) -> str:
        return f"/collections/{self._collection_name}/points"

    def _get_endpoint_search(self) -> str:
        return f"/collections/{self._collection_name}/points/search"

    def _get_endpoint_delete_points(self) -> str:
        return f"/collections/{self._collection_name}/points/delete"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_create_collection_payload(self, vector_size: int, distance: str) -> dict:
        return {
            "vectors": {"size": vector_size, "distance": distance},
            "optimizers_config": {"default_segment_number": 2},
            "replication_factor": 1,
        }

    def get_upsert_payload(self, points: list[VectorPoint]) -> dict:
        return {"points": [point.model_dump() for point in points]}

    def get_upsert_params(self) -> dict:
        return {"wait": "true"}

    def get_filter(self, conditions: dict | None) -> dict:
        if not conditions:
            return {}
        return {"must": [{"key": key, "match": {"value": value}} for key, value in conditions.items()]}

    def get_search_payload(self, vector: list[float], limit: int, filter: dict | None = None) -> dict:
        payload = {
            "vector": vector,
            "limit": limit,
            "with_payload": True,
            "with_vector": False,
        }
        if filter:
            payload["filter"] = filter
        return payload

    def get_delete_payload(self, filter: dict) -> dict:
        return {"filter": filter}

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_collection_names(self, raw_response: dict) -> list[str]:
        collections = raw_response.get("result", {}).get("collections", [])
        return [c.get("name") for c in collections]

    def extract_search_hits(self, raw_response: dict) -> list[SearchHit]:
        return [
            SearchHit(id=hit["id"], score=hit.get("score", 0.0), payload=hit.get("payload") or {})
            for hit in raw_response.get("result", [])
        ]

    def extract_collection_info(self, raw_response: dict) -> CollectionInfo:
        result = raw_response.get("result", {})
        vectors = result.get("config", {}).get("params", {}).get("vectors", {})
        return CollectionInfo(
            name=self._collection_name,
            status=result.get("status"),
            points_count=result.get("points_count"),
            indexed_vectors_count=result.get("indexed_vectors_count"),
            segments_count=result.get("segments_count"),
            vector_size=vectors.get("size") if isinstance(vectors, dict) else None,
            distance=vectors.get("distance") if isinstance(vectors, dict) else None,
        )
