from shared.clients.wiki.WikiClientInterface import WikiClientInterface
from shared.clients.wiki.models.Page import Page, PagesListResponse
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class WikiClientConfluence(WikiClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_path = self.get_config_val("API_PATH", default="/wiki/rest/api", val_type="string")
        self._email = self.get_config_val("EMAIL", default=None, val_type="string")
        self._api_token = self.get_config_val("API_TOKEN", default=None, val_type="string")
        self._space_key = self.get_config_val("SPACE_KEY", default=None, val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Confluence"

    def get_space_key(self) -> str:
        return self._space_key

    def get_page_url(self, page_id: str) -> str:
        return f"{self._base_url.rstrip('/')}/pages/viewpage.action?pageId={page_id}"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_PATH", val_type="string", default="/wiki/rest/api"),
            EnvConfig(env_key="EMAIL", val_type="string", default=None),
            EnvConfig(env_key="API_TOKEN", val_type="string", default=None),
            EnvConfig(env_key="SPACE_KEY", val_type="string", default=None),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return self._build_basic_auth_header(self._email, self._api_token)

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return f"{self._api_path.rstrip('/')}/space/{self._space_key}"

    def _get_endpoint_content(self) -> str:
        return f"{self._api_path.rstrip('/')}/content"

    def _get_endpoint_content_by_id(self, page_id: str) -> str:
        return f"{self._api_path.rstrip('/')}/content/{page_id}"

    ################ PAYLOAD BUILDER ##################
    def get_list_params(self, space_key: str, start: int, limit: int, expand: list[str] | None = None) -> dict:
        params = {
            "spaceKey": space_key,
            "type": "page",
            "start": start,
            "limit": limit,
        }
        if expand:
            params["expand"] = ",".join(expand)
        return params

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def _parse_endpoint_content(self, response: dict, requested_limit: int) -> PagesListResponse:
        pages = [self._parse_endpoint_page(item) for item in response.get("results", [])]
        return PagesListResponse(
            engine=self._get_engine_name(),
            pages=pages,
            start=response.get("start", 0),
            limit=response.get("limit", requested_limit),
            # size is missing on some proxies; fall back to the number of results
            size=response.get("size", len(pages)),
        )

    def _parse_endpoint_page(self, response: dict) -> Page:
        return Page.model_validate(response)
