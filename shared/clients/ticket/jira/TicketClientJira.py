import httpx

from shared.clients.ticket.TicketClientInterface import TicketClientInterface
from shared.clients.ticket.models.Issue import Issue, IssuesSearchResponse
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class TicketClientJira(TicketClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._email = self.get_config_val("EMAIL", default=None, val_type="string")
        self._api_token = self.get_config_val("API_TOKEN", default=None, val_type="string")
        self._project_key = self.get_config_val("PROJECT_KEY", default="", val_type="string")
        self._max_results = int(self.get_config_val("MAX_RESULTS", default=10, val_type="number"))
        fields = self.get_config_val("FETCH_FIELDS", default="key,summary,description,issuetype,priority,status", val_type="string")
        self._fetch_fields = [f.strip() for f in fields.split(",") if f.strip()]

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Jira"

    def get_project_key(self) -> str:
        return self._project_key

    def get_issue_url(self, issue_key: str) -> str:
        return f"{self._base_url.rstrip('/')}/browse/{issue_key}"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="EMAIL", val_type="string", default=None),
            EnvConfig(env_key="API_TOKEN", val_type="string", default=None),
            EnvConfig(env_key="PROJECT_KEY", val_type="string", default=""),
            EnvConfig(env_key="MAX_RESULTS", val_type="number", default=10),
            EnvConfig(env_key="FETCH_FIELDS", val_type="string", default="key,summary,description,issuetype,priority,status"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return self._build_basic_auth_header(self._email, self._api_token)

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/rest/api/3/myself"

    def _get_endpoint_issue(self, issue_id: str) -> str:
        return f"/rest/api/3/issue/{issue_id}"

    def _get_endpoint_search(self) -> str:
        return "/rest/api/3/search/jql"

    ################ PAYLOAD BUILDER ##################
    def get_issue_params(self) -> dict:
        return {"fields": ",".join(self._fetch_fields)}

    def get_search_payload(self, query: str) -> dict:
        return {
            "jql": query,
            "maxResults": self._max_results,
            "fields": self._fetch_fields,
        }

    def get_project_query(self, project_key: str) -> str:
        return f"project = {project_key} ORDER BY created DESC"

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def _parse_endpoint_issue(self, response: dict) -> Issue:
        return Issue.model_validate(response)

    def _parse_endpoint_search(self, response: dict) -> IssuesSearchResponse:
        issues = [self._parse_endpoint_issue(item) for item in response.get("issues", [])]
        return IssuesSearchResponse(
            engine=self._get_engine_name(),
            issues=issues,
            # the enhanced search endpoint no longer returns a total
            total=response.get("total", len(issues)),
            max_results=response.get("maxResults", self._max_results),
        )

    def _describe_error(self, response: httpx.Response, issue_id: str | None = None) -> str:
        try:
            data = response.json()
        except ValueError:
            data = {}
        messages = data.get("errorMessages") if isinstance(data, dict) else None
        detail = ", ".join(messages) if messages else f"Request failed with status code {response.status_code}"

        if issue_id is None:
            return f"JIRA search failed: {detail}"
        if response.status_code == 404:
            return f"JIRA issue not found: {issue_id}"
        if response.status_code == 401:
            return "JIRA authentication failed. Check email and API token."
        if response.status_code == 403:
            return "Access denied. Check JIRA permissions."
        return f"JIRA API error: {detail}"
