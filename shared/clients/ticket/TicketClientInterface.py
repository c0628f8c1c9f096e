from abc import abstractmethod

import httpx

from shared.helper.HelperConfig import HelperConfig
from shared.clients.ClientInterface import ClientInterface
from shared.clients.ticket.models.Issue import Issue, IssuesSearchResponse


class TicketClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "ticket"
        """
        return "ticket"

    @abstractmethod
    def get_project_key(self) -> str:
        """
        Returns the configured project key (e.g. "ABC").
        """
        pass

    @abstractmethod
    def get_issue_url(self, issue_key: str) -> str:
        """
        Returns the browser URL of an issue.

        Args:
            issue_key (str): The issue key (e.g. "ABC-123").
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_issue(self, issue_id: str) -> str:
        """
        Returns the endpoint path for a single issue (e.g. "/rest/api/3/issue/ABC-123").
        """
        pass

    @abstractmethod
    def _get_endpoint_search(self) -> str:
        """
        Returns the endpoint path for issue searches (e.g. "/rest/api/3/search/jql").
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_issue_params(self) -> dict:
        """
        Returns the query parameters for a single-issue request (e.g. the field list).
        """
        pass

    @abstractmethod
    def get_search_payload(self, query: str) -> dict:
        """
        Builds the backend-specific request body for an issue search.

        Args:
            query (str): The search query (e.g. JQL).
        """
        pass

    @abstractmethod
    def get_project_query(self, project_key: str) -> str:
        """
        Builds the search query that lists the issues of a project.
        """
        pass

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def _parse_endpoint_issue(self, response: dict) -> Issue:
        pass

    @abstractmethod
    def _parse_endpoint_search(self, response: dict) -> IssuesSearchResponse:
        pass

    @abstractmethod
    def _describe_error(self, response: httpx.Response, issue_id: str | None = None) -> str:
        """
        Maps an error response to a human-readable message.

        Args:
            response (httpx.Response): The non-2xx response.
            issue_id (str | None): The requested issue. None for searches.

        Returns:
            str: The error message.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_fetch_issue(self, issue_id: str) -> Issue:
        """Fetch a single issue with the configured fields.

        Args:
            issue_id (str): The issue key or ID (e.g. "ABC-123").

        Returns:
            Issue: The parsed issue.

        Raises:
            ValueError: If issue_id is empty.
            Exception: With a descriptive message if the backend rejects the request.
        """
        if not issue_id:
            raise ValueError("Issue ID is required")

        self.logging.info("Fetching issue details for: %s", issue_id)
        try:
            resp = await self.do_request(
                method="GET",
                endpoint=self._get_endpoint_issue(issue_id),
                params=self.get_issue_params(),
            )
        except httpx.HTTPError as e:
            raise Exception(f"Failed to fetch issue details: {e}") from e

        if not resp.is_success:
            raise Exception(self._describe_error(resp, issue_id=issue_id))

        self.logging.info("Fetched issue details for: %s", issue_id)
        return self._parse_endpoint_issue(resp.json())

    async def do_search_issues(self, query: str) -> IssuesSearchResponse:
        """Search issues.

        Args:
            query (str): The search query (e.g. JQL).

        Returns:
            IssuesSearchResponse: The matching issues.

        Raises:
            ValueError: If query is empty.
            Exception: With a descriptive message if the backend rejects the search.
        """
        if not query:
            raise ValueError("Search query is required")

        self.logging.info("Executing issue search: %s", query)
        try:
            resp = await self.do_request(
                method="POST",
                endpoint=self._get_endpoint_search(),
                json=self.get_search_payload(query),
            )
        except httpx.HTTPError as e:
            raise Exception(f"Failed to search issues: {e}") from e

        if not resp.is_success:
            raise Exception(self._describe_error(resp))

        result = self._parse_endpoint_search(resp.json())
        self.logging.info("Found %d issues", result.total)
        return result

    async def do_fetch_project_issues(self, project_key: str | None = None) -> IssuesSearchResponse:
        """Fetch the newest issues of a project.

        Args:
            project_key (str | None): Project key; defaults to the configured project.

        Returns:
            IssuesSearchResponse: The project's issues.
        """
        return await self.do_search_issues(self.get_project_query(project_key or self.get_project_key()))
