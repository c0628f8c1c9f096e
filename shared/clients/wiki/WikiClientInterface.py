from abc import abstractmethod
import asyncio

from shared.helper.HelperConfig import HelperConfig
from shared.helper.content_helper import chunk_list
from shared.clients.ClientInterface import ClientInterface
from shared.clients.wiki.models.Page import Page, PagesListResponse

FULL_CONTENT_EXPAND = ["body.view", "body.storage"]


class WikiClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # listing / fetch config
        self.page_limit = int(helper_config.get_number_val(f"{self.get_client_type().upper()}_PAGE_LIMIT", default=100))
        self.fetch_concurrency = int(helper_config.get_number_val(f"{self.get_client_type().upper()}_FETCH_CONCURRENCY", default=10))

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "wiki"
        """
        return "wiki"

    @abstractmethod
    def get_space_key(self) -> str:
        """
        Returns the key of the configured space.
        """
        pass

    @abstractmethod
    def get_page_url(self, page_id: str) -> str:
        """
        Returns the browser URL of a page.

        Args:
            page_id (str): The page identifier.

        Returns:
            str: Absolute URL of the page in the wiki UI.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_content(self) -> str:
        """
        Returns the endpoint path for content listing requests (e.g. "/wiki/rest/api/content").
        """
        pass

    @abstractmethod
    def _get_endpoint_content_by_id(self, page_id: str) -> str:
        """
        Returns the endpoint path for a single content item.

        Args:
            page_id (str): The page identifier.
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_list_params(self, space_key: str, start: int, limit: int, expand: list[str] | None = None) -> dict:
        """
        Builds the query parameters for a content listing request.

        Args:
            space_key (str): The space to list.
            start (int): Offset of the first result.
            limit (int): Maximum number of results.
            expand (list[str] | None): Fields to expand. Empty means minimal data.

        Returns:
            dict: The query parameters.
        """
        pass

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def _parse_endpoint_content(self, response: dict, requested_limit: int) -> PagesListResponse:
        """
        Parses a raw content listing response.

        Args:
            response (dict): The raw JSON response.
            requested_limit (int): The limit sent with the request.

        Returns:
            PagesListResponse: The parsed listing.
        """
        pass

    @abstractmethod
    def _parse_endpoint_page(self, response: dict) -> Page:
        """
        Parses a raw single content response.

        Args:
            response (dict): The raw JSON response.

        Returns:
            Page: The parsed page.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_list_content(self, start: int = 0, limit: int | None = None, expand: list[str] | None = None) -> PagesListResponse:
        """Fetch a single page of the space's content listing.

        Args:
            start (int): Offset of the first result.
            limit (int | None): Batch size; defaults to the configured page limit.
            expand (list[str] | None): Fields to expand.

        Returns:
            PagesListResponse: The listed pages.

        Raises:
            Exception: If the backend returns a non-2xx status.
        """
        limit = limit or self.page_limit
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_content(),
            params=self.get_list_params(self.get_space_key(), start, limit, expand),
            raise_on_error=True,
        )
        return self._parse_endpoint_content(resp.json(), requested_limit=limit)

    async def do_fetch_page(self, page_id: str, expand: list[str] | None = None) -> Page:
        """Fetch a single page by its ID.

        Args:
            page_id (str): The page identifier.
            expand (list[str] | None): Fields to expand; defaults to the full body.

        Returns:
            Page: The fetched page.

        Raises:
            Exception: If the backend returns a non-2xx status.
        """
        expand = FULL_CONTENT_EXPAND if expand is None else expand
        params = {"expand": ",".join(expand)} if expand else None
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_content_by_id(page_id),
            params=params,
            raise_on_error=True,
        )
        return self._parse_endpoint_page(resp.json())

    async def do_fetch_all_space_pages(self, expand: list[str] | None = None) -> list[Page]:
        """Fetch every page of the configured space (phase-1 listing).

        Paginates with a fixed batch size while a batch comes back full. The
        listing API gives no reliable has-next flag, so a full batch is taken as
        "maybe more". Any error stops the pagination early and the pages
        collected so far are returned.

        Args:
            expand (list[str] | None): Fields to expand. Empty means minimal data.

        Returns:
            list[Page]: All pages fetched.
        """
        expand = expand or []
        start = 0
        limit = self.page_limit
        pages: list[Page] = []

        detail = f" with expand: [{', '.join(expand)}]" if expand else " (minimal data for filtering)"
        self.logging.info("Fetching all pages from space '%s'%s", self.get_space_key(), detail)

        while True:
            try:
                listing = await self.do_list_content(start=start, limit=limit, expand=expand)
            except Exception as e:
                self.logging.error(
                    "Listing pages of space '%s' failed at start=%d: %s. Stopping pagination with %d pages.",
                    self.get_space_key(), start, e, len(pages),
                )
                break
            pages.extend(listing.pages)
            self.logging.info("Fetched %d pages, total so far: %d", len(listing.pages), len(pages))
            start += limit
            if listing.size < limit:
                break

        self.logging.info("Fetched %d pages from space '%s'", len(pages), self.get_space_key(), color="green")
        return pages

    async def do_fetch_pages_by_ids(self, page_ids: list[str]) -> list[Page]:
        """Fetch full content for the given page IDs (phase-2 fetch).

        IDs are processed in sequential batches; requests inside a batch run
        concurrently. A failed ID is logged and left out of the result.

        Args:
            page_ids (list[str]): IDs to fetch.

        Returns:
            list[Page]: The successfully fetched pages.
        """
        self.logging.info("Fetching %d pages with full content...", len(page_ids))
        pages: list[Page] = []
        for batch in chunk_list(page_ids, self.fetch_concurrency):
            self.logging.debug("Processing batch of %d pages...", len(batch))
            results = await asyncio.gather(*[self._fetch_page_safe(page_id) for page_id in batch])
            pages.extend(page for page in results if page is not None)

        self.logging.info("Fetched %d of %d pages with full content", len(pages), len(page_ids), color="green")
        return pages

    async def _fetch_page_safe(self, page_id: str) -> Page | None:
        """Fetch one page with full content, returning None on failure."""
        try:
            page = await self.do_fetch_page(page_id, expand=FULL_CONTENT_EXPAND)
            self.logging.debug("Fetched: %s (%s)", page.title, page_id)
            return page
        except Exception as e:
            self.logging.error("Failed to fetch page %s: %s", page_id, e)
            return None
