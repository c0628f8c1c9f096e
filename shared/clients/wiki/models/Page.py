"""Generic wiki page model, independent of the wiki backend."""

from pydantic import BaseModel, ConfigDict, Field


class PageContent(BaseModel):
    """
    One representation of a page body (e.g. "storage" XHTML or rendered "view" HTML).
    """
    representation: str | None = None
    value: str = ""


class PageBody(BaseModel):
    """
    The body of a page. Either representation may be missing depending on the
    expand parameters of the request that produced the page.
    """
    storage: PageContent | None = None
    view: PageContent | None = None


class PageSpace(BaseModel):
    key: str
    name: str | None = None
    type: str | None = None


class PageLinks(BaseModel):
    webui: str | None = None
    self_link: str | None = Field(default=None, alias="self")

    model_config = ConfigDict(populate_by_name=True)


class Page(BaseModel):
    """
    A single wiki page as returned by a wiki client.

    Pages from the phase-1 listing usually carry no body; pages from the
    phase-2 full fetch carry body.view and body.storage.
    """
    id: str
    title: str = ""
    type: str | None = None
    status: str | None = None
    space: PageSpace | None = None
    body: PageBody | None = None
    links: PageLinks | None = Field(default=None, alias="_links")

    model_config = ConfigDict(populate_by_name=True)

    def get_storage_value(self) -> str:
        """Returns body.storage.value or an empty string."""
        if self.body and self.body.storage:
            return self.body.storage.value or ""
        return ""

    def get_view_value(self) -> str:
        """Returns body.view.value or an empty string."""
        if self.body and self.body.view:
            return self.body.view.value or ""
        return ""


class PagesListResponse(BaseModel):
    """
    One page of a content listing.

    size is the number of results in this batch; a batch with size == limit
    signals that more results may follow.
    """
    engine: str
    pages: list[Page] = []
    start: int = 0
    limit: int = 0
    size: int = 0
