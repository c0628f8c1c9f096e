from typing import Literal

from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    query: str
    limit: int = Field(default=10, ge=1, le=100)
    source: Literal["jira", "confluence"] | None = None


class RelatedPagesRequest(BaseModel):
    # markdown of a ticket; the saved ticket file is used when omitted
    ticket_markdown: str | None = None
    limit: int = Field(default=10, ge=1, le=100)
