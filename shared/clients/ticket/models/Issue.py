"""Generic ticket issue model, independent of the ticket backend."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.clients.ticket.models.Adf import AdfDocument, parse_adf_document


class IssueLabel(BaseModel):
    """
    A named label on an issue (issue type, priority).
    """
    id: str | None = None
    name: str = ""


class IssueStatusCategory(BaseModel):
    key: str | None = None
    name: str = ""


class IssueStatus(IssueLabel):
    status_category: IssueStatusCategory | None = Field(default=None, alias="statusCategory")

    model_config = ConfigDict(populate_by_name=True)


class IssueFields(BaseModel):
    """
    The fields of an issue. The description is plain text on older servers and
    an ADF document on Jira Cloud.
    """
    summary: str = ""
    description: str | AdfDocument | None = None
    issuetype: IssueLabel | None = None
    priority: IssueLabel | None = None
    status: IssueStatus | None = None

    @field_validator("description", mode="before")
    @classmethod
    def _parse_description(cls, value):
        if isinstance(value, dict):
            return parse_adf_document(value)
        return value


class Issue(BaseModel):
    """
    A single issue as returned by a ticket client.
    """
    id: str | None = None
    key: str
    fields: IssueFields = IssueFields()

    def get_type_name(self) -> str:
        return self.fields.issuetype.name if self.fields.issuetype else ""

    def get_priority_name(self) -> str:
        return self.fields.priority.name if self.fields.priority else ""

    def get_status_name(self) -> str:
        return self.fields.status.name if self.fields.status else ""

    def get_status_category_name(self) -> str:
        if self.fields.status and self.fields.status.status_category:
            return self.fields.status.status_category.name
        return ""


class IssuesSearchResponse(BaseModel):
    """
    The result of an issue search.
    """
    engine: str
    issues: list[Issue] = []
    total: int = 0
    max_results: int | None = None
