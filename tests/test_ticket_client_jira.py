import base64
import json

import httpx
import pytest

from shared.clients.ticket.TicketClientManager import TicketClientManager
from shared.clients.ticket.jira.TicketClientJira import TicketClientJira

ISSUE = {
    "id": "10001",
    "key": "ABC-123",
    "fields": {
        "summary": "Add login API",
        "description": "Implement OAuth",
        "issuetype": {"id": "1", "name": "Story"},
        "priority": {"id": "3", "name": "Medium"},
        "status": {"id": "2", "name": "In Progress", "statusCategory": {"key": "indeterminate", "name": "In Progress"}},
    },
}


async def booted_client(helper_config, handler) -> TicketClientJira:
    client = TicketClientManager(helper_config).get_client()
    await client.boot(transport=httpx.MockTransport(handler))
    return client


def test_manager_resolves_jira_engine(helper_config):
    assert isinstance(TicketClientManager(helper_config).get_client(), TicketClientJira)


def test_missing_credentials_fail_at_construction(helper_config, env):
    env.delenv("TICKET_JIRA_API_TOKEN")
    with pytest.raises(ValueError, match="TICKET_JIRA_API_TOKEN"):
        TicketClientJira(helper_config)


@pytest.mark.asyncio
async def test_fetch_issue_sends_fields_and_basic_auth(helper_config):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=ISSUE)

    client = await booted_client(helper_config, handler)
    issue = await client.do_fetch_issue("ABC-123")
    await client.close()

    assert issue.key == "ABC-123"
    assert issue.get_status_category_name() == "In Progress"
    request = seen[0]
    assert request.url.path == "/rest/api/3/issue/ABC-123"
    assert request.url.params["fields"] == "key,summary,description,issuetype,priority,status"
    expected = base64.b64encode(b"dev@example.com:jira-token").decode("ascii")
    assert request.headers["Authorization"] == f"Basic {expected}"


@pytest.mark.asyncio
@pytest.mark.parametrize("status, body, message", [
    (404, {}, "JIRA issue not found: ABC-9"),
    (401, {}, "JIRA authentication failed. Check email and API token."),
    (403, {}, "Access denied. Check JIRA permissions."),
    (400, {"errorMessages": ["Field x is invalid", "Field y is invalid"]}, "JIRA API error: Field x is invalid, Field y is invalid"),
    (500, {}, "JIRA API error: Request failed with status code 500"),
])
async def test_fetch_issue_maps_errors(helper_config, status, body, message):
    client = await booted_client(helper_config, lambda request: httpx.Response(status, json=body))

    with pytest.raises(Exception) as exc_info:
        await client.do_fetch_issue("ABC-9")
    await client.close()

    assert str(exc_info.value) == message


@pytest.mark.asyncio
async def test_fetch_issue_requires_an_id(helper_config):
    client = await booted_client(helper_config, lambda request: httpx.Response(200, json=ISSUE))
    with pytest.raises(ValueError):
        await client.do_fetch_issue("")
    await client.close()


@pytest.mark.asyncio
async def test_project_issues_search(helper_config):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"issues": [ISSUE, {**ISSUE, "key": "ABC-124"}]})

    client = await booted_client(helper_config, handler)
    result = await client.do_fetch_project_issues()
    await client.close()

    assert [issue.key for issue in result.issues] == ["ABC-123", "ABC-124"]
    assert result.total == 2
    assert seen[0]["jql"] == "project = ABC ORDER BY created DESC"
    assert seen[0]["maxResults"] == 10


@pytest.mark.asyncio
async def test_search_errors_are_described(helper_config):
    client = await booted_client(helper_config, lambda request: httpx.Response(400, json={"errorMessages": ["bad jql"]}))
    with pytest.raises(Exception, match="JIRA search failed: bad jql"):
        await client.do_search_issues("project = ")
    await client.close()
