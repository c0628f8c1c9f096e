"""Ticket fetch service.

Fetches issues from the ticket client and writes them as markdown files:
the reference ticket file the keyword extractor reads, one file per issue,
and a summary index of several issues.
"""

import os
from datetime import datetime

import pytz

from shared.clients.ticket.TicketClientInterface import TicketClientInterface
from shared.clients.ticket.models.Issue import Issue
from shared.helper.HelperConfig import HelperConfig
from shared.helper.adf_helper import describe


def format_issue_markdown(issue: Issue) -> str:
    """Render an issue as the reference ticket markdown.

    Sections: "# JIRA Issue: <key>", "## Summary", "## Details" (type,
    priority, status, status category) and "## Description". ADF
    descriptions are rendered to markdown.
    """
    return (
        f"# JIRA Issue: {issue.key}\n\n"
        f"## Summary\n{issue.fields.summary}\n\n"
        f"## Details\n"
        f"- **Issue Type**: {issue.get_type_name()}\n"
        f"- **Priority**: {issue.get_priority_name()}\n"
        f"- **Status**: {issue.get_status_name()}\n"
        f"- **Status Category**: {issue.get_status_category_name()}\n\n"
        f"## Description\n{describe(issue.fields.description)}\n\n"
    )


def _write_file(path: str, content: str) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)


class TicketFetchService:
    """Fetches issues and saves them as markdown."""

    def __init__(self, helper_config: HelperConfig, ticket_client: TicketClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._ticket_client = ticket_client
        self.output_dir = os.path.abspath(helper_config.get_string_val("OUTPUT_DIR", default="./tmp"))
        self.ticket_path = helper_config.get_output_path("TICKET_MARKDOWN_FILENAME", "Jira.md")

    ##########################################
    ############# SINGLE ISSUE ###############
    ##########################################

    async def fetch_and_save_issue(self, issue_id: str, output_path: str | None = None) -> tuple[Issue, str]:
        """Fetch an issue and write its markdown.

        Args:
            issue_id (str): The issue key (e.g. "ABC-123").
            output_path (str | None): Target file; defaults to the reference ticket file.

        Returns:
            tuple[Issue, str]: The issue and the path written.

        Raises:
            ValueError: If issue_id is empty.
            Exception: If the issue cannot be fetched.
        """
        if not issue_id:
            raise ValueError("Ticket ID is required.")
        issue = await self._ticket_client.do_fetch_issue(issue_id)
        path = output_path or self.ticket_path
        _write_file(path, format_issue_markdown(issue))
        self.logging.info("Ticket details saved to: %s", path, color="green")
        self.logging.info("Issue: %s - %s", issue.key, issue.fields.summary)
        return issue, path

    ##########################################
    ############# MULTIPLE ISSUES ############
    ##########################################

    async def fetch_multiple_issues(self, issue_ids: list[str], output_dir: str | None = None) -> list[str]:
        """Write one <KEY>.md file per issue. Failed issues are logged and skipped.

        Returns:
            list[str]: The paths written.
        """
        base_dir = output_dir or self.output_dir
        created = []
        for issue_id in issue_ids:
            path = os.path.join(base_dir, f"{issue_id.replace('/', '-')}.md")
            try:
                _, written = await self.fetch_and_save_issue(issue_id, path)
            except Exception as e:
                self.logging.error("Failed to fetch ticket %s: %s", issue_id, e)
                continue
            created.append(written)
        return created

    async def create_issue_summary(self, issue_ids: list[str], output_path: str | None = None) -> str:
        """Write a summary index (JiraSummary.md) linking every fetched issue.

        Issues that cannot be fetched are logged and left out.

        Returns:
            str: The path written.
        """
        self.logging.info("Fetching %d issues for summary...", len(issue_ids))
        issues: list[Issue] = []
        for issue_id in issue_ids:
            try:
                issues.append(await self._ticket_client.do_fetch_issue(issue_id))
            except Exception as e:
                self.logging.error("Failed to fetch %s: %s", issue_id, e)

        lines = [
            "# JIRA Issues Summary\n\n",
            f"**Total Issues**: {len(issues)}\n",
            f"**Generated on**: {datetime.now(pytz.utc).isoformat()}\n",
            f"**Project**: {self._ticket_client.get_project_key()}\n\n",
            "---\n\n",
        ]
        for index, issue in enumerate(issues, start=1):
            lines.append(
                f"## {index}. {issue.key}: {issue.fields.summary}\n\n"
                f"- **Type**: {issue.get_type_name()}\n"
                f"- **Priority**: {issue.get_priority_name()}\n"
                f"- **Status**: {issue.get_status_name()}\n"
                f"- **Link**: [{issue.key}]({self._ticket_client.get_issue_url(issue.key)})\n\n"
            )
        lines.append("---\n*Summary generated with the ticket helper*")

        path = output_path or os.path.join(self.output_dir, "JiraSummary.md")
        _write_file(path, "".join(lines))
        self.logging.info("Ticket summary saved to: %s (%d issues)", path, len(issues), color="green")
        return path
