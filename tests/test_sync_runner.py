import logging
import os
from unittest.mock import AsyncMock, MagicMock

import pytest

from shared.clients.ticket.models.Issue import Issue
from shared.logging.logging_setup import ColorLogger
from sync import sync_runner
from sync.sync_runner import Runner, build_parser


def test_parser_reads_search_options():
    args = build_parser().parse_args(["search", "login flow", "--limit", "3", "--source", "jira"])
    assert (args.command, args.query, args.limit, args.source) == ("search", "login flow", 3, "jira")


def test_parser_run_defaults():
    args = build_parser().parse_args(["run"])
    assert args.ticket_id is None
    assert not args.store


def test_parser_rejects_unknown_sources():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["search", "x", "--source", "slack"])


@pytest.fixture
def quiet_main(env, monkeypatch):
    monkeypatch.setattr(sync_runner, "load_dotenv", lambda: None)
    monkeypatch.setattr(sync_runner, "setup_logging", lambda **kwargs: ColorLogger(logging.getLogger("ticket_wiki_ai_bridge.tests")))
    return monkeypatch


@pytest.mark.asyncio
async def test_main_returns_zero_on_success(quiet_main):
    stats = AsyncMock()
    quiet_main.setattr(Runner, "stats", stats)

    assert await sync_runner.main(["stats"]) == 0
    stats.assert_awaited_once()


@pytest.mark.asyncio
async def test_main_returns_one_on_failure(quiet_main):
    quiet_main.setattr(Runner, "issues", AsyncMock(side_effect=Exception("JIRA authentication failed")))

    assert await sync_runner.main(["issues", "ABC-1"]) == 1


@pytest.mark.asyncio
async def test_run_survives_a_failing_wiki_fetch(helper_config, env, tmp_path):
    env.setenv("TICKET_ID", "ABC-5")
    ticket_client = MagicMock()
    ticket_client.do_fetch_issue = AsyncMock(return_value=Issue.model_validate({"key": "ABC-5", "fields": {"summary": "Add login"}}))
    wiki_client = MagicMock()
    wiki_client.do_fetch_all_space_pages = AsyncMock(return_value=[])

    runner = Runner(helper_config)
    runner.ticket_client = AsyncMock(return_value=ticket_client)
    runner.wiki_client = AsyncMock(return_value=wiki_client)

    await runner.run(None, store=False)

    ticket_client.do_fetch_issue.assert_awaited_once_with("ABC-5")
    wiki_client.do_fetch_all_space_pages.assert_awaited_once()
    with open(os.path.join(str(tmp_path), "Jira.md"), encoding="utf-8") as f:
        assert f.read().startswith("# JIRA Issue: ABC-5")
