"""Command-line entry point.

Runs the ticket/wiki pipeline and the vector database utilities.

Usage:
    python -m sync.sync_runner run [TICKET_ID] [--store]
    python -m sync.sync_runner search "<query>" [--limit N] [--source jira|confluence]
    python -m sync.sync_runner related [TICKET_FILE] [--limit N]
    python -m sync.sync_runner stats
    python -m sync.sync_runner clear
    python -m sync.sync_runner keywords [--ai] [--count N]
    python -m sync.sync_runner issues KEY [KEY ...]
    python -m sync.sync_runner issue-summary KEY [KEY ...]
    python -m sync.sync_runner page-summary
"""

import argparse
import asyncio
import sys

from dotenv import load_dotenv

from server.core.QueryService import QueryService
from server.models.requests import SearchRequest
from server.models.responses import SearchResponse
from services.keyword_filter.ContentCache import ContentCache
from services.keyword_filter.KeywordExtractor import KeywordExtractor
from services.keyword_filter.PageFilter import PageFilter
from services.ticket_fetch.TicketFetchService import TicketFetchService
from services.wiki_fetch.WikiFetchService import WikiFetchService
from services.wiki_rag_sync.EmbeddingService import EmbeddingService
from services.wiki_rag_sync.SyncService import SyncService
from shared.clients.ClientInterface import ClientInterface
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.clients.ticket.TicketClientManager import TicketClientManager
from shared.clients.wiki.WikiClientManager import WikiClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging

PREVIEW_LENGTH = 200


class Runner:
    """Builds the clients a command needs and owns their lifecycle."""

    def __init__(self, helper_config: HelperConfig) -> None:
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.content_cache = ContentCache(helper_config)
        self._clients: list[ClientInterface] = []

    async def _boot(self, client: ClientInterface) -> ClientInterface:
        await client.boot()
        self._clients.append(client)
        return client

    async def close(self) -> None:
        for client in self._clients:
            await client.close()
        self._clients = []

    ##########################################
    ############### FACTORIES ################
    ##########################################

    async def ticket_client(self):
        return await self._boot(TicketClientManager(self.helper_config).get_client())

    async def wiki_client(self):
        return await self._boot(WikiClientManager(self.helper_config).get_client())

    async def llm_client(self):
        return await self._boot(LLMClientManager(self.helper_config).get_client())

    async def rag_client(self):
        return await self._boot(RAGClientManager(self.helper_config).get_client())

    async def embedding_service(self) -> EmbeddingService:
        return EmbeddingService(self.helper_config, llm_client=await self.llm_client())

    async def query_service(self) -> QueryService:
        return QueryService(
            self.helper_config,
            rag_client=await self.rag_client(),
            embedding_service=await self.embedding_service(),
            content_cache=self.content_cache,
        )

    def keyword_extractor(self, llm_client=None) -> KeywordExtractor:
        return KeywordExtractor(
            self.helper_config,
            content_cache=self.content_cache,
            page_filter=PageFilter(self.helper_config),
            llm_client=llm_client,
        )

    ##########################################
    ############### COMMANDS #################
    ##########################################

    async def run(self, ticket_id: str | None, store: bool) -> None:
        """Fetch the ticket, then the (optionally keyword-filtered) wiki pages.

        A failing wiki step is logged and the run still succeeds, since the
        ticket markdown has already been written.
        """
        ticket_id = ticket_id or self.helper_config.get_string_val("TICKET_ID")
        ticket_client = await self.ticket_client()
        wiki_client = await self.wiki_client()

        sync_service = None
        if store:
            sync_service = SyncService(
                self.helper_config,
                rag_client=await self.rag_client(),
                embedding_service=await self.embedding_service(),
                wiki_client=wiki_client,
                ticket_client=ticket_client,
            )

        self.logging.info("=== Fetching ticket details ===", color="cyan")
        issue, _ = await TicketFetchService(self.helper_config, ticket_client).fetch_and_save_issue(ticket_id)
        if sync_service is not None:
            if await sync_service.initialize():
                await sync_service.store_issue(issue)

        self.logging.info("=== Fetching wiki pages with adaptive keyword filtering ===", color="cyan")
        wiki_service = WikiFetchService(
            self.helper_config,
            wiki_client=wiki_client,
            keyword_extractor=self.keyword_extractor(),
            sync_service=sync_service,
        )
        try:
            await wiki_service.fetch_and_save_pages(store_in_vector=store)
        except Exception as e:
            self.logging.warning("Wiki fetch failed: %s", e)
            self.logging.warning("Continuing without wiki documentation...")

    async def search(self, query: str, limit: int, source: str | None) -> None:
        service = await self.query_service()
        response = await service.search(SearchRequest(query=query, limit=limit, source=source))
        self._print_results(response)

    async def related(self, ticket_path: str | None, limit: int) -> None:
        service = await self.query_service()
        response = await service.find_related_pages(limit=limit, ticket_path=ticket_path)
        self._print_results(response)

    async def stats(self) -> None:
        service = await self.query_service()
        stats = await service.get_stats()
        self.logging.info("Collection: %s", stats.collection)
        self.logging.info("Points count: %s", stats.points_count or 0)
        self.logging.info("Vector size: %s", stats.vector_size or "N/A")
        self.logging.info("Distance metric: %s", stats.distance or "N/A")
        self.logging.info("Status: %s", stats.status or "Unknown")

    async def clear(self) -> None:
        service = await self.query_service()
        await service.clear()

    async def keywords(self, use_ai: bool, count: int) -> None:
        if use_ai:
            extractor = self.keyword_extractor(llm_client=await self.llm_client())
            keywords = await extractor.extract_keywords_from_ticket_file_with_ai(count=count)
        else:
            keywords = self.keyword_extractor().extract_ticket_keywords(count=count)
        for index, keyword in enumerate(keywords, start=1):
            self.logging.info("%d. %s", index, keyword)

    async def issues(self, issue_ids: list[str]) -> None:
        service = TicketFetchService(self.helper_config, await self.ticket_client())
        paths = await service.fetch_multiple_issues(issue_ids)
        self.logging.info("Saved %d of %d issues", len(paths), len(issue_ids), color="green")

    async def issue_summary(self, issue_ids: list[str]) -> None:
        service = TicketFetchService(self.helper_config, await self.ticket_client())
        await service.create_issue_summary(issue_ids)

    async def page_summary(self) -> None:
        service = WikiFetchService(
            self.helper_config,
            wiki_client=await self.wiki_client(),
            keyword_extractor=self.keyword_extractor(),
        )
        await service.create_page_summary()

    def _print_results(self, response: SearchResponse) -> None:
        if not response.results:
            self.logging.info("No results found for '%s'", response.query[:100])
            return
        self.logging.info("Found %d results:", response.total, color="green")
        for index, item in enumerate(response.results, start=1):
            self.logging.info("%d. [%s] %s (score %.4f)", index, (item.source or "?").upper(), item.title, item.score)
            if item.issue_key:
                self.logging.info("   Issue: %s", item.issue_key)
            if item.page_id:
                self.logging.info("   Page ID: %s", item.page_id)
            if item.url:
                self.logging.info("   URL: %s", item.url)
            if item.chunk_index is not None and item.total_chunks:
                self.logging.info("   Chunk: %d/%d", item.chunk_index + 1, item.total_chunks)
            content = item.content or ""
            preview = content[:PREVIEW_LENGTH] + "..." if len(content) > PREVIEW_LENGTH else content
            self.logging.info("   Preview: %s", preview)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sync_runner", description="Ticket/wiki AI bridge runner")
    commands = parser.add_subparsers(dest="command", required=True)

    run = commands.add_parser("run", help="Fetch the ticket and the related wiki pages")
    run.add_argument("ticket_id", nargs="?", help="Issue key; defaults to TICKET_ID")
    run.add_argument("--store", action="store_true", help="Also store ticket and pages in the vector database")

    search = commands.add_parser("search", help="Semantic search over stored chunks")
    search.add_argument("query")
    search.add_argument("--limit", type=int, default=10)
    search.add_argument("--source", choices=["jira", "confluence"])

    related = commands.add_parser("related", help="Find wiki chunks related to the saved ticket")
    related.add_argument("ticket_file", nargs="?")
    related.add_argument("--limit", type=int, default=10)

    commands.add_parser("stats", help="Show vector database statistics")
    commands.add_parser("clear", help="Delete all stored chunks")

    keywords = commands.add_parser("keywords", help="Extract keywords from the saved ticket")
    keywords.add_argument("--ai", action="store_true", help="Use the LLM instead of local weighting")
    keywords.add_argument("--count", type=int, default=10)

    issues = commands.add_parser("issues", help="Save several issues as individual markdown files")
    issues.add_argument("issue_ids", nargs="+")

    issue_summary = commands.add_parser("issue-summary", help="Write a summary index of several issues")
    issue_summary.add_argument("issue_ids", nargs="+")

    commands.add_parser("page-summary", help="Write an index of every wiki page in the space")
    return parser


async def dispatch(runner: Runner, args: argparse.Namespace) -> None:
    if args.command == "run":
        await runner.run(args.ticket_id, args.store)
    elif args.command == "search":
        await runner.search(args.query, args.limit, args.source)
    elif args.command == "related":
        await runner.related(args.ticket_file, args.limit)
    elif args.command == "stats":
        await runner.stats()
    elif args.command == "clear":
        await runner.clear()
    elif args.command == "keywords":
        await runner.keywords(args.ai, args.count)
    elif args.command == "issues":
        await runner.issues(args.issue_ids)
    elif args.command == "issue-summary":
        await runner.issue_summary(args.issue_ids)
    elif args.command == "page-summary":
        await runner.page_summary()


async def main(argv: list[str] | None = None) -> int:
    """Run one command. Returns the process exit status."""
    args = build_parser().parse_args(argv)
    load_dotenv()
    logger = setup_logging(log_file="sync.log")
    runner = Runner(HelperConfig(logger=logger))

    try:
        await dispatch(runner, args)
    except Exception as e:
        logger.error("Command '%s' failed: %s", args.command, e)
        return 1
    finally:
        await runner.close()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
