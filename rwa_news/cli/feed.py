"""CLI commands for the RWA news feed."""

import json
import logging
import sys
import uuid

import click
import structlog

from rwa_news import __version__
from rwa_news.aggregator import NewsService
from rwa_news.factory import build_news_aggregator
from rwa_news.observability.logging import bind_request_context, configure_logging


logger = structlog.get_logger()

COMPONENT_CLI = "cli"


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--json-logs/--console-logs",
    default=True,
    help="Use JSON format for logs (default: true).",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging.",
)
def main(json_logs: bool, verbose: bool) -> None:
    """RWA news feed CLI."""
    log_level = logging.DEBUG if verbose else logging.INFO
    configure_logging(level=log_level, json_format=json_logs)

    bind_request_context(str(uuid.uuid4()))


@main.command()
@click.option(
    "--page",
    type=int,
    default=1,
    help="1-based page number (default: 1).",
)
@click.option(
    "--limit",
    type=int,
    default=20,
    help="Articles per page, 1 to 100 (default: 20).",
)
def fetch(page: int, limit: int) -> None:
    """Fetch one page of the ranked feed and print it as JSON."""
    log = logger.bind(component=COMPONENT_CLI, command="fetch")
    log.info("feed_fetch_started", page=page, limit=limit)

    service = NewsService(build_news_aggregator())
    feed_page = service.get_news(page=page, limit=limit)

    click.echo(feed_page.model_dump_json(indent=2))
    log.info("feed_fetch_complete", total=feed_page.total)


@main.command()
def health() -> None:
    """Report source health as JSON; exit 1 if any source is unhealthy."""
    aggregator = build_news_aggregator()
    report = {
        "healthy": aggregator.is_healthy(),
        "sources": aggregator.health(),
    }
    click.echo(json.dumps(report, indent=2))

    if not report["healthy"]:
        sys.exit(1)
