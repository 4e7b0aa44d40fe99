"""
Main entry point for the SHU website content ingestion pipeline.

Usage:
    python main.py run        - run the pipeline once (for cron / external triggers)
    python main.py serve      - expose the run-once operation over HTTP
    python main.py context    - print the chat context block built from stored content
"""

import argparse
import asyncio
import json
import logging
import os
import sys

from dotenv import load_dotenv
from aiohttp import web

# Add project root to PYTHONPATH so imports work when running this script directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.config import load_config
from core.errors import ConfigurationError
from core.infra.server import create_app
from plugins.shu_website.context import build_context_block
from plugins.shu_website.pipeline import run_once
from plugins.shu_website.store import SqliteContentStore


logger = logging.getLogger(__name__)


def setup_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s"
    )


async def run_from_env():
    """Load configuration fresh for every invocation and run once."""
    config = load_config()
    return await run_once(config)


async def context_from_env(limit=None) -> str:
    config = load_config()
    async with SqliteContentStore(config.database_url) as store:
        return await build_context_block(store, limit or config.context_limit)


def cmd_run(args: argparse.Namespace) -> int:
    try:
        summary = asyncio.run(run_from_env())
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        print(json.dumps({"error": str(e)}))
        return 2
    except Exception as e:
        logger.exception("Ingestion run failed")
        print(json.dumps({"error": str(e) or "An error occurred"}))
        return 1
    print(json.dumps(summary.to_response()))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    # Fail fast on startup; each request still reloads the configuration.
    try:
        config = load_config()
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 2

    host = args.host or config.host
    port = args.port or config.port
    logger.info("Serving ingestion endpoint on %s:%d", host, port)
    web.run_app(create_app(run_from_env), host=host, port=port)
    return 0


def cmd_context(args: argparse.Namespace) -> int:
    try:
        block = asyncio.run(context_from_env(args.limit))
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 2
    print(block)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SHU website content ingestion")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("run", help="Run the ingestion pipeline once (default)")

    serve = sub.add_parser("serve", help="Serve the run-once HTTP endpoint")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    context = sub.add_parser("context", help="Print the chat context block")
    context.add_argument("--limit", type=int, default=None)
    return parser


COMMANDS = {
    "run": cmd_run,
    "serve": cmd_serve,
    "context": cmd_context,
}


def main(argv=None) -> int:
    load_dotenv()
    setup_logging()

    args = build_parser().parse_args(argv)
    return COMMANDS[args.command or "run"](args)


if __name__ == "__main__":
    sys.exit(main())
