"""
server.py – aiohttp.web endpoint exposing a single "run once" operation.
"""

import logging
from typing import Awaitable, Callable

from aiohttp import web

from core.models import RunSummary


logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

RunFunc = Callable[[], Awaitable[RunSummary]]

RUNNER_KEY = web.AppKey("runner", RunFunc)


async def handle_options(request: web.Request) -> web.Response:
    return web.Response(headers=CORS_HEADERS)


async def handle_run(request: web.Request) -> web.Response:
    """Run the pipeline once; no request body is required."""
    runner = request.app[RUNNER_KEY]
    try:
        summary = await runner()
    except Exception as e:
        logger.exception("Ingestion run failed")
        return web.json_response(
            {"error": str(e) or "An error occurred"},
            status=500,
            headers=CORS_HEADERS,
        )
    return web.json_response(summary.to_response(), headers=CORS_HEADERS)


async def handle_health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"}, headers=CORS_HEADERS)


def create_app(runner: RunFunc) -> web.Application:
    app = web.Application()
    app[RUNNER_KEY] = runner
    app.router.add_route("OPTIONS", "/", handle_options)
    app.router.add_get("/", handle_run)
    app.router.add_post("/", handle_run)
    app.router.add_get("/health", handle_health)
    return app
