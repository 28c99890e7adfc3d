"""FastMCP server for reflector - weekly AI reflections produced through the OpenAI Batch API."""

import logging

from fastmcp import FastMCP
from fastmcp.server.auth.providers.github import GitHubProvider
from fastmcp.server.dependencies import get_access_token
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse

from reflector.config import settings

logging.basicConfig(
    level=settings.reflector_log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
# Suppress noisy MCP streamable_http ClosedResourceError logs (known issue with stateless mode)
# See: https://github.com/modelcontextprotocol/python-sdk/issues/1658
logging.getLogger("mcp.server.streamable_http").setLevel(logging.CRITICAL)
from reflector.tools import (
    batch_job_details,
    batch_jobs_list,
    batch_consume,
    batch_status,
    check_batches,
    submit_weekly,
    trigger_weekly_reflections,
)

logger = logging.getLogger(__name__)

# Configure GitHub OAuth
auth = GitHubProvider(
    client_id=settings.github_client_id,
    client_secret=settings.github_client_secret,
    base_url=f"http://localhost:{settings.reflector_port}",
)

# Initialize FastMCP server with auth
mcp = FastMCP("reflector", auth=auth, stateless_http=True, json_response=True)


def _caller_id() -> str | None:
    """GitHub login of the authenticated MCP caller."""
    token = get_access_token()
    if token is None:
        return None
    claims = getattr(token, "claims", None) or {}
    return claims.get("login")


# Health check endpoint
@mcp.custom_route("/health", methods=["GET"])
async def health_check(request: Request) -> PlainTextResponse:
    """Health check endpoint for container orchestration."""
    return PlainTextResponse("OK")


# Internal API endpoints for the cron scripts (unauthenticated, localhost only)


def _check_localhost(request: Request) -> bool:
    """Verify request is from localhost."""
    client_host = request.client.host if request.client else None
    return client_host in ("127.0.0.1", "localhost", "::1")


async def _json_body(request: Request) -> dict:
    body = await request.body()
    if not body:
        return {}
    data = await request.json()
    return data if isinstance(data, dict) else {}


@mcp.custom_route("/internal/batches/submit", methods=["POST"])
async def internal_submit(request: Request) -> JSONResponse:
    """Weekly submission trigger."""
    if not _check_localhost(request):
        return JSONResponse({"error": "Forbidden: localhost only"}, status_code=403)

    try:
        data = await _json_body(request)
        result = await submit_weekly(week=data.get("week"), year=data.get("year"))
        return JSONResponse(result)
    except Exception as e:
        logger.exception("Weekly submission failed")
        return JSONResponse({"error": str(e)}, status_code=500)


@mcp.custom_route("/internal/batches/check", methods=["POST"])
async def internal_check(request: Request) -> JSONResponse:
    """Recurring batch check trigger."""
    if not _check_localhost(request):
        return JSONResponse({"error": "Forbidden: localhost only"}, status_code=403)

    try:
        data = await _json_body(request)
        result = await check_batches(
            scheduled_time=data.get("scheduled_time"),
            force=bool(data.get("force", False)),
        )
        return JSONResponse(result)
    except Exception as e:
        logger.exception("Batch check failed")
        return JSONResponse({"error": str(e)}, status_code=500)


# Register MCP tools
@mcp.tool()
async def list_batch_jobs(limit: int = 10) -> dict:
    """List recent weekly reflection batch jobs (administrator only).

    Args:
        limit: Maximum number of jobs to return (default: 10, max: 50).

    Returns:
        dict with jobs ordered by submission time, newest first.
    """
    return await batch_jobs_list(_caller_id(), limit=limit)


@mcp.tool()
async def get_batch_job(batch_id: str) -> dict:
    """Get the full record of one batch job (administrator only).

    Args:
        batch_id: External batch id.

    Returns:
        dict with the job's status, counts, per-record errors and file ids.
    """
    return await batch_job_details(_caller_id(), batch_id)


@mcp.tool()
async def check_batch_status(batch_id: str) -> dict:
    """Check a batch's live status with the external API (administrator only)."""
    return await batch_status(_caller_id(), batch_id)


@mcp.tool()
async def consume_batch(batch_id: str) -> dict:
    """Ingest a completed batch now, outside the scheduled checks (administrator only).

    Args:
        batch_id: External batch id of a stored job.

    Returns:
        dict with success/error counts and per-record errors.
    """
    return await batch_consume(_caller_id(), batch_id)


@mcp.tool()
async def trigger_reflections(week: int | None = None, year: int | None = None) -> dict:
    """Submit the weekly reflection batch for a week (administrator only).

    Args:
        week: Sequential week number (default: last finished week).
        year: Year of the week (default: year of the last finished week).

    Returns:
        dict with submission status and details.
    """
    return await trigger_weekly_reflections(_caller_id(), week=week, year=year)


# ASGI app for uvicorn
app = mcp.http_app()

if __name__ == "__main__":
    mcp.run(
        transport="http",
        host=settings.reflector_host,
        port=settings.reflector_port,
        stateless_http=True,
    )
