"""FastAPI application serving major themes.

Endpoints:
- GET /themes?issues=3352,2845 - Major themes for the given issues
- GET /health - Health check for load balancers and monitoring

To run locally:
    uvicorn release_themes.main:app --reload --port 8000
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from release_themes.config import DEFAULT_ORG, DEFAULT_REPO, with_org, with_repo
from release_themes.errors import FetchError, ParseError
from release_themes.github import GitHubClient, GitHubClientProtocol
from release_themes.logging_config import get_logger, setup_logging
from release_themes.themes import list_major_themes

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Application Lifespan (startup/shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create the GitHub client once at startup.

    Tests can pre-populate app.state.github with a mock client.
    """
    setup_logging()
    if getattr(app.state, "github", None) is None:
        app.state.github = GitHubClient()
    yield


app = FastAPI(
    title="Release Themes",
    description="Major themes of a release, scraped from enhancement issues",
    version="0.1.0",
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


@app.exception_handler(ParseError)
async def parse_error_handler(request: Request, exc: ParseError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"error": "parse_error", "detail": str(exc)},
    )


@app.exception_handler(FetchError)
async def fetch_error_handler(request: Request, exc: FetchError) -> JSONResponse:
    """The issue tracker failed us; report it as a bad gateway."""
    logger.warning("issue_fetch_failed", issue_num=exc.issue_num, error=str(exc.cause))
    return JSONResponse(
        status_code=502,
        content={
            "error": "fetch_error",
            "detail": str(exc),
            "issue_num": exc.issue_num,
        },
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}


@app.get("/themes")
async def get_themes(
    request: Request,
    issues: str = Query(..., description="Comma-separated issue numbers"),
    org: str = Query(DEFAULT_ORG),
    repo: str = Query(DEFAULT_REPO),
) -> list[dict[str, Any]]:
    """Fetch the given enhancement issues and return their major themes."""
    client: GitHubClientProtocol = request.app.state.github
    themes = await list_major_themes(client, issues, with_org(org), with_repo(repo))
    return [t.to_document() for t in themes]
