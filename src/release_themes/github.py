"""GitHub API client for fetching enhancement issues.

The extractor only needs one thing from an issue tracker: "give me issue N
of org/repo". That contract is the GitHubClientProtocol below. Two
implementations are provided:
- GitHubClient talks to the GitHub REST API through httpx
- MockGitHubClient serves issues from an in-memory dict

Authentication and retries of transient transport failures live here, in
the client. The extractor treats whichever client it is given as a black box.

GitHub API docs: https://docs.github.com/en/rest/issues/issues#get-an-issue
"""

from __future__ import annotations

import os
from typing import Any, Protocol

import httpx
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from release_themes.config import RequestContext
from release_themes.schemas import Issue

_backoff = wait_exponential(multiplier=0.5, min=0.5, max=4)


def _retry_context(retry_state: RetryCallState) -> RequestContext:
    # get_issue(self, ctx, org, repo, number)
    if "ctx" in retry_state.kwargs:
        return retry_state.kwargs["ctx"]
    return retry_state.args[1]


def _context_done(retry_state: RetryCallState) -> bool:
    """Stop retrying once the request context is cancelled or expired."""
    return _retry_context(retry_state).err() is not None


def _wait_within_deadline(retry_state: RetryCallState) -> float:
    """Exponential backoff, never sleeping past the context deadline."""
    delay = _backoff(retry_state)
    remaining = _retry_context(retry_state).remaining()
    if remaining is None:
        return delay
    return min(delay, remaining)


# ---------------------------------------------------------------------------
# Protocol (Interface)
# ---------------------------------------------------------------------------


class GitHubClientProtocol(Protocol):
    """Interface for fetching a single issue."""

    async def get_issue(
        self, ctx: RequestContext, org: str, repo: str, number: int
    ) -> Issue:
        """Fetch one issue.

        Args:
            ctx: Request context; implementations must fail fast when
                 ctx.err() is set
            org: Organization (repository owner)
            repo: Repository name
            number: Issue number

        Returns:
            The issue
        """
        ...


class GitHubClientError(Exception):
    """Raised for any non-2xx response from GitHub."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


# ---------------------------------------------------------------------------
# Concrete Implementation
# ---------------------------------------------------------------------------


class GitHubClient:
    """Real GitHub API client using httpx.

    Usage:
        client = GitHubClient(token="ghp_...")
        issue = await client.get_issue(ctx, "kubernetes", "enhancements", 1234)
    """

    BASE_URL = "https://api.github.com"

    def __init__(
        self,
        token: str | None = None,
        timeout: float = 30.0,
        base_url: str = BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the GitHub client.

        Args:
            token: GitHub personal access token. Falls back to the
                   GITHUB_TOKEN environment variable if not provided.
            timeout: Upper bound in seconds for a single request
            base_url: API root, overridable for GitHub Enterprise
            transport: Optional httpx transport (tests use MockTransport)
        """
        self._token = token or os.environ.get("GITHUB_TOKEN", "")
        self._timeout = timeout
        self._base_url = base_url
        self._transport = transport
        self._headers: dict[str, str] = {
            "Accept": "application/vnd.github.v3+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token:
            self._headers["Authorization"] = f"Bearer {self._token}"

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3) | _context_done,
        wait=_wait_within_deadline,
        reraise=True,
    )
    async def get_issue(
        self, ctx: RequestContext, org: str, repo: str, number: int
    ) -> Issue:
        """Fetch one issue with GET /repos/{org}/{repo}/issues/{number}.

        Raises:
            ContextError: If ctx is already cancelled or past its deadline
            GitHubClientError: On any non-2xx response left after following
                               redirects (issues moved to another repo redirect)
            httpx.TransportError: If the request still fails after retries
        """
        err = ctx.err()
        if err is not None:
            raise err

        async with httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers,
            timeout=self._request_timeout(ctx),
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            resp = await client.get(f"/repos/{org}/{repo}/issues/{number}")
            self._raise_for_status(resp)
            return self._to_issue(resp.json())

    def _request_timeout(self, ctx: RequestContext) -> float:
        remaining = ctx.remaining()
        if remaining is None:
            return self._timeout
        return min(self._timeout, remaining)

    @staticmethod
    def _raise_for_status(resp: httpx.Response) -> None:
        if not resp.is_success:
            raise GitHubClientError(
                f"GitHub API error {resp.status_code}: {resp.text}",
                status_code=resp.status_code,
            )

    @staticmethod
    def _to_issue(data: dict[str, Any]) -> Issue:
        return Issue(
            number=data["number"],
            title=data.get("title"),
            body=data.get("body"),
            url=data.get("html_url") or data.get("url"),
        )


# ---------------------------------------------------------------------------
# Mock Implementation (for testing)
# ---------------------------------------------------------------------------


class MockGitHubClient:
    """Mock GitHub client that returns predefined issues.

    Usage:
        client = MockGitHubClient(
            issues={"kubernetes/enhancements": {1234: {"title": "...", "body": "..."}}}
        )
        issue = await client.get_issue(ctx, "kubernetes", "enhancements", 1234)

    Every call is appended to ``calls`` as (org, repo, number).
    """

    def __init__(self, issues: dict[str, dict[int, dict[str, Any]]] | None = None) -> None:
        self._issues = issues or {}
        self.calls: list[tuple[str, str, int]] = []

    async def get_issue(
        self, ctx: RequestContext, org: str, repo: str, number: int
    ) -> Issue:
        """Return the predefined issue.

        Raises:
            ContextError: If ctx is already cancelled or past its deadline
            GitHubClientError: 404 if no issue exists for org/repo/number
        """
        self.calls.append((org, repo, number))
        err = ctx.err()
        if err is not None:
            raise err

        data = self._issues.get(f"{org}/{repo}", {}).get(number)
        if data is None:
            raise GitHubClientError(
                f"GitHub API error 404: {org}/{repo}#{number} not found",
                status_code=404,
            )
        return Issue.model_validate({"number": number, **data})
