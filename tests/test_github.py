"""Tests for the GitHub clients.

GitHubClient is exercised against httpx.MockTransport, so requests never
leave the process.

Run with: pytest tests/test_github.py -v
"""

from __future__ import annotations

import httpx
import pytest
from tenacity import RetryCallState

from release_themes.config import RequestContext
from release_themes.errors import ContextError
from release_themes.github import (
    GitHubClient,
    GitHubClientError,
    MockGitHubClient,
    _context_done,
    _wait_within_deadline,
)
from release_themes.themes import list_issues

ISSUE_JSON = {
    "number": 555,
    "title": "Server-side apply",
    "body": "release note): SSA is GA\n",
    "url": "https://api.github.com/repos/kubernetes/enhancements/issues/555",
    "html_url": "https://github.com/kubernetes/enhancements/issues/555",
}


def _client(handler, token: str | None = "ghp_test") -> GitHubClient:
    return GitHubClient(token=token, transport=httpx.MockTransport(handler))


# ---------------------------------------------------------------------------
# GitHubClient Tests
# ---------------------------------------------------------------------------


class TestGitHubClient:
    """Tests for the httpx-backed client."""

    @pytest.mark.asyncio
    async def test_get_issue(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=ISSUE_JSON)

        issue = await _client(handler).get_issue(
            RequestContext.background(), "kubernetes", "enhancements", 555
        )

        assert issue.number == 555
        assert issue.title == "Server-side apply"
        assert issue.body == "release note): SSA is GA\n"
        assert issue.url == "https://github.com/kubernetes/enhancements/issues/555"

        assert seen[0].url.path == "/repos/kubernetes/enhancements/issues/555"
        assert seen[0].headers["Authorization"] == "Bearer ghp_test"

    @pytest.mark.asyncio
    async def test_token_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_env")
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=ISSUE_JSON)

        await _client(handler, token=None).get_issue(
            RequestContext.background(), "kubernetes", "enhancements", 555
        )
        assert seen[0].headers["Authorization"] == "Bearer ghp_env"

    @pytest.mark.asyncio
    async def test_no_token_no_auth_header(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=ISSUE_JSON)

        await _client(handler, token=None).get_issue(
            RequestContext.background(), "kubernetes", "enhancements", 555
        )
        assert "Authorization" not in seen[0].headers

    @pytest.mark.asyncio
    async def test_null_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={**ISSUE_JSON, "body": None})

        issue = await _client(handler).get_issue(
            RequestContext.background(), "kubernetes", "enhancements", 555
        )
        assert issue.body == ""

    @pytest.mark.asyncio
    async def test_http_error_not_retried(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(404, json={"message": "Not Found"})

        with pytest.raises(GitHubClientError) as exc_info:
            await _client(handler).get_issue(
                RequestContext.background(), "kubernetes", "enhancements", 1
            )
        assert exc_info.value.status_code == 404
        assert calls == 1

    @pytest.mark.asyncio
    async def test_transport_error_retried(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise httpx.ConnectError("connection reset", request=request)
            return httpx.Response(200, json=ISSUE_JSON)

        issue = await _client(handler).get_issue(
            RequestContext.background(), "kubernetes", "enhancements", 555
        )
        assert issue.number == 555
        assert calls == 2

    @pytest.mark.asyncio
    async def test_moved_issue_redirect_followed(self) -> None:
        """An issue transferred to another repo answers 301; the client follows it."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/repos/kubernetes/enhancements/issues/555":
                return httpx.Response(
                    301,
                    headers={"Location": "https://api.github.com/repositories/1/issues/555"},
                    json={"message": "Moved Permanently"},
                )
            assert request.url.path == "/repositories/1/issues/555"
            return httpx.Response(200, json=ISSUE_JSON)

        themes = await list_issues(_client(handler), "555")
        assert themes[0].issue_num == 555
        assert themes[0].text == "SSA is GA"

    @pytest.mark.asyncio
    async def test_unfollowed_redirect_is_client_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(302, json={"message": "Found"})

        with pytest.raises(GitHubClientError) as exc_info:
            await _client(handler).get_issue(
                RequestContext.background(), "kubernetes", "enhancements", 555
            )
        assert exc_info.value.status_code == 302

    @pytest.mark.asyncio
    async def test_no_retry_after_context_cancelled(self) -> None:
        ctx = RequestContext.background()
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            ctx.cancel()
            raise httpx.ConnectError("connection reset", request=request)

        with pytest.raises(httpx.ConnectError):
            await _client(handler).get_issue(ctx, "kubernetes", "enhancements", 555)
        assert calls == 1

    def test_backoff_bounded_by_deadline(self) -> None:
        client = GitHubClient(token="t")
        ctx = RequestContext.with_timeout(0.1)
        state = RetryCallState(None, None, (client, ctx, "kubernetes", "enhancements", 555), {})
        assert _wait_within_deadline(state) <= 0.1
        assert not _context_done(state)

        background = RetryCallState(
            None, None, (client,), {"ctx": RequestContext.background()}
        )
        assert _wait_within_deadline(background) == pytest.approx(0.5)

    @pytest.mark.asyncio
    async def test_cancelled_context_sends_nothing(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, json=ISSUE_JSON)

        ctx = RequestContext.background()
        ctx.cancel()
        with pytest.raises(ContextError):
            await _client(handler).get_issue(ctx, "kubernetes", "enhancements", 555)
        assert calls == 0

    def test_request_timeout_bounded_by_deadline(self) -> None:
        client = GitHubClient(token="t", timeout=30.0)
        assert client._request_timeout(RequestContext.background()) == 30.0
        assert client._request_timeout(RequestContext.with_timeout(5)) <= 5.0


# ---------------------------------------------------------------------------
# MockGitHubClient Tests
# ---------------------------------------------------------------------------


class TestMockGitHubClient:
    """Tests for the in-memory client."""

    @pytest.mark.asyncio
    async def test_returns_predefined_issue(self) -> None:
        client = MockGitHubClient(
            issues={"kubernetes/enhancements": {555: {"title": "SSA", "body": "x"}}}
        )
        issue = await client.get_issue(
            RequestContext.background(), "kubernetes", "enhancements", 555
        )
        assert issue.number == 555
        assert issue.title == "SSA"
        assert client.calls == [("kubernetes", "enhancements", 555)]

    @pytest.mark.asyncio
    async def test_missing_issue_is_404(self) -> None:
        client = MockGitHubClient()
        with pytest.raises(GitHubClientError) as exc_info:
            await client.get_issue(RequestContext.background(), "a", "b", 1)
        assert exc_info.value.status_code == 404
