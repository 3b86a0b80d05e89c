"""Exception hierarchy for theme extraction.

Every failure the extractor can surface derives from ThemeError, so callers
(the CLI, the API) can catch one type and still tell a bad identifier list
apart from a failed fetch.
"""

from __future__ import annotations


class ThemeError(Exception):
    """Base class for all theme extraction errors."""


class ParseError(ThemeError, ValueError):
    """An identifier in the comma-separated issue list is not an integer."""

    def __init__(self, token: str) -> None:
        super().__init__(f"invalid issue number: {token!r}")
        self.token = token


class FetchError(ThemeError):
    """The issue tracker client failed to return an issue.

    The client's exception is kept as ``cause`` and is also chained as
    ``__cause__`` when raised.
    """

    def __init__(self, issue_num: int, cause: BaseException) -> None:
        super().__init__(f"failed to fetch issue #{issue_num}: {cause}")
        self.issue_num = issue_num
        self.cause = cause


class ContextError(ThemeError):
    """A request context was cancelled or ran past its deadline."""
