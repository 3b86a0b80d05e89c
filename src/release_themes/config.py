"""Request configuration for issue tracker calls.

Configuration is expressed with the "functional option" pattern: callers
pass any number of small callables that each adjust one field, and
config_from_opts applies them, in order, over a fresh copy of the defaults.
See https://dave.cheney.net/2014/10/17/functional-options-for-friendly-apis

    cfg = config_from_opts(with_context(ctx), with_repo("website"))
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field

from release_themes.errors import ContextError

DEFAULT_ORG = "kubernetes"
DEFAULT_REPO = "enhancements"
DEFAULT_BRANCH = "master"


# ---------------------------------------------------------------------------
# Request Context
# ---------------------------------------------------------------------------


class RequestContext:
    """Cancellation and deadline carrier passed through to every fetch.

    The extractor never inspects it; clients call err() before doing any
    work and size their request timeout from remaining().
    """

    def __init__(self, deadline: float | None = None) -> None:
        self._deadline = deadline
        self._cancelled = False

    @classmethod
    def background(cls) -> RequestContext:
        """A context that is never cancelled and has no deadline."""
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float) -> RequestContext:
        return cls(deadline=time.monotonic() + seconds)

    @property
    def deadline(self) -> float | None:
        return self._deadline

    def cancel(self) -> None:
        self._cancelled = True

    def remaining(self) -> float | None:
        """Seconds until the deadline (never negative), or None."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def err(self) -> ContextError | None:
        if self._cancelled:
            return ContextError("context canceled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return ContextError("context deadline exceeded")
        return None


# ---------------------------------------------------------------------------
# Functional Options
# ---------------------------------------------------------------------------


@dataclass
class ApiConfig:
    """Optional configuration for GitHub API requests.

    Attributes:
        ctx: Context handed to every fetch
        org: Organization owning the enhancements repository
        repo: Repository holding the enhancement issues
        branch: Branch of the repository (reserved, not read by extraction)
    """

    ctx: RequestContext = field(default_factory=RequestContext.background)
    org: str = DEFAULT_ORG
    repo: str = DEFAULT_REPO
    branch: str = DEFAULT_BRANCH


ApiOption = Callable[[ApiConfig], None]


def with_context(ctx: RequestContext) -> ApiOption:
    """Inject a context into GitHub API requests."""

    def apply(c: ApiConfig) -> None:
        c.ctx = ctx

    return apply


def with_org(org: str) -> ApiOption:
    def apply(c: ApiConfig) -> None:
        c.org = org

    return apply


def with_repo(repo: str) -> ApiOption:
    def apply(c: ApiConfig) -> None:
        c.repo = repo

    return apply


def with_branch(branch: str) -> ApiOption:
    def apply(c: ApiConfig) -> None:
        c.branch = branch

    return apply


def config_from_opts(*opts: ApiOption) -> ApiConfig:
    """Turn a set of functional options into a populated ApiConfig.

    Options are applied in the order given, so a later option wins over an
    earlier one for the same field. Fields no option touches keep their
    defaults.
    """
    c = ApiConfig()
    for opt in opts:
        opt(c)
    return c
