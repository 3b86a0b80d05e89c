"""Major theme extraction from enhancement issues.

Each enhancement issue selected as a major theme carries its release note,
KEP reference and owning SIGs as labelled lines in the issue body, e.g.:

    - One-line enhancement description (can be used as a release note): Foo
    - Kubernetes Enhancement Proposal (KEP): #1234 -
    - Responsible SIGs: sig/api-machinery, sig/architecture

The helpers below locate those labels and trim the text around them. This is
best-effort scraping: a missing or reworded label yields an empty value
(0 for the KEP number), never an error.

The flow for a list of issues is:
1. Parse every identifier in the comma-separated list
2. Fetch each issue, one at a time, in input order
3. Scrape the body and build a MajorTheme
The first failure aborts the whole call; there is no partial result.
"""

from __future__ import annotations

from typing import Any

from release_themes.config import ApiOption, config_from_opts
from release_themes.errors import FetchError, ParseError
from release_themes.github import GitHubClientProtocol
from release_themes.logging_config import get_logger
from release_themes.schemas import Issue, MajorTheme

logger = get_logger(__name__)

KEP_BASE_URL = "https://github.com/kubernetes/enhancements/pull/"

RELEASE_NOTE_LABEL = "release note): "
KEP_LABELS = ("(KEP): #", "(community repo):")
SIGS_LABEL = "Responsible SIGs:"


# ---------------------------------------------------------------------------
# Body Scraping
# ---------------------------------------------------------------------------


def _line_after(body: str, label: str) -> str | None:
    """Return the rest of the line following ``label``, or None if absent."""
    start = body.find(label)
    if start == -1:
        return None
    rest = body[start + len(label):]
    return rest.split("\n", 1)[0]


def extract_text(body: str) -> str:
    """The release note: the line after the release note label, else the body."""
    line = _line_after(body, RELEASE_NOTE_LABEL)
    text = body if line is None else line
    return text.rstrip("\r\n")


def extract_kep_number(body: str) -> int:
    """The KEP number after the first usable KEP label, else 0."""
    for label in KEP_LABELS:
        line = _line_after(body, label)
        if line is None:
            continue
        digits = line.strip().lstrip("#").rstrip(" -").strip()
        if digits.isdecimal():
            return int(digits)
    return 0


def kep_url(kep_number: int) -> str:
    """Pull request URL of a KEP, "" when there is none."""
    if not kep_number:
        return ""
    return KEP_BASE_URL + str(kep_number)


def extract_sigs(body: str) -> str:
    """The responsible SIGs, kept verbatim minus surrounding whitespace and dashes."""
    line = _line_after(body, SIGS_LABEL)
    if line is None:
        return ""
    return line.strip(" \t\r-")


def theme_from_issue(issue: Issue) -> MajorTheme:
    """Scrape one issue into a MajorTheme."""
    kep_number = extract_kep_number(issue.body)
    return MajorTheme(
        issue_num=issue.number,
        issue_title=issue.title,
        issue_url=issue.url,
        text=extract_text(issue.body),
        kep_number=kep_number,
        kep_url=kep_url(kep_number),
        sigs=extract_sigs(issue.body),
    )


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


def parse_issue_numbers(themes: str) -> list[int]:
    """Parse a comma-separated list of issue numbers.

    Raises:
        ParseError: For the first empty or non-integer token
    """
    numbers: list[int] = []
    for token in themes.split(","):
        digits = token.strip()
        if not digits.isdecimal():
            raise ParseError(token)
        numbers.append(int(digits))
    return numbers


async def list_issues(
    client: GitHubClientProtocol,
    themes: str,
    *opts: ApiOption,
) -> list[MajorTheme]:
    """Build a MajorTheme for each issue in the comma-separated ``themes``.

    Args:
        client: Anything that can fetch a single issue
        themes: Comma-separated issue numbers, e.g. "1234,5678"
        *opts: Functional options (with_context, with_org, ...)

    Returns:
        One MajorTheme per identifier, in input order. Duplicates are
        fetched and returned again.

    Raises:
        ParseError: If any identifier is not an integer (nothing is fetched)
        FetchError: If the client fails for any issue
    """
    numbers = parse_issue_numbers(themes)
    c = config_from_opts(*opts)

    major_themes: list[MajorTheme] = []
    for number in numbers:
        try:
            issue = await client.get_issue(c.ctx, c.org, c.repo, number)
        except Exception as exc:
            raise FetchError(number, exc) from exc
        major_themes.append(theme_from_issue(issue))
    return major_themes


async def list_major_themes(
    client: GitHubClientProtocol,
    themes: str,
    *opts: ApiOption,
    log: Any | None = None,
) -> list[MajorTheme]:
    """Produce the fully contextualized major themes for a list of issues.

    Same contract as list_issues, with structured logging around the call.
    ``log`` defaults to this module's logger.
    """
    log = log or logger
    log.info("themes_listing_started", themes=themes)
    try:
        major_themes = await list_issues(client, themes, *opts)
    except Exception as e:
        log.error(
            "themes_listing_failed",
            themes=themes,
            error=str(e),
            exc_info=True,
        )
        raise

    log.info(
        "themes_listing_complete",
        count=len(major_themes),
        kep_count=sum(1 for t in major_themes if t.kep_number),
    )
    return major_themes
