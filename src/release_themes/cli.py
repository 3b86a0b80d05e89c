"""Command line entry point.

Usage:
    release-themes --themes 3352,2845,1287
    release-themes --themes 3352 --format yaml --timeout 20

Prints the major themes to stdout as JSON (default) or YAML. The GitHub
token is read from --token or the GITHUB_TOKEN environment variable.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

import yaml

from release_themes.config import (
    DEFAULT_BRANCH,
    DEFAULT_ORG,
    DEFAULT_REPO,
    RequestContext,
    with_branch,
    with_context,
    with_org,
    with_repo,
)
from release_themes.errors import ThemeError
from release_themes.github import GitHubClient, GitHubClientProtocol
from release_themes.logging_config import setup_logging
from release_themes.schemas import MajorTheme
from release_themes.themes import list_major_themes


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="release-themes",
        description="Collect the major themes of a release from enhancement issues",
    )
    parser.add_argument(
        "--themes", "-t",
        required=True,
        help="Comma-separated enhancement issue numbers, e.g. 3352,2845",
    )
    parser.add_argument("--org", default=DEFAULT_ORG, help="GitHub organization")
    parser.add_argument("--repo", default=DEFAULT_REPO, help="GitHub repository")
    parser.add_argument("--branch", default=DEFAULT_BRANCH, help="Repository branch")
    parser.add_argument("--token", help="GitHub token (default: $GITHUB_TOKEN)")
    parser.add_argument(
        "--timeout",
        type=float,
        help="Overall deadline in seconds for fetching every issue",
    )
    parser.add_argument(
        "--format", "-f",
        choices=("json", "yaml"),
        default="json",
        help="Output format",
    )
    return parser


def render(themes: list[MajorTheme], fmt: str) -> str:
    documents = [t.to_document() for t in themes]
    if fmt == "yaml":
        return yaml.safe_dump(documents, sort_keys=False)
    return json.dumps(documents, indent=2)


def main(
    argv: list[str] | None = None,
    client: GitHubClientProtocol | None = None,
) -> int:
    """Run the CLI and return the process exit status."""
    args = build_parser().parse_args(argv)
    setup_logging()

    ctx = (
        RequestContext.with_timeout(args.timeout)
        if args.timeout is not None
        else RequestContext.background()
    )
    client = client or GitHubClient(token=args.token)

    try:
        themes = asyncio.run(
            list_major_themes(
                client,
                args.themes,
                with_context(ctx),
                with_org(args.org),
                with_repo(args.repo),
                with_branch(args.branch),
            )
        )
    except ThemeError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(render(themes, args.format))
    return 0


if __name__ == "__main__":
    sys.exit(main())
