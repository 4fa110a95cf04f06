#!/usr/bin/env python3
"""
Monthly roundup CLI.

Usage:
    python -m newsletter.run_monthly                     # previous calendar month, publish
    python -m newsletter.run_monthly --date 2023-02-01   # roundup for January 2023
    python -m newsletter.run_monthly --dry-run           # print the post instead
    python -m newsletter.run_monthly --help

Environment variables:
    GITHUB_TOKEN: API token (required)
    DATE_OVERRIDE: ISO date selecting the month (the month before it is reported)
    TARGET_REPOSITORY: owner/name receiving the discussion (default: GITHUB_REPOSITORY)
    DRY_RUN: Any value other than 0/false/no prints instead of publishing
    NEWSLETTER_SOURCE_REPOSITORY: owner/name whose activity is reported
    NEWSLETTER_PROJECT_NAME: Display name in the post (default: WebMCP)
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

from newsletter.activity import ItemKind, merge_activity
from newsletter.config import ConfigError, NewsletterConfig, load_config_from_env
from newsletter.github import build_search_query, open_client, search_items
from newsletter.publish import publish_discussion
from newsletter.render import render_roundup, roundup_title
from newsletter.window import DateWindow, parse_instant, resolve_window

BANNER = "-" * 51


async def run(cfg: NewsletterConfig, window: DateWindow) -> int:
    """
    Fetch, merge, render and publish one roundup.

    Returns:
        Exit code (0 for success or no activity)

    Failure modes:
        - Search failures degrade to empty result sets
        - Publish failures propagate to the caller
    """
    print(f"[newsletter] Generating roundup for {window.label} ({window.start_str} to {window.end_str})...")

    async with open_client(cfg) as client:
        pr_nodes, issue_nodes = await asyncio.gather(
            search_items(client, cfg, build_search_query(cfg.source_repository, ItemKind.PULL_REQUEST, window)),
            search_items(client, cfg, build_search_query(cfg.source_repository, ItemKind.ISSUE, window)),
        )

        digest = merge_activity(pr_nodes, issue_nodes)
        print(f"[newsletter] Found {len(digest.pull_requests)} unique PRs and {len(digest.issues)} unique issues.")

        if digest.is_empty:
            print("[newsletter] No activity found.")
            return 0

        title = roundup_title(cfg.project_name, window)
        body = render_roundup(cfg.project_name, window, digest)

        if cfg.dry_run:
            print(BANNER)
            print("DRY RUN MODE ENABLED. Generated Body:")
            print(BANNER)
            print(body)
            print(BANNER)
            return 0

        url = await publish_discussion(client, cfg, title, body)
        print(f"[newsletter] Discussion created: {url}")

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for monthly roundup generation.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = argparse.ArgumentParser(
        description="Post a monthly activity roundup to GitHub Discussions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--date",
        type=str,
        help="Reference date (e.g., 2023-02-01); the month before it is reported. Default: today",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the generated post instead of publishing it",
    )
    parser.add_argument(
        "--target-repo",
        type=str,
        help="owner/name receiving the discussion. Default: TARGET_REPOSITORY or GITHUB_REPOSITORY",
    )

    args = parser.parse_args(argv)

    try:
        cfg = load_config_from_env()
        now_override = parse_instant(args.date) if args.date else None
    except (ConfigError, ValueError) as e:
        print(f"[newsletter] ERROR: {e}", file=sys.stderr)
        return 1

    cfg = cfg.with_overrides(
        now_override=now_override,
        dry_run=args.dry_run,
        target_repository=args.target_repo,
    )
    window = resolve_window(cfg.now_override)

    try:
        return asyncio.run(run(cfg, window))
    except Exception as e:
        print(f"[newsletter] ERROR: {type(e).__name__}: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc(file=sys.stderr)
        return 1


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
