from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from newsletter.activity import ActivityItem
from newsletter.window import DateWindow


@dataclass(frozen=True)
class StatusLabel:
    """
    How a single item is presented in the roundup.

    Fields:
        icon: Emoji shown at the start of the bullet
        verb: "Merged on" | "Closed on" | "Opened on" | "Active"
        date: Timestamp shown after the verb (None when the API gave none)
    """

    icon: str
    verb: str
    date: Optional[str]


ICON_MERGED = "✅"
ICON_CLOSED_PR = "🔴"
ICON_CLOSED_ISSUE = "✅"
ICON_OPENED = "🚧"
ICON_ACTIVE = "🔄"

# Title keywords that mark a merged PR as worth calling out in the summary
HIGHLIGHT_KEYWORDS = ("feat", "add", "support", "stable", "release")
MAX_HIGHLIGHTS = 3

GENERIC_SUMMARY = "This month saw steady progress with various improvements and bug fixes."

_COMMIT_PREFIX_RE = re.compile(r"^(feat|fix|chore|docs)(\(.*\))?:", re.IGNORECASE)


def classify(item: ActivityItem, window: DateWindow) -> StatusLabel:
    """
    Pick the single status shown for an item; first match wins.

    Pull requests: merged > closed > opened > active.
    Issues: closed > opened > active.
    """
    if item.is_pull_request:
        if window.contains(item.merged_at):
            return StatusLabel(ICON_MERGED, "Merged on", item.merged_at)
        if window.contains(item.closed_at):
            return StatusLabel(ICON_CLOSED_PR, "Closed on", item.closed_at)
    elif window.contains(item.closed_at):
        return StatusLabel(ICON_CLOSED_ISSUE, "Closed on", item.closed_at)

    if window.contains(item.created_at):
        return StatusLabel(ICON_OPENED, "Opened on", item.created_at)
    return StatusLabel(ICON_ACTIVE, "Active", item.updated_at)


def strip_commit_prefix(title: str) -> str:
    """Drop a leading "feat:", "fix(scope):" etc. from a PR title."""
    return _COMMIT_PREFIX_RE.sub("", title, count=1).strip()


def select_highlights(pull_requests: Sequence[ActivityItem], window: DateWindow) -> List[ActivityItem]:
    """Merged-in-window PRs whose title mentions a highlight keyword, in input order, at most three."""
    highlights: List[ActivityItem] = []
    for pr in pull_requests:
        if not window.contains(pr.merged_at):
            continue
        title = pr.title.lower()
        if any(keyword in title for keyword in HIGHLIGHT_KEYWORDS):
            highlights.append(pr)
    return highlights[:MAX_HIGHLIGHTS]


def generate_summary(pull_requests: Sequence[ActivityItem], window: DateWindow) -> str:
    """
    Build the one-sentence highlight paragraph.

    Args:
        pull_requests: PRs sorted ascending by number
        window: Month being reported

    Returns:
        Generic sentence, single-highlight sentence, or "Highlights include A, B and C."
    """
    updates = [f"[{strip_commit_prefix(pr.title)}]({pr.url})" for pr in select_highlights(pull_requests, window)]

    if not updates:
        return GENERIC_SUMMARY
    if len(updates) == 1:
        return f"We are excited to highlight the introduction of {updates[0]}."
    return f"Highlights include {', '.join(updates[:-1])} and {updates[-1]}."
