from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from jinja2 import Environment, FileSystemLoader

from newsletter.activity import ActivityDigest, ActivityItem
from newsletter.status import classify, generate_summary
from newsletter.window import DateWindow

EMPTY_SECTION = "*No new activity in this month*"


def _get_template_env() -> Environment:
    """Create Jinja2 environment with templates directory."""
    templates_dir = Path(__file__).parent / "templates"
    # Markdown output: titles must reach the post unescaped
    return Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def format_date(timestamp: str) -> str:
    """Format an API timestamp as e.g. "Jan 5"."""
    dt = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    return f"{dt.strftime('%b')} {dt.day}"


def format_bullet(item: ActivityItem, window: DateWindow) -> str:
    status = classify(item, window)

    if status.date:
        linked_status = f"[{status.verb} {format_date(status.date)}]({item.url})"
    else:
        linked_status = f"[{status.verb}]({item.url})"

    if item.author is not None:
        author_link = f"[@{item.author.name}]({item.author.url})"
    else:
        author_link = "unknown"

    return f"- {status.icon} [{item.title}]({item.url}) ({linked_status} by {author_link})"


def _contributor_sort_key(name: str) -> Tuple[str, str]:
    # Case-insensitive first so "alice" and "Bob" interleave the way people expect
    return (name.casefold(), name)


def format_contributors(contributors: Mapping[str, str]) -> List[str]:
    """Markdown profile links sorted by login."""
    return [f"[{name}]({contributors[name]})" for name in sorted(contributors, key=_contributor_sort_key)]


def roundup_title(project_name: str, window: DateWindow) -> str:
    return f"{project_name} {window.label} Roundup"


def _prepare_context(project_name: str, window: DateWindow, digest: ActivityDigest) -> Dict[str, Any]:
    summary: Optional[str] = None
    if digest.pull_requests:
        summary = generate_summary(digest.pull_requests, window)

    return {
        "title": roundup_title(project_name, window),
        "project_name": project_name,
        "summary": summary,
        "pr_bullets": [format_bullet(pr, window) for pr in digest.pull_requests],
        "issue_bullets": [format_bullet(issue, window) for issue in digest.issues],
        "contributor_links": format_contributors(digest.contributors),
        "empty_section": EMPTY_SECTION,
    }


def render_roundup(project_name: str, window: DateWindow, digest: ActivityDigest) -> str:
    """
    Render the Markdown roundup post.

    Args:
        project_name: Display name used in the heading and footer
        window: Month being reported
        digest: Deduplicated, sorted activity

    Returns:
        Markdown string ready to post as a discussion body

    Failure modes:
        - Raises jinja2.TemplateError if template is malformed
        - Raises if templates/roundup.md.j2 is missing
    """
    env = _get_template_env()
    template = env.get_template("roundup.md.j2")
    context = _prepare_context(project_name, window, digest)
    return template.render(**context)
