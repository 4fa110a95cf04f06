from __future__ import annotations

from typing import Any, Dict, Optional, Sequence, Tuple

import httpx

from newsletter.config import NewsletterConfig
from newsletter.github import create_discussion, fetch_repository

PREFERRED_CATEGORY = "announcements"


class PublishError(RuntimeError):
    """Raised when the roundup cannot be posted; always fatal."""


def split_repository(full_name: Optional[str]) -> Tuple[str, str]:
    if not full_name:
        raise PublishError("TARGET_REPOSITORY or GITHUB_REPOSITORY is required to publish")
    owner, sep, name = full_name.strip().partition("/")
    if not sep or not owner or not name or "/" in name:
        raise PublishError(f"Invalid target repository '{full_name}': expected owner/name")
    return owner, name


def select_category(categories: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    """Prefer the "Announcements" category, else the first one available."""
    for category in categories:
        if str(category.get("name", "")).lower() == PREFERRED_CATEGORY:
            return category
    if not categories:
        raise PublishError("No discussion categories found.")
    return categories[0]


async def publish_discussion(client: httpx.AsyncClient, cfg: NewsletterConfig, title: str, body: str) -> str:
    """
    Post the roundup as a new discussion in the target repository.

    Returns:
        URL of the created discussion

    Failure modes:
        - PublishError for a missing/malformed target, unknown repository or no categories
        - GraphQL and transport errors propagate unchanged
    """
    owner, name = split_repository(cfg.target_repository)

    repository = await fetch_repository(client, cfg, owner, name)
    if not repository.get("id"):
        raise PublishError(f"Repository {owner}/{name} not found or not accessible")

    categories = (repository.get("discussionCategories") or {}).get("nodes") or []
    category = select_category(categories)
    print(f"[newsletter] Posting to category: {category['name']}")

    return await create_discussion(client, cfg, repository["id"], category["id"], title, body)
