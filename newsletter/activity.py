from __future__ import annotations

import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple


class ItemKind(str, Enum):
    PULL_REQUEST = "PullRequest"
    ISSUE = "Issue"


@dataclass(frozen=True)
class ProfileRef:
    name: str  # GitHub login
    url: str


@dataclass(frozen=True)
class ActivityItem:
    """
    A pull request or an issue touched during the window.

    Invariants:
      - url uniquely identifies the item across both search queries
      - merged_at is only ever set on pull requests
      - timestamps are the API's ISO-8601 strings, compared lexically
    """
    kind: ItemKind
    number: int
    title: str
    url: str
    state: str
    created_at: str
    updated_at: str
    closed_at: Optional[str] = None
    merged_at: Optional[str] = None
    author: Optional[ProfileRef] = None
    participants: Tuple[ProfileRef, ...] = ()  # comment authors, then review authors

    def __post_init__(self) -> None:
        if self.kind is ItemKind.ISSUE and self.merged_at is not None:
            raise ValueError(f"Issue {self.url} cannot carry merged_at")

    @property
    def is_pull_request(self) -> bool:
        return self.kind is ItemKind.PULL_REQUEST


@dataclass
class ActivityDigest:
    """Deduplicated items for one run, plus everyone who took part."""
    pull_requests: List[ActivityItem] = field(default_factory=list)  # ascending by number
    issues: List[ActivityItem] = field(default_factory=list)  # ascending by number
    contributors: Dict[str, str] = field(default_factory=dict)  # login -> profile url

    @property
    def is_empty(self) -> bool:
        return not self.pull_requests and not self.issues


def _parse_profile(raw: Optional[Dict[str, Any]]) -> Optional[ProfileRef]:
    # Deleted accounts come back as author: null
    if not raw or not raw.get("login"):
        return None
    return ProfileRef(name=str(raw["login"]), url=str(raw.get("url") or ""))


def _connection_authors(node: Dict[str, Any], connection: str) -> List[ProfileRef]:
    nodes = (node.get(connection) or {}).get("nodes") or []
    authors: List[ProfileRef] = []
    for child in nodes:
        profile = _parse_profile((child or {}).get("author"))
        if profile is not None:
            authors.append(profile)
    return authors


def _required(node: Dict[str, Any], key: str) -> Any:
    value = node[key]
    if value is None:
        raise ValueError(f"node field {key!r} is null")
    return value


def parse_node(node: Dict[str, Any]) -> Optional[ActivityItem]:
    """
    Convert one GraphQL search node into an ActivityItem.

    Returns None for nodes that are neither a PullRequest nor an Issue (the
    search API returns empty objects for types no fragment matched).

    Raises:
        KeyError/ValueError/TypeError: If a PullRequest/Issue node lacks required fields
    """
    typename = node.get("__typename")
    if typename not in (ItemKind.PULL_REQUEST.value, ItemKind.ISSUE.value):
        return None
    kind = ItemKind(typename)

    participants = _connection_authors(node, "comments")
    if kind is ItemKind.PULL_REQUEST:
        participants.extend(_connection_authors(node, "reviews"))

    return ActivityItem(
        kind=kind,
        number=int(_required(node, "number")),
        title=str(_required(node, "title")),
        url=str(_required(node, "url")),
        state=str(node.get("state") or ""),
        created_at=str(_required(node, "createdAt")),
        updated_at=str(_required(node, "updatedAt")),
        closed_at=node.get("closedAt"),
        merged_at=node.get("mergedAt") if kind is ItemKind.PULL_REQUEST else None,
        author=_parse_profile(node.get("author")),
        participants=tuple(participants),
    )


def merge_activity(*node_lists: Iterable[Dict[str, Any]]) -> ActivityDigest:
    """
    Deduplicate raw search nodes by URL and harvest contributors.

    Args:
        node_lists: Raw node lists in fetch order (PR search first, then issues)

    Returns:
        ActivityDigest with each partition sorted ascending by number

    Failure modes:
        - The later occurrence of a URL replaces the earlier one
        - Contributors seen again keep their name and take the latest url
        - Nodes missing required fields are logged and skipped
    """
    items_by_url: Dict[str, ActivityItem] = {}
    contributors: Dict[str, str] = {}

    for nodes in node_lists:
        for node in nodes:
            try:
                item = parse_node(node)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                print(f"[newsletter] WARNING: skipping malformed node {node.get('url', '?')}: {type(e).__name__}: {e}", file=sys.stderr)
                continue
            if item is None:
                continue
            items_by_url[item.url] = item

            for person in (item.author, *item.participants):
                if person is not None:
                    contributors[person.name] = person.url

    pull_requests = [i for i in items_by_url.values() if i.kind is ItemKind.PULL_REQUEST]
    issues = [i for i in items_by_url.values() if i.kind is ItemKind.ISSUE]
    pull_requests.sort(key=lambda i: i.number)
    issues.sort(key=lambda i: i.number)

    return ActivityDigest(pull_requests=pull_requests, issues=issues, contributors=contributors)
