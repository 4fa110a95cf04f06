from __future__ import annotations

import sys
from typing import Any, Dict, List

import httpx

from newsletter.activity import ItemKind
from newsletter.config import NewsletterConfig
from newsletter.window import DateWindow

SEARCH_LIMIT = 100
NESTED_LIMIT = 20
CATEGORY_LIMIT = 10

SEARCH_QUERY = """
query($q: String!) {
  search(query: $q, type: ISSUE, first: %(search_limit)d) {
    nodes {
      ... on PullRequest {
        __typename
        number
        title
        url
        state
        createdAt
        updatedAt
        closedAt
        mergedAt
        author { login url }
        comments(first: %(nested_limit)d) { nodes { author { login url } } }
        reviews(first: %(nested_limit)d) { nodes { author { login url } } }
      }
      ... on Issue {
        __typename
        number
        title
        url
        state
        createdAt
        updatedAt
        closedAt
        author { login url }
        comments(first: %(nested_limit)d) { nodes { author { login url } } }
      }
    }
  }
}
""" % {"search_limit": SEARCH_LIMIT, "nested_limit": NESTED_LIMIT}

REPOSITORY_QUERY = """
query($owner: String!, $repo: String!) {
  repository(owner: $owner, name: $repo) {
    id
    discussionCategories(first: %d) { nodes { id name } }
  }
}
""" % CATEGORY_LIMIT

CREATE_DISCUSSION_MUTATION = """
mutation($repositoryId: ID!, $categoryId: ID!, $title: String!, $body: String!) {
  createDiscussion(input: {repositoryId: $repositoryId, categoryId: $categoryId, title: $title, body: $body}) {
    discussion { url }
  }
}
"""

_SEARCH_QUALIFIER = {
    ItemKind.PULL_REQUEST: "is:pr",
    ItemKind.ISSUE: "is:issue",
}


class GraphQLError(RuntimeError):
    """Base class for failed GraphQL calls."""


class GraphQLRequestError(GraphQLError):
    """Raised when the endpoint answers with an HTTP error status."""

    def __init__(self, status_code: int, text: str) -> None:
        self.status_code = status_code
        super().__init__(f"GraphQL request failed ({status_code}): {text[:200]}")


class GraphQLErrorsError(GraphQLError):
    """Raised when the response payload carries an errors array."""

    def __init__(self, errors: Any) -> None:
        self.errors = errors
        super().__init__(f"GraphQL errors: {errors}")


def build_headers(cfg: NewsletterConfig) -> Dict[str, str]:
    return {
        "Authorization": f"token {cfg.token}",
        "User-Agent": cfg.user_agent,
        "Accept": "application/json",
    }


def open_client(cfg: NewsletterConfig) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=cfg.timeout_s, headers=build_headers(cfg))


async def call_graphql(
    client: httpx.AsyncClient,
    cfg: NewsletterConfig,
    query: str,
    variables: Dict[str, Any],
) -> Dict[str, Any]:
    """
    POST a GraphQL document and return its data payload.

    Raises:
        httpx.HTTPError: Transport failures (timeouts, connection errors)
        GraphQLRequestError: HTTP status >= 400
        GraphQLErrorsError: Response contains a non-empty errors array
        GraphQLError: Body is JSON but not an object
        ValueError: Body is not JSON
    """
    resp = await client.post(cfg.graphql_url, json={"query": query, "variables": variables})
    if resp.status_code >= 400:
        raise GraphQLRequestError(resp.status_code, resp.text)

    payload = resp.json()
    if not isinstance(payload, dict):
        raise GraphQLError(f"unexpected payload: {type(payload).__name__}")
    if payload.get("errors"):
        raise GraphQLErrorsError(payload["errors"])
    return payload.get("data") or {}


def build_search_query(repository: str, kind: ItemKind, window: DateWindow) -> str:
    return f"repo:{repository} {_SEARCH_QUALIFIER[kind]} updated:{window.start_str}..{window.end_str}"


async def search_items(client: httpx.AsyncClient, cfg: NewsletterConfig, query: str) -> List[Dict[str, Any]]:
    """
    Run one search and return its raw nodes (first page only).

    Conservative semantics:
      - Any transport, status, GraphQL or payload failure is logged and yields []
      - Never raises, so the sibling search always completes
    """
    try:
        data = await call_graphql(client, cfg, SEARCH_QUERY, {"q": query})
        nodes = data["search"]["nodes"]
        return [node for node in nodes if isinstance(node, dict) and node]
    except (httpx.HTTPError, GraphQLError, ValueError, KeyError, TypeError) as e:
        print(f"[newsletter] WARNING: search failed, using no results for '{query}': {type(e).__name__}: {e}", file=sys.stderr)
        return []


async def fetch_repository(client: httpx.AsyncClient, cfg: NewsletterConfig, owner: str, name: str) -> Dict[str, Any]:
    """Return {"id": ..., "discussionCategories": {"nodes": [...]}} or {} if the repository is not visible."""
    data = await call_graphql(client, cfg, REPOSITORY_QUERY, {"owner": owner, "repo": name})
    return data.get("repository") or {}


async def create_discussion(
    client: httpx.AsyncClient,
    cfg: NewsletterConfig,
    repository_id: str,
    category_id: str,
    title: str,
    body: str,
) -> str:
    """Create a discussion and return its URL."""
    data = await call_graphql(
        client,
        cfg,
        CREATE_DISCUSSION_MUTATION,
        {"repositoryId": repository_id, "categoryId": category_id, "title": title, "body": body},
    )
    return data["createDiscussion"]["discussion"]["url"]
