from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from httpx import Request, Response


class FakeGitHub:
    """respx side effect answering the queries the roundup pipeline sends."""

    def __init__(
        self,
        prs: Optional[List[Dict[str, Any]]] = None,
        issues: Optional[List[Dict[str, Any]]] = None,
        categories: Optional[List[Dict[str, str]]] = None,
        fail_pr_search: bool = False,
    ) -> None:
        self.prs = prs or []
        self.issues = issues or []
        self.categories = categories if categories is not None else [
            {"id": "CAT_GENERAL", "name": "General"},
            {"id": "CAT_ANNOUNCE", "name": "Announcements"},
        ]
        self.fail_pr_search = fail_pr_search
        self.created: List[Dict[str, Any]] = []
        self.searches: List[str] = []

    def __call__(self, request: Request) -> Response:
        sent = json.loads(request.content)
        query, variables = sent["query"], sent["variables"]

        if "search(" in query:
            self.searches.append(variables["q"])
            if "is:pr" in variables["q"]:
                if self.fail_pr_search:
                    return Response(500, text="boom")
                return Response(200, json={"data": {"search": {"nodes": self.prs}}})
            return Response(200, json={"data": {"search": {"nodes": self.issues}}})

        if "createDiscussion" in query:
            self.created.append(variables)
            return Response(
                200,
                json={"data": {"createDiscussion": {"discussion": {"url": "https://github.com/o/r/discussions/1"}}}},
            )

        if "repository(" in query:
            return Response(
                200,
                json={
                    "data": {
                        "repository": {
                            "id": "REPO_ID",
                            "discussionCategories": {"nodes": self.categories},
                        }
                    }
                },
            )

        return Response(400, json={"errors": [{"message": "unexpected query"}]})
