import asyncio
import json
from datetime import date

import httpx
import pytest
import respx
from httpx import Response

from newsletter.activity import ItemKind
from newsletter.github import (
    GraphQLErrorsError,
    GraphQLRequestError,
    build_search_query,
    call_graphql,
    open_client,
    search_items,
)
from newsletter.window import resolve_window

from tests.factories import GRAPHQL_URL, issue_node, make_config, pr_node

WINDOW = resolve_window(date(2023, 2, 1))


def _search(cfg, query):
    async def go():
        async with open_client(cfg) as client:
            return await search_items(client, cfg, query)

    return asyncio.run(go())


def test_build_search_query():
    assert build_search_query("octo/repo", ItemKind.PULL_REQUEST, WINDOW) == (
        "repo:octo/repo is:pr updated:2023-01-01..2023-01-31"
    )
    assert build_search_query("octo/repo", ItemKind.ISSUE, WINDOW) == (
        "repo:octo/repo is:issue updated:2023-01-01..2023-01-31"
    )


@respx.mock
def test_search_returns_nodes_and_sends_auth():
    route = respx.post(GRAPHQL_URL).mock(
        return_value=Response(200, json={"data": {"search": {"nodes": [pr_node(1), {}, issue_node(2)]}}})
    )
    cfg = make_config()

    nodes = _search(cfg, "repo:octo/repo is:pr")

    assert [n["number"] for n in nodes] == [1, 2]
    request = route.calls[0].request
    assert request.headers["authorization"] == "token test-token"
    sent = json.loads(request.content)
    assert sent["variables"] == {"q": "repo:octo/repo is:pr"}
    assert "search(query: $q, type: ISSUE, first: 100)" in sent["query"]
    assert "reviews(first: 20)" in sent["query"]


@respx.mock
def test_search_degrades_to_empty_on_http_error(capsys):
    respx.post(GRAPHQL_URL).mock(return_value=Response(502, text="bad gateway"))

    assert _search(make_config(), "q") == []
    assert "search failed" in capsys.readouterr().err


@respx.mock
def test_search_degrades_to_empty_on_graphql_errors():
    respx.post(GRAPHQL_URL).mock(
        return_value=Response(200, json={"data": None, "errors": [{"message": "rate limited"}]})
    )

    assert _search(make_config(), "q") == []


@respx.mock
def test_search_degrades_to_empty_on_network_failure():
    respx.post(GRAPHQL_URL).mock(side_effect=httpx.ConnectError("boom"))

    assert _search(make_config(), "q") == []


@respx.mock
def test_search_degrades_to_empty_on_malformed_payload():
    respx.post(GRAPHQL_URL).mock(return_value=Response(200, json={"data": {"unexpected": True}}))

    assert _search(make_config(), "q") == []


@pytest.mark.parametrize("body", [b"[]", b"null", b"\"oops\"", b"{\"data\": []}"])
@respx.mock
def test_search_degrades_to_empty_on_non_object_json(body, capsys):
    respx.post(GRAPHQL_URL).mock(return_value=Response(200, content=body))

    assert _search(make_config(), "q") == []
    assert "search failed" in capsys.readouterr().err


@respx.mock
def test_search_drops_non_object_nodes():
    respx.post(GRAPHQL_URL).mock(
        return_value=Response(200, json={"data": {"search": {"nodes": [None, "junk", 3, pr_node(1)]}}})
    )

    assert [n["number"] for n in _search(make_config(), "q")] == [1]


def _call(cfg):
    async def go():
        async with open_client(cfg) as client:
            return await call_graphql(client, cfg, "query { viewer { login } }", {})

    return asyncio.run(go())


@respx.mock
def test_call_graphql_raises_on_error_status():
    respx.post(GRAPHQL_URL).mock(return_value=Response(401, text="Bad credentials"))

    with pytest.raises(GraphQLRequestError) as exc_info:
        _call(make_config())

    assert exc_info.value.status_code == 401


@respx.mock
def test_call_graphql_raises_on_errors_array():
    respx.post(GRAPHQL_URL).mock(return_value=Response(200, json={"errors": [{"message": "nope"}]}))

    with pytest.raises(GraphQLErrorsError) as exc_info:
        _call(make_config())

    assert exc_info.value.errors == [{"message": "nope"}]
