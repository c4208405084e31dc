import asyncio

import pytest

from helpers import FakeLinearClient, connection
from linear.client import RemoteQueryError, TransportError
from linear.pagination import ConnectionExtractor, Page, PageInfo, fetch_all

QUERY = "query Things($after: String) { things { nodes { id } } }"


def _pages(*sizes):
    responses = []
    start = 0
    for index, size in enumerate(sizes):
        nodes = [{"id": str(n)} for n in range(start, start + size)]
        start += size
        last = index == len(sizes) - 1
        responses.append(
            {"things": connection(nodes, has_next=not last, cursor=None if last else f"c{index}")}
        )
    return responses


def test_fetch_all_concatenates_pages_in_order():
    client = FakeLinearClient(_pages(3, 2, 0))
    nodes = asyncio.run(
        fetch_all(client, QUERY, {"teamId": "t1"}, ConnectionExtractor("things"))
    )
    assert [n["id"] for n in nodes] == ["0", "1", "2", "3", "4"]
    assert len(client.calls) == 3


def test_fetch_all_advances_cursor_and_keeps_variables():
    client = FakeLinearClient(_pages(1, 1, 1))
    asyncio.run(fetch_all(client, QUERY, {"teamId": "t1"}, ConnectionExtractor("things")))
    assert [variables for _, variables in client.calls] == [
        {"teamId": "t1", "after": None},
        {"teamId": "t1", "after": "c0"},
        {"teamId": "t1", "after": "c1"},
    ]


def test_fetch_all_stops_after_last_page():
    # a script longer than needed: the extra page must never be requested
    client = FakeLinearClient(_pages(2) + _pages(5))
    nodes = asyncio.run(fetch_all(client, QUERY, {}, ConnectionExtractor("things")))
    assert len(nodes) == 2
    assert len(client.calls) == 1
    assert len(client.responses) == 1


def test_fetch_all_failure_returns_nothing():
    responses = _pages(2, 2, 2, 2, 2)
    responses[2] = TransportError(502, "Bad Gateway")
    client = FakeLinearClient(responses)
    with pytest.raises(TransportError) as excinfo:
        asyncio.run(fetch_all(client, QUERY, {}, ConnectionExtractor("things")))
    assert excinfo.value.status == 502
    assert len(client.calls) == 3


def test_fetch_all_propagates_remote_query_error():
    client = FakeLinearClient([RemoteQueryError(["Entity not found", "Bad id"])])
    with pytest.raises(RemoteQueryError, match="Entity not found, Bad id"):
        asyncio.run(fetch_all(client, QUERY, {}, ConnectionExtractor("things")))


def test_connection_extractor_follows_nested_path():
    data = {"team": {"members": connection([{"id": "u1"}], True, "abc")}}
    page = ConnectionExtractor("team", "members").extract(data)
    assert page == Page([{"id": "u1"}], PageInfo(True, "abc"))


def test_connection_extractor_null_object_is_last_page():
    page = ConnectionExtractor("team", "members").extract({"team": None})
    assert page.nodes == []
    assert page.page_info.has_next_page is False


def test_connection_extractor_requires_path():
    with pytest.raises(ValueError):
        ConnectionExtractor()
