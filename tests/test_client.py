import asyncio

import aiohttp
import pytest
from aiohttp import test_utils, web
from gql.transport.exceptions import (
    TransportProtocolError,
    TransportQueryError,
)

from linear.client import LinearClient, RemoteQueryError, TransportError


class FakeSession:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def execute(self, document, variable_values=None):
        self.calls.append((document, variable_values))
        if self.error is not None:
            raise self.error
        return self.result


def _client(session):
    client = LinearClient("lin_api_test", timeout=5)
    client._session = session
    return client


def test_execute_returns_data_and_passes_variables():
    session = FakeSession(result={"teams": {"nodes": []}})
    data = asyncio.run(_client(session).execute("query { viewer { id } }", {"after": None}))
    assert data == {"teams": {"nodes": []}}
    assert session.calls[0][1] == {"after": None}


def test_graphql_errors_become_remote_query_error():
    error = TransportQueryError(
        "query failed",
        errors=[{"message": "Entity not found"}, {"message": "Argument invalid"}],
    )
    with pytest.raises(RemoteQueryError) as excinfo:
        asyncio.run(_client(FakeSession(error=error)).execute("query { x }"))
    assert str(excinfo.value) == "Entity not found, Argument invalid"
    assert excinfo.value.messages == ["Entity not found", "Argument invalid"]


def _serve(response):
    """Run one query through a real LinearClient against a local server answering with ``response``."""

    async def graphql(request):
        assert request.headers["Authorization"] == "lin_api_test"
        return response()

    async def run():
        app = web.Application()
        app.router.add_post("/graphql", graphql)
        async with test_utils.TestServer(app) as server:
            url = str(server.make_url("/graphql"))
            async with LinearClient("lin_api_test", url=url, timeout=5) as client:
                return await client.execute("query { viewer { id } }")

    return asyncio.run(run())


@pytest.mark.parametrize("status", [400, 401, 500])
def test_error_status_with_json_errors_body_becomes_transport_error(status):
    with pytest.raises(TransportError) as excinfo:
        _serve(
            lambda: web.json_response(
                {"errors": [{"message": "Authentication required"}]}, status=status
            )
        )
    assert excinfo.value.status == status
    assert str(status) in str(excinfo.value)


def test_error_status_with_html_body_becomes_transport_error():
    with pytest.raises(TransportError) as excinfo:
        _serve(lambda: web.Response(text="<html>Bad Gateway</html>", status=502))
    assert excinfo.value.status == 502


def test_ok_status_with_errors_body_becomes_remote_query_error():
    with pytest.raises(RemoteQueryError) as excinfo:
        _serve(
            lambda: web.json_response(
                {"data": None, "errors": [{"message": "Entity not found"}]}
            )
        )
    assert str(excinfo.value) == "Entity not found"


def test_ok_status_returns_data():
    data = _serve(lambda: web.json_response({"data": {"viewer": {"id": "u1"}}}))
    assert data == {"viewer": {"id": "u1"}}


@pytest.mark.parametrize(
    "error",
    [
        TransportProtocolError("Not a JSON answer"),
        aiohttp.ClientConnectionError("connection refused"),
        asyncio.TimeoutError(),
    ],
)
def test_other_failures_become_transport_error_without_status(error):
    with pytest.raises(TransportError) as excinfo:
        asyncio.run(_client(FakeSession(error=error)).execute("query { x }"))
    assert excinfo.value.status is None


def test_execute_requires_open_session():
    with pytest.raises(RuntimeError):
        asyncio.run(LinearClient("lin_api_test").execute("query { x }"))
