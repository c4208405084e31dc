import asyncio
import logging
from functools import lru_cache

import aiohttp
from gql import Client, gql
from gql.transport.aiohttp import AIOHTTPTransport
from gql.transport.exceptions import TransportError as GqlTransportError
from gql.transport.exceptions import TransportQueryError, TransportServerError

from constants import LINEAR_API_URL, REQUEST_TIMEOUT_SECONDS


class LinearError(Exception):
    """Base class for failures talking to the Linear API."""


class TransportError(LinearError):
    """The request did not produce a usable GraphQL response."""

    def __init__(self, status, reason):
        self.status = status
        self.reason = reason
        if status is None:
            message = f"Linear API error: {reason}"
        else:
            message = f"Linear API error: {status} {reason}"
        super().__init__(message)


class RemoteQueryError(LinearError):
    """Linear answered with a GraphQL ``errors`` list."""

    def __init__(self, messages):
        self.messages = list(messages)
        super().__init__(", ".join(self.messages))


@lru_cache(maxsize=None)
def _document(query: str):
    return gql(query)


class LinearClient:
    """Async session against the Linear GraphQL endpoint.

    Use as ``async with LinearClient(token) as client``; every query made
    through one client shares a single HTTP session, so independent queries
    can be awaited concurrently.
    """

    def __init__(
        self,
        token: str,
        url: str = LINEAR_API_URL,
        timeout: int = REQUEST_TIMEOUT_SECONDS,
    ):
        self.token = token
        self.url = url
        self.timeout = timeout
        self._client = None
        self._session = None

    async def __aenter__(self):
        transport = AIOHTTPTransport(
            url=self.url,
            headers={"Authorization": self.token},
            client_session_args={"raise_for_status": True},
        )
        self._client = Client(
            transport=transport,
            fetch_schema_from_transport=False,
            execute_timeout=self.timeout,
        )
        self._session = await self._client.connect_async()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if self._client is not None:
            await self._client.close_async()
        self._client = None
        self._session = None

    async def execute(self, query: str, variables: dict | None = None) -> dict:
        """Run ``query`` and return its ``data`` payload.

        Raises ``TransportError`` when no GraphQL response came back and
        ``RemoteQueryError`` when the response reports errors. Nothing is
        retried.
        """
        if self._session is None:
            raise RuntimeError("LinearClient must be entered with 'async with'")
        try:
            return await self._session.execute(
                _document(query), variable_values=variables or {}
            )
        except TransportQueryError as e:
            messages = [
                err.get("message", str(err)) if isinstance(err, dict) else str(err)
                for err in e.errors or []
            ] or [str(e)]
            logging.error("Linear query failed: %s", ", ".join(messages))
            raise RemoteQueryError(messages) from e
        except aiohttp.ClientResponseError as e:
            logging.error("Linear API returned %s: %s", e.status, e.message)
            raise TransportError(e.status, e.message) from e
        except TransportServerError as e:
            logging.error("Linear API returned %s: %s", e.code, e)
            raise TransportError(e.code, str(e)) from e
        except (GqlTransportError, aiohttp.ClientError) as e:
            logging.error("Linear request failed: %s", e)
            raise TransportError(None, str(e) or type(e).__name__) from e
        except asyncio.TimeoutError as e:
            logging.error("Linear request timed out after %ss", self.timeout)
            raise TransportError(None, f"timed out after {self.timeout}s") from e
