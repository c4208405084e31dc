"""Cursor pagination over Linear's Relay-style connections.

Every paged field takes ``first``/``after`` and answers with
``{nodes: [...], pageInfo: {hasNextPage, endCursor}}``. ``fetch_all`` walks
such a connection to the end and returns the concatenated nodes.
"""

import logging
from typing import Any, NamedTuple, Protocol


class PageInfo(NamedTuple):
    has_next_page: bool
    end_cursor: str | None


class Page(NamedTuple):
    nodes: list[dict[str, Any]]
    page_info: PageInfo


LAST_PAGE = PageInfo(has_next_page=False, end_cursor=None)


class PageExtractor(Protocol):
    def extract(self, data: dict[str, Any]) -> Page:
        ...


class ConnectionExtractor:
    """Pull the connection found at a fixed key path out of a response.

    ``ConnectionExtractor("team", "members")`` reads
    ``data["team"]["members"]``. A null object along the path (an unknown
    team, say) reads as an empty last page.
    """

    def __init__(self, *path: str):
        if not path:
            raise ValueError("ConnectionExtractor needs at least one key")
        self.path = path

    def extract(self, data: dict[str, Any]) -> Page:
        connection: Any = data
        for key in self.path:
            connection = (connection or {}).get(key)
        if not connection:
            return Page([], LAST_PAGE)
        page_info = connection.get("pageInfo") or {}
        return Page(
            list(connection.get("nodes") or []),
            PageInfo(
                has_next_page=bool(page_info.get("hasNextPage")),
                end_cursor=page_info.get("endCursor"),
            ),
        )

    def __repr__(self):
        return f"ConnectionExtractor({'.'.join(self.path)})"


async def fetch_all(client, query: str, variables: dict, extractor: PageExtractor):
    """Request every page of ``query`` and return all nodes in arrival order.

    ``variables`` must not contain the cursor; ``after`` is added per page.
    Errors from ``client.execute`` propagate and nothing fetched so far is
    returned. Termination relies on the API eventually reporting
    ``hasNextPage: false``.
    """
    nodes = []
    cursor = None
    has_next = True
    pages = 0
    while has_next:
        data = await client.execute(query, {**variables, "after": cursor})
        page = extractor.extract(data)
        nodes += page.nodes
        pages += 1
        logging.debug(
            "%r page %d: %d nodes, has_next=%s",
            extractor,
            pages,
            len(page.nodes),
            page.page_info.has_next_page,
        )
        has_next = page.page_info.has_next_page
        cursor = page.page_info.end_cursor
    return nodes
