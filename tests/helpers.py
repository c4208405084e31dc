"""Builders for Linear records and a scripted stand-in for LinearClient."""

from datetime import datetime, timedelta, timezone

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def ts(dt):
    return dt.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def make_member(id, name, display_name=None, active=True):
    return {
        "id": id,
        "name": name,
        "displayName": display_name if display_name is not None else name,
        "email": f"{id}@example.com",
        "avatarUrl": None,
        "active": active,
    }


def make_issue(id, assignee=None, creator=None, identifier=None):
    return {
        "id": id,
        "identifier": identifier or f"ENG-{id}",
        "title": f"Issue {id}",
        "url": f"https://linear.app/acme/issue/{identifier or 'ENG-' + id}",
        "createdAt": ts(T0),
        "updatedAt": ts(T0),
        "completedAt": None,
        "assignee": {"id": assignee, "name": assignee} if assignee else None,
        "creator": {"id": creator, "name": creator} if creator else None,
        "state": {"name": "In Progress", "type": "started"},
    }


def make_comment(id, issue_id, body, author=None, at=T0, reactors=()):
    identifier = f"ENG-{issue_id}"
    return {
        "id": id,
        "body": body,
        "createdAt": ts(at),
        "user": {"id": author, "name": author} if author else None,
        "reactorIds": list(reactors),
        "issue": {
            "id": issue_id,
            "identifier": identifier,
            "title": f"Issue {issue_id}",
            "url": f"https://linear.app/acme/issue/{identifier}",
        },
    }


def connection(nodes, has_next=False, cursor=None):
    return {
        "nodes": nodes,
        "pageInfo": {"hasNextPage": has_next, "endCursor": cursor},
    }


def hours(n):
    return timedelta(hours=n)


class FakeLinearClient:
    """Answers ``execute`` from a script instead of the network.

    ``responses`` is consumed in order; an exception in it is raised instead
    of returned. ``handler(query, variables)`` is used when given.
    """

    def __init__(self, responses=None, handler=None):
        self.responses = list(responses or [])
        self.handler = handler
        self.calls = []

    async def execute(self, query, variables=None):
        variables = dict(variables or {})
        self.calls.append((query, variables))
        if self.handler is not None:
            response = self.handler(query, variables)
        else:
            response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response
