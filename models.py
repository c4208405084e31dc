"""Shapes of the Linear records passed around the app.

Records stay the plain dicts Linear returns so they can be cached as JSON;
these TypedDicts only document the keys that are read.
"""

from typing import TypedDict


class UserRef(TypedDict):
    id: str
    name: str


class IssueState(TypedDict):
    name: str
    type: str


class IssueRef(TypedDict):
    id: str
    identifier: str
    title: str
    url: str


class Team(TypedDict):
    id: str
    name: str
    key: str


class Member(TypedDict):
    id: str
    name: str
    displayName: str
    email: str
    avatarUrl: str | None
    active: bool


class Issue(TypedDict):
    id: str
    identifier: str
    title: str
    url: str
    createdAt: str
    updatedAt: str
    completedAt: str | None
    assignee: UserRef | None
    creator: UserRef | None
    state: IssueState


class Comment(TypedDict):
    id: str
    body: str
    createdAt: str
    user: UserRef | None
    reactorIds: list[str]
    issue: IssueRef


class HistoryEntry(TypedDict):
    id: str
    createdAt: str
    actor: UserRef | None
    fromState: dict | None
    toState: dict | None


class UnresponsiveMention(TypedDict):
    issueIdentifier: str
    issueTitle: str
    issueUrl: str
    mentionedAt: str
    commentSnippet: str


class MemberMetrics(TypedDict):
    member: Member
    workedOn: list[Issue]
    created: list[Issue]
    completed: list[Issue]
    interacted: list[Issue]
    unresponsiveMentions: list[UnresponsiveMention]
