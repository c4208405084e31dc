from datetime import datetime, timedelta, timezone

from constants import MENTION_RESPONSE_WINDOW_HOURS, MENTION_SNIPPET_LENGTH
from models import Comment, Issue, Member, MemberMetrics, UnresponsiveMention

MENTION_RESPONSE_WINDOW = timedelta(hours=MENTION_RESPONSE_WINDOW_HOURS)


def _parse_timestamp(value: str) -> datetime:
    """Parse a Linear ISO timestamp (``...Z``) into an aware datetime."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _ref_id(record: dict | None) -> str | None:
    return (record or {}).get("id")


def _is_assignee(issue: Issue, member_id: str | None) -> bool:
    return member_id is not None and _ref_id(issue.get("assignee")) == member_id


def _is_creator(issue: Issue, member_id: str | None) -> bool:
    return member_id is not None and _ref_id(issue.get("creator")) == member_id


def unique_issues(issues: list[Issue]) -> list[Issue]:
    """Drop repeated issue ids, keeping the first occurrence in place."""
    seen: set[str] = set()
    unique: list[Issue] = []
    for issue in issues:
        issue_id = issue.get("id")
        if issue_id is not None:
            if issue_id in seen:
                continue
            seen.add(issue_id)
        unique.append(issue)
    return unique


def mentions_member(body: str, member: Member) -> bool:
    """Return True if ``body`` @-mentions the member's display, full or first name."""
    lower = (body or "").lower()
    name = member.get("name") or ""
    candidates = [member.get("displayName") or "", name, name.split(" ")[0]]
    return any(
        candidate and f"@{candidate.lower()}" in lower for candidate in candidates
    )


def find_unresponsive_mentions(
    member: Member, comments: list[Comment], now: datetime
) -> list[UnresponsiveMention]:
    """Return mentions of ``member`` left without a reply or reaction for 48h.

    Comments are grouped per issue and read in time order. A mention counts as
    answered when the member reacted to it or commented later in the same
    thread. At most one mention is reported per issue.
    """
    member_id = member.get("id")
    by_issue: dict[str, list[Comment]] = {}
    for comment in comments:
        by_issue.setdefault(comment["issue"]["id"], []).append(comment)

    results: list[UnresponsiveMention] = []
    for thread in by_issue.values():
        thread = sorted(thread, key=lambda c: _parse_timestamp(c["createdAt"]))
        for index, comment in enumerate(thread):
            if member_id is not None and _ref_id(comment.get("user")) == member_id:
                continue
            if not mentions_member(comment.get("body") or "", member):
                continue

            deadline = _parse_timestamp(comment["createdAt"]) + MENTION_RESPONSE_WINDOW
            reacted = member_id in (comment.get("reactorIds") or [])
            replied = member_id is not None and any(
                _ref_id(later.get("user")) == member_id
                for later in thread[index + 1 :]
            )
            if reacted or replied or now <= deadline:
                continue

            issue = comment["issue"]
            results.append(
                {
                    "issueIdentifier": issue.get("identifier"),
                    "issueTitle": issue.get("title"),
                    "issueUrl": issue.get("url"),
                    "mentionedAt": comment["createdAt"],
                    "commentSnippet": (comment.get("body") or "")[
                        :MENTION_SNIPPET_LENGTH
                    ],
                }
            )

    seen_urls: set[str] = set()
    unique: list[UnresponsiveMention] = []
    for mention in results:
        if mention["issueUrl"] in seen_urls:
            continue
        seen_urls.add(mention["issueUrl"])
        unique.append(mention)
    return unique


def activity_score(metrics: MemberMetrics) -> int:
    return (
        len(metrics["workedOn"])
        + len(metrics["created"])
        + len(metrics["completed"])
        + len(metrics["interacted"])
    )


def _member_metrics(
    member: Member,
    updated_issues: list[Issue],
    created_issues: list[Issue],
    completed_issues: list[Issue],
    comments: list[Comment],
    now: datetime,
) -> MemberMetrics:
    member_id = member.get("id")
    worked_on = [i for i in updated_issues if _is_assignee(i, member_id)]
    created = [i for i in created_issues if _is_creator(i, member_id)]
    completed = [i for i in completed_issues if _is_assignee(i, member_id)]
    interacted = (
        [
            i
            for i in updated_issues
            if _is_assignee(i, member_id) or _is_creator(i, member_id)
        ]
        + created
        + completed
    )
    return {
        "member": member,
        "workedOn": unique_issues(worked_on),
        "created": unique_issues(created),
        "completed": unique_issues(completed),
        "interacted": unique_issues(interacted),
        "unresponsiveMentions": find_unresponsive_mentions(member, comments, now),
    }


def compute_metrics(
    members: list[Member],
    updated_issues: list[Issue],
    created_issues: list[Issue],
    completed_issues: list[Issue],
    comments: list[Comment],
    now: datetime,
) -> list[MemberMetrics]:
    """Build one metrics record per active member, most active first.

    Ties keep the order ``members`` came in.
    """
    metrics = [
        _member_metrics(
            member, updated_issues, created_issues, completed_issues, comments, now
        )
        for member in members
        if member.get("active", True)
    ]
    return sorted(metrics, key=activity_score, reverse=True)


def summarize(metrics: list[MemberMetrics]) -> dict[str, int]:
    """Return team-wide totals for the dashboard summary bar."""
    return {
        "active_members": sum(1 for m in metrics if m["interacted"]),
        "worked_on": sum(len(m["workedOn"]) for m in metrics),
        "created": sum(len(m["created"]) for m in metrics),
        "completed": sum(len(m["completed"]) for m in metrics),
        "interacted": sum(len(m["interacted"]) for m in metrics),
        "unresponsive_mentions": sum(len(m["unresponsiveMentions"]) for m in metrics),
    }
