from cache import cached
from constants import HISTORY_PAGE_SIZE, ISSUES_PAGE_SIZE
from .pagination import ConnectionExtractor, fetch_all

ISSUE_FIELDS = """
          id
          identifier
          title
          url
          createdAt
          updatedAt
          completedAt
          assignee {
            id
            name
          }
          creator {
            id
            name
          }
          state {
            name
            type
          }
"""


def _issues_in_range_query(date_field):
    """Build the query for team issues whose ``date_field`` falls in [gte, lt)."""
    return f"""
    query IssuesBy{date_field[0].upper()}{date_field[1:]} (
        $teamId: ID,
        $gte: DateTimeOrDuration!,
        $lt: DateTimeOrDuration!,
        $after: String
    ) {{
      issues(
        first: {ISSUES_PAGE_SIZE}
        after: $after
        filter: {{
          team: {{ id: {{ eq: $teamId }} }}
          {date_field}: {{ gte: $gte, lt: $lt }}
        }}
      ) {{
        nodes {{{ISSUE_FIELDS}        }}
        pageInfo {{
          hasNextPage
          endCursor
        }}
      }}
    }}
    """


UPDATED_ISSUES_QUERY = _issues_in_range_query("updatedAt")
CREATED_ISSUES_QUERY = _issues_in_range_query("createdAt")
COMPLETED_ISSUES_QUERY = _issues_in_range_query("completedAt")

ISSUE_COMMENTS_QUERY = f"""
    query TeamIssueComments (
        $teamId: ID,
        $since: DateTimeOrDuration!,
        $after: String
    ) {{
      issues(
        first: {ISSUES_PAGE_SIZE}
        after: $after
        filter: {{
          team: {{ id: {{ eq: $teamId }} }}
          updatedAt: {{ gte: $since }}
        }}
      ) {{
        nodes {{
          id
          identifier
          title
          url
          comments {{
            nodes {{
              id
              body
              createdAt
              user {{
                id
                name
              }}
              reactions {{
                user {{
                  id
                }}
              }}
            }}
          }}
        }}
        pageInfo {{
          hasNextPage
          endCursor
        }}
      }}
    }}
"""

ISSUE_HISTORY_QUERY = f"""
    query IssueHistory($issueId: String!, $after: String) {{
      issue(id: $issueId) {{
        history(first: {HISTORY_PAGE_SIZE}, after: $after) {{
          nodes {{
            id
            createdAt
            actor {{
              id
              name
            }}
            fromState {{
              name
            }}
            toState {{
              name
            }}
          }}
          pageInfo {{
            hasNextPage
            endCursor
          }}
        }}
      }}
    }}
"""

_ISSUES = ConnectionExtractor("issues")


async def _get_issues_in_range(client, query, team_id, start, end):
    return await fetch_all(
        client, query, {"teamId": team_id, "gte": start, "lt": end}, _ISSUES
    )


@cached("issues_updated")
async def get_issues_updated(client, team_id, start, end):
    """Return team issues updated in [start, end)."""
    return await _get_issues_in_range(client, UPDATED_ISSUES_QUERY, team_id, start, end)


@cached("issues_created")
async def get_issues_created(client, team_id, start, end):
    """Return team issues created in [start, end)."""
    return await _get_issues_in_range(client, CREATED_ISSUES_QUERY, team_id, start, end)


@cached("issues_completed")
async def get_issues_completed(client, team_id, start, end):
    """Return team issues completed in [start, end)."""
    return await _get_issues_in_range(
        client, COMPLETED_ISSUES_QUERY, team_id, start, end
    )


def flatten_comments(issues):
    """Turn issues with nested comments into a flat list of comment records.

    Each comment keeps a reference back to its issue and the ids of the
    members who reacted to it.
    """
    comments = []
    for issue in issues:
        issue_ref = {
            "id": issue["id"],
            "identifier": issue.get("identifier"),
            "title": issue.get("title"),
            "url": issue.get("url"),
        }
        for comment in (issue.get("comments") or {}).get("nodes", []):
            reactor_ids = [
                reaction["user"]["id"]
                for reaction in comment.get("reactions") or []
                if (reaction.get("user") or {}).get("id")
            ]
            comments.append(
                {
                    "id": comment["id"],
                    "body": comment.get("body") or "",
                    "createdAt": comment["createdAt"],
                    "user": comment.get("user"),
                    "reactorIds": reactor_ids,
                    "issue": issue_ref,
                }
            )
    return comments


@cached("comments")
async def get_issue_comments(client, team_id, since):
    """Return comments on team issues updated since ``since``."""
    issues = await fetch_all(
        client, ISSUE_COMMENTS_QUERY, {"teamId": team_id, "since": since}, _ISSUES
    )
    return flatten_comments(issues)


async def get_issue_history(client, issue_id):
    """Return the full history of one issue, oldest page first."""
    return await fetch_all(
        client,
        ISSUE_HISTORY_QUERY,
        {"issueId": issue_id},
        ConnectionExtractor("issue", "history"),
    )
