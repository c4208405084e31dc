from cache import cached
from constants import MEMBERS_PAGE_SIZE, TEAMS_PAGE_SIZE
from .pagination import ConnectionExtractor, fetch_all

TEAMS_QUERY = f"""
    query Teams($after: String) {{
      teams(first: {TEAMS_PAGE_SIZE}, after: $after) {{
        nodes {{
          id
          name
          key
        }}
        pageInfo {{
          hasNextPage
          endCursor
        }}
      }}
    }}
"""

TEAM_MEMBERS_QUERY = f"""
    query TeamMembers($teamId: String!, $after: String) {{
      team(id: $teamId) {{
        members(first: {MEMBERS_PAGE_SIZE}, after: $after) {{
          nodes {{
            id
            name
            displayName
            email
            avatarUrl
            active
          }}
          pageInfo {{
            hasNextPage
            endCursor
          }}
        }}
      }}
    }}
"""


@cached("teams")
async def get_teams(client):
    """Return every team visible to the API key."""
    return await fetch_all(client, TEAMS_QUERY, {}, ConnectionExtractor("teams"))


@cached("members")
async def get_team_members(client, team_id):
    """Return the active members of ``team_id``."""
    members = await fetch_all(
        client,
        TEAM_MEMBERS_QUERY,
        {"teamId": team_id},
        ConnectionExtractor("team", "members"),
    )
    return [member for member in members if member.get("active")]
