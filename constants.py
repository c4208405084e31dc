# Constants used across the application

LINEAR_API_URL = "https://api.linear.app/graphql"

# Page sizes requested from Linear for each connection
TEAMS_PAGE_SIZE = 50
MEMBERS_PAGE_SIZE = 50
ISSUES_PAGE_SIZE = 100
HISTORY_PAGE_SIZE = 50

# Cached query results are considered stale after five minutes
CACHE_TTL_SECONDS = 5 * 60
CACHE_PREFIX = "team_pulse_"

# A mention is unresponsive once it has gone this long without a reply or
# reaction from the mentioned member
MENTION_RESPONSE_WINDOW_HOURS = 48
MENTION_SNIPPET_LENGTH = 120

# Comments are pulled from issues updated within this many days of the
# selected date
COMMENT_LOOKBACK_DAYS = 14

# Seconds to wait for a single GraphQL request before giving up
REQUEST_TIMEOUT_SECONDS = 30

# Local time of day the unresponsive mention digest is posted to Slack
DIGEST_TIME = "13:00"
