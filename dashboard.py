import asyncio
import logging
from datetime import datetime, timedelta, timezone

from constants import COMMENT_LOOKBACK_DAYS, LINEAR_API_URL, REQUEST_TIMEOUT_SECONDS
from linear.client import LinearClient
from linear.issues import (
    get_issue_comments,
    get_issues_completed,
    get_issues_created,
    get_issues_updated,
)
from linear.teams import get_team_members, get_teams
from metrics import compute_metrics

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.000Z"


def _start_of_day(date_str: str) -> datetime:
    return datetime.strptime(date_str, "%Y-%m-%d").replace(tzinfo=timezone.utc)


def day_bounds(date_str: str) -> tuple[str, str]:
    """Return the UTC ``[start, end)`` timestamps of a ``YYYY-MM-DD`` day."""
    start = _start_of_day(date_str)
    end = start + timedelta(days=1)
    return start.strftime(TIMESTAMP_FORMAT), end.strftime(TIMESTAMP_FORMAT)


def comments_since(date_str: str, lookback_days: int = COMMENT_LOOKBACK_DAYS) -> str:
    """Return the cutoff for the comment scan, ``lookback_days`` before the day."""
    since = _start_of_day(date_str) - timedelta(days=lookback_days)
    return since.strftime(TIMESTAMP_FORMAT)


async def _gather_or_cancel(*coroutines):
    """Await all coroutines; on the first failure cancel the rest and re-raise it."""
    tasks = [asyncio.ensure_future(coroutine) for coroutine in coroutines]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        # let the cancelled tasks unwind before the error reaches the caller
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def load_dashboard(
    client,
    team_id,
    date_str,
    *,
    cache=None,
    lookback_days=COMMENT_LOOKBACK_DAYS,
    now=None,
):
    """Fetch one team's activity for ``date_str`` and compute member metrics.

    The five Linear queries run concurrently. If any fails, the others are
    cancelled and its error propagates; no partial metrics are produced.
    """
    start, end = day_bounds(date_str)
    since = comments_since(date_str, lookback_days)
    now = now or datetime.now(timezone.utc)

    members, updated, created, completed, comments = await _gather_or_cancel(
        get_team_members(client, team_id, cache=cache),
        get_issues_updated(client, team_id, start, end, cache=cache),
        get_issues_created(client, team_id, start, end, cache=cache),
        get_issues_completed(client, team_id, start, end, cache=cache),
        get_issue_comments(client, team_id, since, cache=cache),
    )
    logging.info(
        "Loaded team %s for %s: %d members, %d updated, %d created, "
        "%d completed issues, %d comments",
        team_id,
        date_str,
        len(members),
        len(updated),
        len(created),
        len(completed),
        len(comments),
    )
    return compute_metrics(members, updated, created, completed, comments, now)


def run_dashboard(
    token,
    team_id,
    date_str,
    *,
    url=LINEAR_API_URL,
    timeout=REQUEST_TIMEOUT_SECONDS,
    **kwargs,
):
    """Synchronous entry point: open a Linear session and load the dashboard."""

    async def _run():
        async with LinearClient(token, url=url, timeout=timeout) as client:
            return await load_dashboard(client, team_id, date_str, **kwargs)

    return asyncio.run(_run())


def run_teams(token, *, url=LINEAR_API_URL, timeout=REQUEST_TIMEOUT_SECONDS, cache=None):
    """Synchronous entry point: list the teams visible to ``token``."""

    async def _run():
        async with LinearClient(token, url=url, timeout=timeout) as client:
            return await get_teams(client, cache=cache)

    return asyncio.run(_run())
