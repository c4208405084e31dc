import logging
import os
import time
from datetime import datetime, timedelta, timezone
from functools import wraps

import requests
import schedule
from dotenv import load_dotenv

from config import get_settings
from dashboard import run_dashboard

load_dotenv()

# Attempts and pause between attempts for a scheduled job.
RETRY_COUNT = 3
RETRY_SLEEP_SECONDS = 5
SLACK_TIMEOUT_SECONDS = 10


def post_to_slack(markdown: str, webhook_url: str | None = None):
    """Post a digest to the Slack webhook; raise if it is missing or rejects the post."""
    url = webhook_url or os.environ.get("SLACK_WEBHOOK_URL")
    if not url:
        logging.error("SLACK_WEBHOOK_URL is not set; cannot post the mention digest.")
        raise RuntimeError("Missing SLACK_WEBHOOK_URL environment variable.")
    response = requests.post(url, json={"text": markdown}, timeout=SLACK_TIMEOUT_SECONDS)
    if response.status_code != 200:
        logging.error(
            "Slack rejected the mention digest (%s): %s",
            response.status_code,
            response.text,
        )
    response.raise_for_status()


def with_retries(attempts=RETRY_COUNT, delay=RETRY_SLEEP_SECONDS):
    """Retry a job up to ``attempts`` times, sleeping ``delay`` seconds in between.

    The exception from the last attempt is re-raised.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(1, attempts + 1):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    logging.error(
                        "Job %s failed (attempt %d/%d): %s",
                        func.__name__,
                        attempt,
                        attempts,
                        e,
                    )
                    if attempt == attempts:
                        raise
                    time.sleep(delay)

        return wrapper

    return decorator


def format_mention_line(mention):
    """Return a formatted Slack message line for an unanswered mention."""
    snippet = " ".join(mention["commentSnippet"].split())
    return (
        f"- <{mention['issueUrl']}|{mention['issueIdentifier']}> "
        f"{mention['issueTitle']}: _{snippet}_"
    )


def build_mentions_digest(metrics, date):
    """Return the Slack markdown for a day's unanswered mentions, or None if there are none."""
    sections = []
    for entry in metrics:
        mentions = entry["unresponsiveMentions"]
        if not mentions:
            continue
        member = entry["member"]
        name = member.get("displayName") or member.get("name")
        sections.append(f"\n*{name}* ({len(mentions)}):\n")
        sections.extend(format_mention_line(mention) for mention in mentions)
    if not sections:
        return None
    markdown = f"*Mentions waiting on a reply for more than 48h ({date})*\n"
    markdown += "\n".join(sections)
    app_url = os.getenv("APP_URL")
    if app_url:
        markdown += f"\n\n<{app_url.rstrip('/')}/?date={date}|View Team Pulse>"
    return markdown


@with_retries()
def post_unresponsive_mentions(date=None):
    """Post yesterday's unanswered mentions for the configured team to Slack."""
    settings = get_settings()
    if not settings["api_key"] or not settings["team_id"]:
        raise RuntimeError("LINEAR_API_KEY and team_id must be configured")
    date = date or (datetime.now(timezone.utc) - timedelta(days=1)).strftime(
        "%Y-%m-%d"
    )
    metrics = run_dashboard(
        settings["api_key"],
        settings["team_id"],
        date,
        url=settings["api_url"],
        timeout=settings["request_timeout"],
        lookback_days=settings["lookback_days"],
    )
    markdown = build_mentions_digest(metrics, date)
    if not markdown:
        logging.info("No unanswered mentions for %s", date)
        return
    post_to_slack(markdown)


def main():
    logging.basicConfig(level=logging.INFO)
    if os.getenv("DEBUG") == "true":
        post_unresponsive_mentions()
        return
    schedule.every(1).days.at(get_settings()["digest_time"]).do(
        post_unresponsive_mentions
    )
    while True:
        schedule.run_pending()
        time.sleep(1)


if __name__ == "__main__":
    main()
