from datetime import datetime, timezone

from flask import Flask, jsonify, render_template, request

from cache import ResponseCache
from config import get_settings
from dashboard import run_dashboard, run_teams
from linear.client import LinearError
from metrics import activity_score, summarize

app = Flask(__name__)

# Process-wide cache shared by every request; entries expire after the
# configured TTL.
response_cache = ResponseCache(ttl_seconds=get_settings()["cache_ttl_seconds"])


@app.template_filter("initials")
def initials_filter(name: str) -> str:
    """Return up to two upper-case initials for an avatar placeholder."""
    return "".join(part[0] for part in (name or "").split(" ") if part).upper()[:2]


@app.template_filter("mmdd")
def mmdd_filter(date_str: str) -> str:
    """Format an ISO date string as MM/DD."""
    if not date_str:
        return ""
    try:
        dt = datetime.fromisoformat(date_str.replace("Z", "+00:00"))
        return dt.strftime("%m/%d")
    except ValueError:
        return date_str


def _today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def _load(settings, team_id, date):
    return run_dashboard(
        settings["api_key"],
        team_id,
        date,
        url=settings["api_url"],
        timeout=settings["request_timeout"],
        cache=response_cache,
        lookback_days=settings["lookback_days"],
    )


def _validate_date(date: str) -> str | None:
    try:
        datetime.strptime(date, "%Y-%m-%d")
    except ValueError:
        return f"Invalid date {date!r}, expected YYYY-MM-DD"
    return None


@app.route("/")
def index():
    settings = get_settings()
    team_id = request.args.get("team") or settings["team_id"] or ""
    date = request.args.get("date") or _today()
    context = {"team_id": team_id, "date": date, "teams": [], "metrics": None}

    if not settings["api_key"]:
        context["error"] = "LINEAR_API_KEY is not set"
        return render_template("index.html", **context), 500

    if request.args.get("refresh"):
        response_cache.clear()

    try:
        context["teams"] = run_teams(
            settings["api_key"],
            url=settings["api_url"],
            timeout=settings["request_timeout"],
            cache=response_cache,
        )
    except LinearError as e:
        app.logger.error("Failed to load teams: %s", e)
        context["error"] = str(e) or "Failed to load teams"
        return render_template("index.html", **context), 502

    if not team_id or "date" not in request.args:
        return render_template("index.html", **context)

    date_error = _validate_date(date)
    if date_error:
        context["error"] = date_error
        return render_template("index.html", **context), 400

    try:
        metrics = _load(settings, team_id, date)
    except LinearError as e:
        app.logger.error("Failed to load dashboard for %s on %s: %s", team_id, date, e)
        context["error"] = str(e) or "Failed to load dashboard data"
        return render_template("index.html", **context), 502

    context["metrics"] = metrics
    context["summary"] = summarize(metrics)
    return render_template("index.html", **context)


@app.route("/api/metrics")
def api_metrics():
    settings = get_settings()
    team_id = request.args.get("team") or settings["team_id"]
    date = request.args.get("date") or _today()
    if not settings["api_key"]:
        return jsonify(error="LINEAR_API_KEY is not set"), 500
    if not team_id:
        return jsonify(error="team is required"), 400
    date_error = _validate_date(date)
    if date_error:
        return jsonify(error=date_error), 400
    try:
        metrics = _load(settings, team_id, date)
    except LinearError as e:
        app.logger.error("Failed to load metrics for %s on %s: %s", team_id, date, e)
        return jsonify(error=str(e)), 502
    return jsonify(
        date=date,
        team=team_id,
        summary=summarize(metrics),
        members=[dict(m, activityScore=activity_score(m)) for m in metrics],
    )


if __name__ == "__main__":
    app.run()
