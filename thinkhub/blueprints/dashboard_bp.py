"""
Dashboard Blueprint.

Per-user KPIs and the recent-activity feed across every project the
caller owns or belongs to. Read-only.
"""

from flask import Blueprint, current_app, jsonify, request

from thinkhub.blueprints import current_user_id
from thinkhub.services import activity_feed, dashboard_service

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/v1/dashboard")


@dashboard_bp.route("/stats", methods=["GET"])
def stats():
    """Project, milestone, member and task counts plus upcoming deadlines."""
    user_id, err = current_user_id()
    if err:
        return err
    return jsonify(dashboard_service.get_dashboard_stats(user_id)), 200


@dashboard_bp.route("/recent-activity", methods=["GET"])
def recent_activity():
    """Newest activity first. ``limit`` is clamped to 1..ACTIVITY_FEED_MAX_LIMIT."""
    user_id, err = current_user_id()
    if err:
        return err
    default_limit = current_app.config["ACTIVITY_FEED_DEFAULT_LIMIT"]
    max_limit = current_app.config["ACTIVITY_FEED_MAX_LIMIT"]
    limit = request.args.get("limit", default_limit, type=int)
    limit = max(1, min(limit, max_limit))
    return jsonify(activity_feed.get_recent_activity(user_id, limit=limit)), 200
