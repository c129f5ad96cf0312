"""
Activity feed aggregator: recent activity across a user's projects.

Used by dashboard_bp for ``GET /api/v1/dashboard/recent-activity``.
All queries are read-only; no commits.

Pipeline:
    1. resolve the caller's access scope (empty → [] without querying)
    2. newest ``limit`` activity rows in scope, ``created_at DESC, id DESC``
    3. bulk-resolve actor and project names for that page (no N+1)
    4. render relative time and action text
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select

from thinkhub.models import db
from thinkhub.models.activity import ActionType, ActivityLog
from thinkhub.models.auth import User
from thinkhub.models.project import Project
from thinkhub.services.access_scope import resolve_scope
from thinkhub.utils.helpers import as_utc

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20

UNKNOWN_USER = "Unknown User"
UNKNOWN_PROJECT = "Unknown Project"
FALLBACK_ACTION_TEXT = "performs an action"

ACTION_TEXT: dict[ActionType, str] = {
    ActionType.CREATE_PROJECT: "creates the project",
    ActionType.UPDATE_PROJECT: "updates the project",
    ActionType.CREATE_MILESTONE: "creates a milestone",
    ActionType.COMPLETE_MILESTONE: "completes a milestone",
    ActionType.CREATE_TASK: "creates a task",
    ActionType.UPDATE_TASK: "updates a task",
    ActionType.COMPLETE_TASK: "completes a task",
    ActionType.ADD_DOCUMENT: "adds a document",
    ActionType.ADD_MEMBER: "adds a member",
    ActionType.REMOVE_MEMBER: "removes a member",
    ActionType.COMMENT: "comments",
}

# (upper bound in this unit, singular name, size of next unit in this unit)
_TIME_BUCKETS = (
    (60, "second", 60),
    (60, "minute", 60),
    (24, "hour", 24),
    (30, "day", 30),
    (12, "month", 12),
)


def describe_action(action_type) -> str:
    """Map an action type (enum member or raw string) to feed text.

    Values written by newer code that this build does not know map to a
    generic phrase rather than failing.
    """
    try:
        action = ActionType(action_type)
    except ValueError:
        return FALLBACK_ACTION_TEXT
    return ACTION_TEXT.get(action, FALLBACK_ACTION_TEXT)


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'} ago"


def format_time_ago(created_at: datetime, now: datetime | None = None) -> str:
    """Render ``now - created_at`` as "N <unit>(s) ago".

    Buckets: seconds < 60, minutes < 60, hours < 24, days < 30,
    months (30 days) < 12, else years (12 months). Each bucket floors.
    """
    now = as_utc(now) if now else datetime.now(timezone.utc)
    elapsed = int((now - as_utc(created_at)).total_seconds())
    value = max(elapsed, 0)

    for limit, unit, step in _TIME_BUCKETS:
        if value < limit:
            return _plural(value, unit)
        value //= step
    return _plural(value, "year")


def _load_names(user_ids: set, project_ids: set) -> tuple[dict, dict]:
    """Bulk lookup of actor and project display fields."""
    users = {}
    if user_ids:
        rows = db.session.execute(
            select(User.id, User.name, User.email, User.image).where(User.id.in_(user_ids))
        )
        users = {r.id: {"name": r.name or r.email, "image": r.image} for r in rows}

    projects = {}
    if project_ids:
        rows = db.session.execute(
            select(Project.id, Project.name).where(Project.id.in_(project_ids))
        )
        projects = {r.id: r.name for r in rows}
    return users, projects


def get_recent_activity(user_id: str, limit: int = DEFAULT_LIMIT, now: datetime | None = None) -> list[dict]:
    """
    Return the newest activity visible to *user_id*.

    Args:
        user_id: Caller identity.
        limit: Maximum number of entries.
        now: Reference time for relative labels (defaults to current UTC).

    Returns:
        List of dicts with id, user, userImage, action, project, projectId,
        time, details, entityType, entityId, createdAt. Strictly
        non-increasing by (createdAt, id).
    """
    scope = resolve_scope(user_id)
    if not scope or limit <= 0:
        return []

    logs = db.session.execute(
        select(ActivityLog)
        .where(ActivityLog.project_id.in_(scope))
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .limit(limit)
    ).scalars().all()

    users, projects = _load_names(
        {log.user_id for log in logs if log.user_id},
        {log.project_id for log in logs},
    )

    feed = []
    for log in logs:
        actor = users.get(log.user_id, {})
        feed.append({
            "id": log.id,
            "user": actor.get("name") or UNKNOWN_USER,
            "userImage": actor.get("image"),
            "action": describe_action(log.action_type),
            "project": projects.get(log.project_id, UNKNOWN_PROJECT),
            "projectId": log.project_id,
            "time": format_time_ago(log.created_at, now),
            "details": log.details,
            "entityType": log.entity_type,
            "entityId": log.entity_id,
            "createdAt": as_utc(log.created_at).isoformat(),
        })
    return feed
