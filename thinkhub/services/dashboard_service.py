"""
Dashboard statistics: KPIs across the caller's projects.

Aggregates, over the caller's access scope:
  - project count
  - active (Planned / In Progress) milestones
  - distinct team members
  - completed and total tasks
  - upcoming deadlines with an At Risk / On Track classification

Used by dashboard_bp (``GET /api/v1/dashboard/stats``).
All queries are read-only; no commits.
"""

import logging
from datetime import datetime, timedelta, timezone

from flask import current_app, has_app_context
from sqlalchemy import func, select

from thinkhub.models import db
from thinkhub.models.milestone import (
    ACTIVE_MILESTONE_STATUSES,
    TASK_COMPLETED,
    Milestone,
    Task,
)
from thinkhub.models.project import Project, ProjectMember
from thinkhub.services.access_scope import resolve_scope
from thinkhub.utils.helpers import as_utc

logger = logging.getLogger(__name__)

AT_RISK = "At Risk"
ON_TRACK = "On Track"

_DEFAULTS = {
    "DEADLINE_WINDOW_DAYS": 14,
    "DEADLINE_RISK_DAYS": 3,
    "DEADLINE_LIST_SIZE": 5,
}


def _setting(name: str) -> int:
    if has_app_context():
        return current_app.config.get(name, _DEFAULTS[name])
    return _DEFAULTS[name]


def _empty_stats() -> dict:
    return {
        "totalProjects": 0,
        "activeMilestones": 0,
        "teamMembers": 0,
        "completedTasks": 0,
        "totalTasks": 0,
        "upcomingDeadlines": [],
    }


def classify_deadline(due_date: datetime, now: datetime) -> str:
    """At Risk when due within the risk window of *now*, else On Track."""
    risk_window = timedelta(days=_setting("DEADLINE_RISK_DAYS"))
    if as_utc(due_date) - as_utc(now) <= risk_window:
        return AT_RISK
    return ON_TRACK


def get_upcoming_deadlines(scope: set[int], now: datetime) -> list[dict]:
    """
    Active milestones due strictly inside ``(now, now + window)``.

    Completed milestones are excluded whatever their date. Sorted by due
    date ascending, capped at DEADLINE_LIST_SIZE.
    """
    if not scope:
        return []

    horizon = now + timedelta(days=_setting("DEADLINE_WINDOW_DAYS"))
    rows = db.session.execute(
        select(Milestone, Project.name)
        .join(Project, Project.id == Milestone.project_id)
        .where(
            Milestone.project_id.in_(scope),
            Milestone.status.in_(ACTIVE_MILESTONE_STATUSES),
            Milestone.due_date > now,
            Milestone.due_date < horizon,
        )
        .order_by(Milestone.due_date.asc(), Milestone.id.asc())
        .limit(_setting("DEADLINE_LIST_SIZE"))
    ).all()

    return [
        {
            "id": milestone.id,
            "name": milestone.title,
            "project": project_name,
            "projectId": milestone.project_id,
            "date": as_utc(milestone.due_date).isoformat(),
            "status": classify_deadline(milestone.due_date, now),
        }
        for milestone, project_name in rows
    ]


def get_dashboard_stats(user_id: str, now: datetime | None = None) -> dict:
    """
    Return dashboard KPIs for *user_id*.

    Returns:
        Dict with totalProjects, activeMilestones, teamMembers,
        completedTasks, totalTasks, upcomingDeadlines.
    """
    scope = resolve_scope(user_id)
    if not scope:
        return _empty_stats()

    now = as_utc(now) if now else datetime.now(timezone.utc)

    active_milestones = db.session.execute(
        select(func.count(Milestone.id)).where(
            Milestone.project_id.in_(scope),
            Milestone.status.in_(ACTIVE_MILESTONE_STATUSES),
        )
    ).scalar_one()

    team_members = db.session.execute(
        select(func.count(func.distinct(ProjectMember.user_id))).where(
            ProjectMember.project_id.in_(scope),
        )
    ).scalar_one()

    total_tasks = db.session.execute(
        select(func.count(Task.id)).where(Task.project_id.in_(scope))
    ).scalar_one()

    completed_tasks = db.session.execute(
        select(func.count(Task.id)).where(
            Task.project_id.in_(scope),
            Task.status == TASK_COMPLETED,
        )
    ).scalar_one()

    return {
        "totalProjects": len(scope),
        "activeMilestones": active_milestones,
        "teamMembers": team_members,
        "completedTasks": completed_tasks,
        "totalTasks": total_tasks,
        "upcomingDeadlines": get_upcoming_deadlines(scope, now),
    }
