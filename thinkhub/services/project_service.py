"""Project CRUD service with membership-based access checks."""

from __future__ import annotations

import logging

from sqlalchemy import func, select

from thinkhub.core.exceptions import ForbiddenError, ValidationError
from thinkhub.models import db
from thinkhub.models.activity import ActionType
from thinkhub.models.milestone import TASK_COMPLETED, Milestone, Task
from thinkhub.models.project import ROLE_MANAGER, Project, ProjectMember
from thinkhub.services import activity_logger
from thinkhub.services.access_scope import (
    can_view,
    get_project_or_404,
    require_role,
    resolve_scope,
)

logger = logging.getLogger(__name__)


def _clean_name(value) -> str:
    name = str(value or "").strip()
    if not name:
        raise ValidationError("name is required", details={"name": "required"})
    if len(name) > 255:
        raise ValidationError("name must be at most 255 characters", details={"name": "too long"})
    return name


def _count_by_project(column, project_ids, *criteria) -> dict[int, int]:
    rows = db.session.execute(
        select(column, func.count())
        .where(column.in_(project_ids), *criteria)
        .group_by(column)
    )
    return {pid: count for pid, count in rows}


def list_projects(user_id: str) -> list[dict]:
    """Projects in the caller's scope, newest first, with summary counts."""
    scope = resolve_scope(user_id)
    if not scope:
        return []

    projects = db.session.execute(
        select(Project)
        .where(Project.id.in_(scope))
        .order_by(Project.created_at.desc(), Project.id.desc())
    ).scalars().all()

    milestones = _count_by_project(Milestone.project_id, scope)
    members = _count_by_project(ProjectMember.project_id, scope)
    tasks = _count_by_project(Task.project_id, scope)
    completed = _count_by_project(Task.project_id, scope, Task.status == TASK_COMPLETED)

    result = []
    for p in projects:
        d = p.to_dict()
        d["milestone_count"] = milestones.get(p.id, 0)
        d["member_count"] = members.get(p.id, 0)
        d["task_count"] = tasks.get(p.id, 0)
        d["completed_task_count"] = completed.get(p.id, 0)
        result.append(d)
    return result


def get_project(project_id: int, user_id: str) -> Project:
    """Return a project the caller may view."""
    project = get_project_or_404(project_id)
    if not can_view(project, user_id):
        raise ForbiddenError("You are not a member of this project")
    return project


def create_project(*, user_id: str, data: dict) -> Project:
    """Create a project; the creator becomes its Manager."""
    project = Project(
        name=_clean_name(data.get("name")),
        description=str(data.get("description") or "").strip(),
        created_by=user_id,
    )
    db.session.add(project)
    db.session.flush()

    db.session.add(ProjectMember(project_id=project.id, user_id=user_id, role=ROLE_MANAGER))
    db.session.flush()

    logger.info("Project created id=%s by user_id=%s", project.id, user_id)
    activity_logger.log_activity(
        user_id=user_id,
        project_id=project.id,
        action_type=ActionType.CREATE_PROJECT,
        entity_id=project.id,
        entity_type="project",
        details={"name": project.name},
    )
    return project


def update_project(*, project_id: int, user_id: str, data: dict) -> Project:
    """Update name/description. Manager only."""
    project = get_project_or_404(project_id)
    require_role(project, user_id, {ROLE_MANAGER})

    changed = {}
    if "name" in data:
        project.name = _clean_name(data.get("name"))
        changed["name"] = project.name
    if "description" in data:
        project.description = str(data.get("description") or "").strip()
        changed["description"] = project.description
    if not changed:
        return project

    db.session.flush()
    activity_logger.log_activity(
        user_id=user_id,
        project_id=project.id,
        action_type=ActionType.UPDATE_PROJECT,
        entity_id=project.id,
        entity_type="project",
        details=changed,
    )
    return project
