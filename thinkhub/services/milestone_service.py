"""Milestone & task service.

Transaction policy: methods use flush(), never commit().
Caller (route handler) is responsible for db.session.commit().

Operations:
- Milestones: create, status change, list with tasks
- Tasks:      create (appended at the end of its milestone), edit,
              delete (milestone renumbered), get

Reordering and cross-milestone moves live in ``task_ordering``.
"""

from __future__ import annotations

import logging

from sqlalchemy import select

from thinkhub.core.exceptions import NotFoundError, ValidationError
from thinkhub.models import db
from thinkhub.models.activity import ActionType
from thinkhub.models.milestone import (
    MILESTONE_COMPLETED,
    MILESTONE_PLANNED,
    MILESTONE_STATUSES,
    TASK_COMPLETED,
    TASK_PRIORITIES,
    TASK_STATUSES,
    TASK_TODO,
    Milestone,
    Task,
)
from thinkhub.models.project import EDITOR_ROLES, Document
from thinkhub.services import activity_logger
from thinkhub.services.access_scope import (
    get_member_role,
    get_project_or_404,
    require_member,
    require_role,
)
from thinkhub.services.task_ordering import lock_milestone, next_order, normalize_order
from thinkhub.utils.helpers import parse_datetime

logger = logging.getLogger(__name__)

_TASK_TEXT_FIELDS = ("description", "policy_header", "policy_content", "recommended_content")


# ── helpers ──────────────────────────────────────────────────────────────────


def _required_title(value) -> str:
    title = str(value or "").strip()
    if not title:
        raise ValidationError("title is required", details={"title": "required"})
    if len(title) > 255:
        raise ValidationError("title must be at most 255 characters", details={"title": "too long"})
    return title


def _choice(value, choices, field):
    if value not in choices:
        raise ValidationError(
            f"{field} must be one of: {', '.join(str(c) for c in choices)}",
            details={field: value},
        )
    return value


def _priority(value) -> int:
    try:
        priority = int(value)
    except (TypeError, ValueError):
        priority = None
    return _choice(priority, TASK_PRIORITIES, "priority")


def _required_datetime(value, field):
    parsed = parse_datetime(value)
    if parsed is None:
        raise ValidationError(f"{field} must be an ISO date or datetime", details={field: value})
    return parsed


def _optional_datetime(value, field):
    if value in (None, ""):
        return None
    return _required_datetime(value, field)


def _assignee(project, user_id):
    """An assignee must belong to the project."""
    if not user_id:
        return None
    if get_member_role(project, user_id) is None:
        raise ValidationError(
            "assigned_to must be a member of the project",
            details={"assigned_to": user_id},
        )
    return user_id


def _document(project, document_id):
    if document_id in (None, ""):
        return None
    document = db.session.get(Document, document_id)
    if document is None or document.project_id != project.id:
        raise ValidationError(
            "document_id must reference a document of the project",
            details={"document_id": document_id},
        )
    return document.id


def get_milestone_or_404(milestone_id: int) -> Milestone:
    milestone = db.session.get(Milestone, milestone_id)
    if milestone is None:
        raise NotFoundError(resource="Milestone", resource_id=milestone_id)
    return milestone


def get_task_or_404(task_id: int) -> Task:
    task = db.session.get(Task, task_id)
    if task is None:
        raise NotFoundError(resource="Task", resource_id=task_id)
    return task


# ═════════════════════════════════════════════════════════════════════════════
# Milestones
# ═════════════════════════════════════════════════════════════════════════════


def create_milestone(*, project_id: int, user_id: str, data: dict) -> Milestone:
    project = get_project_or_404(project_id)
    require_role(project, user_id, EDITOR_ROLES)

    milestone = Milestone(
        project_id=project.id,
        title=_required_title(data.get("title")),
        description=str(data.get("description") or "").strip(),
        due_date=_required_datetime(data.get("due_date"), "due_date"),
        status=_choice(data.get("status") or MILESTONE_PLANNED, MILESTONE_STATUSES, "status"),
    )
    db.session.add(milestone)
    db.session.flush()

    activity_logger.log_activity(
        user_id=user_id,
        project_id=project.id,
        action_type=ActionType.CREATE_MILESTONE,
        entity_id=milestone.id,
        entity_type="milestone",
        details={"title": milestone.title},
    )
    return milestone


def update_milestone_status(*, milestone_id: int, user_id: str, status: str) -> Milestone:
    """Change a milestone's status.

    Only the transition into Completed is recorded in the activity feed.
    """
    milestone = get_milestone_or_404(milestone_id)
    project = get_project_or_404(milestone.project_id)
    require_role(project, user_id, EDITOR_ROLES)

    status = _choice(status, MILESTONE_STATUSES, "status")
    previous = milestone.status
    if status == previous:
        return milestone

    milestone.status = status
    db.session.flush()
    logger.info("Milestone %s status %s -> %s", milestone.id, previous, status)

    if status == MILESTONE_COMPLETED:
        activity_logger.log_activity(
            user_id=user_id,
            project_id=milestone.project_id,
            action_type=ActionType.COMPLETE_MILESTONE,
            entity_id=milestone.id,
            entity_type="milestone",
            details={"title": milestone.title, "from": previous},
        )
    return milestone


def list_milestones_with_tasks(project_id: int, user_id: str) -> list[dict]:
    """Milestones by due date, each with its tasks in display order."""
    project = get_project_or_404(project_id)
    require_member(project, user_id)

    milestones = db.session.execute(
        select(Milestone)
        .where(Milestone.project_id == project.id)
        .order_by(Milestone.due_date, Milestone.id)
    ).scalars().all()
    return [m.to_dict(include_tasks=True) for m in milestones]


# ═════════════════════════════════════════════════════════════════════════════
# Tasks
# ═════════════════════════════════════════════════════════════════════════════


def create_task(*, milestone_id: int, user_id: str, data: dict) -> Task:
    """Create a task at the end of *milestone_id*'s list."""
    milestone = lock_milestone(milestone_id)
    project = get_project_or_404(milestone.project_id)
    require_role(project, user_id, EDITOR_ROLES)

    task = Task(
        project_id=project.id,
        milestone_id=milestone.id,
        title=_required_title(data.get("title")),
        status=_choice(data.get("status") or TASK_TODO, TASK_STATUSES, "status"),
        priority=_priority(data.get("priority", 3)),
        created_by=user_id,
        assigned_to=_assignee(project, data.get("assigned_to")),
        due_date=_optional_datetime(data.get("due_date"), "due_date"),
        document_id=_document(project, data.get("document_id")),
        order=next_order(milestone.id),
    )
    for field in _TASK_TEXT_FIELDS:
        if data.get(field) is not None:
            setattr(task, field, str(data[field]))
    db.session.add(task)
    db.session.flush()

    activity_logger.log_activity(
        user_id=user_id,
        project_id=project.id,
        action_type=ActionType.CREATE_TASK,
        entity_id=task.id,
        entity_type="task",
        details={"title": task.title, "milestoneId": milestone.id},
    )
    return task


def get_task(task_id: int, user_id: str) -> Task:
    task = get_task_or_404(task_id)
    require_member(get_project_or_404(task.project_id), user_id)
    return task


def edit_task(*, task_id: int, user_id: str, data: dict) -> Task:
    """Update task fields. Moves between milestones go through task_ordering.

    Records ``complete_task`` when the status becomes Completed, otherwise
    ``update_task``.
    """
    task = get_task_or_404(task_id)
    project = get_project_or_404(task.project_id)
    require_role(project, user_id, EDITOR_ROLES)

    previous_status = task.status
    changed = []

    if "title" in data:
        task.title = _required_title(data.get("title"))
        changed.append("title")
    if "status" in data:
        task.status = _choice(data.get("status"), TASK_STATUSES, "status")
        changed.append("status")
    if "priority" in data:
        task.priority = _priority(data.get("priority"))
        changed.append("priority")
    if "assigned_to" in data:
        task.assigned_to = _assignee(project, data.get("assigned_to"))
        changed.append("assigned_to")
    if "due_date" in data:
        task.due_date = _optional_datetime(data.get("due_date"), "due_date")
        changed.append("due_date")
    if "document_id" in data:
        task.document_id = _document(project, data.get("document_id"))
        changed.append("document_id")
    for field in _TASK_TEXT_FIELDS:
        if field in data:
            value = data.get(field)
            setattr(task, field, None if value is None else str(value))
            changed.append(field)

    if not changed:
        return task
    db.session.flush()

    completed = task.status == TASK_COMPLETED and previous_status != TASK_COMPLETED
    activity_logger.log_activity(
        user_id=user_id,
        project_id=project.id,
        action_type=ActionType.COMPLETE_TASK if completed else ActionType.UPDATE_TASK,
        entity_id=task.id,
        entity_type="task",
        details={"title": task.title, "fields": changed},
    )
    return task


def delete_task(*, task_id: int, user_id: str) -> None:
    """Delete a task and close the gap it leaves in its milestone."""
    task = get_task_or_404(task_id)
    project = get_project_or_404(task.project_id)
    require_role(project, user_id, EDITOR_ROLES)

    milestone_id = task.milestone_id
    if milestone_id is not None:
        lock_milestone(milestone_id)
    db.session.delete(task)
    db.session.flush()
    if milestone_id is not None:
        normalize_order(milestone_id)
    logger.info("Task %s deleted from milestone %s", task_id, milestone_id)
