"""Task ordering: reorder within a milestone and cross-milestone move.

Transaction policy: methods use flush(), never commit().
Caller (route handler) is responsible for db.session.commit(); on any
exception the handler rolls back, so a reorder is applied completely or
not at all.

Operations:
- reorder_tasks:   rewrite ``order`` for every task of a milestone from a
                   full, reordered id list (a permutation)
- move_task:       reassign a task to another milestone of the same
                   project, appending it after the destination's tasks
- normalize_order: compact a milestone's orders to 0..n-1 (after delete)

Ordering invariant: within a milestone ``order`` values are unique, and
reorder_tasks and normalize_order leave them exactly 0..n-1. New and moved
tasks take ``max(order) + 1`` so a gap left by an earlier move is never
reused. move_task leaves the source milestone's survivors untouched.

Locking: every write path locks the milestone rows it touches with
``SELECT ... FOR UPDATE`` in ascending id order.
"""

import logging

from sqlalchemy import func, select

from thinkhub.core.exceptions import NotFoundError, ValidationError
from thinkhub.models import db
from thinkhub.models.activity import ActionType
from thinkhub.models.milestone import Milestone, Task
from thinkhub.models.project import EDITOR_ROLES
from thinkhub.services import activity_logger
from thinkhub.services.access_scope import get_project_or_404, require_role

logger = logging.getLogger(__name__)


# ── helpers ──────────────────────────────────────────────────────────────────


def lock_milestone(milestone_id: int) -> Milestone:
    """Load a milestone row with a write lock (no-op on SQLite).

    Serialises "read task list → compute order → write orders" per
    milestone for the rest of the transaction.
    """
    milestone = db.session.execute(
        select(Milestone).where(Milestone.id == milestone_id).with_for_update()
    ).scalar_one_or_none()
    if milestone is None:
        raise NotFoundError(resource="Milestone", resource_id=milestone_id)
    return milestone


def list_milestone_tasks(milestone_id: int) -> list[Task]:
    return db.session.execute(
        select(Task)
        .where(Task.milestone_id == milestone_id)
        .order_by(Task.order, Task.id)
    ).scalars().all()


def next_order(milestone_id: int) -> int:
    """Slot after the last task of *milestone_id* (0 when empty)."""
    return db.session.execute(
        select(func.coalesce(func.max(Task.order), -1) + 1)
        .where(Task.milestone_id == milestone_id)
    ).scalar_one()


def _validate_permutation(task_ids, current_ids: set[int]) -> list[int]:
    """Return *task_ids* as ints if it is a permutation of *current_ids*."""
    if any(isinstance(t, bool) for t in task_ids):
        raise ValidationError(
            "tasks must be a list of integer task ids",
            details={"tasks": "boolean value"},
        )
    try:
        ids = [int(t) for t in task_ids]
    except (TypeError, ValueError):
        raise ValidationError(
            "tasks must be a list of integer task ids",
            details={"tasks": "non-integer value"},
        )

    duplicates = sorted({t for t in ids if ids.count(t) > 1})
    if duplicates:
        raise ValidationError(
            "tasks contains duplicate ids",
            details={"duplicates": duplicates},
        )

    given = set(ids)
    if given != current_ids:
        raise ValidationError(
            "tasks must list every task of the milestone exactly once",
            details={
                "missing": sorted(current_ids - given),
                "unexpected": sorted(given - current_ids),
            },
        )
    return ids


# ── Public service functions ─────────────────────────────────────────────────


def reorder_tasks(*, milestone_id: int, task_ids: list, user_id: str) -> list[Task]:
    """Rewrite ``order`` for a milestone's tasks to match *task_ids*.

    Args:
        milestone_id: Milestone whose tasks are reordered.
        task_ids: Every task id of the milestone, in the desired order.
        user_id: Caller; must be Manager or Researcher on the project.

    Returns:
        The milestone's tasks in their new order.

    Raises:
        NotFoundError: Milestone does not exist.
        ForbiddenError: Caller lacks an editor role.
        ValidationError: *task_ids* is not a permutation of the
            milestone's task ids. Nothing is written.
    """
    milestone = lock_milestone(milestone_id)
    project = get_project_or_404(milestone.project_id)
    require_role(project, user_id, EDITOR_ROLES)

    tasks = list_milestone_tasks(milestone.id)
    if not task_ids:
        return tasks

    ids = _validate_permutation(task_ids, {t.id for t in tasks})
    by_id = {t.id: t for t in tasks}

    changed = 0
    for position, task_id in enumerate(ids):
        task = by_id[task_id]
        if task.order != position:
            task.order = position
            changed += 1
    db.session.flush()

    logger.info(
        "Reordered milestone_id=%s tasks=%d changed=%d",
        milestone.id, len(ids), changed,
        extra={"project_id": milestone.project_id, "milestone_id": milestone.id},
    )
    activity_logger.log_activity(
        user_id=user_id,
        project_id=milestone.project_id,
        action_type=ActionType.UPDATE_TASK,
        entity_id=milestone.id,
        entity_type="milestone",
        details={"reordered": ids},
    )
    return [by_id[t] for t in ids]


def move_task(*, task_id: int, milestone_id: int, user_id: str) -> Task:
    """Reassign a task to another milestone of the same project.

    The task is appended after the destination's existing tasks
    (``order = max(destination orders) + 1``). Source and destination rows
    are locked in ascending id order so a concurrent reorder of either
    milestone waits for the move. Moving a task to the milestone
    it already belongs to changes nothing and records no activity.

    Raises:
        NotFoundError: Task or destination milestone does not exist.
        ForbiddenError: Caller lacks an editor role.
        ValidationError: Destination milestone belongs to another project.
    """
    task = db.session.get(Task, task_id)
    if task is None:
        raise NotFoundError(resource="Task", resource_id=task_id)

    locked = {
        mid: lock_milestone(mid)
        for mid in sorted({milestone_id, task.milestone_id} - {None})
    }
    destination = locked[milestone_id]
    db.session.refresh(task, with_for_update=True)

    project = get_project_or_404(task.project_id)
    require_role(project, user_id, EDITOR_ROLES)

    if destination.project_id != task.project_id:
        raise ValidationError(
            "Tasks can only move between milestones of the same project",
            details={"milestoneId": milestone_id},
        )

    source_id = task.milestone_id
    if source_id == destination.id:
        return task

    task.order = next_order(destination.id)
    task.milestone_id = destination.id
    db.session.flush()

    logger.info(
        "Moved task_id=%s milestone %s -> %s order=%s",
        task.id, source_id, destination.id, task.order,
        extra={"project_id": task.project_id, "milestone_id": destination.id, "task_id": task.id},
    )
    activity_logger.log_activity(
        user_id=user_id,
        project_id=task.project_id,
        action_type=ActionType.UPDATE_TASK,
        entity_id=task.id,
        entity_type="task",
        details={"fromMilestoneId": source_id, "toMilestoneId": destination.id},
    )
    return task


def normalize_order(milestone_id: int) -> None:
    """Compact a milestone's task orders to 0..n-1, keeping relative order."""
    for position, task in enumerate(list_milestone_tasks(milestone_id)):
        if task.order != position:
            task.order = position
    db.session.flush()
