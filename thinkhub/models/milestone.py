"""
ThinkHub
Milestone / task domain models.

Models:
    - Milestone: dated checkpoint inside a project
    - Task: unit of work, optionally grouped under a milestone

Ordering invariant:
    Within one milestone, ``Task.order`` is a dense permutation of
    ``0..n-1``. Writers go through ``services.task_ordering`` or
    ``services.milestone_service``; nothing else assigns ``order``.
"""

from datetime import datetime, timezone

from thinkhub.models import db


# ── Constants ────────────────────────────────────────────────────────────────

MILESTONE_PLANNED = "Planned"
MILESTONE_IN_PROGRESS = "In Progress"
MILESTONE_COMPLETED = "Completed"

MILESTONE_STATUSES = (MILESTONE_PLANNED, MILESTONE_IN_PROGRESS, MILESTONE_COMPLETED)
ACTIVE_MILESTONE_STATUSES = (MILESTONE_PLANNED, MILESTONE_IN_PROGRESS)

TASK_TODO = "To Do"
TASK_IN_PROGRESS = "In Progress"
TASK_COMPLETED = "Completed"

TASK_STATUSES = (TASK_TODO, TASK_IN_PROGRESS, TASK_COMPLETED)
TASK_PRIORITIES = (1, 2, 3, 4, 5)


def _iso(value):
    return value.isoformat() if value else None


# ── Milestone ────────────────────────────────────────────────────────────────


class Milestone(db.Model):
    __tablename__ = "milestones"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer,
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, default="")
    due_date = db.Column(db.DateTime(timezone=True), nullable=False)
    status = db.Column(
        db.String(20), nullable=False, default=MILESTONE_PLANNED,
        comment="Planned | In Progress | Completed",
    )
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    tasks = db.relationship("Task", backref="milestone", lazy="dynamic")

    __table_args__ = (
        db.Index("ix_milestones_project_status_due", "project_id", "status", "due_date"),
    )

    def to_dict(self, include_tasks=False) -> dict:
        result = {
            "id": self.id,
            "project_id": self.project_id,
            "title": self.title,
            "description": self.description,
            "due_date": _iso(self.due_date),
            "status": self.status,
            "created_at": _iso(self.created_at),
        }
        if include_tasks:
            result["tasks"] = [
                t.to_dict() for t in self.tasks.order_by(Task.order, Task.id)
            ]
        return result

    def __repr__(self):
        return f"<Milestone {self.id}: {self.title}>"


# ── Task ─────────────────────────────────────────────────────────────────────


class Task(db.Model):
    __tablename__ = "tasks"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer,
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    milestone_id = db.Column(
        db.Integer,
        db.ForeignKey("milestones.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, default="")
    status = db.Column(
        db.String(20), nullable=False, default=TASK_TODO,
        comment="To Do | In Progress | Completed",
    )
    priority = db.Column(db.Integer, nullable=False, default=3, comment="1-5")
    created_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    assigned_to = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )
    due_date = db.Column(db.DateTime(timezone=True), nullable=True)
    document_id = db.Column(
        db.Integer, db.ForeignKey("documents.id", ondelete="SET NULL"), nullable=True,
    )
    policy_header = db.Column(db.String(255), nullable=True)
    policy_content = db.Column(db.Text, nullable=True)
    recommended_content = db.Column(db.Text, nullable=True)
    order = db.Column(db.Integer, nullable=False, default=0, comment="Position within milestone")
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.Index("ix_tasks_milestone_order", "milestone_id", "order"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "milestone_id": self.milestone_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "created_by": self.created_by,
            "assigned_to": self.assigned_to,
            "due_date": _iso(self.due_date),
            "document_id": self.document_id,
            "policy_header": self.policy_header,
            "policy_content": self.policy_content,
            "recommended_content": self.recommended_content,
            "order": self.order,
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<Task {self.id}: {self.title} (m={self.milestone_id}, o={self.order})>"
