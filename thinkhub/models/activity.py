"""
ThinkHub
Activity domain model.

Models:
    - ActivityLog: immutable, append-only record of one state-changing action.

The activity table is the only audit trail and the sole input of the
dashboard feed. Rows store ids only; actor and project names are resolved
at read time by ``services.activity_feed``.
"""

import enum
import json
from datetime import datetime, timezone

from thinkhub.models import db


# ── Constants ────────────────────────────────────────────────────────────────


class ActionType(str, enum.Enum):
    CREATE_PROJECT = "create_project"
    UPDATE_PROJECT = "update_project"
    CREATE_MILESTONE = "create_milestone"
    COMPLETE_MILESTONE = "complete_milestone"
    CREATE_TASK = "create_task"
    UPDATE_TASK = "update_task"
    COMPLETE_TASK = "complete_task"
    ADD_DOCUMENT = "add_document"
    ADD_MEMBER = "add_member"
    REMOVE_MEMBER = "remove_member"
    COMMENT = "comment"


ENTITY_TYPES = {"project", "milestone", "task", "document", "member"}


class ActivityLog(db.Model):
    """
    One row per action. Never updated, never deleted.

    ``details_json`` carries a free-form key/value payload describing the
    change (e.g. ``{"fromMilestoneId": 1, "toMilestoneId": 2}``).
    """

    __tablename__ = "activities"
    __table_args__ = (
        db.Index("idx_activity_project_created", "project_id", "created_at"),
        db.Index("idx_activity_entity", "entity_type", "entity_id"),
        db.Index("idx_activity_user", "user_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    project_id = db.Column(
        db.Integer,
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    action_type = db.Column(
        db.String(40), nullable=False,
        comment="create_project | add_member | update_task | …",
    )
    entity_id = db.Column(db.Integer, nullable=False)
    entity_type = db.Column(
        db.String(20), nullable=False,
        comment="project | milestone | task | document | member",
    )
    details_json = db.Column(db.Text, default="{}")
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # ── Helpers ──────────────────────────────────────────────────────────

    @property
    def details(self) -> dict:
        """Deserialise *details_json* to a Python dict."""
        try:
            return json.loads(self.details_json or "{}")
        except (json.JSONDecodeError, TypeError):
            return {}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "project_id": self.project_id,
            "action_type": self.action_type,
            "entity_id": self.entity_id,
            "entity_type": self.entity_type,
            "details": self.details,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<ActivityLog {self.id}: {self.action_type} on {self.entity_type}/{self.entity_id}>"
