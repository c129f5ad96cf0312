"""
ThinkHub
Project domain models.

Models:
    - Project: top-level container owned by its creator
    - ProjectMember: user ↔ project link carrying a role
    - Document: link to an external file attached to a project
"""

from datetime import datetime, timezone

from thinkhub.models import db


# ── Constants ────────────────────────────────────────────────────────────────

ROLE_MANAGER = "Manager"
ROLE_RESEARCHER = "Researcher"
ROLE_VIEWER = "Viewer"

MEMBER_ROLES = (ROLE_MANAGER, ROLE_RESEARCHER, ROLE_VIEWER)

# Roles allowed to change milestones, tasks and documents.
EDITOR_ROLES = frozenset({ROLE_MANAGER, ROLE_RESEARCHER})


# ── Project ──────────────────────────────────────────────────────────────────


class Project(db.Model):
    """Unit of work shared by a team. Never hard-deleted."""

    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, default="")
    created_by = db.Column(
        db.String(36),
        db.ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # ── Relationships ────────────────────────────────────────────────────
    creator = db.relationship("User", foreign_keys=[created_by])
    members = db.relationship(
        "ProjectMember", back_populates="project", lazy="dynamic",
        cascade="all, delete-orphan",
    )
    milestones = db.relationship(
        "Milestone", backref="project", lazy="dynamic",
        cascade="all, delete-orphan", order_by="Milestone.due_date",
    )
    documents = db.relationship(
        "Document", backref="project", lazy="dynamic",
        cascade="all, delete-orphan", order_by="Document.created_at",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Project {self.id}: {self.name}>"


# ── ProjectMember ────────────────────────────────────────────────────────────


class ProjectMember(db.Model):
    """Membership of a user in a project. One row per (project, user)."""

    __tablename__ = "project_members"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer,
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role = db.Column(
        db.String(20), nullable=False, default=ROLE_VIEWER,
        comment="Manager | Researcher | Viewer",
    )
    joined_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    project = db.relationship("Project", back_populates="members")
    user = db.relationship("User", back_populates="project_memberships")

    __table_args__ = (
        db.UniqueConstraint("project_id", "user_id", name="uq_project_member"),
    )

    def to_dict(self) -> dict:
        user = self.user
        return {
            "id": self.id,
            "project_id": self.project_id,
            "user_id": self.user_id,
            "role": self.role,
            "joined_at": self.joined_at.isoformat() if self.joined_at else None,
            "name": user.name if user else None,
            "email": user.email if user else None,
            "image": user.image if user else None,
        }

    def __repr__(self):
        return f"<ProjectMember {self.project_id}/{self.user_id}: {self.role}>"


# ── Document ─────────────────────────────────────────────────────────────────


class Document(db.Model):
    __tablename__ = "documents"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer,
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    uploaded_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    file_url = db.Column(db.String(255), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "uploaded_by": self.uploaded_by,
            "title": self.title,
            "file_url": self.file_url,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Document {self.id}: {self.title}>"
