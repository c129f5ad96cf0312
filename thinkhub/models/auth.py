"""
ThinkHub
Identity model.

Models:
    - User: person known to the platform. Rows are created by the external
      sign-in provider (or the ``seed-demo`` CLI); this service only reads
      them for membership lookups and feed denormalisation.
"""

import uuid
from datetime import datetime, timezone

from thinkhub.models import db


def _uuid() -> str:
    return str(uuid.uuid4())


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    name = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=False, unique=True)
    image = db.Column(db.String(255), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.Index("ix_users_email", "email"),
    )

    # Relationships
    project_memberships = db.relationship(
        "ProjectMember", back_populates="user", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "image": self.image,
        }

    def __repr__(self):
        return f"<User {self.id}: {self.email}>"
