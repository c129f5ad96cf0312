"""Project membership service.

Managers add members by email and remove them again; any member can list
the team. Transaction policy: flush(), never commit().
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select

from thinkhub.core.exceptions import ConflictError, NotFoundError, ValidationError
from thinkhub.models import db
from thinkhub.models.activity import ActionType
from thinkhub.models.auth import User
from thinkhub.models.project import MEMBER_ROLES, ROLE_MANAGER, ROLE_VIEWER, ProjectMember
from thinkhub.services import activity_logger
from thinkhub.services.access_scope import get_project_or_404, require_member, require_role

logger = logging.getLogger(__name__)

SEARCH_MIN_CHARS = 3
SEARCH_MAX_RESULTS = 5


def _get_membership(project_id: int, user_id: str) -> ProjectMember | None:
    return db.session.execute(
        select(ProjectMember).where(
            ProjectMember.project_id == project_id,
            ProjectMember.user_id == user_id,
        )
    ).scalar_one_or_none()


def list_members(project_id: int, user_id: str) -> list[ProjectMember]:
    project = get_project_or_404(project_id)
    require_member(project, user_id)
    return db.session.execute(
        select(ProjectMember)
        .where(ProjectMember.project_id == project.id)
        .order_by(ProjectMember.joined_at, ProjectMember.id)
    ).scalars().all()


def add_member(*, project_id: int, actor_id: str, email: str, role: str = ROLE_VIEWER) -> ProjectMember:
    """Add the user registered under *email* to a project.

    Raises:
        NotFoundError: No user with that email.
        ConflictError: The user is already a member.
        ValidationError: Unknown role.
    """
    project = get_project_or_404(project_id)
    require_role(project, actor_id, {ROLE_MANAGER})

    role = role or ROLE_VIEWER
    if role not in MEMBER_ROLES:
        raise ValidationError(
            f"role must be one of: {', '.join(MEMBER_ROLES)}",
            details={"role": role},
        )

    email = (email or "").strip().lower()
    if not email:
        raise ValidationError("email is required", details={"email": "required"})
    user = db.session.execute(
        select(User).where(func.lower(User.email) == email)
    ).scalar_one_or_none()
    if user is None:
        raise NotFoundError(resource="User", resource_id=email)

    if _get_membership(project.id, user.id) is not None:
        raise ConflictError("ProjectMember", "email", email)

    member = ProjectMember(project_id=project.id, user_id=user.id, role=role)
    db.session.add(member)
    db.session.flush()

    logger.info("Member added project_id=%s user_id=%s role=%s", project.id, user.id, role)
    activity_logger.log_activity(
        user_id=actor_id,
        project_id=project.id,
        action_type=ActionType.ADD_MEMBER,
        entity_id=member.id,
        entity_type="member",
        details={"userId": user.id, "email": user.email, "role": role},
    )
    return member


def remove_member(*, project_id: int, actor_id: str, user_id: str) -> None:
    """Remove a member. The project creator cannot be removed."""
    project = get_project_or_404(project_id)
    require_role(project, actor_id, {ROLE_MANAGER})

    if user_id == project.created_by:
        raise ValidationError(
            "The project creator cannot be removed",
            details={"userId": user_id},
        )

    member = _get_membership(project.id, user_id)
    if member is None:
        raise NotFoundError(resource="ProjectMember", resource_id=user_id)

    member_id = member.id
    db.session.delete(member)
    db.session.flush()

    logger.info("Member removed project_id=%s user_id=%s", project.id, user_id)
    activity_logger.log_activity(
        user_id=actor_id,
        project_id=project.id,
        action_type=ActionType.REMOVE_MEMBER,
        entity_id=member_id,
        entity_type="member",
        details={"userId": user_id},
    )


def search_users(*, project_id: int, user_id: str, email_fragment: str) -> list[User]:
    """Users whose email contains *email_fragment* and who are not yet members."""
    project = get_project_or_404(project_id)
    require_member(project, user_id)

    fragment = (email_fragment or "").strip().lower()
    if len(fragment) < SEARCH_MIN_CHARS:
        return []

    existing = select(ProjectMember.user_id).where(ProjectMember.project_id == project.id)
    return db.session.execute(
        select(User)
        .where(
            func.lower(User.email).contains(fragment, autoescape=True),
            User.id.not_in(existing),
        )
        .order_by(User.email)
        .limit(SEARCH_MAX_RESULTS)
    ).scalars().all()
