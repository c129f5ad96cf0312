"""Access scope resolution and role checks.

A user's *scope* is the set of project ids they may see: projects they
created plus projects where they hold a membership row. Every aggregation
over more than one project is filtered by this set.

Callers MUST short-circuit on an empty scope instead of building an
``IN ()`` predicate; the aggregators in this package return zeroed results
without querying.
"""

from __future__ import annotations

import logging

from sqlalchemy import select, union

from thinkhub.core.exceptions import ForbiddenError, NotFoundError
from thinkhub.models import db
from thinkhub.models.project import ROLE_MANAGER, Project, ProjectMember

logger = logging.getLogger(__name__)


def resolve_scope(user_id: str | None) -> set[int]:
    """Return the ids of every project *user_id* owns or is a member of."""
    if not user_id:
        return set()

    stmt = union(
        select(Project.id).where(Project.created_by == user_id),
        select(ProjectMember.project_id).where(ProjectMember.user_id == user_id),
    )
    project_ids = {row[0] for row in db.session.execute(stmt)}
    logger.debug("resolve_scope user_id=%s projects=%d", user_id, len(project_ids))
    return project_ids


def get_project_or_404(project_id: int) -> Project:
    project = db.session.get(Project, project_id)
    if project is None:
        raise NotFoundError(resource="Project", resource_id=project_id)
    return project


def get_member_role(project: Project, user_id: str | None) -> str | None:
    """Return the caller's role on *project*, or None.

    The creator is treated as a Manager even if their membership row was
    never written.
    """
    if not user_id:
        return None
    role = db.session.execute(
        select(ProjectMember.role).where(
            ProjectMember.project_id == project.id,
            ProjectMember.user_id == user_id,
        )
    ).scalar_one_or_none()
    if role is None and project.created_by == user_id:
        return ROLE_MANAGER
    return role


def can_view(project: Project, user_id: str | None) -> bool:
    return get_member_role(project, user_id) is not None


def require_member(project: Project, user_id: str | None) -> str:
    """Raise ForbiddenError unless the caller belongs to *project*."""
    role = get_member_role(project, user_id)
    if role is None:
        raise ForbiddenError("You are not a member of this project")
    return role


def require_role(project: Project, user_id: str | None, roles) -> str:
    """Raise ForbiddenError unless the caller holds one of *roles* on *project*.

    Returns:
        The caller's role.
    """
    role = get_member_role(project, user_id)
    if role not in roles:
        logger.info(
            "role_check_denied project_id=%s user_id=%s role=%s required=%s",
            project.id, user_id, role, sorted(roles),
        )
        raise ForbiddenError(
            f"This action requires one of: {', '.join(sorted(roles))}",
            required_roles=roles,
        )
    return role
