"""Demo data for local development (``flask seed-demo``).

Creates three users, one project with a Manager, a Researcher and a
Viewer, two milestones with a few tasks each, and a document. Goes
through the regular services so the activity feed is populated too.
Idempotent on users; the project is created on every run.
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from thinkhub.models import db
from thinkhub.models.auth import User
from thinkhub.models.milestone import MILESTONE_IN_PROGRESS
from thinkhub.models.project import ROLE_RESEARCHER, ROLE_VIEWER
from thinkhub.services import (
    document_service,
    member_service,
    milestone_service,
    project_service,
)
from thinkhub.services.jwt_service import generate_access_token

logger = logging.getLogger(__name__)

DEMO_USERS = (
    ("Ada Manager", "ada@thinkhub.local"),
    ("Rui Researcher", "rui@thinkhub.local"),
    ("Vic Viewer", "vic@thinkhub.local"),
)


def _get_or_create_user(name, email):
    user = db.session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is None:
        user = User(name=name, email=email)
        db.session.add(user)
        db.session.flush()
    return user


def seed_demo() -> dict:
    _now = datetime.now(timezone.utc)
    manager, researcher, viewer = (_get_or_create_user(n, e) for n, e in DEMO_USERS)

    project = project_service.create_project(
        user_id=manager.id,
        data={"name": "Policy Review 2026", "description": "Quarterly policy review."},
    )
    member_service.add_member(
        project_id=project.id, actor_id=manager.id, email=researcher.email, role=ROLE_RESEARCHER,
    )
    member_service.add_member(
        project_id=project.id, actor_id=manager.id, email=viewer.email, role=ROLE_VIEWER,
    )

    discovery = milestone_service.create_milestone(
        project_id=project.id,
        user_id=manager.id,
        data={"title": "Discovery", "due_date": (_now + timedelta(days=2)).isoformat(),
              "status": MILESTONE_IN_PROGRESS},
    )
    drafting = milestone_service.create_milestone(
        project_id=project.id,
        user_id=manager.id,
        data={"title": "Drafting", "due_date": (_now + timedelta(days=10)).isoformat()},
    )
    for title in ("Collect current policies", "Interview owners", "Summarise gaps"):
        milestone_service.create_task(
            milestone_id=discovery.id, user_id=researcher.id, data={"title": title},
        )
    for title in ("Draft policy text", "Review with legal"):
        milestone_service.create_task(
            milestone_id=drafting.id, user_id=manager.id, data={"title": title, "priority": 2},
        )
    document_service.add_document(
        project_id=project.id,
        user_id=researcher.id,
        data={"title": "Current policy handbook", "file_url": "https://example.com/handbook.pdf"},
    )

    logger.info("Demo project %s seeded", project.id)
    return {
        "project_id": project.id,
        "milestones": [discovery.id, drafting.id],
        "tokens": {u.email: generate_access_token(u.id) for u in (manager, researcher, viewer)},
    }
