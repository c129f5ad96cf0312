"""
Shared pytest fixtures for the ThinkHub test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - user / other_user: Pre-created User rows
    - auth_headers: factory returning Bearer headers for a user
    - make_user / make_project / make_milestone / make_task: row factories
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from thinkhub import create_app
from thinkhub.models import db as _db
from thinkhub.models.auth import User
from thinkhub.models.milestone import MILESTONE_PLANNED, TASK_TODO, Milestone, Task
from thinkhub.models.project import ROLE_MANAGER, Project, ProjectMember
from thinkhub.services.jwt_service import generate_access_token


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield _db.session
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Row factories ────────────────────────────────────────────────────────


def _make_user(name="Test User", email=None, image=None):
    user = User(name=name, email=email or f"user-{uuid.uuid4().hex[:8]}@example.com", image=image)
    _db.session.add(user)
    _db.session.flush()
    return user


def _make_project(owner, name="Test Project", members=()):
    """Project owned by *owner* (Manager) plus ``(user, role)`` members."""
    project = Project(name=name, description="", created_by=owner.id)
    _db.session.add(project)
    _db.session.flush()
    _db.session.add(ProjectMember(project_id=project.id, user_id=owner.id, role=ROLE_MANAGER))
    for member, role in members:
        _db.session.add(ProjectMember(project_id=project.id, user_id=member.id, role=role))
    _db.session.flush()
    return project


def _make_milestone(project, title="Milestone", due_date=None, status=MILESTONE_PLANNED):
    milestone = Milestone(
        project_id=project.id,
        title=title,
        due_date=due_date or datetime.now(timezone.utc) + timedelta(days=30),
        status=status,
    )
    _db.session.add(milestone)
    _db.session.flush()
    return milestone


def _make_task(milestone, title="Task", order=None, status=TASK_TODO, created_by=None):
    if order is None:
        order = milestone.tasks.count()
    task = Task(
        project_id=milestone.project_id,
        milestone_id=milestone.id,
        title=title,
        status=status,
        created_by=created_by or milestone.project.created_by,
        order=order,
    )
    _db.session.add(task)
    _db.session.flush()
    return task


@pytest.fixture()
def make_user():
    return _make_user


@pytest.fixture()
def make_project():
    return _make_project


@pytest.fixture()
def make_milestone():
    return _make_milestone


@pytest.fixture()
def make_task():
    return _make_task


@pytest.fixture()
def user():
    """Primary test user (owner of most fixture projects)."""
    return _make_user(name="Ada Lovelace", email="ada@example.com", image="https://img/ada.png")


@pytest.fixture()
def other_user():
    return _make_user(name="Grace Hopper", email="grace@example.com")


@pytest.fixture()
def auth_headers(app):
    """Factory: Bearer headers for *user* (commits pending rows first)."""

    def _headers(user):
        _db.session.commit()
        token = generate_access_token(user.id)
        return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}

    return _headers
