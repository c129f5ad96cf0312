"""Best-effort activity logging."""

import pytest

from thinkhub.models import db
from thinkhub.models.activity import ActionType, ActivityLog
from thinkhub.models.project import ProjectMember
from thinkhub.services import activity_logger, member_service


def test_appends_one_row(user, make_project):
    project = make_project(user)

    ok = activity_logger.log_activity(
        user_id=user.id,
        project_id=project.id,
        action_type=ActionType.CREATE_TASK,
        entity_id=7,
        entity_type="task",
        details={"title": "Write brief"},
    )
    db.session.commit()

    assert ok is True
    log = ActivityLog.query.one()
    assert log.action_type == "create_task"
    assert log.entity_type == "task"
    assert log.entity_id == 7
    assert log.details == {"title": "Write brief"}
    assert log.created_at is not None


def test_accepts_raw_string_action(user, make_project):
    project = make_project(user)
    assert activity_logger.log_activity(
        user_id=user.id,
        project_id=project.id,
        action_type="comment",
        entity_id=project.id,
        entity_type="project",
    )
    assert ActivityLog.query.one().details == {}


def test_unknown_entity_type_returns_false(user, make_project):
    project = make_project(user)
    ok = activity_logger.log_activity(
        user_id=user.id,
        project_id=project.id,
        action_type=ActionType.COMMENT,
        entity_id=1,
        entity_type="spaceship",
    )
    assert ok is False
    assert ActivityLog.query.count() == 0


def test_failed_insert_does_not_poison_outer_transaction(user, make_project):
    """An FK violation inside the savepoint leaves the primary write committable."""
    project = make_project(user, name="Primary write")

    ok = activity_logger.log_activity(
        user_id=user.id,
        project_id=987654,
        action_type=ActionType.UPDATE_PROJECT,
        entity_id=1,
        entity_type="project",
    )
    assert ok is False

    db.session.commit()
    assert db.session.get(type(project), project.id).name == "Primary write"
    assert ActivityLog.query.count() == 0


def test_forced_failure_does_not_block_add_member(user, other_user, make_project, monkeypatch):
    project = make_project(user)

    def _boom(**kwargs):
        raise RuntimeError("activity store down")

    monkeypatch.setattr(activity_logger, "_append", _boom)

    member = member_service.add_member(
        project_id=project.id, actor_id=user.id, email=other_user.email, role="Researcher",
    )
    db.session.commit()

    assert member.id is not None
    assert ProjectMember.query.filter_by(project_id=project.id, user_id=other_user.id).count() == 1
    assert ActivityLog.query.filter_by(action_type="add_member").count() == 0


@pytest.mark.parametrize("action", list(ActionType))
def test_every_action_type_can_be_logged(user, make_project, action):
    project = make_project(user)
    assert activity_logger.log_activity(
        user_id=user.id,
        project_id=project.id,
        action_type=action,
        entity_id=project.id,
        entity_type="project",
    )
