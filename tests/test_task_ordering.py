"""Task reorder within a milestone and cross-milestone moves."""

import pytest

from thinkhub.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from thinkhub.models import db
from thinkhub.models.activity import ActivityLog
from thinkhub.models.milestone import Task
from thinkhub.models.project import ROLE_RESEARCHER, ROLE_VIEWER, ProjectMember
from thinkhub.services import milestone_service, task_ordering
from thinkhub.services.task_ordering import (
    lock_milestone,
    list_milestone_tasks,
    move_task,
    normalize_order,
    reorder_tasks,
)


def _orders(milestone_id):
    return [(t.id, t.order) for t in list_milestone_tasks(milestone_id)]


@pytest.fixture()
def board(user, make_project, make_milestone, make_task):
    """One project, two milestones; the first holds A, B, C at 0, 1, 2."""
    project = make_project(user)
    first = make_milestone(project, title="First")
    second = make_milestone(project, title="Second")
    a = make_task(first, title="A")
    b = make_task(first, title="B")
    c = make_task(first, title="C")
    db.session.commit()
    return {"project": project, "first": first, "second": second, "a": a, "b": b, "c": c}


class TestReorderTasks:
    def test_permutation_law(self, user, board):
        a, b, c = board["a"], board["b"], board["c"]

        result = reorder_tasks(milestone_id=board["first"].id, task_ids=[c.id, a.id, b.id], user_id=user.id)
        db.session.commit()

        assert [t.id for t in result] == [c.id, a.id, b.id]
        assert (c.order, a.order, b.order) == (0, 1, 2)

    def test_orders_stay_dense_after_many_reorders(self, user, board):
        ids = [board["a"].id, board["b"].id, board["c"].id]
        for permutation in ([ids[2], ids[1], ids[0]], [ids[1], ids[0], ids[2]], ids):
            reorder_tasks(milestone_id=board["first"].id, task_ids=permutation, user_id=user.id)
            db.session.commit()
            assert sorted(o for _, o in _orders(board["first"].id)) == [0, 1, 2]
            assert [tid for tid, _ in _orders(board["first"].id)] == permutation

    def test_records_one_activity(self, user, board):
        ids = [board["b"].id, board["a"].id, board["c"].id]
        reorder_tasks(milestone_id=board["first"].id, task_ids=ids, user_id=user.id)
        db.session.commit()

        (log,) = ActivityLog.query.all()
        assert log.action_type == "update_task"
        assert log.entity_type == "milestone"
        assert log.entity_id == board["first"].id
        assert log.details == {"reordered": ids}

    def test_empty_list_is_a_noop(self, user, board):
        before = _orders(board["first"].id)
        result = reorder_tasks(milestone_id=board["first"].id, task_ids=[], user_id=user.id)
        assert [(t.id, t.order) for t in result] == before
        assert ActivityLog.query.count() == 0

    @pytest.mark.parametrize(
        "make_ids",
        [
            lambda a, b, c: [a, b],              # missing a task
            lambda a, b, c: [a, b, c, 9999],     # foreign id
            lambda a, b, c: [a, a, b],           # duplicate
            lambda a, b, c: [a, b, c, c],        # duplicate + full set
            lambda a, b, c: [a, "x", c],         # non-integer
            lambda a, b, c: [True, b, c],        # boolean
        ],
    )
    def test_invalid_lists_write_nothing(self, user, board, make_ids):
        before = _orders(board["first"].id)
        ids = make_ids(board["a"].id, board["b"].id, board["c"].id)

        with pytest.raises(ValidationError):
            reorder_tasks(milestone_id=board["first"].id, task_ids=ids, user_id=user.id)
        db.session.rollback()

        assert _orders(board["first"].id) == before
        assert ActivityLog.query.count() == 0

    def test_task_from_other_milestone_is_rejected(self, user, board, make_task):
        stray = make_task(board["second"], title="Stray")
        ids = [board["a"].id, board["b"].id, stray.id]
        with pytest.raises(ValidationError):
            reorder_tasks(milestone_id=board["first"].id, task_ids=ids, user_id=user.id)

    def test_viewer_is_forbidden(self, board, other_user):
        db.session.add(ProjectMember(project_id=board["project"].id, user_id=other_user.id, role=ROLE_VIEWER))
        db.session.flush()
        with pytest.raises(ForbiddenError):
            reorder_tasks(
                milestone_id=board["first"].id,
                task_ids=[board["c"].id, board["b"].id, board["a"].id],
                user_id=other_user.id,
            )

    def test_missing_milestone(self, user):
        with pytest.raises(NotFoundError):
            reorder_tasks(milestone_id=404, task_ids=[1], user_id=user.id)


class TestMoveTask:
    def test_appends_to_destination(self, user, board, make_task):
        existing = make_task(board["second"], title="Existing")
        moved = move_task(task_id=board["b"].id, milestone_id=board["second"].id, user_id=user.id)
        db.session.commit()

        assert moved.milestone_id == board["second"].id
        assert moved.order == 1
        assert _orders(board["second"].id) == [(existing.id, 0), (moved.id, 1)]

    def test_source_keeps_relative_order(self, user, board):
        move_task(task_id=board["a"].id, milestone_id=board["second"].id, user_id=user.id)
        db.session.commit()

        assert [tid for tid, _ in _orders(board["first"].id)] == [board["b"].id, board["c"].id]

    def test_records_from_and_to(self, user, board):
        move_task(task_id=board["a"].id, milestone_id=board["second"].id, user_id=user.id)
        db.session.commit()

        (log,) = ActivityLog.query.all()
        assert log.action_type == "update_task"
        assert log.entity_type == "task"
        assert log.entity_id == board["a"].id
        assert log.details == {
            "fromMilestoneId": board["first"].id,
            "toMilestoneId": board["second"].id,
        }

    def test_self_move_is_idempotent(self, user, board):
        before = _orders(board["first"].id)
        task = move_task(task_id=board["b"].id, milestone_id=board["first"].id, user_id=user.id)
        db.session.commit()

        assert task.milestone_id == board["first"].id
        assert _orders(board["first"].id) == before
        assert ActivityLog.query.count() == 0

    def test_other_project_milestone_is_rejected(self, user, board, make_project, make_milestone):
        elsewhere = make_milestone(make_project(user, name="Elsewhere"))
        with pytest.raises(ValidationError):
            move_task(task_id=board["a"].id, milestone_id=elsewhere.id, user_id=user.id)

    def test_missing_task_and_milestone(self, user, board):
        with pytest.raises(NotFoundError):
            move_task(task_id=9999, milestone_id=board["second"].id, user_id=user.id)
        with pytest.raises(NotFoundError):
            move_task(task_id=board["a"].id, milestone_id=9999, user_id=user.id)

    def test_researcher_may_move(self, board, other_user):
        db.session.add(ProjectMember(project_id=board["project"].id, user_id=other_user.id, role=ROLE_RESEARCHER))
        db.session.flush()
        task = move_task(task_id=board["c"].id, milestone_id=board["second"].id, user_id=other_user.id)
        assert task.milestone_id == board["second"].id

    def test_move_out_and_back_lands_at_end(self, user, board):
        a, b, c = board["a"], board["b"], board["c"]
        move_task(task_id=a.id, milestone_id=board["second"].id, user_id=user.id)
        move_task(task_id=a.id, milestone_id=board["first"].id, user_id=user.id)
        db.session.commit()

        orders = _orders(board["first"].id)
        assert [tid for tid, _ in orders] == [b.id, c.id, a.id]
        assert len({o for _, o in orders}) == 3
        assert a.order == 3

    def test_create_after_move_takes_free_slot(self, user, board):
        move_task(task_id=board["a"].id, milestone_id=board["second"].id, user_id=user.id)
        task = milestone_service.create_task(
            milestone_id=board["first"].id, user_id=user.id, data={"title": "D"},
        )
        db.session.commit()

        orders = _orders(board["first"].id)
        assert [tid for tid, _ in orders] == [board["b"].id, board["c"].id, task.id]
        assert len({o for _, o in orders}) == 3

    def test_locks_source_and_destination_in_id_order(self, user, board, monkeypatch):
        locked = []

        def _recording_lock(milestone_id):
            locked.append(milestone_id)
            return lock_milestone(milestone_id)

        monkeypatch.setattr(task_ordering, "lock_milestone", _recording_lock)
        move_task(task_id=board["a"].id, milestone_id=board["second"].id, user_id=user.id)
        move_task(task_id=board["a"].id, milestone_id=board["first"].id, user_id=user.id)

        first, second = board["first"].id, board["second"].id
        assert locked == sorted([first, second]) * 2


class TestNormalizeOrder:
    def test_closes_gaps(self, board):
        board["a"].order = 4
        board["b"].order = 9
        board["c"].order = 20
        db.session.flush()

        normalize_order(board["first"].id)

        assert _orders(board["first"].id) == [
            (board["a"].id, 0), (board["b"].id, 1), (board["c"].id, 2),
        ]

    def test_delete_task_renumbers(self, user, board):
        milestone_service.delete_task(task_id=board["a"].id, user_id=user.id)
        db.session.commit()

        assert db.session.get(Task, board["a"].id) is None
        assert _orders(board["first"].id) == [(board["b"].id, 0), (board["c"].id, 1)]

    def test_create_task_appends(self, user, board):
        task = milestone_service.create_task(
            milestone_id=board["first"].id, user_id=user.id, data={"title": "D"},
        )
        assert task.order == 3

    def test_create_task_locks_milestone(self, user, board, monkeypatch):
        locked = []

        def _recording_lock(milestone_id):
            locked.append(milestone_id)
            return lock_milestone(milestone_id)

        monkeypatch.setattr(milestone_service, "lock_milestone", _recording_lock)
        milestone_service.create_task(
            milestone_id=board["second"].id, user_id=user.id, data={"title": "E"},
        )
        assert locked == [board["second"].id]
