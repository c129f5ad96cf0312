"""Project, member, milestone and document services."""

from datetime import datetime, timedelta, timezone

import pytest

from thinkhub.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from thinkhub.models import db
from thinkhub.models.activity import ActivityLog
from thinkhub.models.milestone import (
    MILESTONE_COMPLETED,
    MILESTONE_IN_PROGRESS,
    TASK_COMPLETED,
    TASK_IN_PROGRESS,
)
from thinkhub.models.project import ROLE_MANAGER, ROLE_RESEARCHER, ROLE_VIEWER, ProjectMember
from thinkhub.services import (
    document_service,
    member_service,
    milestone_service,
    project_service,
)


def _actions():
    return [log.action_type for log in ActivityLog.query.order_by(ActivityLog.id)]


# ═════════════════════════════════════════════════════════════════════════════
# Projects
# ═════════════════════════════════════════════════════════════════════════════


class TestProjectService:
    def test_create_makes_creator_manager(self, user):
        project = project_service.create_project(user_id=user.id, data={"name": "  Alpha  "})
        db.session.commit()

        assert project.name == "Alpha"
        member = ProjectMember.query.filter_by(project_id=project.id, user_id=user.id).one()
        assert member.role == ROLE_MANAGER
        assert _actions() == ["create_project"]

    def test_create_requires_name(self, user):
        with pytest.raises(ValidationError):
            project_service.create_project(user_id=user.id, data={"name": "  "})

    def test_update_is_manager_only(self, user, other_user, make_project):
        project = make_project(user, members=[(other_user, ROLE_RESEARCHER)])

        with pytest.raises(ForbiddenError):
            project_service.update_project(project_id=project.id, user_id=other_user.id, data={"name": "X"})

        updated = project_service.update_project(
            project_id=project.id, user_id=user.id, data={"name": "Renamed"},
        )
        assert updated.name == "Renamed"
        assert _actions() == ["update_project"]

    def test_update_without_changes_logs_nothing(self, user, make_project):
        project = make_project(user)
        project_service.update_project(project_id=project.id, user_id=user.id, data={})
        assert _actions() == []

    def test_list_projects_with_counts(self, user, other_user, make_project, make_milestone, make_task):
        alpha = make_project(user, name="Alpha", members=[(other_user, ROLE_VIEWER)])
        make_project(other_user, name="Hidden")
        m = make_milestone(alpha)
        make_task(m, status=TASK_COMPLETED)
        make_task(m)

        (entry,) = project_service.list_projects(user.id)

        assert entry["id"] == alpha.id
        assert entry["milestone_count"] == 1
        assert entry["member_count"] == 2
        assert entry["task_count"] == 2
        assert entry["completed_task_count"] == 1

    def test_get_project_requires_membership(self, user, other_user, make_project):
        project = make_project(user)
        assert project_service.get_project(project.id, user.id) is project
        with pytest.raises(ForbiddenError):
            project_service.get_project(project.id, other_user.id)
        with pytest.raises(NotFoundError):
            project_service.get_project(12345, user.id)


# ═════════════════════════════════════════════════════════════════════════════
# Members
# ═════════════════════════════════════════════════════════════════════════════


class TestMemberService:
    def test_add_member_by_email(self, user, other_user, make_project):
        project = make_project(user)

        member = member_service.add_member(
            project_id=project.id, actor_id=user.id, email="GRACE@example.com", role=ROLE_RESEARCHER,
        )

        assert member.user_id == other_user.id
        assert member.role == ROLE_RESEARCHER
        assert _actions() == ["add_member"]
        log = ActivityLog.query.one()
        assert log.entity_type == "member"
        assert log.details["userId"] == other_user.id

    def test_add_member_unknown_email(self, user, make_project):
        project = make_project(user)
        with pytest.raises(NotFoundError):
            member_service.add_member(project_id=project.id, actor_id=user.id, email="nobody@example.com")

    def test_add_member_duplicate(self, user, other_user, make_project):
        project = make_project(user, members=[(other_user, ROLE_VIEWER)])
        with pytest.raises(ConflictError):
            member_service.add_member(project_id=project.id, actor_id=user.id, email=other_user.email)

    def test_add_member_invalid_role(self, user, other_user, make_project):
        project = make_project(user)
        with pytest.raises(ValidationError):
            member_service.add_member(
                project_id=project.id, actor_id=user.id, email=other_user.email, role="Owner",
            )

    def test_only_manager_adds(self, user, other_user, make_user, make_project):
        project = make_project(user, members=[(other_user, ROLE_RESEARCHER)])
        newcomer = make_user(email="new@example.com")
        with pytest.raises(ForbiddenError):
            member_service.add_member(project_id=project.id, actor_id=other_user.id, email=newcomer.email)

    def test_remove_member(self, user, other_user, make_project):
        project = make_project(user, members=[(other_user, ROLE_VIEWER)])

        member_service.remove_member(project_id=project.id, actor_id=user.id, user_id=other_user.id)
        db.session.commit()

        assert ProjectMember.query.filter_by(project_id=project.id, user_id=other_user.id).count() == 0
        assert _actions() == ["remove_member"]

    def test_creator_cannot_be_removed(self, user, make_project):
        project = make_project(user)
        with pytest.raises(ValidationError):
            member_service.remove_member(project_id=project.id, actor_id=user.id, user_id=user.id)

    def test_remove_non_member(self, user, other_user, make_project):
        project = make_project(user)
        with pytest.raises(NotFoundError):
            member_service.remove_member(project_id=project.id, actor_id=user.id, user_id=other_user.id)

    def test_list_members(self, user, other_user, make_project):
        project = make_project(user, members=[(other_user, ROLE_VIEWER)])
        members = member_service.list_members(project.id, other_user.id)
        assert {m.user_id for m in members} == {user.id, other_user.id}

    def test_search_excludes_members_and_caps_results(self, user, other_user, make_user, make_project):
        project = make_project(user, members=[(other_user, ROLE_VIEWER)])
        for i in range(7):
            make_user(email=f"cand{i}@example.com")

        results = member_service.search_users(project_id=project.id, user_id=user.id, email_fragment="example")

        assert len(results) == member_service.SEARCH_MAX_RESULTS
        assert other_user.id not in {u.id for u in results}
        assert user.id not in {u.id for u in results}

    def test_search_needs_three_characters(self, user, make_project):
        project = make_project(user)
        assert member_service.search_users(project_id=project.id, user_id=user.id, email_fragment="ex") == []


# ═════════════════════════════════════════════════════════════════════════════
# Milestones & tasks
# ═════════════════════════════════════════════════════════════════════════════


class TestMilestoneService:
    def test_create_milestone(self, user, make_project):
        project = make_project(user)
        due = datetime.now(timezone.utc) + timedelta(days=5)

        milestone = milestone_service.create_milestone(
            project_id=project.id, user_id=user.id,
            data={"title": "Kickoff", "due_date": due.isoformat()},
        )

        assert milestone.status == "Planned"
        assert _actions() == ["create_milestone"]

    def test_create_milestone_validates(self, user, make_project):
        project = make_project(user)
        with pytest.raises(ValidationError):
            milestone_service.create_milestone(
                project_id=project.id, user_id=user.id, data={"title": "No date", "due_date": "soon"},
            )
        with pytest.raises(ValidationError):
            milestone_service.create_milestone(
                project_id=project.id, user_id=user.id,
                data={"title": "Bad", "due_date": "2026-05-01", "status": "Cancelled"},
            )

    def test_viewer_cannot_create_milestone(self, user, other_user, make_project):
        project = make_project(user, members=[(other_user, ROLE_VIEWER)])
        with pytest.raises(ForbiddenError):
            milestone_service.create_milestone(
                project_id=project.id, user_id=other_user.id,
                data={"title": "Nope", "due_date": "2026-05-01"},
            )

    def test_only_completion_is_logged(self, user, make_project, make_milestone):
        milestone = make_milestone(make_project(user))

        milestone_service.update_milestone_status(
            milestone_id=milestone.id, user_id=user.id, status=MILESTONE_IN_PROGRESS,
        )
        assert _actions() == []

        milestone_service.update_milestone_status(
            milestone_id=milestone.id, user_id=user.id, status=MILESTONE_COMPLETED,
        )
        assert _actions() == ["complete_milestone"]

    def test_list_milestones_orders_tasks(self, user, make_project, make_milestone, make_task):
        project = make_project(user)
        late = make_milestone(project, title="Late", due_date=datetime.now(timezone.utc) + timedelta(days=9))
        early = make_milestone(project, title="Early", due_date=datetime.now(timezone.utc) + timedelta(days=1))
        second = make_task(early, title="second", order=1)
        first = make_task(early, title="first", order=0)

        result = milestone_service.list_milestones_with_tasks(project.id, user.id)

        assert [m["id"] for m in result] == [early.id, late.id]
        assert [t["id"] for t in result[0]["tasks"]] == [first.id, second.id]
        assert result[1]["tasks"] == []

    def test_create_task_validates_assignee(self, user, other_user, make_project, make_milestone):
        milestone = make_milestone(make_project(user))
        with pytest.raises(ValidationError):
            milestone_service.create_task(
                milestone_id=milestone.id, user_id=user.id,
                data={"title": "T", "assigned_to": other_user.id},
            )
        with pytest.raises(ValidationError):
            milestone_service.create_task(
                milestone_id=milestone.id, user_id=user.id, data={"title": "T", "priority": 9},
            )

    def test_edit_task_logs_completion(self, user, make_project, make_milestone, make_task):
        task = make_task(make_milestone(make_project(user)))

        milestone_service.edit_task(task_id=task.id, user_id=user.id, data={"status": TASK_IN_PROGRESS})
        milestone_service.edit_task(task_id=task.id, user_id=user.id, data={"status": TASK_COMPLETED})
        milestone_service.edit_task(task_id=task.id, user_id=user.id, data={"title": "Renamed"})

        assert _actions() == ["update_task", "complete_task", "update_task"]
        assert task.title == "Renamed"

    def test_viewer_cannot_edit_or_delete(self, user, other_user, make_project, make_milestone, make_task):
        project = make_project(user, members=[(other_user, ROLE_VIEWER)])
        task = make_task(make_milestone(project))
        with pytest.raises(ForbiddenError):
            milestone_service.edit_task(task_id=task.id, user_id=other_user.id, data={"title": "X"})
        with pytest.raises(ForbiddenError):
            milestone_service.delete_task(task_id=task.id, user_id=other_user.id)
        assert milestone_service.get_task(task.id, other_user.id) is task


# ═════════════════════════════════════════════════════════════════════════════
# Documents
# ═════════════════════════════════════════════════════════════════════════════


class TestDocumentService:
    def test_add_and_list(self, user, other_user, make_project):
        project = make_project(user, members=[(other_user, ROLE_VIEWER)])

        document = document_service.add_document(
            project_id=project.id, user_id=user.id,
            data={"title": "Handbook", "file_url": "https://example.com/h.pdf"},
        )
        db.session.commit()

        assert [d.id for d in document_service.list_documents(project.id, other_user.id)] == [document.id]
        assert document_service.get_document(document.id, other_user.id) is document
        assert _actions() == ["add_document"]

    def test_viewer_cannot_add(self, user, other_user, make_project):
        project = make_project(user, members=[(other_user, ROLE_VIEWER)])
        with pytest.raises(ForbiddenError):
            document_service.add_document(project_id=project.id, user_id=other_user.id, data={"title": "X"})

    def test_missing_document(self, user):
        with pytest.raises(NotFoundError):
            document_service.get_document(77, user.id)
