"""
Milestone Blueprint.

Endpoints:
    GET   /api/v1/projects/<id>/milestones   milestones with ordered tasks
    POST  /api/v1/projects/<id>/milestones   create
    PATCH /api/v1/milestones/<id>/status   status change
    POST  /api/v1/milestones/<id>/tasks   create task (appended)
    PUT   /api/v1/milestones/<id>/tasks/order   reorder, body {"tasks": [id, ...]}
"""

from flask import Blueprint, jsonify

from thinkhub.blueprints import current_user_id, json_body
from thinkhub.services import milestone_service, task_ordering
from thinkhub.utils.errors import E, api_error
from thinkhub.utils.helpers import db_commit_or_error

milestone_bp = Blueprint("milestone", __name__, url_prefix="/api/v1")


@milestone_bp.route("/projects/<int:project_id>/milestones", methods=["GET"])
def list_milestones(project_id):
    user_id, err = current_user_id()
    if err:
        return err
    return jsonify(milestone_service.list_milestones_with_tasks(project_id, user_id)), 200


@milestone_bp.route("/projects/<int:project_id>/milestones", methods=["POST"])
def create_milestone(project_id):
    user_id, err = current_user_id()
    if err:
        return err
    data, err = json_body()
    if err:
        return err
    if not data.get("title"):
        return api_error(E.VALIDATION_REQUIRED, "title is required")
    if not data.get("due_date"):
        return api_error(E.VALIDATION_REQUIRED, "due_date is required")

    milestone = milestone_service.create_milestone(project_id=project_id, user_id=user_id, data=data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(milestone.to_dict()), 201


@milestone_bp.route("/milestones/<int:milestone_id>/status", methods=["PATCH"])
def update_status(milestone_id):
    user_id, err = current_user_id()
    if err:
        return err
    data, err = json_body()
    if err:
        return err
    if not data.get("status"):
        return api_error(E.VALIDATION_REQUIRED, "status is required")

    milestone = milestone_service.update_milestone_status(
        milestone_id=milestone_id, user_id=user_id, status=data["status"],
    )
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(milestone.to_dict()), 200


@milestone_bp.route("/milestones/<int:milestone_id>/tasks", methods=["POST"])
def create_task(milestone_id):
    user_id, err = current_user_id()
    if err:
        return err
    data, err = json_body()
    if err:
        return err
    if not data.get("title"):
        return api_error(E.VALIDATION_REQUIRED, "title is required")

    task = milestone_service.create_task(milestone_id=milestone_id, user_id=user_id, data=data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(task.to_dict()), 201


@milestone_bp.route("/milestones/<int:milestone_id>/tasks/order", methods=["PUT"])
def reorder_tasks(milestone_id):
    """Persist a drag-and-drop reorder. The list must name every task once."""
    user_id, err = current_user_id()
    if err:
        return err
    data, err = json_body()
    if err:
        return err
    task_ids = data.get("tasks")
    if not isinstance(task_ids, list):
        return api_error(E.VALIDATION_REQUIRED, "tasks must be a list of task ids")

    tasks = task_ordering.reorder_tasks(milestone_id=milestone_id, task_ids=task_ids, user_id=user_id)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify([t.to_dict() for t in tasks]), 200
