"""
Task Blueprint.

Endpoints:
    GET    /api/v1/tasks/<id>   single task
    PUT    /api/v1/tasks/<id>   edit fields
    DELETE /api/v1/tasks/<id>   delete; milestone renumbered
    PATCH  /api/v1/tasks/<id>/move   move to another milestone, body {"milestoneId": id}
"""

from flask import Blueprint, jsonify

from thinkhub.blueprints import current_user_id, json_body
from thinkhub.services import milestone_service, task_ordering
from thinkhub.utils.errors import E, api_error
from thinkhub.utils.helpers import db_commit_or_error

task_bp = Blueprint("task", __name__, url_prefix="/api/v1/tasks")


@task_bp.route("/<int:task_id>", methods=["GET"])
def get_task(task_id):
    user_id, err = current_user_id()
    if err:
        return err
    return jsonify(milestone_service.get_task(task_id, user_id).to_dict()), 200


@task_bp.route("/<int:task_id>", methods=["PUT"])
def edit_task(task_id):
    user_id, err = current_user_id()
    if err:
        return err
    data, err = json_body()
    if err:
        return err

    task = milestone_service.edit_task(task_id=task_id, user_id=user_id, data=data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(task.to_dict()), 200


@task_bp.route("/<int:task_id>", methods=["DELETE"])
def delete_task(task_id):
    user_id, err = current_user_id()
    if err:
        return err

    milestone_service.delete_task(task_id=task_id, user_id=user_id)
    err = db_commit_or_error()
    if err:
        return err
    return "", 204


@task_bp.route("/<int:task_id>/move", methods=["PATCH"])
def move_task(task_id):
    """Drop a task onto another milestone's column."""
    user_id, err = current_user_id()
    if err:
        return err
    data, err = json_body()
    if err:
        return err
    milestone_id = data.get("milestoneId")
    if isinstance(milestone_id, bool) or not isinstance(milestone_id, int):
        return api_error(E.VALIDATION_REQUIRED, "milestoneId must be an integer")

    task = task_ordering.move_task(task_id=task_id, milestone_id=milestone_id, user_id=user_id)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(task.to_dict()), 200
