"""
Project Blueprint.

Endpoints:
    GET  /api/v1/projects   projects in the caller's scope
    POST /api/v1/projects   create (caller becomes Manager)
    GET  /api/v1/projects/<id>   single project
    PUT  /api/v1/projects/<id>   rename / describe (Manager)
"""

from flask import Blueprint, jsonify

from thinkhub.blueprints import current_user_id, json_body
from thinkhub.services import project_service
from thinkhub.utils.helpers import db_commit_or_error

project_bp = Blueprint("project", __name__, url_prefix="/api/v1/projects")


@project_bp.route("", methods=["GET"])
def list_projects():
    user_id, err = current_user_id()
    if err:
        return err
    return jsonify(project_service.list_projects(user_id)), 200


@project_bp.route("", methods=["POST"])
def create_project():
    user_id, err = current_user_id()
    if err:
        return err
    data, err = json_body()
    if err:
        return err

    project = project_service.create_project(user_id=user_id, data=data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(project.to_dict()), 201


@project_bp.route("/<int:project_id>", methods=["GET"])
def get_project(project_id):
    user_id, err = current_user_id()
    if err:
        return err
    return jsonify(project_service.get_project(project_id, user_id).to_dict()), 200


@project_bp.route("/<int:project_id>", methods=["PUT"])
def update_project(project_id):
    user_id, err = current_user_id()
    if err:
        return err
    data, err = json_body()
    if err:
        return err

    project = project_service.update_project(project_id=project_id, user_id=user_id, data=data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(project.to_dict()), 200
