"""
Project Member Blueprint.

Endpoints:
    GET    /api/v1/projects/<id>/members   team list
    POST   /api/v1/projects/<id>/members   add by email (Manager)
    DELETE /api/v1/projects/<id>/members/<user_id>   remove (Manager)
    GET    /api/v1/projects/<id>/members/search?email=   invite candidates
"""

from flask import Blueprint, jsonify, request

from thinkhub.blueprints import current_user_id, json_body
from thinkhub.models.project import ROLE_VIEWER
from thinkhub.services import member_service
from thinkhub.utils.errors import E, api_error
from thinkhub.utils.helpers import db_commit_or_error

member_bp = Blueprint("member", __name__, url_prefix="/api/v1/projects/<int:project_id>/members")


@member_bp.route("", methods=["GET"])
def list_members(project_id):
    user_id, err = current_user_id()
    if err:
        return err
    members = member_service.list_members(project_id, user_id)
    return jsonify([m.to_dict() for m in members]), 200


@member_bp.route("", methods=["POST"])
def add_member(project_id):
    user_id, err = current_user_id()
    if err:
        return err
    data, err = json_body()
    if err:
        return err
    if not data.get("email"):
        return api_error(E.VALIDATION_REQUIRED, "email is required")

    member = member_service.add_member(
        project_id=project_id,
        actor_id=user_id,
        email=data["email"],
        role=data.get("role") or ROLE_VIEWER,
    )
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(member.to_dict()), 201


@member_bp.route("/<member_user_id>", methods=["DELETE"])
def remove_member(project_id, member_user_id):
    user_id, err = current_user_id()
    if err:
        return err

    member_service.remove_member(project_id=project_id, actor_id=user_id, user_id=member_user_id)
    err = db_commit_or_error()
    if err:
        return err
    return "", 204


@member_bp.route("/search", methods=["GET"])
def search_users(project_id):
    user_id, err = current_user_id()
    if err:
        return err
    users = member_service.search_users(
        project_id=project_id,
        user_id=user_id,
        email_fragment=request.args.get("email", ""),
    )
    return jsonify([u.to_dict() for u in users]), 200
