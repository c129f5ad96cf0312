"""
Document Blueprint.

Endpoints:
    GET  /api/v1/projects/<id>/documents   project documents, newest first
    POST /api/v1/projects/<id>/documents   attach a document link
    GET  /api/v1/documents/<id>   single document
"""

from flask import Blueprint, jsonify

from thinkhub.blueprints import current_user_id, json_body
from thinkhub.services import document_service
from thinkhub.utils.errors import E, api_error
from thinkhub.utils.helpers import db_commit_or_error

document_bp = Blueprint("document", __name__, url_prefix="/api/v1")


@document_bp.route("/projects/<int:project_id>/documents", methods=["GET"])
def list_documents(project_id):
    user_id, err = current_user_id()
    if err:
        return err
    documents = document_service.list_documents(project_id, user_id)
    return jsonify([d.to_dict() for d in documents]), 200


@document_bp.route("/projects/<int:project_id>/documents", methods=["POST"])
def add_document(project_id):
    user_id, err = current_user_id()
    if err:
        return err
    data, err = json_body()
    if err:
        return err
    if not data.get("title"):
        return api_error(E.VALIDATION_REQUIRED, "title is required")

    document = document_service.add_document(project_id=project_id, user_id=user_id, data=data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(document.to_dict()), 201


@document_bp.route("/documents/<int:document_id>", methods=["GET"])
def get_document(document_id):
    user_id, err = current_user_id()
    if err:
        return err
    return jsonify(document_service.get_document(document_id, user_id).to_dict()), 200
