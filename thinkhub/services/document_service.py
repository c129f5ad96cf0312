"""Project document links (title + external URL)."""

from __future__ import annotations

from sqlalchemy import select

from thinkhub.core.exceptions import NotFoundError, ValidationError
from thinkhub.models import db
from thinkhub.models.activity import ActionType
from thinkhub.models.project import EDITOR_ROLES, Document
from thinkhub.services import activity_logger
from thinkhub.services.access_scope import get_project_or_404, require_member, require_role


def list_documents(project_id: int, user_id: str) -> list[Document]:
    project = get_project_or_404(project_id)
    require_member(project, user_id)
    return db.session.execute(
        select(Document)
        .where(Document.project_id == project.id)
        .order_by(Document.created_at.desc(), Document.id.desc())
    ).scalars().all()


def get_document(document_id: int, user_id: str) -> Document:
    document = db.session.get(Document, document_id)
    if document is None:
        raise NotFoundError(resource="Document", resource_id=document_id)
    require_member(get_project_or_404(document.project_id), user_id)
    return document


def add_document(*, project_id: int, user_id: str, data: dict) -> Document:
    project = get_project_or_404(project_id)
    require_role(project, user_id, EDITOR_ROLES)

    title = str(data.get("title") or "").strip()
    if not title:
        raise ValidationError("title is required", details={"title": "required"})
    file_url = str(data.get("file_url") or "").strip() or None
    if file_url and len(file_url) > 255:
        raise ValidationError("file_url must be at most 255 characters", details={"file_url": "too long"})

    document = Document(
        project_id=project.id,
        uploaded_by=user_id,
        title=title,
        file_url=file_url,
    )
    db.session.add(document)
    db.session.flush()

    activity_logger.log_activity(
        user_id=user_id,
        project_id=project.id,
        action_type=ActionType.ADD_DOCUMENT,
        entity_id=document.id,
        entity_type="document",
        details={"title": document.title},
    )
    return document
