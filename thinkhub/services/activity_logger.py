"""Best-effort activity logging.

Every state-changing service appends exactly one activity row after its
primary write. The primary write is authoritative; the activity append is
not. A failed append is logged and swallowed, and it never rolls back or
fails the operation it describes.

The append runs inside a SAVEPOINT (``session.begin_nested()``) so that a
failing INSERT only discards itself and leaves the outer transaction
committable.
"""

from __future__ import annotations

import json
import logging

from thinkhub.models import db
from thinkhub.models.activity import ENTITY_TYPES, ActionType, ActivityLog

logger = logging.getLogger(__name__)


def _append(
    *,
    user_id: str,
    project_id: int,
    action_type: str,
    entity_id: int,
    entity_type: str,
    details: dict,
) -> ActivityLog:
    if entity_type not in ENTITY_TYPES:
        raise ValueError(f"Unknown entity_type {entity_type!r}")

    with db.session.begin_nested():
        log = ActivityLog(
            user_id=user_id,
            project_id=project_id,
            action_type=action_type,
            entity_id=entity_id,
            entity_type=entity_type,
            details_json=json.dumps(details, default=str),
        )
        db.session.add(log)
    return log


def log_activity(
    *,
    user_id: str,
    project_id: int,
    action_type: ActionType | str,
    entity_id: int,
    entity_type: str,
    details: dict | None = None,
) -> bool:
    """Append one activity row. Never raises.

    Returns:
        True if the row was written, False if the append failed.
    """
    if isinstance(action_type, ActionType):
        action_type = action_type.value
    try:
        _append(
            user_id=user_id,
            project_id=project_id,
            action_type=action_type,
            entity_id=entity_id,
            entity_type=entity_type,
            details=details or {},
        )
        return True
    except Exception:
        logger.exception(
            "Failed to log activity action=%s project_id=%s entity=%s/%s",
            action_type, project_id, entity_type, entity_id,
            extra={"project_id": project_id, "action_type": str(action_type)},
        )
        return False
