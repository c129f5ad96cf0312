"""
ThinkHub
Blueprint helpers shared by every API blueprint.
"""

from flask import g, request

from thinkhub.utils.errors import E, api_error


def current_user_id():
    """Return the authenticated user id, or a 401 error tuple.

    Usage::

        user_id, err = current_user_id()
        if err:
            return err
    """
    user_id = getattr(g, "current_user_id", None)
    if not user_id:
        return None, api_error(E.UNAUTHORIZED, "Authentication required")
    return user_id, None


def json_body():
    """Return the JSON object body, or a 400 error tuple for anything else."""
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return None, api_error(E.VALIDATION_REQUIRED, "Request body must be a JSON object")
    return data, None
