"""
JWT auth middleware. Parses the Bearer token and sets ``g.current_user_id``.

The middleware only establishes identity. It never rejects a request:
blueprints call ``current_user_id()`` and answer 401 when it is missing,
and services do their own membership/role checks.
"""

import logging

import jwt as pyjwt
from flask import g, request

from thinkhub.services.jwt_service import decode_access_token

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/health",
)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.current_user_id = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        if path.startswith(JWT_SKIP_PREFIXES):
            return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        token = auth_header[7:]
        try:
            payload = decode_access_token(token)
        except pyjwt.ExpiredSignatureError:
            logger.info("Expired access token path=%s", path)
            return
        except pyjwt.InvalidTokenError as exc:
            logger.info("Invalid access token path=%s: %s", path, exc)
            return
        g.current_user_id = str(payload["sub"])
