"""
WSGI / Flask CLI entry point.

Usage:
    flask --app wsgi db upgrade         # apply migrations
    flask --app wsgi seed-demo          # demo users, project and tokens
    gunicorn wsgi:app
"""

from thinkhub import create_app

app = create_app()
