"""
API Interface - FastAPI REST API.

Serves one in-process document session: upload a document, poll its
page-by-page state, then grade it against an answer key.
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
