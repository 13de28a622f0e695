"""
asgi.py -- ASGI entry point for Rubrica.

Run with:  uvicorn asgi:app --reload

The app itself is assembled in api/main.py; this module only gives servers
a stable, short import path.
"""

from api.main import app

__all__ = ["app"]
