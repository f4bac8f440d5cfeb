"""
asgi.py -- Application assembly for the Q&A service.

Run with:  uvicorn asgi:app --reload
           python main.py
"""

from api.main import app

__all__ = ["app"]
