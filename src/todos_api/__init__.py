"""
Todos API package.

Per-user todo lists stored cache-aside in Redis (with an in-process
fallback), served by FastAPI. The application factory lives in
``todos_api.main``; ``todos_api.main:app`` is the ASGI entry point.
"""

__version__ = "0.1.0"
