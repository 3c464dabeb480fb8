"""
asgi.py -- ASGI entry point for the Arena API.

Settings are read from the environment (and .env) exactly once, here, and
handed to create_app(). Nothing below this module reads configuration on its
own.

Run with:  uvicorn asgi:app --reload
"""

from api.main import create_app
from core.config import get_settings

app = create_app(get_settings())
