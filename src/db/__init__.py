# src/db/__init__.py
from .base import Base, DB_SCHEMA  # noqa: F401
from .session import (  # noqa: F401
    get_engine,
    get_async_session,
    get_db,
    dispose_engines,
)
from .url import get_sqlalchemy_url, get_sqlalchemy_async_url  # noqa: F401
