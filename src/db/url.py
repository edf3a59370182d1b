# src/db/url.py
from __future__ import annotations

from decouple import config
from sqlalchemy.engine.url import make_url


def _strip_driver(url: str) -> str:
    if url.startswith("postgresql+"):
        return "postgresql://" + url.split("://", 1)[1]
    return url


def get_sqlalchemy_url() -> str:
    """Return a SQLAlchemy-compatible URL. Driverless is fine."""
    return _strip_driver(config("DATABASE_URL"))


def get_sqlalchemy_async_url(driver: str = "asyncpg") -> str:
    db_url = config("DATABASE_URL")
    url = make_url(db_url)
    url = url.set(drivername=f"postgresql+{driver}")
    # asyncpg rejects libpq's sslmode; TLS is configured on the connection instead
    if "sslmode" in url.query:
        query = dict(url.query)
        del query["sslmode"]
        url = url.set(query=query)
    return url.render_as_string(hide_password=False)
