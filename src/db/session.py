# src/db/session.py
from __future__ import annotations

from typing import AsyncGenerator

from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
import ssl
from decouple import config
from pathlib import Path

from .url import get_sqlalchemy_url, get_sqlalchemy_async_url


_engine = None

_async_engine = None
_AsyncSessionLocal = None


def _ensure_engine() -> None:
    global _engine
    if _engine is None:
        _engine = create_engine(get_sqlalchemy_url(), echo=False, pool_pre_ping=True)


def _ssl_context():
    """Build a verifying SSL context when DB_CA_BUNDLE is configured."""
    ca_bundle = config("DB_CA_BUNDLE", default="")
    if not ca_bundle:
        return None
    ca_bundle_path = Path(ca_bundle)
    if not ca_bundle_path.exists():
        raise RuntimeError(
            f"Database CA bundle not found at {ca_bundle_path}. Fix DB_CA_BUNDLE or unset it."
        )
    ssl_context = ssl.create_default_context(cafile=str(ca_bundle_path))
    ssl_context.check_hostname = True
    ssl_context.verify_mode = ssl.CERT_REQUIRED
    return ssl_context


def _ensure_async_engine_and_factory() -> None:
    global _async_engine, _AsyncSessionLocal
    if _AsyncSessionLocal is None:
        ssl_context = _ssl_context()
        connect_args = {"ssl": ssl_context} if ssl_context is not None else {}

        _async_engine = create_async_engine(
            get_sqlalchemy_async_url(),
            echo=False,
            pool_pre_ping=True,
            connect_args=connect_args,
        )
        _AsyncSessionLocal = sessionmaker(
            bind=_async_engine,
            class_=AsyncSession,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )


def get_engine():
    _ensure_engine()
    return _engine


def get_async_engine():
    _ensure_async_engine_and_factory()
    return _async_engine


def get_async_session() -> AsyncSession:
    _ensure_async_engine_and_factory()
    return _AsyncSessionLocal()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request."""
    db = get_async_session()
    try:
        yield db
    finally:
        await db.close()


async def dispose_engines() -> None:
    global _engine, _async_engine, _AsyncSessionLocal
    if _async_engine is not None:
        await _async_engine.dispose()
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _async_engine = None
    _AsyncSessionLocal = None
