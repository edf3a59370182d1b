from __future__ import annotations

from pathlib import Path
from alembic import command
from alembic.config import Config

from src.settings import settings


def apply_migrations_safely() -> None:
    """Apply Alembic migrations to the latest head.

    This is safe to run on every startup; Alembic will be a no-op when up-to-date.
    Any errors are logged but do not prevent the app from starting.
    """
    try:
        project_root = Path(__file__).resolve().parents[2]
        alembic_dir = project_root / "alembic"

        cfg = Config()
        cfg.set_main_option("script_location", str(alembic_dir))
        # Ensure the DB URL used by the app is also used for migrations
        cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

        command.upgrade(cfg, "head")
        print("✅ Alembic migrations applied (or already up-to-date)")
    except Exception as exc:
        print(f"⚠️ Skipping Alembic auto-migration: {exc}")


def ensure_tables_exist() -> None:
    """Best-effort safety net to ensure the marketplace tables exist.

    If migrations were applied to a different schema/DB or a race occurred, create
    missing tables from the SQLAlchemy model metadata. This is idempotent.
    """
    try:
        from sqlalchemy import inspect
        from src.db.base import Base, DB_SCHEMA
        from src.db.session import get_engine
        import src.app.features.store.models  # noqa: F401  registers all tables
        import src.app.features.pharmacists.models  # noqa: F401

        engine = get_engine()
        existing = set(inspect(engine).get_table_names(schema=DB_SCHEMA))
        missing = [t for t in Base.metadata.sorted_tables if t.name not in existing]
        if missing:
            names = ", ".join(f"{DB_SCHEMA}.{t.name}" for t in missing)
            print(f"⚠️  Missing tables: {names}. Creating them now...")
            Base.metadata.create_all(bind=engine, tables=missing)
            print("✅  Tables created")
        else:
            print("✅  All tables exist")
    except Exception as exc:
        print(f"⚠️  Could not verify/create tables: {exc}")
