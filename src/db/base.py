# src/db/base.py
from sqlalchemy.orm import declarative_base

from src.settings import settings

DB_SCHEMA = settings.DB_SCHEMA
Base = declarative_base()
