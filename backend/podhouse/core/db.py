from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from .config import settings


def make_engine(db_url: str, **kwargs):
    connect_args = {}
    if db_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    return create_engine(db_url, connect_args=connect_args, **kwargs)


engine = make_engine(settings.DB_URL)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
