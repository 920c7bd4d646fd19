# app/db/session.py
import logging
import os
from typing import Generator

from sqlmodel import Session, SQLModel, create_engine

log = logging.getLogger("uvicorn.error")


def normalize_database_url(url: str) -> str:
    if not url:
        return "sqlite:///./data.db"

    url = url.strip()

    if url.startswith("sqlite:"):
        return url

    if url.startswith("postgresql+psycopg://"):
        return url

    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)

    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)

    return url


def mask_db_url(url: str) -> str:
    if not url or "://" not in url or "@" not in url:
        return url
    scheme, rest = url.split("://", 1)
    creds, tail = rest.split("@", 1)
    user = creds.split(":", 1)[0]
    return f"{scheme}://{user}:***@{tail}"


def build_engine(url: str):
    if url.startswith("sqlite:"):
        return create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
        )

    return create_engine(
        url,
        echo=False,
        pool_pre_ping=True,
        pool_size=int(os.getenv("DB_POOL_SIZE", "5")),
        max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "10")),
        pool_recycle=1800,
    )


DATABASE_URL = normalize_database_url(os.getenv("DATABASE_URL", ""))
engine = build_engine(DATABASE_URL)

log.info("[DB] Using DATABASE_URL = %s", mask_db_url(DATABASE_URL))


def init_db() -> None:
    # les modèles doivent être importés pour être enregistrés dans metadata
    import app.models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session
