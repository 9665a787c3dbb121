"""SQLAlchemy engine, session factory and table bootstrap."""

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from app.config import settings


connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Declarative base class for the wardrobe models."""
    pass


def init_db(bind=None) -> None:
    """Create missing tables; migrations remain the source of truth in production."""
    from app.models import db  # noqa: F401  (registers models on Base)

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """FastAPI dependency that yields a DB session and closes it after use."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
