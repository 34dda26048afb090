from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from crud_engine.core.config import settings


class Base(DeclarativeBase):
    pass


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(settings.DATABASE_URL, connect_args=_connect_args(settings.DATABASE_URL), pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None) -> None:
    """Create the tables owned by the engine itself (currently the audit log)."""
    from crud_engine.models.audit_log import AuditLog

    AuditLog.__table__.create(bind=bind or engine, checkfirst=True)
