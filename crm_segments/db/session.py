# crm_segments/db/session.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from crm_segments.core.config import settings


def _connect_args(url: str) -> dict:
    # The store's own statement timeout is the only bound on a request.
    if url.startswith("postgresql"):
        return {"options": f"-c statement_timeout={settings.STATEMENT_TIMEOUT_MS}"}
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.DATABASE_URL),
)

# One session per request; see get_db below.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
