from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from .config import settings


def get_database_url() -> str:
    """Get database URL, preferring an explicit DATABASE_URL over the Postgres parts."""
    if settings.DATABASE_URL:
        return settings.DATABASE_URL

    base_url = (
        f"postgresql+psycopg2://{settings.POSTGRES_USER}:"
        f"{settings.POSTGRES_PASSWORD}@{settings.POSTGRES_HOST}:"
        f"{settings.POSTGRES_PORT}/{settings.POSTGRES_DB}"
    )

    # Managed databases outside development require SSL
    if settings.ENVIRONMENT.lower() in ("production", "staging"):
        base_url += "?sslmode=require"

    return base_url


def _connect_args(url: str) -> dict:
    # Sessions are opened from the threadpool, not the thread that created the engine
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


_url = get_database_url()
engine = create_engine(_url, pool_pre_ping=True, connect_args=_connect_args(_url))
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create all tables directly. Development only; deployments use Alembic."""
    from app.chat.models import Message  # noqa: F401
    from app.models import Base

    Base.metadata.create_all(bind=engine)
