from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from suagrana.config import settings


def _engine_options() -> dict:
    """Pool sizing applies to server databases only; SQLite uses its own pool."""
    if settings.is_sqlite:
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
    }


engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.DEBUG,
    **_engine_options(),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """
    FastAPI dependency for database sessions.

    Yields one session per request and closes it afterwards.

    Usage:
        @router.get("/accounts")
        def list_accounts(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
