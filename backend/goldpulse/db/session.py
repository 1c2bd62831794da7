from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from goldpulse.core.config import get_settings


settings = get_settings()

if settings.is_sqlite:
    if ":memory:" not in settings.database_url:
        Path(settings.database_url.split("///", 1)[-1]).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(
        settings.database_url,
        future=True,
        connect_args={"check_same_thread": False},
    )
else:
    # Hosted Postgres plans cap connections; keep the pool small and recycle often.
    engine = create_engine(
        settings.database_url,
        future=True,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=5,
        pool_recycle=300,
    )

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)
