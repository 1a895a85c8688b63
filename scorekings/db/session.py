from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from scorekings.core.config import settings


def make_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        # sessions are used from FastAPI's threadpool; lock waits end with the request deadline
        connect_args = {"check_same_thread": False, "timeout": settings.REQUEST_TIMEOUT_SECONDS}
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


engine = make_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, autoflush=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
