from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from shipsheet.core_settings import get_settings
from shipsheet.domain.models import Base

settings = get_settings()
DATABASE_URL = settings.database_url

if DATABASE_URL.startswith("sqlite"):
    # Single shared connection so an in-memory database survives across sessions
    engine = create_engine(
        DATABASE_URL,
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    engine = create_engine(DATABASE_URL, echo=False, future=True, pool_pre_ping=True)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_models():
    Base.metadata.create_all(engine)
