import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from skillquiz.core.config import DATABASE_URL

logger = logging.getLogger(__name__)

# sqlite connections are handed across FastAPI's worker threads
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, future=True, pool_pre_ping=True, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)

def init_db() -> None:
    """Create any missing tables. Schema migrations are managed outside this service."""
    from skillquiz.models.orm import Base
    Base.metadata.create_all(engine)
    logger.info("database schema ready on %s", engine.url.render_as_string(hide_password=True))

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
