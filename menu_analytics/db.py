from sqlmodel import create_engine, SQLModel, Session

from menu_analytics.core.config import settings
from menu_analytics.core.logging_config import get_logger

logger = get_logger(__name__)

DATABASE_URL = settings.DATABASE_URL

if DATABASE_URL.startswith("sqlite"):
    # FastAPI runs sync dependencies in a thread pool
    engine = create_engine(DATABASE_URL, echo=False, connect_args={"check_same_thread": False})
else:
    engine = create_engine(
        DATABASE_URL,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,  # Verify connections before use
        pool_recycle=300,
        pool_timeout=30,
    )


def get_session():
    with Session(engine) as session:
        yield session


def create_db_and_tables():
    # Register table metadata before create_all
    import menu_analytics.models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    logger.info("Database tables ensured", url=engine.url.render_as_string(hide_password=True))
