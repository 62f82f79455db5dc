import logging

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    # SQLite needs different config than PostgreSQL
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False}  # Needed for SQLite
        )
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request):
    """Dependency for getting database sessions from the app's session factory."""
    db = request.app.state.services.session_factory()
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Engine, seed: bool = True):
    """Initialize database tables and seed the default catalogue."""
    import storefront.models  # noqa: F401  (registers tables on Base)
    from storefront.seed import seed_catalog

    Base.metadata.create_all(bind=engine)

    if not seed:
        return

    db = build_session_factory(engine)()
    try:
        created = seed_catalog(db)
        if created:
            logger.info(f"Seeded {created['categories']} categories and {created['products']} products")
    finally:
        db.close()
