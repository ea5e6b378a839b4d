from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from foundation.config import Settings
from foundation.core.exceptions import ConfigurationMissingError

Base = declarative_base()


def database_url(settings: Settings) -> str:
    """
    Resolve the connection URL, preferring ``DATABASE_URL`` over the ``DB_*`` parts

    Raises:
        ConfigurationMissingError: If neither form of configuration is present
    """
    if settings.DATABASE_URL:
        return settings.DATABASE_URL

    if not settings.DB_DRIVER:
        raise ConfigurationMissingError(
            message="Database is not configured: set DATABASE_URL or DB_DRIVER",
            parameter="DATABASE_URL",
        )

    query = {"charset": settings.DB_CHARSET} if settings.DB_CHARSET else {}
    url = URL.create(
        drivername=settings.DB_DRIVER,
        username=settings.DB_USERNAME,
        password=settings.DB_PASSWORD,
        host=settings.DB_HOST,
        port=settings.DB_PORT,
        database=settings.DB_NAME,
        query=query,
    )
    return url.render_as_string(hide_password=False)


@lru_cache(maxsize=None)
def get_engine(url: str) -> Engine:
    """Return the process-wide engine (and connection pool) for ``url``"""
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


def open_session(settings: Settings) -> Session:
    """Open a new ORM session on the configured database"""
    engine = get_engine(database_url(settings))
    return sessionmaker(autoflush=False, bind=engine)()
