from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import sessionmaker
from fastapi import Depends

from flarecare.core.config import ReminderSettings, get_settings


def build_store_url(settings: ReminderSettings) -> URL:
    """Resolve the store URL, injecting the service key as the password.

    The key is only applied to URLs that name a host and carry no password
    of their own (file-based SQLite URLs are left untouched).
    """
    url = make_url(settings.STORE_URL)
    if url.host and settings.STORE_SERVICE_KEY and not url.password:
        url = url.set(password=settings.STORE_SERVICE_KEY)
    return url


@lru_cache(maxsize=8)
def get_engine(url: URL) -> Engine:
    return create_engine(
        url,
        pool_recycle=300,      # Recycle connections every 5 minutes
        pool_pre_ping=True,    # Validate connections before use
        echo=False,
    )


def get_session_factory(settings: ReminderSettings = Depends(get_settings)) -> sessionmaker:
    """Session factory for the configured store. Creating it opens no connection."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=get_engine(build_store_url(settings)),
    )
