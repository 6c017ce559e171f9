from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from .config import get_settings

Base = declarative_base()

@lru_cache(maxsize=None)
def get_engine(database_url: str = None):
    url = database_url or get_settings().DATABASE_URL
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, future=True, pool_pre_ping=True, connect_args=connect_args)

@lru_cache(maxsize=None)
def get_sessionmaker(engine=None):
    return sessionmaker(bind=engine or get_engine(), autoflush=False, autocommit=False, future=True)

def init_db(engine=None):
    from . import models_db  # noqa
    Base.metadata.create_all(bind=engine or get_engine())
