from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from config.settings import DATABASE_URL

_engine = None

def make_engine(url: str) -> Engine:

    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_recycle=3600
    )

def get_engine() -> Engine:
    
    global _engine

    if _engine is None:
        _engine = make_engine(DATABASE_URL)

    return _engine

def dispose_engine():

    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None
