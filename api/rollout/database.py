from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from rollout import config

SCHEMA = """CREATE TABLE IF NOT EXISTS rollout_features (
    name VARCHAR(255) PRIMARY KEY,
    percentage VARCHAR(32) NOT NULL DEFAULT '0',
    group_names TEXT NOT NULL DEFAULT '[]',
    user_names TEXT NOT NULL DEFAULT '[]'
)"""

def make_engine(url: str = None) -> Engine:
    url = url or config.DATABASE_URL
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False}, future=True)
    return create_engine(url, pool_pre_ping=True, pool_size=5, max_overflow=10, future=True)

def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)

def init_schema(engine: Engine):
    with engine.begin() as conn:
        conn.execute(text(SCHEMA))
