"""Database connection and session management.

This module handles the SQL database connection using SQLAlchemy. It is only
used when STORE_BACKEND is "sql".
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from config import DATA_DIR, DATABASE_URL
from models.base import Base
# Import models to ensure they are registered with Base.metadata
import models  # noqa: F401

# Ensure data directory exists
DATA_DIR.mkdir(parents=True, exist_ok=True)

_connect_args = (
    {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
)

engine = create_engine(DATABASE_URL, connect_args=_connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None):
    """Create tables if they do not exist."""
    Base.metadata.create_all(bind=bind or engine)
