"""
Database session manager for Meridian

This module creates and manages SQLAlchemy database connections and sessions.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from meridian.core.config import settings


def build_engine(database_uri: str, echo: bool = False):
    """
    Create a SQLAlchemy engine

    SQLite URIs (used for local runs and tests) share one connection so an
    in-memory database survives across sessions.
    """
    if database_uri.startswith("sqlite"):
        return create_engine(
            database_uri,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo
        )
    return create_engine(database_uri, pool_pre_ping=True, echo=echo)


# Create SQLAlchemy engine
engine = build_engine(settings.sqlalchemy_database_uri, echo=settings.debug)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

