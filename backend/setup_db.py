#!/usr/bin/env python3
"""
Database setup script for Meridian

This script creates the PostgreSQL database if it doesn't exist and then
creates the Meridian tables from the ORM models.
"""

import sys

import psycopg2
from psycopg2 import sql
from psycopg2.extensions import ISOLATION_LEVEL_AUTOCOMMIT

from meridian.core.config import settings
from meridian.db.base import Base
from meridian.db.session import engine


def create_database():
    """Create the PostgreSQL database if it doesn't exist"""
    conn = psycopg2.connect(
        host=settings.postgres_host,
        port=settings.postgres_port,
        user=settings.postgres_user,
        password=settings.postgres_password,
        dbname="postgres"
    )
    conn.set_isolation_level(ISOLATION_LEVEL_AUTOCOMMIT)
    cursor = conn.cursor()

    try:
        # Check if database exists
        cursor.execute("SELECT 1 FROM pg_catalog.pg_database WHERE datname = %s", (settings.postgres_db,))
        if cursor.fetchone():
            print(f"Database '{settings.postgres_db}' already exists")
            return

        cursor.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(settings.postgres_db)))
        print(f"Database '{settings.postgres_db}' created successfully")
    finally:
        cursor.close()
        conn.close()


def create_tables():
    """Create the Meridian tables"""
    # Register every model on the metadata
    import meridian.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    print(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")


def main():
    """Main function"""
    if settings.sqlalchemy_database_uri.startswith("postgresql"):
        try:
            create_database()
        except psycopg2.Error as e:
            print(f"Error creating database: {e}")
            sys.exit(1)

    create_tables()


if __name__ == "__main__":
    main()
