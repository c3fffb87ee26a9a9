"""
Configuration for pytest

This module contains fixtures and configuration for pytest.
"""

import os
import tempfile
from datetime import datetime
from typing import Generator

# Settings are read at import time, so point them at an in-memory database first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "meridian-test-secret"
os.environ["ADMIN_DISCORD_IDS"] = "222222222222222222"
os.environ["LOG_FILE"] = os.path.join(tempfile.gettempdir(), "meridian-test.log")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from meridian.api.deps import get_admin_allowlist, get_db  # noqa: E402
from meridian.core.security import AdminAllowlist, create_session_token  # noqa: E402
from meridian.db.base import Base  # noqa: E402
from meridian.db.session import SessionLocal, engine  # noqa: E402
from meridian.main import app  # noqa: E402
from meridian.models.account import Account  # noqa: E402
from meridian.models.trade import Trade  # noqa: E402
from meridian.models.user import User  # noqa: E402

USER_DISCORD_ID = "111111111111111111"
ADMIN_DISCORD_ID = "222222222222222222"


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Get a database session on a fresh schema"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    # Clean up
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db) -> Generator[TestClient, None, None]:
    """Get a TestClient bound to the test session"""
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_admin_allowlist] = lambda: AdminAllowlist([ADMIN_DISCORD_ID])

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def user(db) -> User:
    """A regular dashboard user"""
    user = User(discord_id=USER_DISCORD_ID, username="trader")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin(db) -> User:
    """A user on the admin allowlist"""
    admin = User(discord_id=ADMIN_DISCORD_ID, username="admin")
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


@pytest.fixture
def tradier_account(db, user) -> Account:
    """An active Tradier account with credentials"""
    account = Account(
        user_id=user.id,
        platform="tradier",
        account_name="Tradier Margin",
        account_number="6YA00001",
        access_token="tradier-token",
        is_active=True,
        trading_enabled=True,
        size_pct=100
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


@pytest.fixture
def user_headers(user) -> dict:
    """Authorization header for the regular user"""
    return {"Authorization": f"Bearer {create_session_token(user.discord_id)}"}


@pytest.fixture
def admin_headers(admin) -> dict:
    """Authorization header for the admin user"""
    return {"Authorization": f"Bearer {create_session_token(admin.discord_id)}"}


@pytest.fixture
def make_trade(db):
    """Factory for stored trades"""
    def _make_trade(user: User, **overrides) -> Trade:
        values = {
            "user_id": user.id,
            "symbol": "AAPL",
            "asset_type": "stock",
            "direction": "LONG",
            "entry_price": 100.0,
            "exit_price": 110.0,
            "quantity": 10,
            "entry_date": datetime(2024, 1, 2, 14, 30),
            "exit_date": datetime(2024, 1, 3, 15, 0),
            "status": "closed",
        }
        values.update(overrides)
        trade = Trade(**values)
        db.add(trade)
        db.commit()
        db.refresh(trade)
        return trade

    return _make_trade
