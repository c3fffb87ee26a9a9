"""
Tests for the trade, stats and session API endpoints
"""

from datetime import datetime, timedelta

from meridian.core.security import create_session_token
from meridian.models.account import Account
from meridian.models.trade import Trade as TradeModel


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_session_requires_token(client):
    response = client.get("/api/auth/session")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_session_rejects_bad_token(client):
    response = client.get("/api/auth/session", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_session_rejects_expired_token(client, user):
    token = create_session_token(user.discord_id, expires_delta=timedelta(minutes=-5))
    response = client.get("/api/auth/session", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_session_for_unknown_user(client, db):
    token = create_session_token("333333333333333333")
    response = client.get("/api/auth/session", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 404


def test_session(client, user, user_headers):
    response = client.get("/api/auth/session", headers=user_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["user"]["discord_id"] == user.discord_id
    assert body["is_admin"] is False


def test_admin_session(client, admin, admin_headers):
    response = client.get("/api/auth/session", headers=admin_headers)
    assert response.json()["is_admin"] is True


def test_list_trades_resolves_pnl(client, user, user_headers, make_trade):
    make_trade(user, symbol="AAPL", pnl=None)
    make_trade(user, symbol="MSFT", pnl=42.0, pnl_percent=4.2,
               entry_date=datetime(2024, 1, 3, 10))
    make_trade(user, symbol="NVDA", status="open", exit_price=None, exit_date=None,
               entry_date=datetime(2024, 1, 4, 10))

    response = client.get("/api/trades", headers=user_headers)

    assert response.status_code == 200
    trades = response.json()
    assert [t["symbol"] for t in trades] == ["AAPL", "MSFT", "NVDA"]
    assert trades[0]["pnl"] == 100.0
    assert trades[0]["pnl_percent"] == 10.0
    assert trades[1]["pnl"] == 42.0
    assert trades[2]["pnl"] is None


def test_list_trades_filters(client, user, user_headers, make_trade):
    make_trade(user, symbol="AAPL")
    make_trade(user, symbol="NVDA", status="open", exit_price=None, exit_date=None)

    response = client.get("/api/trades?status=open", headers=user_headers)
    assert [t["symbol"] for t in response.json()] == ["NVDA"]

    response = client.get("/api/trades?limit=1", headers=user_headers)
    assert len(response.json()) == 1


def test_list_trades_only_own(client, user, admin, user_headers, make_trade):
    make_trade(admin, symbol="SPY")
    response = client.get("/api/trades", headers=user_headers)
    assert response.json() == []


def test_create_open_trade_and_close_it(client, user, user_headers):
    payload = {
        "symbol": "AMD",
        "asset_type": "stock",
        "direction": "long",
        "entry_price": 120.0,
        "quantity": 5,
        "entry_date": "2024-02-01T14:30:00",
        "status": "open",
    }
    response = client.post("/api/trades", json=payload, headers=user_headers)
    assert response.status_code == 201
    trade = response.json()
    assert trade["direction"] == "LONG"
    assert trade["user_id"] == user.id
    assert trade["pnl"] is None

    response = client.post(
        f"/api/trades/{trade['id']}/close",
        json={"exit_price": 126.0, "exit_date": "2024-02-02T15:00:00"},
        headers=user_headers
    )
    assert response.status_code == 200
    closed = response.json()
    assert closed["status"] == "closed"
    assert closed["pnl"] == 30.0

    response = client.post(
        f"/api/trades/{trade['id']}/close",
        json={"exit_price": 127.0, "exit_date": "2024-02-03T15:00:00"},
        headers=user_headers
    )
    assert response.status_code == 400


def test_create_open_trade_with_exit_price_is_rejected(client, user_headers):
    payload = {
        "symbol": "AMD",
        "direction": "LONG",
        "entry_price": 120.0,
        "exit_price": 125.0,
        "quantity": 5,
        "entry_date": "2024-02-01T14:30:00",
        "status": "open",
    }
    response = client.post("/api/trades", json=payload, headers=user_headers)
    assert response.status_code == 422


def test_close_before_entry_is_rejected(client, user, user_headers, make_trade):
    trade = make_trade(user, status="open", exit_price=None, exit_date=None,
                       entry_date=datetime(2024, 2, 1, 14, 30))
    response = client.post(
        f"/api/trades/{trade.id}/close",
        json={"exit_price": 101.0, "exit_date": "2024-01-31T15:00:00"},
        headers=user_headers
    )
    assert response.status_code == 400


def test_close_other_users_trade(client, admin, user_headers, make_trade):
    trade = make_trade(admin, status="open", exit_price=None, exit_date=None)
    response = client.post(
        f"/api/trades/{trade.id}/close",
        json={"exit_price": 101.0, "exit_date": "2024-01-05T15:00:00"},
        headers=user_headers
    )
    assert response.status_code == 404


def test_stats(client, user, user_headers, make_trade):
    make_trade(user, pnl=100.0, entry_date=datetime(2024, 1, 1, 10))
    make_trade(user, pnl=-50.0, entry_date=datetime(2024, 1, 2, 10))
    make_trade(user, pnl=100.0, entry_date=datetime(2024, 1, 3, 10))
    make_trade(user, pnl=-130.0, entry_date=datetime(2024, 1, 4, 10))
    make_trade(user, status="open", exit_price=None, exit_date=None,
               entry_date=datetime(2024, 1, 5, 10))

    response = client.get("/api/stats", headers=user_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["summary"]["total_trades"] == 4
    assert body["summary"]["win_rate"] == 50.0
    assert body["summary"]["total_pnl"] == 20.0
    assert body["extended_stats"]["max_drawdown"] == 130.0
    assert body["extended_stats"]["current_streak"] == -1
    assert len(body["daily_results"]) == 4


def test_create_closed_trade_exit_before_entry_is_rejected(client, user_headers):
    payload = {
        "symbol": "AMD",
        "direction": "LONG",
        "entry_price": 120.0,
        "exit_price": 125.0,
        "quantity": 5,
        "entry_date": "2024-02-02T14:30:00",
        "exit_date": "2024-02-01T15:00:00",
        "status": "closed",
    }
    response = client.post("/api/trades", json=payload, headers=user_headers)
    assert response.status_code == 422


def test_create_trade_on_own_account(client, user, user_headers, tradier_account):
    payload = {
        "symbol": "AMD",
        "direction": "LONG",
        "entry_price": 120.0,
        "quantity": 5,
        "entry_date": "2024-02-01T14:30:00",
        "status": "open",
        "account_id": tradier_account.id,
    }
    response = client.post("/api/trades", json=payload, headers=user_headers)
    assert response.status_code == 201
    assert response.json()["account_id"] == tradier_account.id


def test_create_trade_on_other_users_account_is_rejected(client, db, admin, user_headers):
    other = Account(user_id=admin.id, platform="tradier", account_number="6YA00009",
                    access_token="admin-token", is_active=True)
    db.add(other)
    db.commit()

    payload = {
        "symbol": "AMD",
        "direction": "LONG",
        "entry_price": 120.0,
        "quantity": 5,
        "entry_date": "2024-02-01T14:30:00",
        "status": "open",
        "account_id": other.id,
    }
    response = client.post("/api/trades", json=payload, headers=user_headers)
    assert response.status_code == 404
    assert db.query(TradeModel).count() == 0
