"""
Mock Tradier broker for testing

This module provides canned gain/loss records and an in-memory broker that
serves them without touching the network.
"""

from typing import Any, Dict, List, Optional

from meridian.analytics.ingestion import normalize_closed_positions
from meridian.services.broker_base import BrokerBase, BrokerError


def closed_position(**overrides) -> Dict[str, Any]:
    """A gain/loss record as Tradier sends it"""
    record = {
        "symbol": "AAPL",
        "cost": 1500.0,
        "proceeds": 1600.0,
        "quantity": 10,
        "open_date": "2024-01-02T00:00:00.000Z",
        "close_date": "2024-01-05T00:00:00.000Z",
        "gain_loss": 100.0,
        "gain_loss_percent": 6.67,
        "term": 3,
    }
    record.update(overrides)
    return record


def gainloss_payload(records: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Wrap records in a gain/loss response body"""
    if not records:
        return {"gainloss": "null"}
    if len(records) == 1:
        return {"gainloss": {"closed_position": records[0]}}
    return {"gainloss": {"closed_position": records}}


class MockTradierBroker(BrokerBase):
    """In-memory broker serving fixed gain/loss records"""

    def __init__(self, records: Optional[List[Dict[str, Any]]] = None, error: Optional[BrokerError] = None,
                 page_limit: int = 100):
        self.records = list(records or [])
        self.error = error
        self.page_limit = page_limit
        self.connected = False
        self.calls = 0

    def connect(self) -> bool:
        self.connected = True
        return True

    def disconnect(self) -> bool:
        self.connected = False
        return True

    def get_gain_loss(self, page=1, limit=100, sort_by="closeDate", sort="desc", start=None, end=None):
        self.calls += 1
        if self.error is not None:
            raise self.error
        begin = (page - 1) * limit
        positions, rejected = normalize_closed_positions(gainloss_payload(self.records[begin:begin + limit]))
        self.rejected_records += rejected
        return positions

    def get_all_gain_loss(self, start=None, end=None):
        self.rejected_records = 0
        positions = []
        page = 1
        while True:
            positions.extend(self.get_gain_loss(page=page, limit=self.page_limit))
            if page * self.page_limit >= len(self.records):
                return positions
            page += 1
