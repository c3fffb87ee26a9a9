"""
Tradier Broker Service for Meridian

This module implements the broker interface for Tradier's gain/loss endpoint,
which reports realized P&L per closed position.

https://documentation.tradier.com/brokerage-api/accounts/get-account-gainloss
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from meridian.analytics.ingestion import normalize_closed_positions
from meridian.core.config import settings
from meridian.schemas.trading import ClosedPosition
from meridian.services.broker_base import BrokerAuthError, BrokerBase, BrokerError

logger = logging.getLogger(__name__)

class TradierBroker(BrokerBase):
    """Tradier broker implementation"""

    def __init__(
        self,
        account_number: str,
        access_token: str,
        base_url: Optional[str] = None,
        page_limit: Optional[int] = None,
        max_pages: Optional[int] = None,
        timeout: Optional[float] = None
    ):
        """
        Initialize the Tradier broker

        Args:
            account_number: Tradier account number
            access_token: OAuth access token for the account
            base_url: API base URL (optional, defaults to config)
            page_limit: Records per gain/loss page (optional, defaults to config)
            max_pages: Pagination safety limit (optional, defaults to config)
            timeout: Request timeout in seconds (optional, defaults to config)
        """
        self.account_number = account_number
        self.access_token = access_token
        self.base_url = (base_url or settings.tradier_api_base).rstrip("/")
        self.page_limit = page_limit or settings.tradier_page_limit
        self.max_pages = max_pages or settings.tradier_max_pages
        self.timeout = timeout or settings.tradier_timeout

        self.session: Optional[requests.Session] = None
        self.connected = False

    def connect(self) -> bool:
        """
        Prepare an authenticated HTTP session

        Returns:
            bool: Always True; Tradier's REST API has no handshake
        """
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        })
        self.connected = True
        logger.info(f"Connected to Tradier. Account: {self.account_number}")
        return True

    def disconnect(self) -> bool:
        """
        Close the HTTP session

        Returns:
            bool: True if disconnection successful
        """
        if self.session is not None:
            self.session.close()
        self.session = None
        self.connected = False
        logger.info("Disconnected from Tradier")
        return True

    def _get(self, path: str, params: Dict[str, Any]) -> Any:
        if not self.connected:
            self.connect()

        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise BrokerError(f"Tradier request failed: {e}") from e

        if response.status_code == 401:
            raise BrokerAuthError(
                f"Tradier API error (401): {response.text}", status_code=401
            )
        if not response.ok:
            raise BrokerError(
                f"Tradier API error ({response.status_code}): {response.text}",
                status_code=response.status_code
            )
        try:
            return response.json()
        except ValueError as e:
            raise BrokerError(
                f"Tradier returned a non-JSON response: {response.text[:200]}",
                status_code=response.status_code
            ) from e

    def get_gain_loss(
        self,
        page: int = 1,
        limit: int = 100,
        sort_by: str = "closeDate",
        sort: str = "desc",
        start: Optional[str] = None,
        end: Optional[str] = None
    ) -> List[ClosedPosition]:
        """
        Get one page of closed positions

        Returns:
            List[ClosedPosition]: Closed positions on that page
        """
        params = {"page": page, "limit": limit, "sortBy": sort_by, "sort": sort}
        if start:
            params["start"] = start
        if end:
            params["end"] = end

        payload = self._get(f"/accounts/{self.account_number}/gainloss", params)
        positions, rejected = normalize_closed_positions(payload)
        self.rejected_records += rejected
        return positions

    def get_all_gain_loss(
        self,
        start: Optional[str] = None,
        end: Optional[str] = None
    ) -> List[ClosedPosition]:
        """
        Get every closed position, following pagination

        Stops at the first short page, or after max_pages pages.
        """
        positions: List[ClosedPosition] = []
        self.rejected_records = 0
        page = 1

        while True:
            rejected_before = self.rejected_records
            batch = self.get_gain_loss(
                page=page,
                limit=self.page_limit,
                sort_by="closeDate",
                sort="desc",
                start=start,
                end=end
            )
            positions.extend(batch)

            # Invalid records still occupy a slot on the page
            if len(batch) + self.rejected_records - rejected_before < self.page_limit:
                break

            page += 1
            if page > self.max_pages:
                logger.warning(
                    f"Hit Tradier gain/loss pagination limit "
                    f"({self.max_pages * self.page_limit} records) for {self.account_number}"
                )
                break

        return positions
