"""
Broker Base Service for Meridian

This module defines the base broker service interface that all broker implementations must follow.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from meridian.schemas.trading import ClosedPosition


class BrokerError(Exception):
    """A broker API call failed"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BrokerAuthError(BrokerError):
    """The broker rejected the access token (expired or revoked)"""


class BrokerBase(ABC):
    """Abstract base class for broker implementations"""

    # Gain/loss records dropped as invalid since the last get_all_gain_loss call
    rejected_records: int = 0

    @abstractmethod
    def connect(self) -> bool:
        """
        Connect to the broker API

        Returns:
            bool: True if connection successful, False otherwise
        """
        pass

    @abstractmethod
    def disconnect(self) -> bool:
        """
        Disconnect from the broker API

        Returns:
            bool: True if disconnection successful, False otherwise
        """
        pass

    @abstractmethod
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

        Args:
            page: Page number, starting at 1
            limit: Records per page
            sort_by: 'closeDate' or 'openDate'
            sort: 'asc' or 'desc'
            start: Optional start date (YYYY-MM-DD)
            end: Optional end date (YYYY-MM-DD)

        Returns:
            List[ClosedPosition]: Closed positions on that page

        Raises:
            BrokerError: If the request fails
        """
        pass

    @abstractmethod
    def get_all_gain_loss(
        self,
        start: Optional[str] = None,
        end: Optional[str] = None
    ) -> List[ClosedPosition]:
        """
        Get every closed position, following pagination

        Returns:
            List[ClosedPosition]: All closed positions in the date range
        """
        pass
