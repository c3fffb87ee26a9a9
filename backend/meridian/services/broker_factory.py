"""
Broker Factory Service for Meridian

This module provides a factory for creating broker instances from stored accounts.
"""

import logging

from meridian.models.account import Account
from meridian.services.broker_base import BrokerBase
from meridian.services.tradier_broker import TradierBroker

logger = logging.getLogger(__name__)

class BrokerFactory:
    """Factory for creating broker instances"""

    SUPPORTED_PLATFORMS = ("tradier",)

    @staticmethod
    def create_broker(platform: str, account_number: str, access_token: str, **kwargs) -> BrokerBase:
        """
        Create a broker instance

        Args:
            platform: Platform name (only 'tradier' reports gain/loss)
            account_number: Broker account number
            access_token: Broker access token
            **kwargs: Additional broker-specific arguments

        Returns:
            BrokerBase: Broker instance

        Raises:
            ValueError: If the platform has no gain/loss broker
        """
        platform = platform.lower()

        if platform == "tradier":
            return TradierBroker(
                account_number=account_number,
                access_token=access_token,
                **kwargs
            )
        raise ValueError(f"Invalid broker platform: {platform}")

    @staticmethod
    def for_account(account: Account) -> BrokerBase:
        """Create the broker for a stored account row"""
        return BrokerFactory.create_broker(
            platform=account.platform,
            account_number=account.account_number,
            access_token=account.access_token
        )
