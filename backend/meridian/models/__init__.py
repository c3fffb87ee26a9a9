from meridian.models.user import User
from meridian.models.account import Account
from meridian.models.trading_settings import TradingSettings
from meridian.models.trade import Trade

__all__ = ["User", "Account", "TradingSettings", "Trade"]
