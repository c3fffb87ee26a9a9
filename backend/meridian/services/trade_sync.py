"""
Trade Sync Service for Meridian

Pulls closed positions from each user's Tradier gain/loss feed and upserts
them as trades keyed on the position id, so a sync can be re-run or retried
without duplicating rows. The feed's P&L is stored as-is; a disagreement with
the price-derived P&L is logged for review, never corrected.
"""

import logging
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from meridian.analytics.ingestion import PositionIngestionError, position_to_trade
from meridian.analytics.pnl import contract_multiplier, derive_trade_pnl, validate_trade_pnl
from meridian.models.account import Account
from meridian.models.trade import Trade
from meridian.models.user import User
from meridian.repositories.trading import TradeRepository, UpsertOutcome
from meridian.repositories.user import UserRepository
from meridian.schemas.trading import ClosedPosition, SyncStats
from meridian.services.broker_base import BrokerAuthError, BrokerBase, BrokerError
from meridian.services.broker_factory import BrokerFactory

logger = logging.getLogger(__name__)

SYNC_PLATFORM = "tradier"


def _signed(amount: float) -> str:
    return f"{'+' if amount >= 0 else '-'}${abs(amount):.2f}"


class TradeSyncService:
    """Sync closed positions from broker gain/loss feeds into trades"""

    def __init__(
        self,
        db: Session,
        broker_factory: Callable[[Account], BrokerBase] = BrokerFactory.for_account
    ):
        """
        Initialize the sync service

        Args:
            db: Database session
            broker_factory: Builds a broker client for an account row
        """
        self.db = db
        self.broker_factory = broker_factory
        self.trades = TradeRepository(db)
        self.users = UserRepository(db)

    def _fetch_positions(self, account: Account) -> Tuple[List[ClosedPosition], int]:
        broker = self.broker_factory(account)
        broker.connect()
        try:
            positions = broker.get_all_gain_loss()
            return positions, broker.rejected_records
        finally:
            broker.disconnect()

    def sync_user(self, user: User, account: Account, dry_run: bool = False) -> SyncStats:
        """
        Sync one account's closed positions

        Args:
            user: Account owner
            account: Tradier account with credentials
            dry_run: Count what would change without writing

        Returns:
            SyncStats: Counters for this account
        """
        stats = SyncStats(user_id=user.id, username=user.username)
        logger.info(f"Syncing {user.username} (Account: {account.account_number})")

        try:
            positions, rejected = self._fetch_positions(account)
        except BrokerAuthError as e:
            logger.error(f"Tradier token rejected for {user.username}; user needs to re-authenticate: {e}")
            stats.errors += 1
            return stats
        except BrokerError as e:
            logger.error(f"Tradier API error for {user.username}: {e}")
            stats.errors += 1
            return stats

        logger.info(f"Found {len(positions)} closed positions in Tradier for {user.username}")
        if rejected:
            logger.error(f"{rejected} invalid gain/loss records skipped for {user.username}")
            stats.errors += rejected

        for position in positions:
            try:
                trade_in = position_to_trade(position, user.id, account.account_number, account_id=account.id)

                mismatch = validate_trade_pnl(trade_in)
                if mismatch is not None:
                    # Feed stays authoritative; flag for review only
                    logger.warning(f"{position.symbol}: {mismatch.describe()}")

                outcome = self.trades.upsert_from_broker(trade_in, dry_run=dry_run)
            except (PositionIngestionError, ValueError) as e:
                logger.error(f"Error processing {position.symbol}: {e}")
                stats.errors += 1
                continue

            prefix = "[DRY RUN] " if dry_run else ""
            if outcome == UpsertOutcome.SKIPPED:
                stats.skipped += 1
                continue
            if outcome == UpsertOutcome.UPDATED:
                stats.updated += 1
                logger.info(f"{prefix}Updated {trade_in.symbol} P&L={_signed(trade_in.pnl)}")
            else:
                stats.synced += 1
                logger.info(f"{prefix}Synced {trade_in.symbol} P&L={_signed(trade_in.pnl)}")
            stats.total_pnl += trade_in.pnl

        return stats

    def sync_all(self, user_id: Optional[int] = None, dry_run: bool = False) -> List[SyncStats]:
        """
        Sync every Tradier account, or just one user's

        Returns:
            List[SyncStats]: One entry per account synced
        """
        results = []
        for account in self.users.get_broker_accounts(SYNC_PLATFORM, user_id=user_id):
            results.append(self.sync_user(account.user, account, dry_run=dry_run))
        return results

    @staticmethod
    def _position_keys(position: ClosedPosition) -> List[str]:
        return [
            f"{position.symbol}_{position.open_date[:10]}_{position.close_date[:10]}",
            position.symbol,
        ]

    @staticmethod
    def _trade_keys(trade: Trade) -> List[str]:
        keys = []
        if trade.exit_date is not None:
            keys.append(
                f"{trade.symbol}_{trade.entry_date.date().isoformat()}_{trade.exit_date.date().isoformat()}"
            )
        keys.append(trade.symbol)
        return keys

    def fix_missing_pnl(self, user_id: Optional[int] = None, dry_run: bool = False) -> Tuple[int, int]:
        """
        Fill in P&L on closed trades that were stored without one

        Each trade is matched to a gain/loss record by symbol and open/close
        day, then by symbol alone. Unmatched trades get the price-derived P&L.

        Returns:
            Tuple[int, int]: (fixed from the feed, calculated from prices)
        """
        broken = self.trades.list_with_missing_pnl(user_id=user_id)
        logger.info(f"Found {len(broken)} trades with missing P&L")
        if not broken:
            return 0, 0

        by_user: Dict[int, List[Trade]] = defaultdict(list)
        for trade in broken:
            by_user[trade.user_id].append(trade)

        fixed = 0
        calculated = 0
        prefix = "[DRY RUN] " if dry_run else ""

        for owner_id, trades in by_user.items():
            position_map: Dict[str, ClosedPosition] = {}
            for account in self.users.get_broker_accounts(SYNC_PLATFORM, user_id=owner_id):
                try:
                    positions, _ = self._fetch_positions(account)
                except BrokerError as e:
                    logger.error(f"Could not fetch gain/loss for account {account.account_number}: {e}")
                    continue
                for position in positions:
                    for key in self._position_keys(position):
                        position_map.setdefault(key, position)

            for trade in trades:
                match = next(
                    (position_map[k] for k in self._trade_keys(trade) if k in position_map),
                    None
                )

                if match is not None:
                    units = abs(match.quantity) * contract_multiplier(trade.asset_type)
                    pnl = match.gain_loss
                    pnl_percent = match.gain_loss_percent
                    exit_price = abs(match.proceeds) / units if units else trade.exit_price
                    notes = f"P&L fixed from Tradier gainloss | Original entry: ${trade.entry_price}"
                    fixed += 1
                else:
                    derived = derive_trade_pnl(trade)
                    if derived is None:
                        logger.warning(f"No Tradier match and no derivable P&L for {trade.symbol} (trade {trade.id})")
                        continue
                    pnl = derived.pnl
                    pnl_percent = derived.pnl_percent
                    exit_price = trade.exit_price
                    notes = (
                        f"P&L calculated (no Tradier match) | "
                        f"Entry: ${trade.entry_price}, Exit: ${trade.exit_price}"
                    )
                    calculated += 1

                logger.info(f"{prefix}Set {trade.symbol} (trade {trade.id}) P&L={_signed(pnl)}")
                if not dry_run:
                    self.trades.set_pnl(
                        trade, pnl=pnl, pnl_percent=pnl_percent, exit_price=exit_price, notes=notes
                    )

        logger.info(f"Fixed: {fixed}, Calculated: {calculated}")
        return fixed, calculated
