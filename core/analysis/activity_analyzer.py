import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from config.settings import ActivityConfig, activity_config
from core.data.models import Direction, Transfer, WalletActivitySummary
from core.errors import GuardianError, WalletActivityError
from services.blockchain.gas import receipt_gas_cost_eth
from services.blockchain.receipts import fetch_receipts
from services.blockchain.transfers import fetch_transfers_for_direction

logger = logging.getLogger(__name__)

CATEGORY_LABELS = {
    "external": "Native transfers",
    "erc20": "ERC-20 transfers",
    "erc721": "NFT trades (ERC-721)",
    "erc1155": "NFT trades (ERC-1155)",
}


def format_category_label(category: Optional[str]) -> str:
    """Human-friendly label for the dominant transfer category"""
    if not category:
        return "Mixed"
    return CATEGORY_LABELS.get(category, "Mixed activity")


def most_common_category(transfers: List[Transfer]) -> Optional[str]:
    """Category with the highest count; ties go to the first one seen"""
    counts: Dict[str, int] = {}
    for t in transfers:
        category = t.category or "unknown"
        counts[category] = counts.get(category, 0) + 1

    best, best_count = None, 0
    for category, count in counts.items():
        if count > best_count:
            best, best_count = category, count
    return best


class WalletActivityAnalyzer:
    """Builds the wallet activity summary for one Base address.

    Transfers in both directions are paginated concurrently, deduplicated by
    transaction hash, and outgoing transactions are priced from their
    receipts. Aggregation is all-or-nothing: any failure surfaces as a
    WalletActivityError.
    """

    def __init__(self, client, config: Optional[ActivityConfig] = None, sleep=asyncio.sleep):
        self.client = client
        self.config = config or activity_config
        self._sleep = sleep

    async def analyze(self, address: str, now: Optional[datetime] = None) -> WalletActivitySummary:
        lower = address.lower()
        start = time.time()

        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        try:
            summary = await self._summarize(lower, now)
        except GuardianError as e:
            logger.error(f"❌ Wallet activity failed for {lower}: {e}")
            raise WalletActivityError(f"Failed to build activity summary for {lower}: {e}") from e

        logger.info(f"✅ Activity for {lower}: {summary.lifetime_tx_count} tx lifetime, "
                    f"{summary.last_30d_tx_count} tx 30d ({time.time() - start:.2f}s)")
        return summary

    async def _summarize(self, address: str, now: datetime) -> WalletActivitySummary:
        cutoff = now - timedelta(days=self.config.window_days)

        outgoing, incoming = await asyncio.gather(
            self._fetch(address, Direction.OUTGOING),
            self._fetch(address, Direction.INCOMING)
        )
        all_transfers = outgoing + incoming
        windowed = [t for t in all_transfers if t.in_window(cutoff)]

        lifetime_hashes = {t.hash.lower() for t in all_transfers if t.hash}
        window_hashes = {t.hash.lower() for t in windowed if t.hash}

        active_days = {t.timestamp.date().isoformat() for t in windowed}
        avg_per_day = len(window_hashes) / len(active_days) if active_days else 0.0

        category = most_common_category(windowed if window_hashes else all_transfers)

        lifetime_gas, window_gas = await self._gas_totals(outgoing, cutoff)

        return WalletActivitySummary(
            last_30d_tx_count=len(window_hashes),
            lifetime_tx_count=len(lifetime_hashes),
            last_30d_gas_eth=round(window_gas, 4),
            lifetime_gas_eth=round(lifetime_gas, 4),
            most_common_category=category,
            active_days_last_30d=len(active_days),
            avg_tx_per_active_day_30d=avg_per_day
        )

    async def _fetch(self, address: str, direction: Direction) -> List[Transfer]:
        return await fetch_transfers_for_direction(
            self.client,
            address,
            direction,
            max_pages=self.config.max_transfer_pages,
            page_size=self.config.transfer_page_size
        )

    async def _gas_totals(self, outgoing: List[Transfer], cutoff: datetime):
        """Gas paid by the wallet, lifetime and inside the window"""
        unique_hashes = list(dict.fromkeys(t.hash.lower() for t in outgoing if t.hash))
        if not unique_hashes:
            return 0.0, 0.0

        results = await fetch_receipts(
            self.client,
            unique_hashes,
            limit=self.config.receipt_concurrency,
            attempts=self.config.receipt_attempts,
            base_delay=self.config.retry_base_delay,
            step_delay=self.config.retry_step_delay,
            sleep=self._sleep
        )
        gas_by_hash = {r.hash: receipt_gas_cost_eth(r.receipt) for r in results}

        missing = sum(1 for r in results if r.receipt is None)
        if missing:
            logger.debug(f"⚠️ {missing}/{len(results)} receipts missing, counted as zero gas")

        lifetime_gas = 0.0
        window_gas = 0.0
        # every outgoing record adds its transaction's gas; transfer timestamp decides the window
        for t in outgoing:
            if not t.hash:
                continue

            gas = gas_by_hash.get(t.hash.lower(), 0.0)
            lifetime_gas += gas
            if t.in_window(cutoff):
                window_gas += gas

        return lifetime_gas, window_gas
