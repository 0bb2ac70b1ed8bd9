import asyncio
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from config.settings import PortfolioConfig, portfolio_config
from core.analysis.scoring import score_market_token, score_portfolio_token
from core.data.models import SingleTokenInfo, TokenSummary
from core.errors import GuardianError
from services.market.dexscreener_client import pick_best_pair

logger = logging.getLogger(__name__)


def parse_raw_balance(raw: Optional[str]) -> Optional[int]:
    """Raw token balance (hex quantity or decimal string) as an int"""
    if not raw or raw in ("0x", "0x0"):
        return None
    try:
        if raw.lower().startswith("0x"):
            return int(raw, 16)
        return int(raw)
    except ValueError:
        return None


def format_balance(raw_balance: str, decimals: Optional[int]) -> Tuple[Optional[float], str]:
    """Return (numeric balance, display label) for a raw on-chain balance"""
    if decimals is None:
        return None, "0"

    raw = parse_raw_balance(raw_balance)
    if raw is None:
        return None, "0"

    try:
        numeric = raw / (10 ** decimals)
    except (OverflowError, ValueError):
        return None, "0"

    if numeric == 0:
        return 0.0, "0"
    if numeric >= 1:
        return numeric, f"{numeric:.4f}"
    if numeric >= 0.0001:
        return numeric, f"{numeric:.6f}"
    return numeric, "< 0.0001"


def _number(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number:
        return None
    return number


class TokenService:
    """ERC-20 portfolio scan and single-token market lookup on Base"""

    def __init__(self, client, dexscreener, config: Optional[PortfolioConfig] = None):
        self.client = client
        self.dexscreener = dexscreener
        self.config = config or portfolio_config

    async def get_token_portfolio(self, address: str) -> List[TokenSummary]:
        balances = await self.client.get_token_balances(address)

        non_zero = []
        for item in balances:
            if item.get("error"):
                continue
            raw = parse_raw_balance(item.get("tokenBalance"))
            if raw and raw > 0:
                non_zero.append((raw, item))

        if not non_zero:
            return []

        non_zero.sort(key=lambda pair: pair[0], reverse=True)
        limited = [item for _, item in non_zero[:self.config.max_tokens]]

        metadata = await asyncio.gather(*[
            self.client.get_token_metadata(item["contractAddress"]) for item in limited
        ])
        prices = await self.client.get_token_prices([item["contractAddress"] for item in limited])

        tokens: List[TokenSummary] = []
        for item, meta in zip(limited, metadata):
            meta = meta or {}
            contract = item["contractAddress"]
            decimals = meta.get("decimals") if isinstance(meta.get("decimals"), int) else None

            numeric, label = format_balance(item["tokenBalance"], decimals)
            if not numeric:
                # dust or unknown decimals
                continue

            price = prices.get(contract.lower())
            value = numeric * price if price is not None else None

            assessment = score_portfolio_token(
                meta.get("symbol"),
                value,
                stablecoins=self.config.stablecoins,
                eth_like=self.config.eth_like
            )

            tokens.append(TokenSummary(
                contract_address=contract,
                symbol=meta.get("symbol"),
                name=meta.get("name"),
                logo=meta.get("logo") if isinstance(meta.get("logo"), str) else None,
                decimals=decimals,
                raw_balance=item["tokenBalance"],
                balance=label,
                price_usd=price,
                value_usd=round(value, 2) if value is not None else None,
                health=assessment.health,
                reasons=assessment.reasons
            ))

        tokens.sort(key=lambda t: t.value_usd or 0, reverse=True)
        logger.info(f"✅ Token scan for {address}: {len(tokens)} tokens")
        return tokens

    async def get_single_token_info(self, contract_address: str,
                                    now: Optional[datetime] = None) -> Optional[SingleTokenInfo]:
        """Market-data backed info for one token, or None when nothing is known"""
        pairs = await self.dexscreener.get_pairs(contract_address)
        best = pick_best_pair(pairs) if pairs else None
        best_pair = best or {}

        base_token = best_pair.get("baseToken") or {}
        symbol = base_token.get("symbol")
        name = base_token.get("name")
        logo = None
        decimals = None

        try:
            meta = await self.client.get_token_metadata(contract_address)
        except GuardianError as e:
            logger.warning(f"⚠️ Failed to fetch Alchemy token metadata: {e}")
            meta = None

        if meta:
            symbol = symbol or meta.get("symbol")
            name = name or meta.get("name")
            logo = meta.get("logo") if isinstance(meta.get("logo"), str) else None
            decimals = meta.get("decimals") if isinstance(meta.get("decimals"), int) else None

        if best is None and not symbol and not name:
            return None

        price = _number(best_pair.get("priceUsd"))
        liquidity = _number((best_pair.get("liquidity") or {}).get("usd"))
        volume = _number((best_pair.get("volume") or {}).get("h24"))
        fdv = _number(best_pair.get("fdv"))
        market_cap = _number(best_pair.get("marketCap"))
        created_at = best_pair.get("pairCreatedAt")
        created_at = int(created_at) if isinstance(created_at, (int, float)) else None

        assessment = score_market_token(
            symbol=symbol,
            price_usd=price,
            liquidity_usd=liquidity,
            volume_24h_usd=volume,
            fdv_usd=fdv,
            market_cap_usd=market_cap,
            pair_created_at=created_at,
            now=now,
            stablecoins=self.config.stablecoins
        )

        return SingleTokenInfo(
            contract_address=contract_address,
            symbol=symbol,
            name=name,
            logo=logo,
            decimals=decimals,
            price_usd=price,
            liquidity_usd=liquidity,
            fdv_usd=fdv,
            market_cap_usd=market_cap,
            volume_24h_usd=volume,
            pair_url=best_pair.get("url"),
            pair_created_at=created_at,
            health=assessment.health,
            reasons=assessment.reasons
        )
