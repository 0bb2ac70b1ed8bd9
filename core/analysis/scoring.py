"""Advisory health heuristics.

Every heuristic is an ordered list of rule tiers. Inside a tier the first
matching rule applies its point delta and reason; tiers run in a fixed
order. Scoring never raises: missing facts select explicit "unknown" rules
or simply match nothing.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from core.data.models import HealthAssessment, WalletActivitySummary


Facts = Dict[str, Any]

GOOD = "good"
MEDIUM = "medium"
RISKY = "risky"

DEFAULT_STABLECOINS = ("USDC", "USDBC", "USDT", "DAI")
DEFAULT_ETH_LIKE = ("WETH", "CBETH")


@dataclass(frozen=True)
class ScoreRule:
    predicate: Callable[[Facts], bool]
    delta: int
    reason: Optional[str] = None


@dataclass(frozen=True)
class RuleTier:
    name: str
    rules: Tuple[ScoreRule, ...]


def evaluate(base: int, tiers: Iterable[RuleTier], facts: Facts) -> Tuple[int, List[str]]:
    """Apply tiers in order and return (raw score, reasons)"""
    score = base
    reasons: List[str] = []

    for tier in tiers:
        for rule in tier.rules:
            if rule.predicate(facts):
                score += rule.delta
                if rule.reason:
                    reasons.append(rule.reason)
                break

    return score, reasons


def clamp(score: int, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, score))


def _missing(key: str) -> Callable[[Facts], bool]:
    return lambda f: f.get(key) is None


def _lt(key: str, limit: float) -> Callable[[Facts], bool]:
    return lambda f: f.get(key) is not None and f[key] < limit


def _le(key: str, limit: float) -> Callable[[Facts], bool]:
    return lambda f: f.get(key) is not None and f[key] <= limit


def _gt(key: str, limit: float) -> Callable[[Facts], bool]:
    return lambda f: f.get(key) is not None and f[key] > limit


def _ge(key: str, limit: float) -> Callable[[Facts], bool]:
    return lambda f: f.get(key) is not None and f[key] >= limit


def _always(f: Facts) -> bool:
    return True


def is_stable_symbol(symbol: Optional[str], stablecoins: Iterable[str] = DEFAULT_STABLECOINS) -> bool:
    if not symbol:
        return False
    return symbol.upper() in {s.upper() for s in stablecoins}


# ---------- Wallet health ----------

WALLET_HEALTH_BASE = 80

WALLET_HEALTH_RULES = (
    RuleTier("lifetime_activity", (
        ScoreRule(_missing("lifetime_tx"), 0, "Lifetime activity on Base is unknown."),
        ScoreRule(_lt("lifetime_tx", 20), -15, "Very little lifetime activity on Base so far."),
        ScoreRule(_lt("lifetime_tx", 200), 0, "Some lifetime activity on Base."),
        ScoreRule(_always, 5, "Significant lifetime activity on Base."),
    )),
    RuleTier("recent_activity", (
        ScoreRule(_missing("tx_30d"), 0, "Recent activity on Base is unknown."),
        ScoreRule(_lt("tx_30d", 5), -20, "Very low recent activity on Base in the last 30 days."),
        ScoreRule(_lt("tx_30d", 30), -5, "Moderate recent activity on Base."),
        ScoreRule(_always, 5, "High recent activity on Base."),
    )),
    RuleTier("consistency", (
        ScoreRule(lambda f: not f.get("active_days") or f["active_days"] < 3, -10,
                  "Active on only a few days over the last month."),
        ScoreRule(_lt("active_days", 10), 0, "Activity spread over some days, but not extremely regular."),
        ScoreRule(_always, 5, "Consistent activity across many days in the last month."),
    )),
    RuleTier("velocity", (
        ScoreRule(_gt("avg_per_day", 40), -10,
                  "Very high transactions per active day; behavior may be more degen or bot-like."),
        ScoreRule(_ge("avg_per_day", 5), 0, "Healthy transaction velocity on active days."),
        ScoreRule(_gt("avg_per_day", 0), 0, "Low transaction count on most active days."),
    )),
    RuleTier("gas_usage", (
        ScoreRule(_missing("lifetime_gas"), 0, "Lifetime gas usage on Base is unknown."),
        ScoreRule(_gt("lifetime_gas", 1), -5, "Relatively high estimated lifetime gas usage on Base."),
        ScoreRule(_gt("lifetime_gas", 0.1), 0, "Noticeable lifetime gas usage on Base."),
        ScoreRule(_always, 0, "Light overall gas usage on Base so far."),
    )),
)


def health_label(score: int) -> str:
    """Label for a 0-100 score, using the same bands as the UI badge"""
    if score < 40:
        return RISKY
    if score < 75:
        return MEDIUM
    return GOOD


def score_wallet_health(summary: WalletActivitySummary) -> HealthAssessment:
    facts = {
        "lifetime_tx": summary.lifetime_tx_count,
        "tx_30d": summary.last_30d_tx_count,
        "active_days": summary.active_days_last_30d,
        "avg_per_day": summary.avg_tx_per_active_day_30d,
        "lifetime_gas": summary.lifetime_gas_eth,
    }
    raw, reasons = evaluate(WALLET_HEALTH_BASE, WALLET_HEALTH_RULES, facts)
    score = clamp(raw)
    return HealthAssessment(health=health_label(score), reasons=reasons, score=score)


# ---------- Portfolio token (balance scan) ----------

PORTFOLIO_DECISIONS = (
    (_ge("value_usd", 100), GOOD, "Tracked price and sizeable position."),
    (_gt("value_usd", 0), MEDIUM, "Tracked price but smaller position."),
    (lambda f: f["is_stable"], MEDIUM,
     "Treating as a major stablecoin even though onchain price feed is missing."),
    (_always, RISKY, "No price data; may be low-liquidity or off main listings."),
)


def score_portfolio_token(symbol: Optional[str], value_usd: Optional[float],
                          stablecoins: Iterable[str] = DEFAULT_STABLECOINS,
                          eth_like: Iterable[str] = DEFAULT_ETH_LIKE) -> HealthAssessment:
    upper = (symbol or "").upper()
    facts = {
        "value_usd": value_usd,
        "is_stable": is_stable_symbol(symbol, stablecoins),
        "is_eth_like": upper in {s.upper() for s in eth_like},
    }

    reasons = []
    if facts["is_stable"]:
        reasons.append("Looks like a stablecoin on Base.")
    if facts["is_eth_like"]:
        reasons.append("ETH-like wrapped asset.")

    for predicate, health, reason in PORTFOLIO_DECISIONS:
        if predicate(facts):
            reasons.append(reason)
            return HealthAssessment(health=health, reasons=reasons)

    return HealthAssessment(health=RISKY, reasons=reasons)


# ---------- Market token (DexScreener data) ----------

MARKET_TOKEN_BASE = 65

MARKET_TOKEN_RULES = (
    RuleTier("stablecoin", (
        ScoreRule(lambda f: f["is_stable"], 5, "Looks like a major stablecoin on Base."),
    )),
    RuleTier("liquidity", (
        ScoreRule(_missing("liquidity_usd"), -20, "No DEX liquidity data; treated as illiquid."),
        ScoreRule(_lt("liquidity_usd", 5_000), -25, "Very low liquidity (< $5k); hard to enter/exit safely."),
        ScoreRule(_lt("liquidity_usd", 50_000), -5, "Moderate liquidity; fine for small position sizes."),
        ScoreRule(_always, 10, "Strong liquidity; easier to trade in size."),
    )),
    RuleTier("volume", (
        ScoreRule(_lt("volume_24h_usd", 5_000), -10, "Low 24h volume; limited recent trading activity."),
        ScoreRule(_lt("volume_24h_usd", 50_000), 0, "Healthy but not huge 24h volume."),
        ScoreRule(_ge("volume_24h_usd", 50_000), 5, "High 24h volume; actively traded."),
    )),
    RuleTier("valuation", (
        ScoreRule(_gt("fdv_liquidity_ratio", 1000), -15,
                  "FDV is extremely high vs liquidity; could be heavily overvalued or concentrated."),
        ScoreRule(_gt("fdv_liquidity_ratio", 200), -5, "FDV significantly higher than liquidity; be cautious."),
    )),
    RuleTier("size", (
        ScoreRule(_lt("size_usd", 1_000_000), -5, "Smaller-cap token; more volatile and higher risk."),
        ScoreRule(_gt("size_usd", 10_000_000), 5, "Larger-cap token; generally more mature."),
    )),
    RuleTier("age", (
        ScoreRule(_lt("age_days", 3), -15, "Very new pool (< 3 days); high launch risk."),
        ScoreRule(_lt("age_days", 14), -5, "Newish pool (< 2 weeks); still early."),
        ScoreRule(_ge("age_days", 14), 5, "Pool has been live for a while; not a fresh launch."),
    )),
    RuleTier("price", (
        ScoreRule(_missing("price_usd"), -10, "No reliable USD price; may be off major listings."),
    )),
)


def market_token_label(score: int) -> str:
    if score >= 75:
        return GOOD
    if score <= 45:
        return RISKY
    return MEDIUM


def score_market_token(symbol: Optional[str], price_usd: Optional[float],
                       liquidity_usd: Optional[float], volume_24h_usd: Optional[float],
                       fdv_usd: Optional[float], market_cap_usd: Optional[float],
                       pair_created_at: Optional[int], now: Optional[datetime] = None,
                       stablecoins: Iterable[str] = DEFAULT_STABLECOINS) -> HealthAssessment:
    """Score a token from its best DEX pair. ``pair_created_at`` is epoch millis."""
    now = now or datetime.now(timezone.utc)

    ratio = None
    if fdv_usd is not None and liquidity_usd is not None and liquidity_usd > 0:
        ratio = fdv_usd / liquidity_usd

    age_days = None
    if pair_created_at is not None and pair_created_at > 0:
        age_days = (now.timestamp() * 1000 - pair_created_at) / (1000 * 60 * 60 * 24)

    facts = {
        "is_stable": is_stable_symbol(symbol, stablecoins),
        "price_usd": price_usd,
        "liquidity_usd": liquidity_usd,
        "volume_24h_usd": volume_24h_usd,
        "fdv_liquidity_ratio": ratio,
        "size_usd": market_cap_usd if market_cap_usd is not None else fdv_usd,
        "age_days": age_days,
    }

    raw, reasons = evaluate(MARKET_TOKEN_BASE, MARKET_TOKEN_RULES, facts)
    score = clamp(raw)
    return HealthAssessment(health=market_token_label(score), reasons=reasons, score=score)


# ---------- NFT collection ----------

NFT_COLLECTION_RULES = (
    RuleTier("supply", (
        ScoreRule(_missing("total_supply"), 0, "Total supply not reported by contract."),
        ScoreRule(_le("total_supply", 5000), 2, "Relatively low total supply collection."),
        ScoreRule(_le("total_supply", 20000), 1, "Moderate total supply."),
        ScoreRule(_always, 0, "High total supply; may be more diluted."),
    )),
    RuleTier("holders", (
        ScoreRule(_missing("num_owners"), 0, "Could not estimate unique holder count."),
        ScoreRule(_ge("num_owners", 1000), 2, "Large holder base; widely held."),
        ScoreRule(_ge("num_owners", 200), 1, "Moderate number of unique holders."),
        ScoreRule(_always, 0, "Few holders detected; may be illiquid."),
    )),
)


def score_nft_collection(total_supply: Optional[int], num_owners: Optional[int]) -> HealthAssessment:
    score, reasons = evaluate(0, NFT_COLLECTION_RULES, {
        "total_supply": total_supply,
        "num_owners": num_owners,
    })

    if score <= 1:
        health = RISKY
    elif score >= 4:
        health = GOOD
    else:
        health = MEDIUM

    return HealthAssessment(health=health, reasons=reasons, score=score)
