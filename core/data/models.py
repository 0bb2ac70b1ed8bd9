from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any
from datetime import datetime, timezone
from enum import Enum


class TransferCategory(str, Enum):
    EXTERNAL = "external"
    ERC20 = "erc20"
    ERC721 = "erc721"
    ERC1155 = "erc1155"

    @classmethod
    def all(cls) -> List[str]:
        return [c.value for c in cls]


class Direction(str, Enum):
    """Which side of a transfer the queried address sits on"""
    OUTGOING = "fromAddress"
    INCOMING = "toAddress"


def parse_block_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 block timestamp into an aware UTC datetime.

    Returns None when the value is absent or unparsable.
    """
    if not raw or not isinstance(raw, str):
        return None

    value = raw.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class Transfer:
    """Immutable transfer record as reported by alchemy_getAssetTransfers"""
    hash: Optional[str]
    from_address: Optional[str]
    to_address: Optional[str]
    category: Optional[str]
    asset: Optional[str] = None
    value: Optional[float] = None
    block_num: Optional[str] = None
    timestamp: Optional[datetime] = None
    token_id: Optional[str] = None

    @classmethod
    def from_alchemy(cls, raw: Dict[str, Any]) -> 'Transfer':
        metadata = raw.get("metadata") or {}

        token_id = raw.get("erc721TokenId")
        if not token_id:
            erc1155 = raw.get("erc1155Metadata") or []
            if erc1155 and isinstance(erc1155[0], dict):
                token_id = erc1155[0].get("tokenId")

        return cls(
            hash=raw.get("hash"),
            from_address=raw.get("from"),
            to_address=raw.get("to"),
            category=raw.get("category"),
            asset=raw.get("asset"),
            value=raw.get("value"),
            block_num=raw.get("blockNum"),
            timestamp=parse_block_timestamp(metadata.get("blockTimestamp")),
            token_id=token_id or None
        )

    def in_window(self, cutoff: datetime) -> bool:
        """True when the transfer has a timestamp at or after the cutoff"""
        return self.timestamp is not None and self.timestamp >= cutoff


@dataclass(frozen=True)
class Receipt:
    """Gas fields of a transaction receipt, already decoded from hex"""
    gas_used: int
    effective_gas_price: int = 0
    gas_price: int = 0


@dataclass
class ReceiptResult:
    """Receipt lookup outcome; receipt is None when every attempt failed"""
    hash: str
    receipt: Optional[Receipt] = None


@dataclass
class WalletActivitySummary:
    """Wallet activity on Base over the sliding window and lifetime"""
    last_30d_tx_count: int
    lifetime_tx_count: int
    last_30d_gas_eth: float
    lifetime_gas_eth: float
    most_common_category: Optional[str]
    active_days_last_30d: int
    avg_tx_per_active_day_30d: float

    @classmethod
    def empty(cls) -> 'WalletActivitySummary':
        return cls(
            last_30d_tx_count=0,
            lifetime_tx_count=0,
            last_30d_gas_eth=0.0,
            lifetime_gas_eth=0.0,
            most_common_category=None,
            active_days_last_30d=0,
            avg_tx_per_active_day_30d=0.0
        )


@dataclass
class HealthAssessment:
    """Advisory heuristic result"""
    health: str  # good, medium, risky
    reasons: List[str] = field(default_factory=list)
    score: Optional[int] = None


@dataclass
class TokenSummary:
    contract_address: str
    symbol: Optional[str]
    name: Optional[str]
    logo: Optional[str]
    decimals: Optional[int]
    raw_balance: str
    balance: str
    price_usd: Optional[float]
    value_usd: Optional[float]
    health: str
    reasons: List[str] = field(default_factory=list)


@dataclass
class SingleTokenInfo:
    contract_address: str
    symbol: Optional[str]
    name: Optional[str]
    logo: Optional[str]
    decimals: Optional[int]
    price_usd: Optional[float]
    liquidity_usd: Optional[float]
    fdv_usd: Optional[float]
    market_cap_usd: Optional[float]
    volume_24h_usd: Optional[float]
    pair_url: Optional[str]
    pair_created_at: Optional[int]
    health: str
    reasons: List[str] = field(default_factory=list)


@dataclass
class NftCollectionSummary:
    contract_address: str
    name: Optional[str]
    symbol: Optional[str]
    token_standard: str  # ERC721, ERC1155, unknown
    total_supply: Optional[int]
    num_owners: Optional[int]
    floor_price_native: Optional[float]
    floor_price_symbol: Optional[str]
    market_cap: Optional[float]
    sample_token_id: Optional[str]
    health: str
    reasons: List[str] = field(default_factory=list)


@dataclass
class NeynarUser:
    fid: Optional[int]
    username: Optional[str]
    display_name: Optional[str] = None
    followers: Optional[int] = None
    following: Optional[int] = None
    neynar_score: Optional[float] = None
