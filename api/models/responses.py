from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Literal


def to_camel(name: str) -> str:
    """last_30d_gas_eth -> last30dGasEth (digits keep their case)"""
    first, *rest = name.split("_")
    return first + "".join(part[:1].upper() + part[1:] for part in rest)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    error: str
    debug: Optional[str] = None

class HealthModel(CamelModel):
    health: Literal["good", "medium", "risky"]
    score: Optional[int] = Field(None, description="Heuristic score, when the heuristic is point based")
    reasons: List[str] = Field(default_factory=list)

class WalletSummaryModel(CamelModel):
    last_30d_gas_eth: float = Field(..., description="Gas paid in the last 30 days (ETH)")
    lifetime_gas_eth: float = Field(..., description="Gas paid over the observed history (ETH)")
    last_30d_tx_count: int
    lifetime_tx_count: int
    most_common_tx_type: str
    active_days_last_30d: int
    avg_tx_per_active_day_30d: float

class WalletActivityResponse(CamelModel):
    address: str
    chain: str = "base-mainnet"
    summary: WalletSummaryModel
    health: HealthModel

class TokenSummaryModel(CamelModel):
    contract_address: str
    symbol: Optional[str] = None
    name: Optional[str] = None
    logo: Optional[str] = None
    decimals: Optional[int] = None
    raw_balance: str
    balance: str = Field(..., description="Human-readable balance")
    price_usd: Optional[float] = None
    value_usd: Optional[float] = None
    health: Literal["good", "medium", "risky"]
    reasons: List[str] = Field(default_factory=list)

class TokenPortfolioResponse(CamelModel):
    address: str
    chain: str = "base-mainnet"
    tokens: List[TokenSummaryModel]

class SingleTokenInfoModel(CamelModel):
    contract_address: str
    symbol: Optional[str] = None
    name: Optional[str] = None
    logo: Optional[str] = None
    decimals: Optional[int] = None
    price_usd: Optional[float] = None
    liquidity_usd: Optional[float] = None
    fdv_usd: Optional[float] = None
    market_cap_usd: Optional[float] = None
    volume_24h_usd: Optional[float] = None
    pair_url: Optional[str] = None
    pair_created_at: Optional[int] = None
    health: Literal["good", "medium", "risky"]
    reasons: List[str] = Field(default_factory=list)

class NftCollectionSummaryModel(CamelModel):
    contract_address: str
    name: Optional[str] = None
    symbol: Optional[str] = None
    token_standard: Literal["ERC721", "ERC1155", "unknown"]
    total_supply: Optional[int] = None
    num_owners: Optional[int] = None
    floor_price_native: Optional[float] = None
    floor_price_symbol: Optional[str] = None
    market_cap: Optional[float] = None
    sample_token_id: Optional[str] = None
    health: Literal["good", "medium", "risky"]
    reasons: List[str] = Field(default_factory=list)

class NeynarUserModel(CamelModel):
    fid: Optional[int] = None
    username: Optional[str] = None
    display_name: Optional[str] = None
    followers: Optional[int] = None
    following: Optional[int] = None
    neynar_score: Optional[float] = Field(None, description="Neynar user score, 0-1")
