# api/dependencies.py - FastAPI dependencies for the Base Guardian routes

from fastapi import Depends
from typing import AsyncIterator, Optional
import logging

from api.errors import ApiError
from config.settings import Settings, settings
from core.analysis.activity_analyzer import WalletActivityAnalyzer
from services.blockchain.alchemy_client import AlchemyClient
from services.blockchain.name_resolver import NameResolver
from services.blockchain.nft import NftService
from services.blockchain.tokens import TokenService
from services.cache.cache_service import SummaryCache, get_wallet_cache
from services.market.dexscreener_client import DexScreenerClient
from services.social.neynar_client import NeynarClient

logger = logging.getLogger(__name__)

def get_settings() -> Settings:
    return settings

# Provider clients
async def get_alchemy_client(config: Settings = Depends(get_settings)) -> AsyncIterator[AlchemyClient]:
    async with AlchemyClient(config.alchemy) as client:
        yield client

async def get_dexscreener_client(config: Settings = Depends(get_settings)) -> AsyncIterator[DexScreenerClient]:
    async with DexScreenerClient(config.dexscreener) as client:
        yield client

def get_neynar_client(config: Settings = Depends(get_settings)) -> NeynarClient:
    """Returned un-entered so the route can report a missing key itself"""
    return NeynarClient(config.neynar)

def get_name_resolver(config: Settings = Depends(get_settings)) -> NameResolver:
    return NameResolver(config.alchemy)

# Services
def get_activity_analyzer(
    client: AlchemyClient = Depends(get_alchemy_client),
    config: Settings = Depends(get_settings)
) -> WalletActivityAnalyzer:
    return WalletActivityAnalyzer(client, config.activity)

def get_token_service(
    client: AlchemyClient = Depends(get_alchemy_client),
    dexscreener: DexScreenerClient = Depends(get_dexscreener_client),
    config: Settings = Depends(get_settings)
) -> TokenService:
    return TokenService(client, dexscreener, config.portfolio)

def get_nft_service(
    client: AlchemyClient = Depends(get_alchemy_client),
    config: Settings = Depends(get_settings)
) -> NftService:
    return NftService(client, config.portfolio)

def get_cache() -> SummaryCache:
    return get_wallet_cache()

# Parameter validation
def require_param(value: Optional[str], name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ApiError(400, f"Missing {name} query param")
    return value

def validate_hex_address(value: str, message: str) -> str:
    """Loose 0x check used by the token and NFT routes"""
    if not value.startswith("0x") or len(value) < 10:
        raise ApiError(400, message)
    return value
