from dataclasses import asdict
from fastapi import APIRouter, Depends, Query
from typing import Optional
import logging

from api.dependencies import (
    get_activity_analyzer,
    get_cache,
    get_name_resolver,
    get_nft_service,
    get_token_service,
    require_param,
    validate_hex_address
)
from api.errors import ApiError
from api.models.responses import (
    ErrorResponse,
    HealthModel,
    NftCollectionSummaryModel,
    SingleTokenInfoModel,
    TokenPortfolioResponse,
    TokenSummaryModel,
    WalletActivityResponse,
    WalletSummaryModel
)
from core.analysis.activity_analyzer import WalletActivityAnalyzer, format_category_label
from core.analysis.scoring import score_wallet_health
from core.errors import InvalidAddressError
from services.blockchain.name_resolver import NameResolver
from services.blockchain.nft import NftService
from services.blockchain.tokens import TokenService
from services.cache.cache_service import SummaryCache

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/base", tags=["base"])

CHAIN = "base-mainnet"

ERRORS = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse}
}

@router.get("/wallet", response_model=WalletActivityResponse, responses=ERRORS)
async def wallet_summary(
    address: Optional[str] = Query(None, description="0x address or .base.eth / .eth name"),
    resolver: NameResolver = Depends(get_name_resolver),
    analyzer: WalletActivityAnalyzer = Depends(get_activity_analyzer),
    cache: SummaryCache = Depends(get_cache)
):
    """Wallet activity summary and health for a Base address"""
    raw_input = require_param(address, "address")

    try:
        resolved = await resolver.resolve(raw_input)
    except InvalidAddressError as e:
        raise ApiError(400, str(e))
    except Exception as e:
        logger.error(f"❌ Error in Base wallet summary: {e}", exc_info=True)
        raise ApiError(500, "Failed to fetch Base wallet summary", debug=str(e))

    summary = cache.get(resolved)
    if summary is None:
        try:
            summary = await analyzer.analyze(resolved)
        except Exception as e:
            logger.error(f"❌ Error in Base wallet summary: {e}", exc_info=True)
            raise ApiError(500, "Failed to fetch Base wallet summary", debug=str(e))
        cache.set(resolved, summary)
    else:
        logger.info(f"📋 Returning cached wallet summary for {resolved}")

    health = score_wallet_health(summary)

    return WalletActivityResponse(
        address=resolved,
        chain=CHAIN,
        summary=WalletSummaryModel(
            last_30d_gas_eth=round(summary.last_30d_gas_eth, 6),
            lifetime_gas_eth=round(summary.lifetime_gas_eth, 6),
            last_30d_tx_count=summary.last_30d_tx_count,
            lifetime_tx_count=summary.lifetime_tx_count,
            most_common_tx_type=format_category_label(summary.most_common_category),
            active_days_last_30d=summary.active_days_last_30d,
            avg_tx_per_active_day_30d=round(summary.avg_tx_per_active_day_30d, 2)
        ),
        health=HealthModel(**asdict(health))
    )

@router.get("/tokens", response_model=TokenPortfolioResponse, responses=ERRORS)
async def token_portfolio(
    address: Optional[str] = Query(None, description="0x wallet address"),
    service: TokenService = Depends(get_token_service)
):
    """ERC-20 holdings with price and a health hint per token"""
    address = validate_hex_address(
        require_param(address, "address"),
        "Address must be a valid 0x-prefixed string"
    )

    try:
        tokens = await service.get_token_portfolio(address)
    except Exception as e:
        logger.error(f"❌ Error in Base token scan: {e}", exc_info=True)
        raise ApiError(500, "Failed to scan Base tokens", debug=str(e))

    return TokenPortfolioResponse(
        address=address,
        chain=CHAIN,
        tokens=[TokenSummaryModel(**asdict(t)) for t in tokens]
    )

@router.get("/token-info", response_model=SingleTokenInfoModel,
            responses={**ERRORS, 404: {"model": ErrorResponse}})
async def token_info(
    address: Optional[str] = Query(None, description="0x token contract address"),
    service: TokenService = Depends(get_token_service)
):
    """Market data and health for a single Base token"""
    address = validate_hex_address(
        require_param(address, "address"),
        "Address must be a valid 0x-prefixed string"
    )

    try:
        info = await service.get_single_token_info(address)
    except Exception as e:
        logger.error(f"❌ Error in Base single token info: {e}", exc_info=True)
        raise ApiError(500, "Failed to fetch Base token info", debug=str(e))

    if info is None:
        raise ApiError(404, "Token not found on Base or metadata unavailable")

    return SingleTokenInfoModel(**asdict(info))

@router.get("/nft", response_model=NftCollectionSummaryModel, responses=ERRORS)
async def nft_collection(
    contract: Optional[str] = Query(None, description="0x NFT contract address"),
    address: Optional[str] = Query(None, description="Alias for contract"),
    service: NftService = Depends(get_nft_service)
):
    """Collection health summary for a Base NFT contract"""
    contract = validate_hex_address(
        require_param(contract or address, "contract"),
        "Contract must be a valid 0x-prefixed address"
    )

    try:
        summary = await service.get_collection_summary(contract)
    except Exception as e:
        logger.error(f"❌ Error in Base NFT summary: {e}", exc_info=True)
        raise ApiError(500, "Failed to fetch NFT info from Base", debug=str(e))

    return NftCollectionSummaryModel(**asdict(summary))
