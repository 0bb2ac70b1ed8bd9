import asyncio
import logging
from typing import List, Optional

from config.settings import PortfolioConfig, portfolio_config
from core.analysis.scoring import score_nft_collection
from core.data.models import NftCollectionSummary, Transfer, TransferCategory
from services.blockchain.transfers import paginate_asset_transfers

logger = logging.getLogger(__name__)

# 4-byte selectors for the ERC metadata getters
NAME_SELECTOR = "0x06fdde03"
SYMBOL_SELECTOR = "0x95d89b41"
TOTAL_SUPPLY_SELECTOR = "0x18160ddd"

MAX_SAFE_INTEGER = 2 ** 53 - 1


def decode_abi_string(data: Optional[str]) -> Optional[str]:
    """Decode an ABI-encoded dynamic string return value"""
    if not data or data == "0x":
        return None
    payload = data[2:] if data.startswith("0x") else data
    if len(payload) < 128:
        return None

    try:
        length = int(payload[64:128], 16)
    except ValueError:
        return None
    if length <= 0:
        return None

    try:
        raw = bytes.fromhex(payload[128:128 + length * 2])
    except ValueError:
        return None

    text = raw.replace(b"\x00", b"").decode("utf-8", errors="replace")
    return text or None


def decode_abi_uint(data: Optional[str]) -> Optional[int]:
    """Decode the last 32-byte word as an unsigned int; None above 2**53 - 1"""
    if not data or data == "0x":
        return None
    payload = data[2:] if data.startswith("0x") else data
    if len(payload) < 64:
        return None

    try:
        value = int(payload[-64:], 16)
    except ValueError:
        return None

    if value > MAX_SAFE_INTEGER:
        return None
    return value


def infer_token_standard(transfers: List[Transfer]) -> str:
    count_721 = sum(1 for t in transfers if t.category == TransferCategory.ERC721.value)
    count_1155 = sum(1 for t in transfers if t.category == TransferCategory.ERC1155.value)

    if count_721 == 0 and count_1155 == 0:
        return "unknown"
    if count_721 >= count_1155:
        return "ERC721"
    return "ERC1155"


class NftService:
    """Collection health summary built only from Alchemy RPC data"""

    def __init__(self, client, config: Optional[PortfolioConfig] = None):
        self.client = client
        self.config = config or portfolio_config

    async def get_collection_summary(self, contract_address: str) -> NftCollectionSummary:
        address = contract_address.lower()

        name_hex, symbol_hex, supply_hex = await asyncio.gather(
            self.client.eth_call(address, NAME_SELECTOR),
            self.client.eth_call(address, SYMBOL_SELECTOR),
            self.client.eth_call(address, TOTAL_SUPPLY_SELECTOR)
        )
        name = decode_abi_string(name_hex)
        symbol = decode_abi_string(symbol_hex)
        total_supply = decode_abi_uint(supply_hex)

        transfers = await self._fetch_transfers(address)

        owners = set()
        sample_token_id = None
        for t in transfers:
            if t.to_address:
                owners.add(t.to_address.lower())
            if sample_token_id is None and t.token_id:
                sample_token_id = t.token_id

        num_owners = len(owners) or None
        assessment = score_nft_collection(total_supply=total_supply, num_owners=num_owners)

        logger.info(f"✅ NFT summary for {address}: {len(transfers)} transfers sampled, "
                    f"{num_owners or 0} owners, health={assessment.health}")

        return NftCollectionSummary(
            contract_address=address,
            name=name,
            symbol=symbol,
            token_standard=infer_token_standard(transfers),
            total_supply=total_supply,
            num_owners=num_owners,
            floor_price_native=None,
            floor_price_symbol="ETH",
            market_cap=None,
            sample_token_id=sample_token_id,
            health=assessment.health,
            reasons=assessment.reasons
        )

    async def _fetch_transfers(self, contract_address: str) -> List[Transfer]:
        params = {
            "fromBlock": "0x0",
            "toBlock": "latest",
            "category": [TransferCategory.ERC721.value, TransferCategory.ERC1155.value],
            "contractAddresses": [contract_address],
            "withMetadata": True,
            "excludeZeroValue": False,
            "maxCount": self.config.nft_page_size
        }
        return await paginate_asset_transfers(self.client, params, self.config.nft_max_pages)
