import logging
from typing import Dict, List, Any

from core.data.models import Transfer, TransferCategory, Direction
from core.errors import UpstreamError

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("hash", "from", "to", "category")


def is_well_formed_transfer(raw: Any) -> bool:
    """Shape check for one alchemy_getAssetTransfers record"""
    if not isinstance(raw, dict):
        return False
    if not all(isinstance(raw.get(key), (str, type(None))) for key in TEXT_FIELDS):
        return False
    if not isinstance(raw.get("metadata"), (dict, type(None))):
        return False
    return isinstance(raw.get("erc1155Metadata"), (list, type(None)))


async def paginate_asset_transfers(client, params: Dict[str, Any], max_pages: int) -> List[Transfer]:
    """Follow alchemy_getAssetTransfers pageKeys until exhausted or max_pages.

    The page cap truncates silently. Any error aborts the whole call; no
    partial list is returned. A malformed record raises UpstreamError.
    """
    transfers: List[Transfer] = []
    page_key = None

    for page in range(max_pages):
        request = dict(params)
        if page_key:
            request["pageKey"] = page_key

        result = await client.get_asset_transfers(request)
        raw_transfers = result.get("transfers") or []
        if not isinstance(raw_transfers, list):
            raise UpstreamError("alchemy_getAssetTransfers returned malformed transfers")

        for index, raw in enumerate(raw_transfers):
            if not is_well_formed_transfer(raw):
                raise UpstreamError(f"alchemy_getAssetTransfers returned a malformed transfer "
                                    f"(page {page + 1}, record {index})")

        chunk = [Transfer.from_alchemy(raw) for raw in raw_transfers]
        transfers.extend(chunk)

        page_key = result.get("pageKey")
        logger.debug(f"📄 Page {page + 1}: {len(chunk)} transfers, more={bool(page_key)}")
        if not page_key:
            break
    else:
        if page_key:
            logger.info(f"⚠️ Transfer history truncated after {max_pages} pages")

    return transfers


async def fetch_transfers_for_direction(client, address: str, direction: Direction,
                                        max_pages: int = 10, page_size: str = "0x3e8") -> List[Transfer]:
    """All transfers where ``address`` is the sender (OUTGOING) or receiver (INCOMING)"""
    params = {
        direction.value: address,
        "category": TransferCategory.all(),
        "withMetadata": True,
        "maxCount": page_size,
        "excludeZeroValue": False
    }
    return await paginate_asset_transfers(client, params, max_pages)
