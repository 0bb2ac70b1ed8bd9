import httpx
import orjson
import logging
from typing import List, Dict, Optional
from config.settings import DexScreenerConfig, dexscreener_config

logger = logging.getLogger(__name__)

class DexScreenerClient:
    """DexScreener token pairs API. Market data is optional enrichment, so
    failures are logged and reported as "no pairs" rather than raised."""

    def __init__(self, config: Optional[DexScreenerConfig] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config or dexscreener_config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.timeout_seconds),
            headers={'Accept': 'application/json'},
            transport=self._transport
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get_pairs(self, contract_address: str) -> Optional[List[Dict]]:
        """Base pairs for a token contract, or None when none are known"""
        url = f"{self.config.base_url}/{self.config.chain_id}/{contract_address}"

        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            logger.error(f"❌ Error calling DexScreener: {e}")
            return None

        if response.status_code != 200:
            logger.warning(f"⚠️ DexScreener request failed: {response.status_code}")
            return None

        try:
            data = orjson.loads(response.content)
        except orjson.JSONDecodeError:
            logger.warning("⚠️ DexScreener returned non-JSON")
            return None

        if not isinstance(data, list):
            logger.warning("⚠️ DexScreener response is not an array")
            return None

        pairs = [
            p for p in data
            if isinstance(p, dict) and self.config.chain_id in (p.get("chainId") or "").lower()
        ]
        return pairs or None


def _liquidity(pair: Dict) -> float:
    return ((pair.get("liquidity") or {}).get("usd")) or 0


def pick_best_pair(pairs: List[Dict]) -> Optional[Dict]:
    """Pair with the deepest USD liquidity; earliest pair wins ties"""
    best = None
    for pair in pairs:
        if best is None or _liquidity(pair) > _liquidity(best):
            best = pair
    return best
