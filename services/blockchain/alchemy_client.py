import httpx
import orjson
import logging
from typing import Any, List, Dict, Optional
from config.settings import AlchemyConfig, alchemy_config
from core.errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

class AlchemyClient:
    """Alchemy JSON-RPC client for Base mainnet.

    Every provider-level problem (bad status, non-JSON body, JSON-RPC error
    member) is normalized into an UpstreamError so callers only deal with one
    failure type.
    """

    def __init__(self, config: Optional[AlchemyConfig] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config or alchemy_config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._request_count = 0
        self._failures = 0

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.timeout_seconds, connect=10.0),
            limits=httpx.Limits(
                max_connections=30,
                max_keepalive_connections=15
            ),
            headers={
                'Content-Type': 'application/json',
                'Accept': 'application/json',
                'User-Agent': 'BaseGuardian/1.0'
            },
            transport=self._transport
        )
        logger.debug("✅ Alchemy client initialized for base")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._client:
            await self._client.aclose()
            self._client = None
            success_rate = ((self._request_count - self._failures) / max(self._request_count, 1)) * 100
            logger.debug(f"🔒 Alchemy client closed: "
                         f"{self._request_count} requests, {success_rate:.1f}% success")

    def _require_rpc_url(self) -> str:
        if not self.config.rpc_url:
            raise ConfigurationError("ALCHEMY_BASE_API_KEY is not configured")
        if self._client is None:
            raise RuntimeError("AlchemyClient must be used as an async context manager")
        return self.config.rpc_url

    async def make_request(self, method: str, params: List) -> Any:
        """Send one JSON-RPC call and return its ``result`` member"""
        url = self._require_rpc_url()
        self._request_count += 1

        payload = {
            "id": self._request_count,
            "jsonrpc": "2.0",
            "method": method,
            "params": params
        }

        try:
            response = await self._client.post(url, content=orjson.dumps(payload))
        except httpx.HTTPError as e:
            self._failures += 1
            raise UpstreamError(f"Alchemy RPC transport error for {method}: {e}") from e

        try:
            body = orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            self._failures += 1
            raise UpstreamError(
                f"Alchemy RPC returned non-JSON (status {response.status_code}): "
                f"{response.text[:200]}"
            ) from e

        if not isinstance(body, dict):
            self._failures += 1
            raise UpstreamError(f"Alchemy RPC returned malformed envelope for {method} "
                                f"(status {response.status_code})")

        error = body.get("error")
        if response.status_code != 200 or error:
            self._failures += 1
            if isinstance(error, dict):
                detail = f"{error.get('code', '')} {error.get('message', '')}".strip()
            else:
                detail = str(error) if error else response.text[:200]
            raise UpstreamError(f"Alchemy RPC error (status {response.status_code}): {detail}")

        return body.get("result")

    async def get_asset_transfers(self, params: Dict) -> Dict:
        """One page of alchemy_getAssetTransfers"""
        result = await self.make_request("alchemy_getAssetTransfers", [params])
        if not isinstance(result, dict):
            raise UpstreamError("alchemy_getAssetTransfers returned a malformed result")
        return result

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict]:
        result = await self.make_request("eth_getTransactionReceipt", [tx_hash])
        if result is not None and not isinstance(result, dict):
            raise UpstreamError(f"Malformed receipt for {tx_hash}")
        return result

    async def get_token_balances(self, address: str) -> List[Dict]:
        """ERC-20 balances held by an address"""
        result = await self.make_request("alchemy_getTokenBalances", [address, "erc20"])
        if not isinstance(result, dict):
            return []
        return result.get("tokenBalances") or []

    async def get_token_metadata(self, contract_address: str) -> Optional[Dict]:
        result = await self.make_request("alchemy_getTokenMetadata", [contract_address])
        if isinstance(result, dict):
            logger.debug(f"✅ Got metadata for {result.get('symbol', 'Unknown')}")
            return result
        return None

    async def eth_call(self, to: str, data: str) -> Optional[str]:
        """Read-only contract call; None when the call reverts or returns nothing"""
        try:
            result = await self.make_request("eth_call", [{"to": to, "data": data}, "latest"])
        except UpstreamError as e:
            logger.debug(f"eth_call {data} on {to} failed: {e}")
            return None

        if not isinstance(result, str) or result in ("", "0x"):
            return None
        return result

    async def get_token_prices(self, addresses: List[str]) -> Dict[str, Optional[float]]:
        """USD prices from the Alchemy Prices API, keyed by lower-cased address.

        Prices are optional enrichment, so any failure degrades to an empty map.
        """
        if not self.config.prices_url or self._client is None:
            return {}

        unique = list(dict.fromkeys(a.lower() for a in addresses if a))
        if not unique:
            return {}

        payload = {
            "addresses": [{"network": "base-mainnet", "address": addr} for addr in unique]
        }

        try:
            response = await self._client.post(self.config.prices_url, content=orjson.dumps(payload))
        except httpx.HTTPError as e:
            logger.warning(f"⚠️ Alchemy Prices request failed: {e}")
            return {}

        if response.status_code != 200:
            logger.warning(f"⚠️ Alchemy Prices error {response.status_code}: {response.text[:200]}")
            return {}

        try:
            body = orjson.loads(response.content)
        except orjson.JSONDecodeError:
            logger.warning("⚠️ Alchemy Prices returned non-JSON")
            return {}

        prices: Dict[str, Optional[float]] = {}
        data = body.get("data") if isinstance(body, dict) else None
        for item in data if isinstance(data, list) else []:
            addr = (item.get("address") or "").lower()
            if not addr:
                continue
            usd = next(
                (p for p in item.get("prices") or [] if p.get("currency") == "USD"),
                None
            )
            prices[addr] = _parse_price(usd.get("value")) if usd else None

        return prices

    def get_stats(self) -> Dict:
        success_rate = ((self._request_count - self._failures) / max(self._request_count, 1)) * 100
        return {
            "network": "base",
            "total_requests": self._request_count,
            "failures": self._failures,
            "success_rate": round(success_rate, 1)
        }


def _parse_price(value: Any) -> Optional[float]:
    if not isinstance(value, str):
        return None
    try:
        price = float(value)
    except ValueError:
        return None
    if price != price or price in (float("inf"), float("-inf")):
        return None
    return price
