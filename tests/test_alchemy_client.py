import httpx
import orjson
import pytest

from config.settings import AlchemyConfig
from core.errors import ConfigurationError, UpstreamError
from services.blockchain.alchemy_client import AlchemyClient

CONFIG = AlchemyConfig(api_key="test-key")


def rpc_transport(handler):
    """MockTransport that hands the decoded JSON-RPC payload to ``handler``"""
    def handle(request: httpx.Request) -> httpx.Response:
        return handler(request, orjson.loads(request.content))
    return httpx.MockTransport(handle)


async def test_returns_result_member():
    seen = {}

    def handler(request, payload):
        seen.update(payload)
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": {"transfers": []}})

    async with AlchemyClient(CONFIG, transport=rpc_transport(handler)) as client:
        result = await client.get_asset_transfers({"fromAddress": "0x1"})

    assert result == {"transfers": []}
    assert seen["method"] == "alchemy_getAssetTransfers"
    assert seen["params"] == [{"fromAddress": "0x1"}]
    assert seen["url"] == "https://base-mainnet.g.alchemy.com/v2/test-key"


async def test_rpc_error_member_is_normalized():
    def handler(request, payload):
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1,
                                         "error": {"code": -32600, "message": "invalid params"}})

    async with AlchemyClient(CONFIG, transport=rpc_transport(handler)) as client:
        with pytest.raises(UpstreamError) as exc_info:
            await client.make_request("eth_blockNumber", [])

    assert "status 200" in str(exc_info.value)
    assert "invalid params" in str(exc_info.value)


async def test_bad_status_is_normalized():
    def handler(request, payload):
        return httpx.Response(429, json={"jsonrpc": "2.0", "id": 1, "result": None})

    async with AlchemyClient(CONFIG, transport=rpc_transport(handler)) as client:
        with pytest.raises(UpstreamError, match="status 429"):
            await client.get_transaction_receipt("0xaa")


async def test_non_json_body_is_normalized():
    transport = httpx.MockTransport(lambda request: httpx.Response(502, text="<html>Bad gateway</html>"))

    async with AlchemyClient(CONFIG, transport=transport) as client:
        with pytest.raises(UpstreamError, match="non-JSON"):
            await client.make_request("eth_blockNumber", [])
        assert client.get_stats()["failures"] == 1


async def test_transport_error_is_normalized():
    def handle(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with AlchemyClient(CONFIG, transport=httpx.MockTransport(handle)) as client:
        with pytest.raises(UpstreamError, match="transport error"):
            await client.make_request("eth_blockNumber", [])


async def test_missing_api_key():
    async with AlchemyClient(AlchemyConfig(api_key=None)) as client:
        with pytest.raises(ConfigurationError):
            await client.make_request("eth_blockNumber", [])


async def test_malformed_transfer_result():
    def handler(request, payload):
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": ["not", "a", "dict"]})

    async with AlchemyClient(CONFIG, transport=rpc_transport(handler)) as client:
        with pytest.raises(UpstreamError):
            await client.get_asset_transfers({})


async def test_null_receipt_passes_through():
    def handler(request, payload):
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": None})

    async with AlchemyClient(CONFIG, transport=rpc_transport(handler)) as client:
        assert await client.get_transaction_receipt("0xaa") is None


async def test_eth_call_swallows_reverts_and_empty_results():
    responses = iter([
        httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": 3, "message": "execution reverted"}}),
        httpx.Response(200, json={"jsonrpc": "2.0", "id": 2, "result": "0x"}),
        httpx.Response(200, json={"jsonrpc": "2.0", "id": 3, "result": "0x" + "00" * 31 + "2a"}),
    ])

    async with AlchemyClient(CONFIG, transport=rpc_transport(lambda r, p: next(responses))) as client:
        assert await client.eth_call("0xcontract", "0x18160ddd") is None
        assert await client.eth_call("0xcontract", "0x18160ddd") is None
        assert await client.eth_call("0xcontract", "0x18160ddd") == "0x" + "00" * 31 + "2a"


async def test_token_prices_keyed_by_lowercase_address():
    def handle(request):
        assert request.url.path.endswith("/tokens/by-address")
        body = orjson.loads(request.content)
        assert body["addresses"] == [{"network": "base-mainnet", "address": "0xaaa"}]
        return httpx.Response(200, json={"data": [
            {"address": "0xAAA", "prices": [{"currency": "EUR", "value": "0.9"},
                                            {"currency": "USD", "value": "1.0001"}]},
            {"address": "0xbbb", "prices": [], "error": "not found"},
        ]})

    async with AlchemyClient(CONFIG, transport=httpx.MockTransport(handle)) as client:
        prices = await client.get_token_prices(["0xAAA", "0xaaa"])

    assert prices == {"0xaaa": 1.0001, "0xbbb": None}


async def test_token_prices_degrade_to_empty_map():
    transport = httpx.MockTransport(lambda request: httpx.Response(500, text="oops"))

    async with AlchemyClient(CONFIG, transport=transport) as client:
        assert await client.get_token_prices(["0xaaa"]) == {}

    async with AlchemyClient(AlchemyConfig(api_key=None)) as client:
        assert await client.get_token_prices(["0xaaa"]) == {}


async def test_token_balances_unwraps_result():
    def handler(request, payload):
        assert payload["params"] == ["0xwallet", "erc20"]
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": {
            "address": "0xwallet",
            "tokenBalances": [{"contractAddress": "0xt", "tokenBalance": "0x01"}],
        }})

    async with AlchemyClient(CONFIG, transport=rpc_transport(handler)) as client:
        balances = await client.get_token_balances("0xwallet")

    assert balances == [{"contractAddress": "0xt", "tokenBalance": "0x01"}]
