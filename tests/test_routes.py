import httpx
import pytest
from fastapi.testclient import TestClient

from api.dependencies import (
    get_activity_analyzer,
    get_cache,
    get_name_resolver,
    get_neynar_client,
    get_nft_service,
    get_token_service,
)
from config.settings import AlchemyConfig, NeynarConfig
from core.data.models import (
    NftCollectionSummary,
    SingleTokenInfo,
    TokenSummary,
    WalletActivitySummary,
)
from core.errors import WalletActivityError
from main import app
from services.blockchain.name_resolver import NameResolver
from services.cache.cache_service import SummaryCache
from services.social.neynar_client import NeynarClient

WALLET = "0xd8da6bf26964af9d7eed9e03e53415d37aa96045"
CHECKSUMMED = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
NFT_CONTRACT = "0x" + "9a" * 20

SUMMARY = WalletActivitySummary(
    last_30d_tx_count=3,
    lifetime_tx_count=10,
    last_30d_gas_eth=0.0012,
    lifetime_gas_eth=0.0345,
    most_common_category="erc20",
    active_days_last_30d=2,
    avg_tx_per_active_day_30d=1.5,
)


class FakeAnalyzer:
    def __init__(self, result=SUMMARY, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def analyze(self, address):
        self.calls.append(address)
        if self.error is not None:
            raise self.error
        return self.result


class FakeTokenService:
    def __init__(self, tokens=None, info=None, error=None):
        self.tokens = tokens or []
        self.info = info
        self.error = error

    async def get_token_portfolio(self, address):
        if self.error is not None:
            raise self.error
        return self.tokens

    async def get_single_token_info(self, address):
        if self.error is not None:
            raise self.error
        return self.info


class FakeNftService:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    async def get_collection_summary(self, contract):
        self.calls.append(contract)
        if self.error is not None:
            raise self.error
        return NftCollectionSummary(
            contract_address=contract.lower(),
            name="Based Punks",
            symbol="BPUNK",
            token_standard="ERC721",
            total_supply=3000,
            num_owners=1500,
            floor_price_native=None,
            floor_price_symbol="ETH",
            market_cap=None,
            sample_token_id="0x7",
            health="good",
            reasons=["Relatively low total supply collection.", "Large holder base; widely held."],
        )


async def fake_lookup(name):
    return {"jesse.base.eth": WALLET}.get(name)


@pytest.fixture
def analyzer():
    return FakeAnalyzer()


@pytest.fixture
def client(analyzer):
    cache = SummaryCache(ttl_seconds=120)
    app.dependency_overrides[get_name_resolver] = lambda: NameResolver(AlchemyConfig(api_key="k"), lookup=fake_lookup)
    app.dependency_overrides[get_activity_analyzer] = lambda: analyzer
    app.dependency_overrides[get_cache] = lambda: cache
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health_endpoint(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestWalletRoute:
    def test_summary_payload_uses_camel_case(self, client):
        response = client.get("/api/base/wallet", params={"address": WALLET})

        assert response.status_code == 200
        body = response.json()
        assert body["address"] == WALLET
        assert body["chain"] == "base-mainnet"
        assert body["summary"] == {
            "last30dGasEth": 0.0012,
            "lifetimeGasEth": 0.0345,
            "last30dTxCount": 3,
            "lifetimeTxCount": 10,
            "mostCommonTxType": "ERC-20 transfers",
            "activeDaysLast30d": 2,
            "avgTxPerActiveDay30d": 1.5,
        }
        assert body["health"]["health"] == "risky"
        assert body["health"]["score"] == 35

    def test_base_name_is_resolved(self, client, analyzer):
        response = client.get("/api/base/wallet", params={"address": "jesse.base.eth"})

        assert response.status_code == 200
        assert response.json()["address"] == WALLET
        assert analyzer.calls == [WALLET]

    def test_repeat_request_is_served_from_cache(self, client, analyzer):
        client.get("/api/base/wallet", params={"address": WALLET})
        client.get("/api/base/wallet", params={"address": CHECKSUMMED})

        assert analyzer.calls == [WALLET]

    def test_missing_address(self, client):
        response = client.get("/api/base/wallet")

        assert response.status_code == 400
        assert response.json() == {"error": "Missing address query param"}

    def test_malformed_address(self, client):
        response = client.get("/api/base/wallet", params={"address": "not-a-wallet"})

        assert response.status_code == 400
        assert response.json() == {"error": "Input must be a 0x address or .base.eth name"}

    def test_unresolvable_name(self, client):
        response = client.get("/api/base/wallet", params={"address": "nobody.base.eth"})

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to fetch Base wallet summary"
        assert "nobody.base.eth" in response.json()["debug"]

    def test_aggregation_failure(self, client, analyzer):
        analyzer.error = WalletActivityError("Alchemy RPC error (status 503): unavailable")

        response = client.get("/api/base/wallet", params={"address": WALLET})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to fetch Base wallet summary",
            "debug": "Alchemy RPC error (status 503): unavailable",
        }

    def test_failure_is_not_cached(self, client, analyzer):
        analyzer.error = WalletActivityError("boom")
        client.get("/api/base/wallet", params={"address": WALLET})
        analyzer.error = None

        response = client.get("/api/base/wallet", params={"address": WALLET})

        assert response.status_code == 200
        assert len(analyzer.calls) == 2


class TestTokenRoutes:
    def test_portfolio(self, client):
        token = TokenSummary(
            contract_address="0x833589fcd6edb6e08f4c7c32d4f71b54bda02913",
            symbol="USDC", name="USD Coin", logo=None, decimals=6,
            raw_balance="0x2faf080", balance="50.0000", price_usd=1.0, value_usd=50.0,
            health="medium", reasons=["Looks like a stablecoin on Base."],
        )
        app.dependency_overrides[get_token_service] = lambda: FakeTokenService(tokens=[token])

        response = client.get("/api/base/tokens", params={"address": WALLET})

        assert response.status_code == 200
        [item] = response.json()["tokens"]
        assert item["contractAddress"] == token.contract_address
        assert item["rawBalance"] == "0x2faf080"
        assert item["valueUsd"] == 50.0
        assert item["health"] == "medium"

    def test_portfolio_rejects_bad_address(self, client):
        app.dependency_overrides[get_token_service] = lambda: FakeTokenService()

        response = client.get("/api/base/tokens", params={"address": "0x12"})

        assert response.status_code == 400
        assert response.json() == {"error": "Address must be a valid 0x-prefixed string"}

    def test_portfolio_failure(self, client):
        app.dependency_overrides[get_token_service] = lambda: FakeTokenService(error=RuntimeError("rpc down"))

        response = client.get("/api/base/tokens", params={"address": WALLET})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to scan Base tokens", "debug": "rpc down"}

    def test_token_info(self, client):
        info = SingleTokenInfo(
            contract_address="0xaero", symbol="AERO", name="Aerodrome", logo=None, decimals=18,
            price_usd=1.12, liquidity_usd=2_000_000.0, fdv_usd=None, market_cap_usd=None,
            volume_24h_usd=800_000.0, pair_url="https://dexscreener.com/base/0xdeep",
            pair_created_at=1700000000000, health="good", reasons=[],
        )
        app.dependency_overrides[get_token_service] = lambda: FakeTokenService(info=info)

        response = client.get("/api/base/token-info", params={"address": WALLET})

        assert response.status_code == 200
        body = response.json()
        assert body["volume24hUsd"] == 800_000.0
        assert body["pairCreatedAt"] == 1700000000000
        assert body["pairUrl"] == "https://dexscreener.com/base/0xdeep"

    def test_token_info_not_found(self, client):
        app.dependency_overrides[get_token_service] = lambda: FakeTokenService(info=None)

        response = client.get("/api/base/token-info", params={"address": WALLET})

        assert response.status_code == 404
        assert response.json() == {"error": "Token not found on Base or metadata unavailable"}


class TestNftRoute:
    def test_contract_param(self, client):
        service = FakeNftService()
        app.dependency_overrides[get_nft_service] = lambda: service

        response = client.get("/api/base/nft", params={"contract": NFT_CONTRACT})

        assert response.status_code == 200
        body = response.json()
        assert body["tokenStandard"] == "ERC721"
        assert body["numOwners"] == 1500
        assert body["floorPriceNative"] is None
        assert body["sampleTokenId"] == "0x7"

    def test_address_alias(self, client):
        service = FakeNftService()
        app.dependency_overrides[get_nft_service] = lambda: service

        response = client.get("/api/base/nft", params={"address": NFT_CONTRACT})

        assert response.status_code == 200
        assert service.calls == [NFT_CONTRACT]

    def test_missing_and_invalid_contract(self, client):
        app.dependency_overrides[get_nft_service] = lambda: FakeNftService()

        missing = client.get("/api/base/nft")
        invalid = client.get("/api/base/nft", params={"contract": "punks"})

        assert missing.status_code == 400
        assert missing.json() == {"error": "Missing contract query param"}
        assert invalid.status_code == 400
        assert invalid.json() == {"error": "Contract must be a valid 0x-prefixed address"}

    def test_failure(self, client):
        app.dependency_overrides[get_nft_service] = lambda: FakeNftService(error=RuntimeError("boom"))

        response = client.get("/api/base/nft", params={"contract": NFT_CONTRACT})

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to fetch NFT info from Base"


class TestNeynarRoute:
    def neynar(self, status, body, api_key="k"):
        transport = httpx.MockTransport(lambda request: httpx.Response(status, json=body))
        return lambda: NeynarClient(NeynarConfig(api_key=api_key), transport=transport)

    def test_user_found(self, client):
        app.dependency_overrides[get_neynar_client] = self.neynar(200, {"users": [{
            "fid": 532764, "username": "guardian", "display_name": "Base Guardian",
            "follower_count": 10, "following_count": 2, "score": 0.8,
        }]})

        response = client.get("/api/neynar/user", params={"query": "532764"})

        assert response.status_code == 200
        assert response.json() == {
            "fid": 532764,
            "username": "guardian",
            "displayName": "Base Guardian",
            "followers": 10,
            "following": 2,
            "neynarScore": 0.8,
        }

    def test_user_not_found(self, client):
        app.dependency_overrides[get_neynar_client] = self.neynar(200, {"users": []})

        response = client.get("/api/neynar/user", params={"query": "1"})

        assert response.status_code == 404
        assert response.json() == {"error": "Neynar user not found"}

    def test_missing_api_key(self, client):
        app.dependency_overrides[get_neynar_client] = self.neynar(200, {}, api_key=None)

        response = client.get("/api/neynar/user")

        assert response.status_code == 500
        assert response.json() == {"error": "NEYNAR_API_KEY is not configured on the server"}

    def test_provider_error_message(self, client):
        app.dependency_overrides[get_neynar_client] = self.neynar(401, {"message": "Invalid API key"})

        response = client.get("/api/neynar/user", params={"query": "1"})

        assert response.status_code == 500
        assert response.json() == {"error": "Invalid API key"}
