import asyncio

import pytest

from core.errors import UpstreamError
from services.blockchain.receipts import (
    fetch_receipt_with_retry,
    fetch_receipts,
    map_with_concurrency,
    receipt_from_rpc,
)

from fakes import FakeAlchemyClient


async def test_map_with_concurrency_preserves_order_and_bounds_in_flight():
    in_flight = 0
    peak = 0

    async def work(item):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        # later items finish first
        await asyncio.sleep(0.001 * (12 - item))
        in_flight -= 1
        return item * 10

    result = await map_with_concurrency(list(range(12)), 5, work)

    assert result == [i * 10 for i in range(12)]
    assert peak <= 5


async def test_map_with_concurrency_empty_and_zero_limit():
    async def work(item):
        return item

    assert await map_with_concurrency([], 5, work) == []
    assert await map_with_concurrency([1, 2], 0, work) == [1, 2]


def test_receipt_from_rpc_decodes_hex():
    receipt = receipt_from_rpc({"gasUsed": "0x5208", "effectiveGasPrice": "0x3b9aca00"})
    assert receipt.gas_used == 21000
    assert receipt.effective_gas_price == 10 ** 9
    assert receipt.gas_price == 0


async def test_retry_recovers_after_transient_failure(no_sleep):
    client = FakeAlchemyClient(
        receipts={"0xaa": {"gasUsed": "0x5208", "effectiveGasPrice": "0x1"}},
        receipt_failures={"0xaa": 1}
    )

    result = await fetch_receipt_with_retry(client, "0xaa", sleep=no_sleep)

    assert result.receipt is not None
    assert result.receipt.gas_used == 21000
    assert no_sleep.delays == [0.3]
    assert client.receipt_calls == ["0xaa", "0xaa"]


async def test_exhausted_retries_yield_missing_receipt(no_sleep):
    client = FakeAlchemyClient(receipt_failures={"0xaa": 5})

    result = await fetch_receipt_with_retry(client, "0xaa", attempts=3, sleep=no_sleep)

    assert result.hash == "0xaa"
    assert result.receipt is None
    assert no_sleep.delays == pytest.approx([0.3, 0.5])
    assert len(client.receipt_calls) == 3


async def test_null_receipt_is_not_retried(no_sleep):
    client = FakeAlchemyClient(receipts={"0xaa": None, "0xbb": {"status": "0x1"}})

    missing = await fetch_receipt_with_retry(client, "0xaa", sleep=no_sleep)
    no_gas = await fetch_receipt_with_retry(client, "0xbb", sleep=no_sleep)

    assert missing.receipt is None
    assert no_gas.receipt is None
    assert no_sleep.delays == []


async def test_unexpected_errors_propagate(no_sleep):
    class Broken(FakeAlchemyClient):
        async def get_transaction_receipt(self, tx_hash):
            raise KeyError(tx_hash)

    with pytest.raises(KeyError):
        await fetch_receipt_with_retry(Broken(), "0xaa", sleep=no_sleep)


async def test_fetch_receipts_keeps_input_order(no_sleep):
    hashes = [f"0x{i:02x}" for i in range(12)]
    receipts = {h: {"gasUsed": hex(21000 + i)} for i, h in enumerate(hashes)}
    client = FakeAlchemyClient(receipts=receipts, receipt_failures={"0x03": 1})

    results = await fetch_receipts(client, hashes, limit=5, sleep=no_sleep)

    assert [r.hash for r in results] == hashes
    assert [r.receipt.gas_used for r in results] == [21000 + i for i in range(12)]


async def test_upstream_error_type_is_retryable(no_sleep):
    class AlwaysDown(FakeAlchemyClient):
        async def get_transaction_receipt(self, tx_hash):
            raise UpstreamError("status 503")

    result = await fetch_receipt_with_retry(AlwaysDown(), "0xaa", sleep=no_sleep)
    assert result.receipt is None
