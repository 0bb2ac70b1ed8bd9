import asyncio
import logging
from typing import Awaitable, Callable, List, Sequence, TypeVar

from core.data.models import Receipt, ReceiptResult
from core.errors import UpstreamError
from services.blockchain.gas import hex_to_int

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


async def map_with_concurrency(items: Sequence[T], limit: int,
                               fn: Callable[[T], Awaitable[R]]) -> List[R]:
    """Apply ``fn`` to every item with at most ``limit`` calls in flight.

    A fixed pool of workers pulls indexes from a shared cursor. Results are
    stored by original index, so output order never depends on completion
    order.
    """
    results: List[R] = [None] * len(items)
    cursor = 0

    async def worker():
        nonlocal cursor
        while cursor < len(items):
            current = cursor
            cursor += 1
            results[current] = await fn(items[current])

    workers = [worker() for _ in range(min(max(limit, 1), len(items)))]
    await asyncio.gather(*workers)
    return results


def receipt_from_rpc(raw) -> Receipt:
    return Receipt(
        gas_used=hex_to_int(raw.get("gasUsed")),
        effective_gas_price=hex_to_int(raw.get("effectiveGasPrice")),
        gas_price=hex_to_int(raw.get("gasPrice"))
    )


async def fetch_receipt_with_retry(client, tx_hash: str, attempts: int = 2,
                                   base_delay: float = 0.3, step_delay: float = 0.2,
                                   sleep=asyncio.sleep) -> ReceiptResult:
    """Fetch one receipt, retrying transient failures.

    Exhausting every attempt yields a ReceiptResult with no receipt instead
    of an exception.
    """
    for attempt in range(attempts):
        try:
            raw = await client.get_transaction_receipt(tx_hash)
            if not raw or not raw.get("gasUsed"):
                return ReceiptResult(hash=tx_hash, receipt=None)
            return ReceiptResult(hash=tx_hash, receipt=receipt_from_rpc(raw))
        except (UpstreamError, ValueError) as e:
            if attempt == attempts - 1:
                logger.warning(f"⚠️ Receipt for {tx_hash} unavailable after {attempts} attempts: {e}")
                break
            await sleep(base_delay + step_delay * attempt)

    return ReceiptResult(hash=tx_hash, receipt=None)


async def fetch_receipts(client, hashes: Sequence[str], limit: int = 5, attempts: int = 2,
                         base_delay: float = 0.3, step_delay: float = 0.2,
                         sleep=asyncio.sleep) -> List[ReceiptResult]:
    """Receipts for ``hashes`` in input order, at most ``limit`` requests at once"""
    return await map_with_concurrency(
        hashes,
        limit,
        lambda tx_hash: fetch_receipt_with_retry(
            client, tx_hash, attempts=attempts,
            base_delay=base_delay, step_delay=step_delay, sleep=sleep
        )
    )
