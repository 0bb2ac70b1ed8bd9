from typing import Optional

from core.data.models import Receipt

WEI_PER_ETH = 10 ** 18


def hex_to_int(value: Optional[str]) -> int:
    """Parse a hex quantity (with or without 0x) as an unsigned integer"""
    if not value:
        return 0
    text = value[2:] if value.lower().startswith("0x") else value
    if not text:
        return 0
    return int(text, 16)


def wei_to_eth(wei: int) -> float:
    # whole part stays exact; only the sub-ether remainder goes through float
    whole, fraction = divmod(wei, WEI_PER_ETH)
    return whole + fraction / 1e18


def receipt_gas_cost_eth(receipt: Optional[Receipt]) -> float:
    """gasUsed * (effectiveGasPrice, else legacy gasPrice) in ETH"""
    if receipt is None or not receipt.gas_used:
        return 0.0

    price = receipt.effective_gas_price or receipt.gas_price
    if price == 0:
        return 0.0

    return wei_to_eth(receipt.gas_used * price)
