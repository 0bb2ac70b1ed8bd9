import logging
from typing import Awaitable, Callable, Optional

from web3 import AsyncWeb3, Web3

from config.settings import AlchemyConfig, alchemy_config
from core.errors import ConfigurationError, InvalidAddressError, NameResolutionError

logger = logging.getLogger(__name__)

NAME_SUFFIXES = (".base.eth", ".eth")

Lookup = Callable[[str], Awaitable[Optional[str]]]


def is_plain_address(value: str) -> bool:
    return value.startswith("0x") and len(value) == 42 and Web3.is_address(value.lower())


class NameResolver:
    """Turns a 0x address or a .base.eth / .eth name into a lower-case address"""

    def __init__(self, config: Optional[AlchemyConfig] = None, lookup: Optional[Lookup] = None):
        self.config = config or alchemy_config
        self._lookup = lookup
        self._w3: Optional[AsyncWeb3] = None

    def _web3(self) -> AsyncWeb3:
        if self._w3 is None:
            if not self.config.rpc_url:
                raise ConfigurationError("ALCHEMY_BASE_API_KEY is not set")
            self._w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(
                self.config.rpc_url,
                request_kwargs={'timeout': self.config.timeout_seconds}
            ))
        return self._w3

    async def _resolve_name(self, name: str) -> Optional[str]:
        if self._lookup is not None:
            return await self._lookup(name)
        return await self._web3().ens.address(name)

    async def resolve(self, raw: str) -> str:
        trimmed = (raw or "").strip()

        if is_plain_address(trimmed):
            return trimmed.lower()

        lower = trimmed.lower()
        if not lower.endswith(NAME_SUFFIXES):
            raise InvalidAddressError("Input must be a 0x address or .base.eth name")

        try:
            resolved = await self._resolve_name(lower)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"❌ Name resolution error for {lower}: {e}")
            raise NameResolutionError(f"Failed to resolve name: {lower}") from e

        if not resolved:
            raise NameResolutionError(f"Could not resolve name {lower}")

        logger.info(f"✅ Resolved {lower} -> {resolved}")
        return str(resolved).lower()
