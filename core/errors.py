"""Error types shared by the providers, the aggregator and the API layer"""


class GuardianError(Exception):
    """Base class for all Base Guardian failures"""


class ConfigurationError(GuardianError):
    """A provider API key or URL is missing from the environment"""


class InvalidAddressError(GuardianError, ValueError):
    """Client supplied something that is neither an address nor a resolvable name"""


class UpstreamError(GuardianError):
    """Transport failure, bad status or malformed payload from a provider"""


class NameResolutionError(UpstreamError):
    """A .eth / .base.eth name could not be resolved to an address"""


class WalletActivityError(UpstreamError):
    """Wallet activity aggregation failed; no partial summary is returned"""
