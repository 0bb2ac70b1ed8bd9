import os
import logging
from dataclasses import dataclass, field
from typing import List, Dict, Optional
from enum import Enum
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"

@dataclass
class AlchemyConfig:
    """Alchemy API configuration"""
    api_key: Optional[str] = None
    timeout_seconds: float = 30.0

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def rpc_url(self) -> str:
        if not self.api_key:
            return ""
        return f"https://base-mainnet.g.alchemy.com/v2/{self.api_key}"

    @property
    def prices_url(self) -> str:
        if not self.api_key:
            return ""
        return f"https://api.g.alchemy.com/prices/v1/{self.api_key}/tokens/by-address"

@dataclass
class NeynarConfig:
    """Neynar (Farcaster social graph) API configuration"""
    api_key: Optional[str] = None
    base_url: str = "https://api.neynar.com/v2/farcaster"
    default_profile_query: str = "532764"
    timeout_seconds: float = 15.0

@dataclass
class DexScreenerConfig:
    """DexScreener market data configuration"""
    base_url: str = "https://api.dexscreener.com/tokens/v1"
    chain_id: str = "base"
    timeout_seconds: float = 15.0

@dataclass
class ActivityConfig:
    """Wallet activity aggregation parameters"""
    window_days: int = 30
    max_transfer_pages: int = 10  # up to ~10k transfers per direction
    transfer_page_size: str = "0x3e8"
    receipt_concurrency: int = 5
    receipt_attempts: int = 2
    retry_base_delay: float = 0.3
    retry_step_delay: float = 0.2
    cache_ttl_seconds: int = 120

@dataclass
class PortfolioConfig:
    """Token and NFT scan parameters"""
    max_tokens: int = 20
    nft_max_pages: int = 3
    nft_page_size: str = "0x64"
    stablecoins: List[str] = field(default_factory=lambda: ["USDC", "USDBC", "USDT", "DAI"])
    eth_like: List[str] = field(default_factory=lambda: ["WETH", "CBETH"])

@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: LogLevel = LogLevel.INFO
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

@dataclass
class Settings:
    """Main application settings"""
    alchemy: AlchemyConfig
    neynar: NeynarConfig
    dexscreener: DexScreenerConfig
    activity: ActivityConfig
    portfolio: PortfolioConfig
    logging: LoggingConfig

    environment: str = "development"

    @classmethod
    def from_env(cls) -> 'Settings':
        environment = os.getenv('ENVIRONMENT', os.getenv('ENV', 'development'))

        return cls(
            alchemy=AlchemyConfig(
                api_key=os.getenv('ALCHEMY_BASE_API_KEY') or None,
                timeout_seconds=float(os.getenv('ALCHEMY_TIMEOUT', 30))
            ),

            neynar=NeynarConfig(
                api_key=os.getenv('NEYNAR_API_KEY') or None,
                default_profile_query=os.getenv('DEFAULT_PROFILE_QUERY', '532764')
            ),

            dexscreener=DexScreenerConfig(),

            activity=ActivityConfig(
                max_transfer_pages=int(os.getenv('MAX_TRANSFER_PAGES', 10)),
                receipt_concurrency=int(os.getenv('RECEIPT_CONCURRENCY', 5)),
                cache_ttl_seconds=int(os.getenv('WALLET_CACHE_TTL', 120))
            ),

            portfolio=PortfolioConfig(),

            logging=LoggingConfig(
                level=LogLevel(os.getenv('LOG_LEVEL', 'INFO').upper())
            ),

            environment=environment
        )

    def validate(self) -> List[str]:
        """Validate configuration and return list of issues"""
        issues = []

        # Missing keys are reported per request, not at start-up
        if not self.alchemy.is_configured:
            issues.append("ALCHEMY_BASE_API_KEY is not set; Base endpoints will return 500")
        if not self.neynar.api_key:
            issues.append("NEYNAR_API_KEY is not set; profile lookup will return 500")

        if self.activity.receipt_concurrency < 1:
            issues.append("receipt_concurrency must be at least 1")
        if self.activity.receipt_attempts < 1:
            issues.append("receipt_attempts must be at least 1")
        if self.activity.max_transfer_pages < 1:
            issues.append("max_transfer_pages must be at least 1")

        return issues

    def to_dict(self) -> Dict:
        """Convert settings to dictionary (for debugging/API responses)"""
        def clean_dict(obj):
            if hasattr(obj, '__dict__'):
                result = {}
                for key, value in obj.__dict__.items():
                    if 'key' in key.lower() or 'secret' in key.lower():
                        result[key] = '[REDACTED]' if value else None
                    elif hasattr(value, '__dict__'):
                        result[key] = clean_dict(value)
                    else:
                        result[key] = value
                return result
            return obj

        return clean_dict(self)

# Create global settings instance
settings = Settings.from_env()

for issue in settings.validate():
    logger.warning(f"⚠️ Configuration: {issue}")


# Export commonly used configs for convenience
alchemy_config = settings.alchemy
neynar_config = settings.neynar
dexscreener_config = settings.dexscreener
activity_config = settings.activity
portfolio_config = settings.portfolio
