from .settings import (
    settings,
    Settings,
    alchemy_config,
    neynar_config,
    dexscreener_config,
    activity_config,
    portfolio_config,
    AlchemyConfig,
    NeynarConfig,
    DexScreenerConfig,
    ActivityConfig,
    PortfolioConfig,
    LoggingConfig
)

__all__ = [
    'settings',
    'Settings',
    'alchemy_config',
    'neynar_config',
    'dexscreener_config',
    'activity_config',
    'portfolio_config',
    'AlchemyConfig',
    'NeynarConfig',
    'DexScreenerConfig',
    'ActivityConfig',
    'PortfolioConfig',
    'LoggingConfig'
]
