from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from contextlib import asynccontextmanager

import uvicorn
import logging
from datetime import datetime
import os

from config.settings import settings
from api.errors import register_exception_handlers
from services.cache.cache_service import get_wallet_cache

# Configure logging
logging.basicConfig(level=settings.logging.level.value, format=settings.logging.format)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan"""
    logger.info("🚀 Base Guardian API starting...")
    logger.info(f"Environment: {settings.environment}")
    logger.debug(f"Settings: {settings.to_dict()}")
    logger.info(f"Alchemy configured: {settings.alchemy.is_configured}, "
                f"Neynar configured: {bool(settings.neynar.api_key)}")

    get_wallet_cache()

    yield

    logger.info("🛑 Base Guardian API shutting down...")
    cleared = get_wallet_cache().clear()
    logger.info(f"✅ Wallet cache released ({cleared} entries)")

app = FastAPI(
    title="Base Guardian API",
    description="Wallet activity, token holdings and NFT collection health on Base",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    default_response_class=ORJSONResponse,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"] if settings.environment == 'development' else [],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

register_exception_handlers(app)

@app.get("/health")
async def health_check():
    """Health check with cache status"""
    cache_status = get_wallet_cache().get_status()
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": VERSION,
        "environment": settings.environment,
        "providers": {
            "alchemy": settings.alchemy.is_configured,
            "neynar": bool(settings.neynar.api_key)
        },
        "cache": {
            "entries": cache_status["cache_entries"],
            "hit_rate_percentage": cache_status["hit_rate_percentage"]
        }
    }

from api.routes.base import router as base_router
from api.routes.neynar import router as neynar_router

app.include_router(base_router, prefix="/api")
app.include_router(neynar_router, prefix="/api")


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv('PORT', 8001)),
        reload=settings.environment == 'development',
        log_level="info"
    )
