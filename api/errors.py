import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import ORJSONResponse

from config.settings import settings

logger = logging.getLogger(__name__)

class ApiError(Exception):
    """Error that maps directly onto an {"error", "debug"} JSON response"""

    def __init__(self, status_code: int, error: str, debug: Optional[str] = None):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.debug = debug


def error_response(status_code: int, error: str, debug: Optional[str] = None) -> ORJSONResponse:
    content = {"error": error}
    if debug is not None:
        content["debug"] = debug
    return ORJSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return error_response(exc.status_code, exc.error, exc.debug)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Global exception: {exc}", exc_info=True)
        return error_response(
            500,
            "Internal server error",
            str(exc) if settings.environment == 'development' else None
        )
