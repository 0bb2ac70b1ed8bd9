from dataclasses import asdict
from fastapi import APIRouter, Depends, Query
import logging

from api.dependencies import get_neynar_client
from api.errors import ApiError
from api.models.responses import ErrorResponse, NeynarUserModel
from core.errors import ConfigurationError
from services.social.neynar_client import NeynarClient

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/neynar", tags=["neynar"])

@router.get(
    "/user",
    response_model=NeynarUserModel,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
async def neynar_user(
    query: str = Query("", description="fid, username, @handle or name.base.eth"),
    client: NeynarClient = Depends(get_neynar_client)
):
    """Farcaster profile lookup; empty query falls back to the default profile"""
    try:
        async with client:
            user = await client.lookup(query)
    except ConfigurationError as e:
        raise ApiError(500, str(e))
    except Exception as e:
        logger.error(f"❌ Error fetching Neynar user: {e}", exc_info=True)
        raise ApiError(500, str(e) or "Failed Neynar user lookup")

    if user is None:
        raise ApiError(404, "Neynar user not found")

    return NeynarUserModel(**asdict(user))
