import re
import httpx
import orjson
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from config.settings import NeynarConfig, neynar_config
from core.data.models import NeynarUser
from core.errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

PROFILE_SUFFIXES = (".base.eth", ".farcaster.eth")

@dataclass
class ProfileQuery:
    fid: Optional[str] = None
    username: Optional[str] = None


def resolve_profile_query(raw: str) -> ProfileQuery:
    """Accepts "532764" (fid), "name" / "@name" and "name.base.eth" / "name.farcaster.eth" """
    query = raw.strip()

    lower = query.lower()
    for suffix in PROFILE_SUFFIXES:
        if lower.endswith(suffix):
            query = query[:-len(suffix)]
            break

    if query.startswith("@"):
        query = query[1:]

    if re.fullmatch(r"[0-9]+", query):
        return ProfileQuery(fid=query)

    return ProfileQuery(username=query.lower())


def _first_number(*candidates: Any) -> Optional[float]:
    for value in candidates:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    return None


def map_neynar_user(raw: Dict) -> NeynarUser:
    neynar_user = raw.get("neynar_user") or {}
    score_field = neynar_user.get("score")
    experimental = raw.get("experimental") or {}

    score = _first_number(
        score_field.get("v1") if isinstance(score_field, dict) else None,
        (neynar_user.get("influence") or {}).get("score"),
        score_field,
        raw.get("score"),
        experimental.get("neynar_user_score")
    )

    return NeynarUser(
        fid=raw.get("fid"),
        username=raw.get("username"),
        display_name=raw.get("display_name"),
        followers=raw.get("follower_count"),
        following=raw.get("following_count"),
        neynar_score=score
    )


class NeynarClient:
    """Farcaster profile lookups through the Neynar v2 API"""

    def __init__(self, config: Optional[NeynarConfig] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config or neynar_config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        if not self.config.api_key:
            raise ConfigurationError("NEYNAR_API_KEY is not configured on the server")

        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=httpx.Timeout(self.config.timeout_seconds),
            headers={
                'Accept': 'application/json',
                'x-api-key': self.config.api_key
            },
            transport=self._transport
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str, params: Dict[str, Any]):
        """GET returning (ok, parsed JSON or None)"""
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Neynar request failed: {e}") from e

        try:
            body = orjson.loads(response.content)
        except orjson.JSONDecodeError:
            body = None

        ok = 200 <= response.status_code < 300
        if not ok:
            logger.warning(f"⚠️ Neynar {path} failed: {response.status_code}")
        return ok, body

    @staticmethod
    def _raise_for_message(body) -> None:
        if isinstance(body, dict) and body.get("message"):
            raise UpstreamError(str(body["message"]))

    async def fetch_user(self, query: ProfileQuery) -> Optional[NeynarUser]:
        if query.fid:
            ok, body = await self._get("/user/bulk", {"fids": query.fid})
            if not ok:
                self._raise_for_message(body)
                return None
            users = (body or {}).get("users") or []
            return map_neynar_user(users[0]) if users else None

        if query.username:
            ok, body = await self._get("/user/by-username", {"username": query.username})
            if ok and isinstance(body, dict):
                user = (body.get("result") or {}).get("user") or body.get("user")
                if user:
                    return map_neynar_user(user)

            # fall back to fuzzy search
            ok, body = await self._get("/user/search", {"q": query.username, "limit": 1})
            if not ok:
                self._raise_for_message(body)
                return None
            users = ((body or {}).get("result") or {}).get("users") or []
            return map_neynar_user(users[0]) if users else None

        raise ValueError("Missing fid or username in lookup")

    async def lookup(self, raw_query: str) -> Optional[NeynarUser]:
        """Resolve a free-form query, defaulting to the configured profile"""
        query = resolve_profile_query(raw_query.strip() or self.config.default_profile_query)
        return await self.fetch_user(query)
