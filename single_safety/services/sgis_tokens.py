# single_safety/services/sgis_tokens.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

import httpx

from single_safety.core.time_utils import from_epoch_seconds, now_utc

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_BUFFER = timedelta(minutes=5)


class SGISError(Exception):
    """Base class for failures talking to the SGIS OpenAPI."""


class SGISAuthError(SGISError):
    pass


@dataclass(frozen=True)
class AccessToken:
    access_token: str
    expires_at: datetime


class SGISTokenManager:
    """
    Holds one SGIS bearer token per process and refreshes it on demand.

    - A token with less than `expiry_buffer` left is treated as expired.
    - Concurrent callers that find the token missing/expired all await the
      same in-flight authentication task (single-flight).
    - A cancelled caller only cancels its own wait; the shared task runs on
      and caches its result.
    - A failed authentication leaves no token cached; the error goes to every
      waiter and nothing is retried here.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        consumer_key: str,
        consumer_secret: str,
        auth_url: str,
        expiry_buffer: timedelta = DEFAULT_EXPIRY_BUFFER,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self._http = http
        self._consumer_key = consumer_key
        self._consumer_secret = consumer_secret
        self._auth_url = auth_url
        self.expiry_buffer = expiry_buffer
        self._clock = clock

        self._token: Optional[AccessToken] = None
        self._refresh_task: Optional[asyncio.Task[AccessToken]] = None

    @property
    def token_info(self) -> Optional[AccessToken]:
        return self._token

    @property
    def refreshing(self) -> bool:
        return self._refresh_task is not None

    def now(self) -> datetime:
        return self._clock()

    def needs_refresh(self, token: AccessToken) -> bool:
        return token.expires_at - self._clock() < self.expiry_buffer

    async def get_access_token(self) -> str:
        token = self._token
        if token is not None and not self.needs_refresh(token):
            return token.access_token

        task = self._refresh_task
        if task is None:
            task = asyncio.ensure_future(self._authenticate())
            self._refresh_task = task
            task.add_done_callback(self._refresh_done)

        # shielded: a cancelled caller must not cancel the shared authentication
        token = await asyncio.shield(task)
        return token.access_token

    def _refresh_done(self, task: asyncio.Task[AccessToken]) -> None:
        # a clear_token() while the task ran discards its result
        if self._refresh_task is not task:
            if not task.cancelled():
                task.exception()
            return
        self._refresh_task = None
        if task.cancelled() or task.exception() is not None:
            self._token = None
        else:
            self._token = task.result()

    async def refresh_token(self) -> str:
        self._token = None
        return await self.get_access_token()

    def clear_token(self) -> None:
        self._token = None
        self._refresh_task = None

    async def _authenticate(self) -> AccessToken:
        if not self._consumer_key or not self._consumer_secret:
            raise SGISAuthError("SGIS credentials not configured (SGIS_CONSUMER_KEY / SGIS_CONSUMER_SECRET)")

        try:
            resp = await self._http.get(
                self._auth_url,
                params={
                    "consumer_key": self._consumer_key,
                    "consumer_secret": self._consumer_secret,
                },
            )
        except httpx.HTTPError as exc:
            logger.error("SGIS authentication request failed: %s", exc)
            raise SGISAuthError(f"SGIS authentication request failed: {exc}") from exc

        if not resp.is_success:
            logger.error("SGIS authentication failed with HTTP %s", resp.status_code)
            raise SGISAuthError(f"SGIS authentication failed: HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise SGISAuthError("SGIS authentication returned a non-JSON body") from exc

        result = data.get("result") if isinstance(data, dict) else None
        access_token = result.get("accessToken") if isinstance(result, dict) else None
        access_timeout = result.get("accessTimeout") if isinstance(result, dict) else None
        if not access_token or not access_timeout:
            err_msg = data.get("errMsg") if isinstance(data, dict) else None
            logger.error("SGIS authentication returned an invalid payload: %s", err_msg)
            raise SGISAuthError(f"Invalid response from SGIS authentication: {err_msg or 'missing token'}")

        try:
            expires_at = from_epoch_seconds(access_timeout)
        except (TypeError, ValueError, OverflowError) as exc:
            raise SGISAuthError(f"Invalid accessTimeout from SGIS: {access_timeout!r}") from exc

        logger.info("SGIS access token acquired, expires at %s", expires_at.isoformat())
        return AccessToken(access_token=access_token, expires_at=expires_at)


class TokenState(str, Enum):
    NOT_AUTHENTICATED = "not_authenticated"
    EXPIRED = "expired"
    EXPIRING_SOON = "expiring_soon"
    VALID = "valid"


@dataclass(frozen=True)
class TokenStatus:
    state: TokenState
    message: str
    expires_at: Optional[datetime] = None


def check_token_status(manager: SGISTokenManager) -> TokenStatus:
    token = manager.token_info
    if token is None:
        return TokenStatus(TokenState.NOT_AUTHENTICATED, "SGIS token not found")

    remaining = token.expires_at - manager.now()
    if remaining <= timedelta(0):
        return TokenStatus(TokenState.EXPIRED, "SGIS token has expired", token.expires_at)

    minutes = int(remaining.total_seconds() // 60)
    if remaining < manager.expiry_buffer:
        return TokenStatus(
            TokenState.EXPIRING_SOON,
            f"SGIS token expires in {minutes} minutes",
            token.expires_at,
        )
    return TokenStatus(TokenState.VALID, f"SGIS token is valid for {minutes} minutes", token.expires_at)


async def refresh_token_if_needed(manager: SGISTokenManager) -> dict:
    status = check_token_status(manager)
    if status.state in (TokenState.EXPIRED, TokenState.EXPIRING_SOON):
        await manager.refresh_token()
        return {"refreshed": True, "message": "SGIS token has been refreshed"}
    return {"refreshed": False, "message": status.message}
