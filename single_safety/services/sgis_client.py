# single_safety/services/sgis_client.py
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from single_safety.services.sgis_tokens import SGISError, SGISTokenManager

logger = logging.getLogger(__name__)

AUTH_FAILURE_STATUSES = {401, 403}


class SGISRequestError(SGISError):
    def __init__(self, message: str, status_code: Optional[int] = None, err_cd: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.err_cd = err_cd


class SGISClient:
    """
    Thin wrapper that stamps `accessToken` onto SGIS OpenAPI GET requests.

    On HTTP 401/403 the token is refreshed and the request retried, at most
    `auth_retries` times (1 by default). Every other failure is raised as
    SGISRequestError straight away.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        token_manager: SGISTokenManager,
        base_url: str,
        auth_retries: int = 1,
    ) -> None:
        self._http = http
        self.token_manager = token_manager
        self.base_url = base_url.rstrip("/")
        self.auth_retries = auth_retries

    def url_for(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def get_json(self, path: str, params: Optional[dict[str, str]] = None) -> dict[str, Any]:
        url = self.url_for(path)
        access_token = await self.token_manager.get_access_token()

        attempt = 0
        while True:
            resp = await self._send(url, params, access_token)
            if resp.status_code in AUTH_FAILURE_STATUSES and attempt < self.auth_retries:
                attempt += 1
                logger.warning("SGIS returned %s for %s, refreshing token and retrying", resp.status_code, url)
                access_token = await self.token_manager.refresh_token()
                continue
            break

        if not resp.is_success:
            raise SGISRequestError(
                f"SGIS API error: {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise SGISRequestError("SGIS API returned a non-JSON body", status_code=resp.status_code) from exc

        err_cd = data.get("errCd") if isinstance(data, dict) else None
        if err_cd not in (None, 0, "0"):
            raise SGISRequestError(
                f"SGIS API error {err_cd}: {data.get('errMsg')}",
                status_code=resp.status_code,
                err_cd=err_cd,
            )
        return data

    async def _send(self, url: str, params: Optional[dict[str, str]], access_token: str) -> httpx.Response:
        query = dict(params or {})
        query["accessToken"] = access_token
        try:
            return await self._http.get(url, params=query)
        except httpx.HTTPError as exc:
            raise SGISRequestError(f"SGIS request failed: {exc}") from exc
