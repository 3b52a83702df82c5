"""
REST client for the Blog House API.

Every endpoint answers with a `{success, data|message, ...}` envelope.
ApiClient unwraps it and raises ApiError for network failures, non-2xx
responses and `success: false` answers, carrying the server's message
verbatim when one is present.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ConfigDict

from bloghouse.auth import SessionContext

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A failed API call. `message` is the server's message when it sent one."""

    def __init__(
        self,
        message: Optional[str],
        status_code: Optional[int] = None,
        payload: Optional[dict] = None,
    ):
        super().__init__(message or "API request failed")
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}

    @property
    def is_network_error(self) -> bool:
        return self.status_code is None


class ApiResponse(BaseModel):
    """Parsed response envelope. Extra top-level keys are kept."""
    model_config = ConfigDict(extra="allow")

    success: bool = True
    data: Any = None
    message: Optional[str] = None

    def get(self, key: str, default: Any = None) -> Any:
        """Top-level envelope value (e.g. `vpsList`, `exists`)."""
        if key in ("success", "data", "message"):
            return getattr(self, key)
        return (self.model_extra or {}).get(key, default)


def _error_message(body: Any) -> Optional[str]:
    if isinstance(body, dict):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and isinstance(value.get("message"), str):
                return value["message"]
    return None


class ApiClient:
    """
    Async client bound to one SessionContext.

    Usage:
        async with ApiClient("http://localhost:3001", session) as api:
            response = await api.post("/api/vps/simple-setup", json={...})
    """

    def __init__(
        self,
        base_url: str,
        session: SessionContext,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> ApiResponse:
        """Send one request and unwrap the envelope."""
        logger.debug(f"API {method} {path}")
        try:
            response = await self._client.request(
                method,
                path,
                json=json,
                params=params,
                headers=self.session.authorization_header(),
            )
        except httpx.RequestError as e:
            logger.warning(f"API {method} {path} failed: {e}")
            raise ApiError(None) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            logger.warning(f"API {method} {path} -> HTTP {response.status_code}")
            raise ApiError(
                _error_message(body),
                status_code=response.status_code,
                payload=body if isinstance(body, dict) else None,
            )

        if not isinstance(body, dict):
            raise ApiError(None, status_code=response.status_code)

        envelope = ApiResponse.model_validate(body)
        if not envelope.success:
            raise ApiError(_error_message(body), status_code=response.status_code, payload=body)
        return envelope

    async def get(self, path: str, params: Optional[dict] = None) -> ApiResponse:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Optional[dict] = None) -> ApiResponse:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Optional[dict] = None) -> ApiResponse:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> ApiResponse:
        return await self.request("DELETE", path)
