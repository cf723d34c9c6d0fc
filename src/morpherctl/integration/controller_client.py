"""
Controller HTTP Client

Minimal client for the morpher controller: ping and info.
"""
import asyncio
from datetime import timedelta
from typing import Any, Dict, Optional

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..common.config import ConfigManager
from ..common.exceptions import (
    ConfigurationError,
    ControllerConnectionError,
    ControllerResponseError,
    ControllerTimeoutError,
)

logger = structlog.get_logger()

DEFAULT_CONTROLLER_URL = "http://localhost:9000"
DEFAULT_TIMEOUT = timedelta(seconds=30)


class PingResponse(BaseModel):
    """Outcome of GET /ping"""

    status_code: int
    response_time: Optional[str] = None
    success: bool


class OSInfo(BaseModel):
    """Operating system details reported by the controller"""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(default="", alias="Name")
    platform_name: str = Field(default="", alias="PlatformName")
    platform_version: str = Field(default="", alias="PlatformVersion")
    kernel_version: str = Field(default="", alias="KernelVersion")


class InfoResult(BaseModel):
    """Body of a successful GET /info"""

    model_config = ConfigDict(populate_by_name=True)

    os: OSInfo = Field(default_factory=OSInfo, alias="OS")
    go_version: str = Field(default="", alias="GoVersion")
    uptime: str = Field(default="", alias="UpTime")


class InfoResponse(BaseModel):
    """Outcome of GET /info"""

    status_code: int
    success: bool
    result: Optional[InfoResult] = None


class ControllerClient:
    """
    Async client for the controller API.

    Every request carries the client timeout; callers that need an overall
    deadline wrap calls with `with_deadline`.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_CONTROLLER_URL,
        timeout: timedelta = DEFAULT_TIMEOUT,
        token: str = "",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if timeout <= timedelta(0):
            timeout = DEFAULT_TIMEOUT
        self.base_url = (base_url or DEFAULT_CONTROLLER_URL).rstrip("/")
        self.timeout = timeout
        self.token = token
        self._transport = transport

    @classmethod
    def from_config(cls, config: ConfigManager, transport: Optional[httpx.AsyncBaseTransport] = None) -> "ControllerClient":
        """
        Build a client from the config store.

        A missing or unreadable config file, or invalid values, fall back to
        the defaults instead of failing.
        """
        base_url = _config_or_default(config.get_string, "controller.url", "")
        token = _config_or_default(config.get_string, "auth.token", "")
        timeout = _config_or_default(config.get_duration, "controller.timeout", DEFAULT_TIMEOUT)
        return cls(base_url=base_url or DEFAULT_CONTROLLER_URL, timeout=timeout, token=token, transport=transport)

    def _headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    def _client(self) -> httpx.AsyncClient:
        kwargs: Dict[str, Any] = {
            "base_url": self.base_url,
            "timeout": self.timeout.total_seconds(),
            "headers": self._headers(),
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return httpx.AsyncClient(**kwargs)

    async def _get(self, path: str) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.get(path)
                await response.aread()
                return response
        except httpx.TimeoutException as e:
            raise ControllerTimeoutError(f"request to {self.base_url}{path} timed out") from e
        except httpx.HTTPError as e:
            raise ControllerConnectionError(f"failed to reach controller at {self.base_url}{path}: {e}") from e

    async def ping(self) -> PingResponse:
        """Send GET /ping"""
        response = await self._get("/ping")
        logger.debug("Controller ping", status_code=response.status_code)
        return PingResponse(
            status_code=response.status_code,
            response_time=response.headers.get("X-Response-Time") or None,
            success=response.status_code == httpx.codes.OK,
        )

    async def get_info(self) -> InfoResponse:
        """
        Send GET /info

        Raises:
            ControllerResponseError: If a 200 response body cannot be decoded
        """
        response = await self._get("/info")
        info = InfoResponse(status_code=response.status_code, success=response.status_code == httpx.codes.OK)
        if not info.success:
            return info

        try:
            info.result = InfoResult.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ControllerResponseError(
                f"failed to parse controller info response: {e}", status_code=response.status_code
            ) from e
        return info

    async def is_healthy(self) -> bool:
        return (await self.ping()).success

    async def with_deadline(self, coro):
        """Await a client call, giving up once the client timeout has elapsed"""
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout.total_seconds())
        except asyncio.TimeoutError as e:
            raise ControllerTimeoutError(f"controller at {self.base_url} did not answer within {self.timeout}") from e


def _config_or_default(getter, key: str, default):
    try:
        value = getter(key)
    except ConfigurationError as e:
        logger.debug("Using default controller setting", key=key, reason=str(e))
        return default
    return value if value else default
