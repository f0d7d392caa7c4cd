"""Minimal UniFi network controller client using httpx."""

import asyncio
import logging
import time
import uuid
from typing import Any, Dict, List, Optional

import httpx

from bmc_rpc.exceptions.power import DeviceNotFoundException, UpstreamException
from bmc_rpc.models.power import Device

log = logging.getLogger("bmc_rpc.unifi")

_UNIFI_OS_PREFIX = "/proxy/network"


class UnifiClient:
    """
    Async client for the UniFi controller REST API.

    Authentication is lazy: the first request logs in, detecting whether the
    endpoint is a UniFi OS console (API proxied under /proxy/network) or a
    classic controller. The session cookie lives in the httpx cookie jar; the
    CSRF token UniFi OS hands out is replayed on every request.
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        *,
        insecure: bool = True,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._username = username
        self._password = password
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            verify=not insecure,
            transport=transport,
        )
        self._api_prefix: Optional[str] = None
        self._csrf_token: Optional[str] = None
        self._login_lock = asyncio.Lock()

    @property
    def logged_in(self) -> bool:
        return self._api_prefix is not None

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "UnifiClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # ---- authentication ----
    async def login(self) -> None:
        async with self._login_lock:
            await self._login()

    async def _login(self) -> None:
        try:
            probe = await self._client.get("/")
            unifi_os = probe.status_code == 200
            login_path = "/api/auth/login" if unifi_os else "/api/login"
            resp = await self._client.post(
                login_path,
                json={"username": self._username, "password": self._password, "remember": True},
            )
        except httpx.TimeoutException as e:
            raise UpstreamException(f"login to {self.base_url} timed out") from e
        except httpx.HTTPError as e:
            raise UpstreamException(f"cannot connect to controller at {self.base_url}: {e}") from e

        if resp.status_code >= 400:
            log.error("Controller login failed: HTTP %s", resp.status_code)
            raise UpstreamException(
                f"login to {self.base_url} failed with HTTP {resp.status_code}",
                status=resp.status_code,
            )

        self._csrf_token = resp.headers.get("X-CSRF-Token")
        self._api_prefix = _UNIFI_OS_PREFIX if unifi_os else ""
        log.info("Logged in to %s (%s)", self.base_url, "UniFi OS" if unifi_os else "classic controller")

    async def _ensure_login(self) -> None:
        if self._api_prefix is None:
            async with self._login_lock:
                if self._api_prefix is None:
                    await self._login()

    # ---- transport ----
    async def _request(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        *,
        relogin: bool = True,
    ) -> List[Any]:
        """Issue an API call and return its `data` list."""
        await self._ensure_login()

        request_id = str(uuid.uuid4())[:8]
        url = f"{self._api_prefix}{path}"
        headers = {"X-CSRF-Token": self._csrf_token} if self._csrf_token else {}

        log.debug("[%s] -> %s %s", request_id, method, url)
        start_time = time.monotonic()
        try:
            resp = await self._client.request(method, url, json=json_data, headers=headers)
        except httpx.TimeoutException as e:
            log.error("[%s] %s %s timed out", request_id, method, url)
            raise UpstreamException(f"{method} {url} timed out") from e
        except httpx.HTTPError as e:
            log.error("[%s] %s %s failed: %s", request_id, method, url, e)
            raise UpstreamException(f"{method} {url} failed: {e}") from e
        log.debug("[%s] <- %s (%.2fs)", request_id, resp.status_code, time.monotonic() - start_time)

        if resp.status_code == 401 and relogin:
            log.info("Controller session expired, logging in again")
            self._api_prefix = None
            return await self._request(method, path, json_data, relogin=False)

        updated = resp.headers.get("X-Updated-CSRF-Token")
        if updated:
            self._csrf_token = updated

        body: Any = None
        if resp.content:
            try:
                body = resp.json()
            except ValueError:
                body = None

        meta = body.get("meta", {}) if isinstance(body, dict) else {}
        if resp.status_code >= 400 or meta.get("rc") == "error":
            msg = meta.get("msg") or resp.text[:200] or "no error details"
            raise UpstreamException(
                f"{method} {url}: HTTP {resp.status_code}: {msg}",
                status=resp.status_code,
            )

        if not isinstance(body, dict):
            raise UpstreamException(f"{method} {url}: unexpected response body")
        return body.get("data") or []

    # ---- devices ----
    async def get_device_by_mac(self, site: str, mac: str) -> Device:
        mac = mac.lower()
        data = await self._request("GET", f"/api/s/{site}/stat/device/{mac}")
        if not data:
            raise DeviceNotFoundException(mac, {"site": site})
        return Device.model_validate(data[0])

    async def update_device(self, site: str, device: Device) -> Device:
        data = await self._request("PUT", f"/api/s/{site}/rest/device/{device.id}", device.to_payload())
        if data:
            return Device.model_validate(data[0])
        return device
