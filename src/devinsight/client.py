"""HTTP client for a running DevInsight server."""

from __future__ import annotations

from typing import Any

import httpx

DEFAULT_SERVER_URL = "http://127.0.0.1:3001"
REQUEST_TIMEOUT = 60


class ClientError(Exception):
    """Error communicating with the DevInsight server."""


class DevInsightClient:
    """Client for the tool server REST API."""

    def __init__(self, base_url: str = DEFAULT_SERVER_URL, timeout: float = REQUEST_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> DevInsightClient:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def is_server_running(self) -> bool:
        """Check if the server answers its health probe."""
        try:
            resp = self._client.get(f"{self.base_url}/health", timeout=5)
            return resp.status_code == 200 and resp.json().get("status") == "ok"
        except (httpx.ConnectError, httpx.TimeoutException, ValueError):
            return False

    def list_tools(self) -> list[dict[str, Any]]:
        return self._request("GET", "/api/tools").get("tools", [])

    def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a tool remotely. Returns the tool's report dict."""
        return self._request("POST", f"/api/tools/{name}", json=arguments or {}).get("result", {})

    def _request(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        try:
            resp = self._client.request(method, f"{self.base_url}{path}", **kwargs)
        except httpx.TimeoutException:
            raise ClientError(f"Request to {path} timed out")
        except httpx.ConnectError:
            raise ClientError(
                f"Cannot connect to DevInsight server at {self.base_url}. Is it running? Try: devinsight serve"
            )
        try:
            data = resp.json()
        except ValueError:
            raise ClientError(f"Server returned {resp.status_code}: {resp.text[:200]}")
        if resp.status_code != 200:
            raise ClientError(f"Server returned {resp.status_code}: {data.get('error', resp.text[:200])}")
        return data
