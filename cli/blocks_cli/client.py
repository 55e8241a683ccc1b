"""HTTP client for the UI Blocks API."""
from __future__ import annotations

import os
from typing import Any

import httpx

DEFAULT_API_URL = "http://localhost:8000"


def resolve_api_url(override: str | None = None) -> str:
    """--api-url flag, then BLOCKS_API_URL, then the local dev server."""
    return override or os.environ.get("BLOCKS_API_URL") or DEFAULT_API_URL


class BlocksClient:
    """HTTP client for the UI Blocks API."""

    def __init__(self, api_url: str, transport: httpx.BaseTransport | None = None):
        self.api_url = api_url.rstrip("/")
        self.client = httpx.Client(timeout=30.0, transport=transport)

    def _headers(self) -> dict:
        return {"Content-Type": "application/json", "Accept": "application/json"}

    def get(self, path: str, params: Any = None) -> Any:
        """Make GET request."""
        url = f"{self.api_url}{path}"
        res = self.client.get(url, headers=self._headers(), params=params)
        res.raise_for_status()
        return res.json()

    def post(self, path: str, data: dict) -> Any:
        """Make POST request."""
        url = f"{self.api_url}{path}"
        res = self.client.post(url, json=data, headers=self._headers())
        res.raise_for_status()
        return res.json()

    def list_blocks(
        self,
        component_type: str | None = None,
        business_types: list[str] | None = None,
        styles: list[str] | None = None,
        features: list[str] | None = None,
        search: str | None = None,
    ) -> list[dict]:
        """GET /api/blocks. Tag filters are sent as repeated query params."""
        params: list[tuple[str, str]] = []
        if component_type:
            params.append(("componentType", component_type))
        params.extend(("businessType", value) for value in business_types or [])
        params.extend(("style", value) for value in styles or [])
        params.extend(("features", value) for value in features or [])
        if search:
            params.append(("search", search))
        return self.get("/api/blocks", params=params)

    def get_block(self, block_id: str) -> dict:
        return self.get(f"/api/blocks/{block_id}")

    def render_block(self, block_id: str, props: dict | None = None) -> dict:
        """
        Server-side render.

        Returns {"status": ..., "symbol": ..., "origin": ..., "html": ..., "props": {...}, "error": ...}
        """
        return self.post(f"/api/blocks/{block_id}/render", {"props": props or {}})

    def close(self):
        """Close client."""
        self.client.close()
