"""Integration tests for block CRUD, render, and preview routes (repository mocked)."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest

from backend.models.block import BUSINESS_TYPES, BlockFilters
from backend.routes import blocks as block_routes
from backend.routes import preview as preview_routes

pytestmark = pytest.mark.asyncio


# ── block CRUD routes ───────────────────────────────────────────────────────


class TestBlockRoutes:
    """Tests for /api/blocks endpoints."""

    async def test_list_blocks(self, async_client, block):
        """GET /api/blocks → 200 camelCase list."""
        with patch.object(block_routes.block_repo, "list", AsyncMock(return_value=[block])) as listing:
            res = await async_client.get("/api/blocks")
        assert res.status_code == 200
        data = res.json()
        assert data[0]["id"] == block.id
        assert data[0]["sourceCode"] == block.source_code
        assert data[0]["defaultProps"] == {"label": "Default"}
        assert listing.await_args.args[0] == BlockFilters()

    async def test_list_blocks_filters(self, async_client):
        """Repeated tag params and search reach the repository."""
        with patch.object(block_routes.block_repo, "list", AsyncMock(return_value=[])) as listing:
            res = await async_client.get(
                "/api/blocks",
                params=[
                    ("componentType", "composite"),
                    ("businessType", "Services"),
                    ("businessType", "Portfolio"),
                    ("features", "Contact Form"),
                    ("search", "hero"),
                ],
            )
        assert res.status_code == 200
        filters = listing.await_args.args[0]
        assert filters.component_type == "composite"
        assert filters.business_type == ["Services", "Portfolio"]
        assert filters.features == ["Contact Form"]
        assert filters.style == []
        assert filters.search == "hero"

    async def test_list_blocks_invalid_component_type(self, async_client):
        res = await async_client.get("/api/blocks", params={"componentType": "widget"})
        assert res.status_code == 400

    async def test_options(self, async_client):
        """GET /api/blocks/options → dropdown lists."""
        res = await async_client.get("/api/blocks/options")
        assert res.status_code == 200
        data = res.json()
        assert data["businessTypes"] == BUSINESS_TYPES
        assert "Bold & Creative" in data["styles"]
        assert "Booking System" in data["features"]

    async def test_create_block(self, async_client, block):
        """POST /api/blocks → 201 with the stored record."""
        payload = {
            "name": "Widget",
            "description": "A small widget",
            "componentType": "base",
            "sourceCode": block.source_code,
            "importStatement": "import Widget from './Widget'",
        }
        with patch.object(block_routes.block_repo, "create", AsyncMock(return_value=block)) as create:
            res = await async_client.post("/api/blocks", json=payload)
        assert res.status_code == 201
        assert res.json()["id"] == block.id
        req = create.await_args.args[0]
        assert req.import_statement == "import Widget from './Widget'"

    async def test_create_block_missing_field(self, async_client):
        """POST /api/blocks without sourceCode → 400 naming the field."""
        payload = {"name": "Widget", "description": "d", "componentType": "base", "importStatement": "x"}
        res = await async_client.post("/api/blocks", json=payload)
        assert res.status_code == 400
        assert res.json()["detail"] == "Missing required field: sourceCode"

    async def test_create_block_rejects_server_fields(self, async_client):
        """id and timestamps are assigned by the repository, not the client."""
        res = await async_client.post("/api/blocks", json={"id": "mine", "name": "x"})
        assert res.status_code == 422

    async def test_get_block(self, async_client, block):
        with patch.object(block_routes.block_repo, "get", AsyncMock(return_value=block)):
            res = await async_client.get(f"/api/blocks/{block.id}")
        assert res.status_code == 200
        assert res.json()["name"] == "Widget"
        assert res.json()["useCase"] == "ui-blocks"

    async def test_get_block_not_found(self, async_client):
        with patch.object(block_routes.block_repo, "get", AsyncMock(return_value=None)):
            res = await async_client.get("/api/blocks/component-missing")
        assert res.status_code == 404

    async def test_update_block(self, async_client, block_factory):
        updated = block_factory(name="Renamed")
        with patch.object(block_routes.block_repo, "update", AsyncMock(return_value=updated)) as update:
            res = await async_client.put(f"/api/blocks/{updated.id}", json={"name": "Renamed"})
        assert res.status_code == 200
        assert res.json()["name"] == "Renamed"
        req = update.await_args.args[1]
        assert req.model_dump(exclude_unset=True) == {"name": "Renamed"}

    async def test_update_block_not_found(self, async_client):
        with patch.object(block_routes.block_repo, "update", AsyncMock(return_value=None)):
            res = await async_client.put("/api/blocks/component-missing", json={"name": "x"})
        assert res.status_code == 404

    async def test_delete_block(self, async_client, block):
        with patch.object(block_routes.block_repo, "delete", AsyncMock(return_value=True)):
            res = await async_client.delete(f"/api/blocks/{block.id}")
        assert res.status_code == 200
        assert res.json() == {"message": "Component deleted successfully"}

    async def test_delete_block_not_found(self, async_client):
        with patch.object(block_routes.block_repo, "delete", AsyncMock(return_value=False)):
            res = await async_client.delete("/api/blocks/component-missing")
        assert res.status_code == 404

    async def test_unexpected_failure_is_500(self, async_client):
        with patch.object(block_routes.block_repo, "list", AsyncMock(side_effect=RuntimeError("db down"))):
            res = await async_client.get("/api/blocks")
        assert res.status_code == 500
        assert res.json() == {"detail": "db down"}


# ── render route ────────────────────────────────────────────────────────────


class TestRenderRoute:
    """Tests for POST /api/blocks/{id}/render."""

    async def test_render_dynamic_block(self, async_client, block):
        with patch.object(block_routes.block_repo, "get", AsyncMock(return_value=block)):
            res = await async_client.post(f"/api/blocks/{block.id}/render", json={"props": {"label": "Hi"}})
        assert res.status_code == 200
        data = res.json()
        assert data["status"] == "rendered"
        assert data["origin"] == "dynamic"
        assert data["html"] == "<div>Hi</div>"
        assert data["props"] == {"label": "Hi"}

    async def test_render_uses_default_props(self, async_client, block):
        with patch.object(block_routes.block_repo, "get", AsyncMock(return_value=block)):
            res = await async_client.post(f"/api/blocks/{block.id}/render")
        assert res.json()["html"] == "<div>Default</div>"

    async def test_render_static_block(self, async_client, block_factory):
        button = block_factory(name="Button", importStatement="import Button from './Button'", sourceCode="")
        with patch.object(block_routes.block_repo, "get", AsyncMock(return_value=button)):
            res = await async_client.post(f"/api/blocks/{button.id}/render", json={"props": {"label": "Go"}})
        data = res.json()
        assert data["origin"] == "static"
        assert data["html"].endswith(">Go</button>")

    async def test_render_broken_source_is_still_200(self, async_client, block_factory):
        broken = block_factory(sourceCode="function( broken {")
        with patch.object(block_routes.block_repo, "get", AsyncMock(return_value=broken)):
            res = await async_client.post(f"/api/blocks/{broken.id}/render")
        assert res.status_code == 200
        assert res.json()["status"] == "unavailable"
        assert "unavailable." in res.json()["html"]

    async def test_render_not_found(self, async_client):
        with patch.object(block_routes.block_repo, "get", AsyncMock(return_value=None)):
            res = await async_client.post("/api/blocks/component-missing/render")
        assert res.status_code == 404


# ── preview page ────────────────────────────────────────────────────────────


class TestPreviewPage:
    """Tests for GET /preview/{id}."""

    async def test_preview_page(self, async_client, block):
        with patch.object(preview_routes.block_repo, "get", AsyncMock(return_value=block)):
            res = await async_client.get(f"/preview/{block.id}", params={"props": json.dumps({"label": "Hey"})})
        assert res.status_code == 200
        assert res.headers["content-type"].startswith("text/html")
        assert "<div>Hey</div>" in res.text
        assert "PREVIEW" in res.text
        assert 'data-status="rendered"' in res.text

    async def test_preview_props_cannot_inject_attributes(self, async_client, block_factory):
        spreading = block_factory(sourceCode="export default function Widget(props){ return <div {...props}>x</div>; }")
        props = {'x onmouseover="alert(1)" y': 1}
        with patch.object(preview_routes.block_repo, "get", AsyncMock(return_value=spreading)):
            res = await async_client.get(f"/preview/{spreading.id}", params={"props": json.dumps(props)})
        assert res.status_code == 200
        assert '<div label="Default">x</div>' in res.text
        assert 'onmouseover="alert(1)"' not in res.text

    async def test_preview_invalid_props(self, async_client):
        res = await async_client.get("/preview/component-x", params={"props": "{not json"})
        assert res.status_code == 400
        assert res.json()["detail"].startswith("Invalid props")

    async def test_preview_props_must_be_object(self, async_client):
        res = await async_client.get("/preview/component-x", params={"props": "[1, 2]"})
        assert res.status_code == 400

    async def test_preview_not_found(self, async_client):
        with patch.object(preview_routes.block_repo, "get", AsyncMock(return_value=None)):
            res = await async_client.get("/preview/component-missing")
        assert res.status_code == 404


async def test_health(async_client):
    res = await async_client.get("/health")
    assert res.json() == {"status": "ok"}
