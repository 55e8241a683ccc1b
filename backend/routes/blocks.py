"""Block CRUD routes plus server-side render."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query, status

from backend.models.block import (
    Block,
    BlockFilters,
    BlockOptions,
    CreateBlockRequest,
    RenderRequest,
    UpdateBlockRequest,
)
from backend.repos.block_repo import BlockRepo
from engine.preview import ComponentRenderer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/blocks", tags=["blocks"])
block_repo = BlockRepo()


@router.get("", status_code=200)
async def list_blocks(
    component_type: str | None = Query(default=None, alias="componentType"),
    business_type: list[str] = Query(default=[], alias="businessType"),
    style: list[str] = Query(default=[]),
    features: list[str] = Query(default=[]),
    search: str | None = None,
) -> list[Block]:
    """List blocks, optionally filtered. Tag filters accept repeated query params."""
    if component_type not in (None, "", "base", "composite"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid componentType: {component_type}")
    filters = BlockFilters(
        component_type=component_type or None,
        business_type=business_type,
        style=style,
        features=features,
        search=search or None,
    )
    return await block_repo.list(filters)


@router.get("/options", status_code=200)
async def get_options() -> BlockOptions:
    """Dropdown options for the block editor."""
    return BlockOptions()


@router.post("", status_code=201)
async def create_block(req: CreateBlockRequest) -> Block:
    """Create a new block."""
    missing = req.missing_field()
    if missing:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Missing required field: {missing}")
    block = await block_repo.create(req)
    logger.info("Created block %s (%s)", block.id, block.name)
    return block


@router.get("/{block_id}", status_code=200)
async def get_block(block_id: str) -> Block:
    """Get a single block by ID."""
    block = await block_repo.get(block_id)
    if not block:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Component not found")
    return block


@router.put("/{block_id}", status_code=200)
async def update_block(block_id: str, req: UpdateBlockRequest) -> Block:
    """Merge the sent fields into a block."""
    block = await block_repo.update(block_id, req)
    if not block:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Component not found")
    return block


@router.delete("/{block_id}", status_code=200)
async def delete_block(block_id: str) -> dict[str, str]:
    """Permanently delete a block."""
    deleted = await block_repo.delete(block_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Component not found")
    return {"message": "Component deleted successfully"}


@router.post("/{block_id}/render", status_code=200)
async def render_block(block_id: str, req: RenderRequest | None = None) -> dict[str, Any]:
    """
    Server-render a block with optional override props.

    Always 200 for a known block: compile and render failures come back as
    status "unavailable" or "error" with the inline notice HTML.
    """
    block = await block_repo.get(block_id)
    if not block:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Component not found")

    renderer = ComponentRenderer()
    try:
        result = await renderer.render_settled(block.to_preview_record(), req.props if req else None)
    finally:
        renderer.unmount()
    return result.to_dict()
