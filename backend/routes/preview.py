"""Standalone preview page for a stored block."""

from __future__ import annotations

import json

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import HTMLResponse

from backend.repos.block_repo import BlockRepo
from engine.preview import ComponentRenderer, render_preview_page

router = APIRouter(tags=["preview"])
block_repo = BlockRepo()


def parse_props(raw: str | None) -> dict | None:
    """Decode the ?props= query value. Must be a JSON object."""
    if not raw:
        return None
    try:
        props = json.loads(raw)
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid props: {e.msg}") from e
    if not isinstance(props, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid props: expected a JSON object")
    return props


@router.get("/preview/{block_id}", response_class=HTMLResponse)
async def preview_block(block_id: str, props: str | None = None) -> HTMLResponse:
    """Render a block into a full HTML page (Tailwind CDN, PREVIEW card)."""
    overrides = parse_props(props)
    block = await block_repo.get(block_id)
    if not block:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Component not found")

    renderer = ComponentRenderer()
    try:
        result = await renderer.render_settled(block.to_preview_record(), overrides)
    finally:
        renderer.unmount()

    html = render_preview_page(result, title=block.name, description=block.description)
    return HTMLResponse(content=html)
