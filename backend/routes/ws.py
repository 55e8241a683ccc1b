"""
WebSocket endpoint for live component previews.

Accepts connections at /ws/preview/{block_id}. One ComponentRenderer per
connection: it lives as long as the socket and is unmounted on disconnect.

Protocol:
  server → {"type": "render", ...RenderResult}   on connect and after every change;
                                                  a second one follows a "resolving" render
  client → {"type": "props", "props": {...}}      replace the override props
  client → {"type": "source", "sourceCode": "…"}  live-edit the source (not saved)
  server → {"type": "error", "message": "…"}      bad message or unknown block
"""

from __future__ import annotations

import dataclasses
import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from backend.models.block import Block
from backend.repos.block_repo import BlockRepo
from engine.preview import ComponentRenderer, PreviewRecord
from engine.preview.types import RESOLVING

logger = logging.getLogger(__name__)

# Close code sent after "Component not found"
CLOSE_NOT_FOUND = 4404

router = APIRouter(tags=["websocket"])
block_repo = BlockRepo()


async def _load_block(block_id: str) -> Block | None:
    """Load a block; a storage failure is logged and treated as not found."""
    try:
        return await block_repo.get(block_id)
    except Exception as e:
        logger.warning("ws: failed to load block_id=%s: %s", block_id, e)
        return None


async def _send(websocket: WebSocket, payload: dict[str, Any]) -> None:
    await websocket.send_text(json.dumps(payload, default=str))


class PreviewSession:
    """The record, override props and renderer behind one socket."""

    def __init__(self, websocket: WebSocket, record: PreviewRecord) -> None:
        self.websocket = websocket
        self.record = record
        self.props: dict[str, Any] = {}
        self.renderer = ComponentRenderer()

    async def push(self) -> None:
        """Render and send; if the compile is pending, send again once it lands."""
        result = self.renderer.render(self.record, self.props)
        await _send(self.websocket, {"type": "render", **result.to_dict()})
        if result.status != RESOLVING:
            return
        await self.renderer.settled()
        result = self.renderer.render(self.record, self.props)
        await _send(self.websocket, {"type": "render", **result.to_dict()})

    async def handle(self, raw: str) -> None:
        try:
            msg = json.loads(raw)
        except json.JSONDecodeError:
            await self.error("Invalid JSON")
            return
        if not isinstance(msg, dict):
            await self.error("Message must be a JSON object")
            return

        msg_type = msg.get("type")
        if msg_type == "props":
            props = msg.get("props")
            if not isinstance(props, dict):
                await self.error("props must be an object")
                return
            self.props = props
        elif msg_type == "source":
            source = msg.get("sourceCode")
            if not isinstance(source, str):
                await self.error("sourceCode must be a string")
                return
            self.record = dataclasses.replace(self.record, source_code=source)
        else:
            await self.error(f"Unknown message type: {msg_type}")
            return

        await self.push()

    async def error(self, message: str) -> None:
        await _send(self.websocket, {"type": "error", "message": message})

    def close(self) -> None:
        self.renderer.unmount()


@router.websocket("/ws/preview/{block_id}")
async def preview_websocket(websocket: WebSocket, block_id: str) -> None:
    await websocket.accept()

    block = await _load_block(block_id)
    if block is None:
        await _send(websocket, {"type": "error", "message": "Component not found"})
        await websocket.close(code=CLOSE_NOT_FOUND)
        return

    logger.info("ws: preview session opened for block_id=%s", block_id)
    session = PreviewSession(websocket, block.to_preview_record())
    try:
        await session.push()
        while True:
            raw = await websocket.receive_text()
            await session.handle(raw)
    except WebSocketDisconnect:
        logger.info("ws: preview session closed for block_id=%s", block_id)
    finally:
        session.close()
