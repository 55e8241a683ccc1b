"""
Pydantic models for UI Blocks.

All data shapes defined here. No imports from db, repos, or routes.
"""

from backend.models.block import (
    Block,
    BlockExample,
    BlockFilters,
    BlockOptions,
    CreateBlockRequest,
    PropsContract,
    RenderRequest,
    UpdateBlockRequest,
)

__all__ = [
    "Block",
    "BlockExample",
    "PropsContract",
    "CreateBlockRequest",
    "UpdateBlockRequest",
    "BlockFilters",
    "BlockOptions",
    "RenderRequest",
]
