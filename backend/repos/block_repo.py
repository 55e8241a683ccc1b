"""Repository for block operations."""

from __future__ import annotations

import secrets
import time
from datetime import UTC, datetime
from typing import Any

import asyncpg

from backend.config import settings
from backend.db import system_conn
from backend.models.block import Block, BlockFilters, CreateBlockRequest, UpdateBlockRequest

# Columns kept outside the JSONB document
_ROW_FIELDS = ("id", "useCase", "createdAt", "updatedAt")


def new_block_id() -> str:
    """component-<epoch ms>-<6 hex>"""
    return f"component-{int(time.time() * 1000)}-{secrets.token_hex(3)}"


def _row_to_block(row: asyncpg.Record) -> Block:
    """Convert a database row to a Block model."""
    return Block.model_validate(
        {
            **row["doc"],
            "id": row["id"],
            "useCase": row["use_case"],
            "createdAt": row["created_at"],
            "updatedAt": row["updated_at"],
        }
    )


def _doc(data: dict[str, Any]) -> dict[str, Any]:
    """The JSONB part of a camelCase record."""
    return {k: v for k, v in data.items() if k not in _ROW_FIELDS}


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_list_query(use_case: str, filters: BlockFilters) -> tuple[str, list[Any]]:
    """
    SQL and arguments for a filtered listing.

    componentType is an equality match, the tag filters match when the
    record shares any tag with the filter, and search is a case-insensitive
    substring match on name or description.
    """
    conditions = ["use_case = $1"]
    args: list[Any] = [use_case]

    def bind(value: Any) -> str:
        args.append(value)
        return f"${len(args)}"

    if filters.component_type:
        conditions.append(f"doc->>'componentType' = {bind(filters.component_type)}")
    for key, values in (
        ("businessType", filters.business_type),
        ("style", filters.style),
        ("features", filters.features),
    ):
        if values:
            conditions.append(f"doc->'{key}' ?| {bind(list(values))}::text[]")
    if filters.search:
        pattern = bind(f"%{_escape_like(filters.search)}%")
        conditions.append(f"(doc->>'name' ILIKE {pattern} OR doc->>'description' ILIKE {pattern})")

    sql = f"SELECT * FROM blocks WHERE {' AND '.join(conditions)} ORDER BY created_at DESC"  # nosec B608
    return sql, args


class BlockRepo:
    """All block-related database operations."""

    def __init__(self, use_case: str | None = None) -> None:
        self.use_case = use_case or settings.BLOCKS_USE_CASE

    async def list(self, filters: BlockFilters | None = None) -> list[Block]:
        """
        List blocks, newest first.

        Args:
            filters: Optional BlockFilters

        Returns:
            List of Block objects ordered by created_at DESC
        """
        sql, args = build_list_query(self.use_case, filters or BlockFilters())
        async with system_conn() as conn:
            rows = await conn.fetch(sql, *args)
            return [_row_to_block(row) for row in rows]

    async def get(self, block_id: str) -> Block | None:
        """
        Get a block by ID.

        Returns:
            Block if found, None otherwise
        """
        async with system_conn() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM blocks WHERE id = $1 AND use_case = $2",
                block_id,
                self.use_case,
            )
            return _row_to_block(row) if row else None

    async def create(self, req: CreateBlockRequest) -> Block:
        """
        Create a new block. id, useCase and timestamps are assigned here.

        Args:
            req: CreateBlockRequest with block details

        Returns:
            Newly created Block
        """
        data = req.model_dump(by_alias=True)
        if data.get("defaultProps") is None:
            data["defaultProps"] = {}
        now = datetime.now(UTC)

        async with system_conn() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO blocks (id, use_case, doc, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $4)
                RETURNING *
                """,
                new_block_id(),
                self.use_case,
                _doc(data),
                now,
            )
            return _row_to_block(row)

    async def update(self, block_id: str, req: UpdateBlockRequest) -> Block | None:
        """
        Merge the sent fields over the stored record.

        Returns:
            Updated Block if found, None otherwise
        """
        sent = req.model_dump(by_alias=True, exclude_unset=True)
        changes = {k: v for k, v in sent.items() if v is not None}
        # An explicit null clears defaultProps; the stored record keeps a mapping
        if "defaultProps" in sent and sent["defaultProps"] is None:
            changes["defaultProps"] = {}

        async with system_conn() as conn:
            row = await conn.fetchrow(
                """
                UPDATE blocks
                SET doc = doc || $3::jsonb, updated_at = now()
                WHERE id = $1 AND use_case = $2
                RETURNING *
                """,
                block_id,
                self.use_case,
                _doc(changes),
            )
            return _row_to_block(row) if row else None

    async def delete(self, block_id: str) -> bool:
        """
        Delete a block.

        Returns:
            True if deleted, False if not found
        """
        async with system_conn() as conn:
            result = await conn.execute(
                "DELETE FROM blocks WHERE id = $1 AND use_case = $2",
                block_id,
                self.use_case,
            )
            return result == "DELETE 1"
