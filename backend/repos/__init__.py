"""
Repository layer for UI Blocks.

All SQL lives here and ONLY here. No database access outside this module.
"""

from backend.repos.block_repo import BlockRepo

__all__ = [
    "BlockRepo",
]
