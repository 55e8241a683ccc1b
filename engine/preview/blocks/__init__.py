"""
Pre-built blocks. Importing this package fills STATIC_REGISTRY and freezes it.
"""

from engine.preview.blocks.base import Button, Card
from engine.preview.blocks.composite import HeroSection
from engine.preview.registry import STATIC_REGISTRY

STATIC_REGISTRY.freeze()

__all__ = ["Button", "Card", "HeroSection", "STATIC_REGISTRY"]
