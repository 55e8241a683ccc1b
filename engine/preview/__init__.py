"""
UI Blocks — the component preview pipeline.

Stored TSX source → live, rendered component, with a static registry of
pre-built blocks in front:

  names       — record → resolved symbol name
  registry    — static name → component map (Button, Card, HeroSection)
  transpiler  — TSX → Python module source (tree-sitter)
  sandbox     — evaluate with module/exports/require only, extract component
  renderer    — ComponentRenderer: registry, compile effect, render boundary
  page        — full HTML document around a render result
"""

from engine.preview.errors import (
    EvaluationError,
    ModuleNotAllowed,
    NameUnresolvedError,
    PreviewError,
    RenderError,
    TranspileError,
)
from engine.preview.names import resolve_symbol
from engine.preview.page import render_preview_page
from engine.preview.registry import STATIC_REGISTRY, ComponentRegistry
from engine.preview.renderer import ComponentRenderer, merge_props
from engine.preview.sandbox import compile_component, evaluate, extract_component
from engine.preview.transpiler import transpile
from engine.preview.types import CompiledComponent, PreviewRecord, RenderResult

__all__ = [
    "resolve_symbol",
    "STATIC_REGISTRY",
    "ComponentRegistry",
    "transpile",
    "evaluate",
    "extract_component",
    "compile_component",
    "merge_props",
    "ComponentRenderer",
    "render_preview_page",
    "PreviewRecord",
    "CompiledComponent",
    "RenderResult",
    "PreviewError",
    "TranspileError",
    "EvaluationError",
    "ModuleNotAllowed",
    "NameUnresolvedError",
    "RenderError",
]
