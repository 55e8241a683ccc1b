"""
Preview pipeline — shared types.

The core never sees the persisted document. Callers hand it a PreviewRecord
(the fields the pipeline reads) and get a RenderResult back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

# Render statuses
RENDERED = "rendered"
RESOLVING = "resolving"
UNAVAILABLE = "unavailable"
ERROR = "error"

# Where a rendered component came from
ORIGIN_STATIC = "static"
ORIGIN_DYNAMIC = "dynamic"


@dataclass(frozen=True)
class PreviewRecord:
    """The slice of a component record the preview pipeline consumes."""

    name: str
    import_statement: str = ""
    source_code: str = ""
    default_props: dict[str, Any] = field(default_factory=dict)
    id: str | None = None


@dataclass
class CompiledComponent:
    """
    A component evaluated from source text.

    Owned by the ComponentRenderer that compiled it and dropped as soon as
    the source or the resolved symbol changes.
    """

    symbol: str
    component: Callable[..., Any]
    exports: Any
    python_source: str


@dataclass
class RenderResult:
    """Output of one render pass."""

    status: str
    symbol: str
    html: str
    origin: str | None = None
    props: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == RENDERED

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "symbol": self.symbol,
            "origin": self.origin,
            "html": self.html,
            "props": self.props,
            "error": self.error,
        }
