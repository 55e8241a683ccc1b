"""
Preview pipeline — the render entry point.

One ComponentRenderer per mounted view. render(record, override_props)
resolves the symbol, renders straight from the static registry when it can,
and otherwise compiles the record's source in an effect scheduled after the
current pass. The compiled component lives in the renderer's single slot,
keyed by (source_code, symbol), until the source or symbol changes or the
view unmounts.

Every failure ends here as a RenderResult. Nothing raised by component code
escapes render().
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

import engine.preview.blocks  # noqa: F401  (fills STATIC_REGISTRY)
from engine.preview.elements import h, render_to_string
from engine.preview.errors import EvaluationError, NameUnresolvedError, PreviewError, RenderError
from engine.preview.names import resolve_symbol
from engine.preview.registry import STATIC_REGISTRY, ComponentRegistry
from engine.preview.sandbox import compile_component
from engine.preview.types import (
    ERROR,
    ORIGIN_DYNAMIC,
    ORIGIN_STATIC,
    RENDERED,
    RESOLVING,
    UNAVAILABLE,
    CompiledComponent,
    PreviewRecord,
    RenderResult,
)
from engine.preview.values import error_message

logger = logging.getLogger(__name__)

_NOTICE_BOX = "p-4 border border-red-300 bg-red-50 rounded-md"
_NOTICE_TEXT = "text-red-600"


def merge_props(defaults: dict[str, Any] | None, overrides: dict[str, Any] | None) -> dict[str, Any]:
    """Effective props: defaults with every override key replacing or adding. Inputs are not mutated."""
    return {**(defaults or {}), **(overrides or {})}


def notice_html(message: str) -> str:
    """The red inline box used for placeholders and render errors."""
    return render_to_string(h("div", {"className": _NOTICE_BOX}, h("p", {"className": _NOTICE_TEXT}, message)))


def not_found_message(symbol: str) -> str:
    return f'Component "{symbol}" not found in component registry.'


def unavailable_message(symbol: str) -> str:
    return f'Component "{symbol}" unavailable.'


class ComponentRenderer:
    """
    Renders component records for one mounted view.

    Not thread-safe; use from one event loop.
    """

    def __init__(
        self,
        registry: ComponentRegistry | None = None,
        compiler: Callable[[str, str], CompiledComponent] = compile_component,
    ) -> None:
        self._registry = registry if registry is not None else STATIC_REGISTRY
        self._compile = compiler
        self._generation = 0
        self._slot: tuple[tuple[str, str], CompiledComponent | PreviewError] | None = None
        self._scheduled_key: tuple[str, str] | None = None
        self._tasks: set[asyncio.Task] = set()
        self._mounted = True
        self.compile_count = 0

    # -- public --------------------------------------------------------------

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def compiled(self) -> CompiledComponent | None:
        """The component currently held in the slot, if compilation succeeded."""
        if self._slot is not None and isinstance(self._slot[1], CompiledComponent):
            return self._slot[1]
        return None

    def render(self, record: PreviewRecord, override_props: dict[str, Any] | None = None) -> RenderResult:
        if not self._mounted:
            raise RuntimeError("ComponentRenderer.render() called after unmount()")

        symbol = resolve_symbol(record)
        props = merge_props(record.default_props, override_props)

        static = self._registry.lookup(symbol)
        if static is not None:
            return self._render_component(static, symbol, props, ORIGIN_STATIC)

        key = (record.source_code, symbol)
        if self._slot is not None and self._slot[0] == key:
            outcome = self._slot[1]
            if isinstance(outcome, PreviewError):
                return self._unavailable(symbol, props, outcome)
            return self._render_component(outcome.component, symbol, props, ORIGIN_DYNAMIC)

        if self._scheduled_key != key:
            self._schedule(key)

        return RenderResult(
            status=RESOLVING,
            symbol=symbol,
            html=notice_html(not_found_message(symbol)),
            origin=None,
            props=props,
        )

    async def settled(self) -> None:
        """Wait for every scheduled compile effect to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def render_settled(self, record: PreviewRecord, override_props: dict[str, Any] | None = None) -> RenderResult:
        """Render, let a scheduled compile finish, render again if it was pending."""
        result = self.render(record, override_props)
        if result.status != RESOLVING:
            return result
        await self.settled()
        return self.render(record, override_props)

    def unmount(self) -> None:
        """Drop the slot; effects still in flight are ignored when they finish."""
        self._mounted = False
        self._slot = None
        self._scheduled_key = None

    # -- compile effect ------------------------------------------------------

    def _schedule(self, key: tuple[str, str]) -> None:
        self._generation += 1
        generation = self._generation
        self._scheduled_key = key
        self._slot = None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            self._run_effect(generation, key)
            return

        task = loop.create_task(self._effect(generation, key))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _effect(self, generation: int, key: tuple[str, str]) -> None:
        self._run_effect(generation, key)

    def _run_effect(self, generation: int, key: tuple[str, str]) -> None:
        source, symbol = key
        self.compile_count += 1
        outcome: CompiledComponent | PreviewError
        try:
            outcome = self._compile(source, symbol)
        except PreviewError as exc:
            logger.warning("Preview compile failed for '%s' (%s): %s", symbol, exc.kind, exc.message)
            outcome = exc
        except Exception as exc:
            logger.exception("Preview compile crashed for '%s'", symbol)
            outcome = EvaluationError(f"Error evaluating component: {error_message(exc)}", symbol)

        if generation != self._generation or not self._mounted:
            logger.debug("Discarding stale compile result for '%s' (generation %d)", symbol, generation)
            return
        self._slot = (key, outcome)

    # -- render boundary -----------------------------------------------------

    def _render_component(
        self, component: Callable[..., Any], symbol: str, props: dict[str, Any], origin: str
    ) -> RenderResult:
        try:
            html = render_to_string(h(component, dict(props)))
        except Exception as exc:
            message = error_message(exc)
            failure = RenderError(f"Error rendering component: {message}", symbol)
            logger.warning("%s (component '%s')", failure.message, symbol, exc_info=True)
            return RenderResult(
                status=ERROR,
                symbol=symbol,
                html=notice_html(failure.message),
                origin=origin,
                props=props,
                error=message,
            )
        return RenderResult(status=RENDERED, symbol=symbol, html=html, origin=origin, props=props)

    def _unavailable(self, symbol: str, props: dict[str, Any], exc: PreviewError) -> RenderResult:
        if isinstance(exc, NameUnresolvedError):
            text = not_found_message(symbol)
        else:
            text = unavailable_message(symbol)
        return RenderResult(
            status=UNAVAILABLE,
            symbol=symbol,
            html=notice_html(text),
            origin=ORIGIN_DYNAMIC,
            props=props,
            error=exc.message,
        )
