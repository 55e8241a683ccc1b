"""
Preview Renderer -- registry lookup, compile effect, render boundary

ComponentRenderer.render() never raises for anything component code does.
Static registry hits render immediately; everything else is compiled in an
effect that runs after the current pass, so the first render of a dynamic
record shows the not-found placeholder and a later render shows the
component. Stale compiles are discarded.
"""

import pytest

from engine.preview.elements import h
from engine.preview.errors import TranspileError
from engine.preview.registry import ComponentRegistry
from engine.preview.renderer import (
    ComponentRenderer,
    merge_props,
    not_found_message,
    notice_html,
    unavailable_message,
)
from engine.preview.sandbox import compile_component
from engine.preview.types import ERROR, RENDERED, RESOLVING, UNAVAILABLE, PreviewRecord

WIDGET_SOURCE = "export default function Widget(props){ return <div>{props.label}</div>; }"


# ============================================================================
# Fixtures
# ============================================================================


def widget(source: str = WIDGET_SOURCE, **defaults) -> PreviewRecord:
    return PreviewRecord(name="Widget", import_statement="", source_code=source, default_props=defaults)


def refusing_compiler(source, symbol):
    raise AssertionError(f"compiler should not run for '{symbol}'")


class CountingCompiler:
    """Wraps the real compiler and records which sources it saw."""

    def __init__(self):
        self.sources = []

    def __call__(self, source, symbol):
        self.sources.append(source)
        return compile_component(source, symbol)


# ============================================================================
# Prop merging
# ============================================================================


class TestMergeProps:
    def test_overrides_win(self):
        defaults = {"size": "md"}
        overrides = {"size": "lg", "color": "red"}
        assert merge_props(defaults, overrides) == {"size": "lg", "color": "red"}

    def test_inputs_are_not_mutated(self):
        defaults = {"size": "md"}
        overrides = {"color": "red"}
        merge_props(defaults, overrides)
        assert defaults == {"size": "md"}
        assert overrides == {"color": "red"}

    def test_missing_sides(self):
        assert merge_props(None, None) == {}
        assert merge_props({"a": 1}, None) == {"a": 1}


# ============================================================================
# Static registry path
# ============================================================================


class TestStaticPath:
    def test_button_renders_without_compiling(self):
        """Registry hit: empty sourceCode is ignored and nothing is compiled."""
        renderer = ComponentRenderer(compiler=refusing_compiler)
        record = PreviewRecord(name="Button", import_statement="import Button from './Button'", source_code="")

        result = renderer.render(record, {"label": "Go", "size": "lg"})

        assert result.status == RENDERED
        assert result.origin == "static"
        assert result.html.startswith('<button class="font-medium rounded')
        assert "py-3 px-6 text-lg" in result.html
        assert result.html.endswith(">Go</button>")
        assert renderer.compile_count == 0

    def test_custom_registry(self):
        registry = ComponentRegistry()

        @registry.register("Badge")
        def Badge(props=None, *_):
            return h("span", {}, props["text"])

        renderer = ComponentRenderer(registry=registry, compiler=refusing_compiler)
        result = renderer.render(PreviewRecord(name="Badge", default_props={"text": "new"}))
        assert result.html == "<span>new</span>"

    def test_static_component_errors_are_contained(self):
        registry = ComponentRegistry()

        @registry.register("Broken")
        def Broken(props=None, *_):
            raise ValueError("bad prop")

        result = ComponentRenderer(registry=registry).render(PreviewRecord(name="Broken"))
        assert result.status == ERROR
        assert result.error == "bad prop"
        assert result.html == notice_html("Error rendering component: bad prop")


# ============================================================================
# Dynamic path
# ============================================================================


class TestDynamicPath:
    @pytest.mark.asyncio
    async def test_first_render_shows_placeholder(self):
        renderer = ComponentRenderer()

        result = renderer.render(widget(), {"label": "Hi"})

        assert result.status == RESOLVING
        assert result.origin is None
        assert result.html == notice_html(not_found_message("Widget"))
        await renderer.settled()

    @pytest.mark.asyncio
    async def test_widget_renders_after_compile(self):
        renderer = ComponentRenderer()

        result = await renderer.render_settled(widget(), {"label": "Hi"})

        assert result.status == RENDERED
        assert result.origin == "dynamic"
        assert result.html == "<div>Hi</div>"
        assert result.props == {"label": "Hi"}

    @pytest.mark.asyncio
    async def test_default_props_merge_with_overrides(self):
        source = "export default function Widget({ size, color }) { return <p>{size}/{color}</p>; }"
        renderer = ComponentRenderer()

        result = await renderer.render_settled(widget(source, size="md"), {"size": "lg", "color": "red"})

        assert result.html == "<p>lg/red</p>"

    @pytest.mark.asyncio
    async def test_malformed_source_is_unavailable(self):
        renderer = ComponentRenderer()

        result = await renderer.render_settled(widget("function( broken {"))

        assert result.status == UNAVAILABLE
        assert result.html == notice_html(unavailable_message("Widget"))
        assert "syntax error" in result.error
        assert renderer.compiled is None

    @pytest.mark.asyncio
    async def test_empty_source_shows_not_found(self):
        renderer = ComponentRenderer()
        record = PreviewRecord(name="Ghost", import_statement="", source_code="")

        result = await renderer.render_settled(record)

        assert result.status == UNAVAILABLE
        assert result.html == notice_html(not_found_message("Ghost"))

    @pytest.mark.asyncio
    async def test_disallowed_module_is_unavailable(self):
        source = "import x from 'left-pad';\nexport default function Widget() { return <p>{x}</p>; }"
        result = await ComponentRenderer().render_settled(widget(source))

        assert result.status == UNAVAILABLE
        assert "left-pad" in result.error

    @pytest.mark.asyncio
    async def test_compiler_crash_is_unavailable(self):
        def crashing(source, symbol):
            raise KeyError("boom")

        result = await ComponentRenderer(compiler=crashing).render_settled(widget())

        assert result.status == UNAVAILABLE
        assert result.error.startswith("Error evaluating component")


# ============================================================================
# Compile slot lifecycle
# ============================================================================


class TestCompileSlot:
    @pytest.mark.asyncio
    async def test_rerender_reuses_compiled_component(self):
        compiler = CountingCompiler()
        renderer = ComponentRenderer(compiler=compiler)

        await renderer.render_settled(widget(), {"label": "a"})
        compiled = renderer.compiled
        second = renderer.render(widget(), {"label": "b"})

        assert second.html == "<div>b</div>"
        assert renderer.compiled is compiled
        assert renderer.compile_count == 1

    @pytest.mark.asyncio
    async def test_placeholder_rerender_does_not_reschedule(self):
        renderer = ComponentRenderer()

        renderer.render(widget())
        renderer.render(widget())
        await renderer.settled()

        assert renderer.compile_count == 1

    @pytest.mark.asyncio
    async def test_source_change_recompiles(self):
        renderer = ComponentRenderer()
        await renderer.render_settled(widget(), {"label": "x"})

        edited = "export default function Widget(props){ return <section>{props.label}</section>; }"
        result = await renderer.render_settled(widget(edited), {"label": "x"})

        assert result.html == "<section>x</section>"
        assert renderer.compile_count == 2

    @pytest.mark.asyncio
    async def test_stale_compile_is_discarded(self):
        """Source A is superseded by B before A's effect runs: only B lands."""
        source_a = "export default function Widget(){ return <p>A</p>; }"
        source_b = "export default function Widget(){ return <p>B</p>; }"
        compiler = CountingCompiler()
        renderer = ComponentRenderer(compiler=compiler)

        renderer.render(widget(source_a))
        renderer.render(widget(source_b))
        await renderer.settled()

        assert compiler.sources == [source_a, source_b]
        assert renderer.render(widget(source_b)).html == "<p>B</p>"
        # A was never stored, so asking for it again schedules a fresh compile
        assert renderer.render(widget(source_a)).status == RESOLVING
        await renderer.settled()

    @pytest.mark.asyncio
    async def test_unmount_clears_slot(self):
        renderer = ComponentRenderer()
        await renderer.render_settled(widget(), {"label": "x"})

        renderer.unmount()

        assert renderer.compiled is None
        assert not renderer.mounted
        with pytest.raises(RuntimeError):
            renderer.render(widget())

    @pytest.mark.asyncio
    async def test_unmount_discards_in_flight_compile(self):
        renderer = ComponentRenderer()
        renderer.render(widget())

        renderer.unmount()
        await renderer.settled()

        assert renderer.compile_count == 1
        assert renderer.compiled is None

    def test_without_event_loop_compiles_inline(self):
        renderer = ComponentRenderer()

        first = renderer.render(widget(), {"label": "sync"})
        second = renderer.render(widget(), {"label": "sync"})

        assert first.status == RESOLVING
        assert second.status == RENDERED
        assert second.html == "<div>sync</div>"
        assert renderer.compile_count == 1


# ============================================================================
# Render boundary
# ============================================================================


class TestRenderBoundary:
    @pytest.mark.asyncio
    async def test_throwing_component_shows_error_box(self):
        source = "export default function Widget(props){ return <div>{props.item.label}</div>; }"
        result = await ComponentRenderer().render_settled(widget(source))

        message = "Cannot read properties of undefined (reading 'label')"
        assert result.status == ERROR
        assert result.error == message
        assert result.html == notice_html(f"Error rendering component: {message}")

    @pytest.mark.asyncio
    async def test_unknown_global_is_a_render_error(self):
        source = "export default function Widget(){ return <div>{missingThing}</div>; }"
        result = await ComponentRenderer().render_settled(widget(source))

        assert result.status == ERROR
        assert result.error == "missingThing is not defined"

    @pytest.mark.asyncio
    async def test_thrown_error_message(self):
        source = "export default function Widget(){ throw new Error('nope'); }"
        result = await ComponentRenderer().render_settled(widget(source))

        assert result.status == ERROR
        assert result.error == "nope"

    @pytest.mark.asyncio
    async def test_override_tag_name_is_validated(self):
        source = "export default function Widget(props){ const T = props.as; return <T>x</T>; }"
        result = await ComponentRenderer().render_settled(widget(source), {"as": "img src=x onerror=alert(1) "})

        assert result.status == ERROR
        assert result.error == "Invalid tag: img src=x onerror=alert(1) "
        assert "<img" not in result.html

    @pytest.mark.asyncio
    async def test_override_attribute_names_are_dropped(self):
        source = "export default function Widget(props){ return <div {...props}>x</div>; }"
        result = await ComponentRenderer().render_settled(widget(source), {'x onmouseover="alert(1)" y': 1})

        assert result.status == RENDERED
        assert result.html == "<div>x</div>"

    def test_error_box_differs_from_placeholder(self):
        assert notice_html("Error rendering component: x") != notice_html(not_found_message("x"))
        assert notice_html("x").startswith('<div class="p-4 border border-red-300 bg-red-50 rounded-md">')

    def test_transpile_error_is_a_preview_error(self):
        with pytest.raises(TranspileError):
            compile_component("function( broken {", "Widget")
