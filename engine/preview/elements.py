"""
Preview pipeline — element tree and HTML serialisation.

Elements are what JSX evaluates to: (type, props, key). `type` is a tag
name, a component callable, or Fragment. `render_to_string` walks a tree the
way a React server render does: components are called with their props,
hooks return their initial values, handlers are dropped and the result is
plain HTML.
"""

from __future__ import annotations

import contextvars
import re
from html import escape as _html_escape
from typing import Any

from engine.preview.values import (
    JSError,
    JSTypeError,
    is_number,
    peek_function_props,
    to_string,
    typeof,
)


# ---------------------------------------------------------------------------
# Element model
# ---------------------------------------------------------------------------


class _FragmentType:
    __slots__ = ()

    def __repr__(self) -> str:
        return "Fragment"


Fragment = _FragmentType()


class Element:
    """One node of a component's output tree."""

    __slots__ = ("type", "props", "key")

    def __init__(self, type: Any, props: dict[str, Any], key: Any = None) -> None:
        self.type = type
        self.props = props
        self.key = key

    def __repr__(self) -> str:
        return f"Element({element_type_name(self.type)!r}, keys={sorted(self.props)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Element):
            return NotImplemented
        same_type = self.type == other.type if isinstance(self.type, str) else self.type is other.type
        return same_type and self.props == other.props and self.key == other.key

    __hash__ = object.__hash__


def element_type_name(type: Any) -> str:
    if isinstance(type, str):
        return type
    if type is Fragment:
        return "Fragment"
    return getattr(type, "__name__", None) or typeof(type)


def _apply_default_props(type: Any, props: dict[str, Any]) -> None:
    if not callable(type):
        return
    bag = peek_function_props(type)
    defaults = bag.get("defaultProps") if bag else None
    if isinstance(defaults, dict):
        for name, value in defaults.items():
            if props.get(name) is None:
                props[name] = value


def create_element(type: Any, props: dict[str, Any] | None = None, *children: Any) -> Element:
    """React.createElement: children passed positionally land on props.children."""
    props = dict(props or {})
    key = props.pop("key", None)
    props.pop("ref", None)
    if len(children) == 1:
        props["children"] = children[0]
    elif children:
        props["children"] = list(children)
    _apply_default_props(type, props)
    return Element(type, props, None if key is None else to_string(key))


def jsx(type: Any, props: dict[str, Any] | None = None, key: Any = None, *_: Any) -> Element:
    """Automatic-runtime factory: children are already on props."""
    props = dict(props or {})
    if "key" in props:
        key = props.pop("key")
    props.pop("ref", None)
    _apply_default_props(type, props)
    return Element(type, props, None if key is None else to_string(key))


h = create_element


def is_valid_element(value: Any) -> bool:
    return isinstance(value, Element)


# ---------------------------------------------------------------------------
# Render-scoped state
# ---------------------------------------------------------------------------

_id_counter: contextvars.ContextVar[list[int] | None] = contextvars.ContextVar("preview_id_counter", default=None)


def next_id() -> str:
    """useId: identifiers unique within one render_to_string call."""
    counter = _id_counter.get()
    if counter is None:
        counter = [0]
        _id_counter.set(counter)
    counter[0] += 1
    return f":r{counter[0] - 1:x}:"


# ---------------------------------------------------------------------------
# HTML serialisation
# ---------------------------------------------------------------------------

VOID_TAGS = frozenset(
    ["area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "param", "source", "track", "wbr"]
)

ATTRIBUTE_ALIASES = {
    "className": "class",
    "htmlFor": "for",
    "tabIndex": "tabindex",
    "readOnly": "readonly",
    "maxLength": "maxlength",
    "minLength": "minlength",
    "colSpan": "colspan",
    "rowSpan": "rowspan",
    "autoComplete": "autocomplete",
    "autoFocus": "autofocus",
    "autoPlay": "autoplay",
    "crossOrigin": "crossorigin",
    "srcSet": "srcset",
    "httpEquiv": "http-equiv",
    "acceptCharset": "accept-charset",
    "encType": "enctype",
    "noValidate": "novalidate",
    "spellCheck": "spellcheck",
    "contentEditable": "contenteditable",
    "strokeWidth": "stroke-width",
    "strokeLinecap": "stroke-linecap",
    "strokeLinejoin": "stroke-linejoin",
    "strokeDasharray": "stroke-dasharray",
    "strokeOpacity": "stroke-opacity",
    "fillRule": "fill-rule",
    "fillOpacity": "fill-opacity",
    "clipRule": "clip-rule",
    "clipPath": "clip-path",
    "stopColor": "stop-color",
    "textAnchor": "text-anchor",
    "xlinkHref": "xlink:href",
    "defaultValue": "value",
    "defaultChecked": "checked",
}

_SKIPPED_PROPS = frozenset(
    ["children", "key", "ref", "dangerouslySetInnerHTML", "suppressHydrationWarning", "suppressContentEditableWarning"]
)

# CSS properties React leaves without a px suffix
UNITLESS_CSS = frozenset(
    [
        "animationIterationCount",
        "aspectRatio",
        "borderImageOutset",
        "borderImageSlice",
        "borderImageWidth",
        "columnCount",
        "columns",
        "flex",
        "flexGrow",
        "flexPositive",
        "flexShrink",
        "flexNegative",
        "flexOrder",
        "fontWeight",
        "gridArea",
        "gridRow",
        "gridRowEnd",
        "gridRowSpan",
        "gridRowStart",
        "gridColumn",
        "gridColumnEnd",
        "gridColumnSpan",
        "gridColumnStart",
        "lineClamp",
        "lineHeight",
        "opacity",
        "order",
        "orphans",
        "scale",
        "tabSize",
        "widows",
        "zIndex",
        "zoom",
        "fillOpacity",
        "floodOpacity",
        "stopOpacity",
        "strokeDasharray",
        "strokeDashoffset",
        "strokeMiterlimit",
        "strokeOpacity",
        "strokeWidth",
    ]
)

_UPPER_RE = re.compile(r"([A-Z])")
_HANDLER_RE = re.compile(r"^on[A-Z]")
# Names React accepts when writing markup; anything else never reaches the HTML
_ATTRIBUTE_NAME_RE = re.compile(r"^[A-Za-z_:][A-Za-z0-9_.:-]*$")
_TAG_NAME_RE = re.compile(r"^[a-zA-Z][a-zA-Z:_.\-\d]*$")


def _escape(text: str) -> str:
    return _html_escape(text, quote=True)


def _css_name(name: str) -> str:
    if name.startswith("--"):
        return name
    kebab = _UPPER_RE.sub(lambda m: "-" + m.group(1).lower(), name)
    if kebab.startswith("ms-"):
        kebab = "-" + kebab
    return kebab


def style_to_css(style: dict[str, Any]) -> str:
    """Serialise a React style object: {fontSize: 12} → "font-size:12px"."""
    parts = []
    for name, value in style.items():
        if value is None or isinstance(value, bool) or value == "":
            continue
        if is_number(value) and value != 0 and name not in UNITLESS_CSS and not name.startswith("--"):
            css_value = f"{to_string(value)}px"
        else:
            css_value = to_string(value).strip()
        parts.append(f"{_css_name(name)}:{css_value}")
    return ";".join(parts)


def _render_attributes(props: dict[str, Any]) -> str:
    out = []
    for name, value in props.items():
        if name in _SKIPPED_PROPS or _HANDLER_RE.match(name):
            continue
        attr = ATTRIBUTE_ALIASES.get(name, name)
        if not _ATTRIBUTE_NAME_RE.fullmatch(attr):
            continue
        is_data = attr.startswith("data-") or attr.startswith("aria-")
        if attr == "style":
            if isinstance(value, dict):
                css = style_to_css(value)
                if css:
                    out.append(f' style="{_escape(css)}"')
            elif isinstance(value, str) and value:
                out.append(f' style="{_escape(value)}"')
            continue
        if value is None or callable(value) and not isinstance(value, (dict, list)):
            continue
        if isinstance(value, bool):
            if is_data:
                out.append(f' {attr}="{"true" if value else "false"}"')
            elif value:
                out.append(f' {attr}=""')
            continue
        out.append(f' {attr}="{_escape(to_string(value))}"')
    return "".join(out)


def _describe_object(value: dict[str, Any]) -> str:
    return "object with keys {" + ", ".join(value.keys()) + "}"


def _render_node(node: Any, out: list[str]) -> None:
    if node is None or isinstance(node, bool):
        return
    if isinstance(node, str):
        out.append(_escape(node))
        return
    if is_number(node):
        out.append(_escape(to_string(node)))
        return
    if isinstance(node, (list, tuple)):
        for child in node:
            _render_node(child, out)
        return
    if isinstance(node, Element):
        _render_element(node, out)
        return
    if isinstance(node, dict):
        raise JSError(f"Objects are not valid as a React child (found: {_describe_object(node)})")
    if callable(node):
        # Functions are not valid children; React renders nothing for them
        return
    raise JSError(f"Objects are not valid as a React child (found: {typeof(node)})")


def _render_element(element: Element, out: list[str]) -> None:
    type_ = element.type
    props = element.props

    if type_ is Fragment:
        _render_node(props.get("children"), out)
        return

    if isinstance(type_, str):
        if not _TAG_NAME_RE.fullmatch(type_):
            raise JSError(f"Invalid tag: {type_}")
        out.append(f"<{type_}{_render_attributes(props)}")
        if type_ in VOID_TAGS:
            out.append("/>")
            return
        out.append(">")
        inner = props.get("dangerouslySetInnerHTML")
        if isinstance(inner, dict) and inner.get("__html") is not None:
            out.append(to_string(inner["__html"]))
        elif type_ == "textarea" and props.get("value") is not None:
            out.append(_escape(to_string(props["value"])))
        else:
            _render_node(props.get("children"), out)
        out.append(f"</{type_}>")
        return

    if callable(type_):
        _render_node(type_(props), out)
        return

    raise JSTypeError(
        "Element type is invalid: expected a string (for built-in components) "
        f"or a function (for composite components) but got: {typeof(type_)}"
    )


def render_to_string(node: Any) -> str:
    """Render an element tree (or any valid child) to an HTML string."""
    token = _id_counter.set([0])
    try:
        out: list[str] = []
        _render_node(node, out)
        return "".join(out)
    finally:
        _id_counter.reset(token)


