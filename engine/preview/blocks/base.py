"""
Base blocks: Button, Card.

Same markup and Tailwind classes as the stored TSX versions; these render
without going through the transpiler.
"""

from __future__ import annotations

from typing import Any

from engine.preview.elements import h
from engine.preview.registry import STATIC_REGISTRY
from engine.preview.values import to_string

BUTTON_BASE = "font-medium rounded transition-colors focus:outline-none focus:ring-2 focus:ring-offset-2"

BUTTON_VARIANTS = {
    "primary": "bg-primary hover:bg-primary/90 text-onPrimary focus:ring-primary",
    "secondary": "bg-secondary hover:bg-secondary/90 text-onSecondary focus:ring-secondary",
    "outline": "bg-transparent border border-primary text-primary hover:bg-primary/10 focus:ring-primary",
}

BUTTON_SIZES = {
    "sm": "py-1 px-3 text-sm",
    "md": "py-2 px-4 text-base",
    "lg": "py-3 px-6 text-lg",
}

CARD_VARIANTS = {
    "default": "bg-white",
    "outlined": "bg-white border border-gray-200",
    "elevated": "bg-white shadow-md",
}


def prop(props: dict[str, Any] | None, name: str, default: Any = None) -> Any:
    """Read a prop; None (undefined) falls back to the default."""
    value = (props or {}).get(name)
    return default if value is None else value


def join_classes(*parts: Any) -> str:
    """Template-literal join: every part is stringified, including empty ones."""
    return " ".join(to_string(part) for part in parts)


@STATIC_REGISTRY.register("Button")
def Button(props=None, *_):
    variant = prop(props, "variant", "primary")
    size = prop(props, "size", "md")
    class_name = prop(props, "className", "")
    styles = join_classes(BUTTON_BASE, BUTTON_VARIANTS.get(variant), BUTTON_SIZES.get(size), class_name)
    return h("button", {"className": styles, "onClick": prop(props, "onClick")}, prop(props, "label"))


@STATIC_REGISTRY.register("Card")
def Card(props=None, *_):
    title = prop(props, "title")
    subtitle = prop(props, "subtitle")
    content = prop(props, "content")
    image_url = prop(props, "imageUrl")
    footer = prop(props, "footer")
    class_name = prop(props, "className", "")
    variant = prop(props, "variant", "default")

    image = image_url and h(
        "div",
        {"className": "w-full h-48 overflow-hidden"},
        h("img", {"src": image_url, "alt": title or "Card image", "className": "w-full h-full object-cover"}),
    )
    return h(
        "div",
        {"className": join_classes("rounded-lg overflow-hidden", CARD_VARIANTS.get(variant), class_name)},
        image,
        h(
            "div",
            {"className": "p-4"},
            title and h("h3", {"className": "font-semibold text-lg mb-1"}, title),
            subtitle and h("h4", {"className": "text-gray-600 text-sm mb-2"}, subtitle),
            content and h("p", {"className": "text-gray-700"}, content),
        ),
        footer and h("div", {"className": "px-4 py-3 bg-gray-50 border-t border-gray-100"}, footer),
    )
