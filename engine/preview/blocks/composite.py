"""
Composite blocks: HeroSection (renders Buttons for its calls to action).
"""

from __future__ import annotations

from engine.preview.blocks.base import Button, join_classes, prop
from engine.preview.elements import h
from engine.preview.registry import STATIC_REGISTRY

HERO_HEIGHTS = {
    "small": "min-h-[30vh]",
    "medium": "min-h-[50vh]",
    "large": "min-h-[70vh]",
    "full": "min-h-screen",
}

HERO_ALIGNMENTS = {
    "left": "text-left items-start",
    "center": "text-center items-center",
    "right": "text-right items-end",
}


def _justify(alignment: str) -> str:
    if alignment == "center":
        return "justify-center"
    if alignment == "right":
        return "justify-end"
    return "justify-start"


@STATIC_REGISTRY.register("HeroSection")
def HeroSection(props=None, *_):
    title = prop(props, "title")
    subtitle = prop(props, "subtitle")
    description = prop(props, "description")
    background = prop(props, "backgroundImage")
    overlay = prop(props, "backgroundOverlay", True)
    alignment = prop(props, "alignment", "center")
    height = prop(props, "height", "medium")
    buttons = prop(props, "ctaButtons", [])
    class_name = prop(props, "className", "")

    style = {
        "backgroundImage": f"url({background})" if background else "none",
        "backgroundSize": "cover",
        "backgroundPosition": "center",
    }

    cta = None
    if buttons:
        cta = h(
            "div",
            {"className": join_classes("flex flex-wrap gap-4 mt-4", _justify(alignment))},
            [
                h(
                    Button,
                    {
                        "key": index,
                        "variant": prop(button, "variant"),
                        "size": "lg",
                        "label": prop(button, "label"),
                        "onClick": prop(button, "onClick"),
                    },
                )
                for index, button in enumerate(buttons)
            ],
        )

    return h(
        "section",
        {"className": join_classes("relative flex flex-col justify-center", HERO_HEIGHTS.get(height), class_name), "style": style},
        background and overlay and h("div", {"className": "absolute inset-0 bg-black bg-opacity-50"}),
        h(
            "div",
            {"className": join_classes("relative z-10 container mx-auto px-4 flex flex-col", HERO_ALIGNMENTS.get(alignment))},
            h(
                "h1",
                {"className": join_classes("text-4xl md:text-5xl font-bold mb-4", "text-white" if background else "text-gray-900")},
                title,
            ),
            subtitle
            and h(
                "h2",
                {"className": join_classes("text-xl md:text-2xl font-semibold mb-3", "text-white" if background else "text-gray-700")},
                subtitle,
            ),
            description
            and h(
                "p",
                {"className": join_classes("text-base md:text-lg max-w-2xl mb-6", "text-gray-200" if background else "text-gray-600")},
                description,
            ),
            cta,
        ),
    )
