"""
Preview pipeline — standalone preview page.

Wraps server-rendered component HTML in a full document. Styling comes from
the Tailwind Play CDN with the theme colours the blocks reference
(bg-primary, text-onPrimary, ...), so no build step is needed.
"""

from __future__ import annotations

import json
from typing import Any

from engine.preview.types import RenderResult

THEME_COLORS = {
    "primary": "#2563eb",
    "secondary": "#7c3aed",
    "onPrimary": "#ffffff",
    "onSecondary": "#ffffff",
}


def render_preview_page(
    result: RenderResult,
    title: str | None = None,
    description: str | None = None,
) -> str:
    """
    Render a complete HTML page around a RenderResult.

    Args:
        result: Output of ComponentRenderer.render / render_settled
        title: Page heading (defaults to the resolved symbol)
        description: Optional line under the heading

    Returns:
        Complete HTML string
    """
    page_title = title or result.symbol
    tailwind_config = json.dumps({"theme": {"extend": {"colors": THEME_COLORS}}})
    props_json = json.dumps(result.props, indent=2, ensure_ascii=False, default=str)

    description_html = ""
    if description:
        description_html = f'<p class="text-gray-600 mb-6">{_escape_html(description)}</p>'

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{_escape_html(page_title)} · Preview</title>
<script src="https://cdn.tailwindcss.com"></script>
<script>tailwind.config = {tailwind_config};</script>
</head>
<body class="bg-gray-50">
<main class="container mx-auto px-4 py-8" data-status="{_escape_html(result.status)}">
<h1 class="text-2xl md:text-3xl font-bold mb-2">{_escape_html(page_title)}</h1>
{description_html}
{_preview_wrapper(result.html)}
<details class="mt-6">
<summary class="text-sm font-medium text-gray-600 cursor-pointer">Props</summary>
<pre class="mt-2 p-4 bg-white border rounded-md text-sm overflow-x-auto">{_escape_html(props_json)}</pre>
</details>
</main>
</body>
</html>"""


def _preview_wrapper(inner: str) -> str:
    return (
        '<div class="p-4 border rounded-lg bg-white shadow-sm">'
        '<div class="mb-2 pb-2 border-b border-gray-200">'
        '<span class="text-xs font-medium text-gray-500">PREVIEW</span>'
        "</div>"
        f"<div>{inner}</div>"
        "</div>"
    )


def _escape_html(text: Any) -> str:
    """HTML-escape text for safe embedding."""
    return str(text).replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace('"', "&quot;")
