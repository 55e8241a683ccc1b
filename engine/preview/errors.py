"""
Preview pipeline — error taxonomy.

Every failure the pipeline can hit while turning a stored component into
HTML maps to one of these. The renderer catches all of them; none of them
reach the page hosting the preview.
"""

from __future__ import annotations


class PreviewError(Exception):
    """Base class for preview pipeline failures."""

    kind = "preview"

    def __init__(self, message: str, symbol: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.symbol = symbol


class TranspileError(PreviewError):
    """Source text is not valid (or not supported) TSX."""

    kind = "transpile"

    def __init__(self, message: str, line: int | None = None, column: int | None = None) -> None:
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)
        self.line = line
        self.column = column


class EvaluationError(PreviewError):
    """Transpiled module raised while executing."""

    kind = "evaluation"


class ModuleNotAllowed(EvaluationError):
    """Component source required a module outside the allow-list."""

    kind = "evaluation"


class NameUnresolvedError(PreviewError):
    """Evaluated module exports nothing usable under the resolved symbol."""

    kind = "name_unresolved"


class RenderError(PreviewError):
    """Resolved component raised while rendering with its props."""

    kind = "render"
