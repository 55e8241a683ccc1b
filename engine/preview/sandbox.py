"""
Preview pipeline — module evaluation.

Transpiled component code runs in a namespace that holds exactly three
bindings: `module`, `exports` and `require`. `__builtins__` is empty, so the
code can reach nothing but what `require` hands out, and `require` knows two
module names.

This is a best-effort boundary, not a security model.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from engine.preview import jsrt
from engine.preview.errors import EvaluationError, ModuleNotAllowed, NameUnresolvedError, PreviewError
from engine.preview.react import REACT
from engine.preview.transpiler import RUNTIME_MODULE, transpile
from engine.preview.types import CompiledComponent
from engine.preview.values import error_message

logger = logging.getLogger(__name__)

ALLOWED_MODULES: dict[str, Any] = {
    "react": REACT,
    RUNTIME_MODULE: jsrt,
}


def require(name: Any) -> Any:
    """Resolve a module name against the allow-list."""
    module = ALLOWED_MODULES.get(name) if isinstance(name, str) else None
    if module is None:
        allowed = ", ".join(ALLOWED_MODULES)
        raise ModuleNotAllowed(f"Module '{name}' is not available in component previews (allowed: {allowed})")
    return module


def evaluate(python_source: str, symbol: str | None = None) -> dict[str, Any]:
    """
    Execute transpiled component code.

    Returns the populated `module` record; read `module["exports"]` from it,
    since the code may have replaced the exports object outright.

    Raises:
        ModuleNotAllowed: the code required a module outside the allow-list
        EvaluationError: anything else the code raised
    """
    module: dict[str, Any] = {"exports": {}}
    namespace = {
        "__builtins__": {},
        "module": module,
        "exports": module["exports"],
        "require": require,
    }
    try:
        exec(python_source, namespace)
    except ModuleNotAllowed as exc:
        exc.symbol = symbol
        raise
    except Exception as exc:
        raise EvaluationError(f"Error evaluating component: {error_message(exc)}", symbol) from exc
    return module


def extract_component(module: dict[str, Any], symbol: str) -> Callable[..., Any]:
    """
    Pick the component out of an evaluated module.

    Order: default export, export named `symbol`, the exports value itself.
    """
    exports = module.get("exports")
    if isinstance(exports, dict):
        default = exports.get("default")
        if callable(default):
            return default
        named = exports.get(symbol)
        if callable(named):
            return named
    if callable(exports):
        logger.warning(
            "extract_component: no default or '%s' export; using the exports value itself",
            symbol,
        )
        return exports
    raise NameUnresolvedError(f"Module does not export a component named '{symbol}'", symbol)


def compile_component(source: str, symbol: str) -> CompiledComponent:
    """Transpile, evaluate and extract in one go."""
    try:
        python_source = transpile(source)
        module = evaluate(python_source, symbol)
        component = extract_component(module, symbol)
    except PreviewError as exc:
        if exc.symbol is None:
            exc.symbol = symbol
        raise
    return CompiledComponent(
        symbol=symbol,
        component=component,
        exports=module["exports"],
        python_source=python_source,
    )
