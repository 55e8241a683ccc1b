"""
Preview pipeline — the "react" module as component code sees it.

Previews are server renders: state setters are no-ops, effects never run,
refs and memos are recomputed on every render.
"""

from __future__ import annotations

from typing import Any

from engine.preview.elements import Element, Fragment, create_element, is_valid_element, next_id
from engine.preview.values import JSError, function_props, peek_function_props


def _noop(*_: Any) -> None:
    return None


def _flatten_children(children: Any) -> list[Any]:
    out: list[Any] = []
    if isinstance(children, list):
        for child in children:
            out.extend(_flatten_children(child))
    elif children is not None and not isinstance(children, bool):
        out.append(children)
    return out


def _children_map(children=None, fn=None, *_):
    if children is None:
        return children
    return [fn(child, i) for i, child in enumerate(_flatten_children(children))]


def _children_for_each(children=None, fn=None, *_):
    for i, child in enumerate(_flatten_children(children)):
        fn(child, i)


def _children_only(children=None, *_):
    if not is_valid_element(children):
        raise JSError("React.Children.only expected to receive a single React element child.")
    return children


Children = {
    "map": _children_map,
    "forEach": _children_for_each,
    "toArray": lambda children=None, *_: _flatten_children(children),
    "count": lambda children=None, *_: len(_flatten_children(children)),
    "only": _children_only,
}


def clone_element(element=None, props=None, *children):
    if not isinstance(element, Element):
        raise JSError("The argument must be a React element, but you passed " + repr(element))
    merged = dict(element.props)
    key = element.key
    for name, value in (props or {}).items():
        if name == "key":
            key = value
        elif name != "ref":
            merged[name] = value
    if children:
        merged["children"] = children[0] if len(children) == 1 else list(children)
    return Element(element.type, merged, key)


def use_state(initial=None, *_):
    value = initial() if callable(initial) else initial
    return [value, _noop]


def use_reducer(reducer=None, initial=None, init=None, *_):
    return [init(initial) if callable(init) else initial, _noop]


def use_memo(factory=None, *_):
    return factory()


def use_callback(fn=None, *_):
    return fn


def use_ref(initial=None, *_):
    return {"current": initial}


def use_transition(*_):
    return [False, lambda fn=None, *_: fn() if callable(fn) else None]


def memo(component=None, *_):
    return component


def forward_ref(render=None, *_):
    def forwarded(props=None, *_):
        return render(props, None)

    forwarded.__name__ = getattr(render, "__name__", "ForwardRef")
    bag = peek_function_props(render)
    if bag:
        function_props(forwarded).update(bag)
    return forwarded


REACT: dict[str, Any] = {
    "createElement": create_element,
    "cloneElement": clone_element,
    "isValidElement": lambda value=None, *_: is_valid_element(value),
    "Fragment": Fragment,
    "StrictMode": Fragment,
    "Children": Children,
    "useState": use_state,
    "useReducer": use_reducer,
    "useEffect": _noop,
    "useLayoutEffect": _noop,
    "useInsertionEffect": _noop,
    "useMemo": use_memo,
    "useCallback": use_callback,
    "useRef": use_ref,
    "useId": lambda *_: next_id(),
    "useTransition": use_transition,
    "useDeferredValue": lambda value=None, *_: value,
    "useDebugValue": _noop,
    "memo": memo,
    "forwardRef": forward_ref,
    "version": "18.3.1",
}