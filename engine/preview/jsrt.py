"""
Preview pipeline — runtime for transpiled component code.

Transpiled modules get this module back from `require("react/jsx-runtime")`
and reach every operation that needs JavaScript semantics through it:
property access, calls, operators, iteration, destructuring, exceptions,
JSX element creation and the handful of JS globals components use.

What component code itself can import from "react/jsx-runtime" is only
JS_EXPORTS (jsx, jsxs, jsxDEV, Fragment).
"""

from __future__ import annotations

import functools
import json
import logging
import math
import random
import re
from decimal import ROUND_HALF_UP, Decimal
from types import ModuleType
from typing import Any, Callable

from engine.preview.elements import Element, Fragment, create_element, jsx
from engine.preview.values import (
    Infinity,
    JSError,
    JSRangeError,
    JSReferenceError,
    JSSyntaxError,
    JSThrow,
    JSTypeError,
    NaN,
    error_message,
    function_props,
    is_number,
    is_object,
    loose_equals,
    normalize_number,
    peek_function_props,
    strict_equals,
    to_array_index,
    to_int32,
    to_integer,
    to_number,
    to_primitive,
    to_property_key,
    to_string,
    truthy,
    typeof,
)

logger = logging.getLogger(__name__)

h = create_element

JS_EXPORTS = {"jsx": jsx, "jsxs": jsx, "jsxDEV": jsx, "Fragment": Fragment}


def _js_view(value: Any) -> Any:
    """Modules handed out by require() look like their JS export object."""
    if isinstance(value, ModuleType):
        return getattr(value, "JS_EXPORTS", {})
    return value


# ---------------------------------------------------------------------------
# Property access and calls
# ---------------------------------------------------------------------------


def _undefined_read(key: Any) -> JSTypeError:
    return JSTypeError(f"Cannot read properties of undefined (reading '{to_property_key(key)}')")


def get(obj: Any, key: Any) -> Any:
    """obj[key] / obj.key"""
    if obj is None:
        raise _undefined_read(key)
    if isinstance(obj, dict):
        return obj.get(to_property_key(key))
    if isinstance(obj, (list, str)):
        index = to_array_index(key)
        if index is not None:
            return obj[index] if index < len(obj) else None
        if key == "length":
            return len(obj)
        methods = ARRAY_METHODS if isinstance(obj, list) else STRING_METHODS
        method = methods.get(key)
        return functools.partial(method, obj) if method else None
    if isinstance(obj, bool):
        return None
    if is_number(obj):
        method = NUMBER_METHODS.get(key)
        return functools.partial(method, obj) if method else None
    if isinstance(obj, Element):
        return {"type": obj.type, "props": obj.props, "key": obj.key}.get(key)
    if isinstance(obj, JSError):
        if key == "stack":
            return str(obj)
        return {"message": obj.message, "name": obj.name}.get(key)
    if isinstance(obj, ModuleType):
        return _js_view(obj).get(key)
    if callable(obj):
        props = peek_function_props(obj)
        if props and key in props:
            return props[key]
        if key == "name":
            return getattr(obj, "__name__", "")
        method = FUNCTION_METHODS.get(key)
        return functools.partial(method, obj) if method else None
    return None


def get_opt(obj: Any, key: Any) -> Any:
    """obj?.key"""
    return None if obj is None else get(obj, key)


def put(obj: Any, key: Any, value: Any) -> Any:
    """obj[key] = value; evaluates to value like the JS assignment does."""
    if obj is None:
        raise JSTypeError(f"Cannot set properties of undefined (setting '{to_property_key(key)}')")
    if isinstance(obj, dict):
        obj[to_property_key(key)] = value
    elif isinstance(obj, list):
        index = to_array_index(key)
        if index is not None:
            if index >= len(obj):
                obj.extend([None] * (index + 1 - len(obj)))
            obj[index] = value
        elif key == "length":
            del obj[to_integer(value) :]
        else:
            raise JSTypeError(f"Cannot set property '{to_property_key(key)}' on an array")
    elif callable(obj) and not isinstance(obj, ModuleType):
        function_props(obj)[to_property_key(key)] = value
    elif isinstance(obj, JSError) and key in ("message", "name"):
        setattr(obj, key, to_string(value))
    # Writes to primitives are silently dropped
    return value


def delete(obj: Any, key: Any) -> bool:
    if isinstance(obj, dict):
        obj.pop(to_property_key(key), None)
    elif isinstance(obj, list):
        index = to_array_index(key)
        if index is not None and index < len(obj):
            obj[index] = None
    elif obj is None:
        raise JSTypeError("Cannot convert undefined to object")
    return True


def call(fn: Any, *args: Any) -> Any:
    if not callable(fn) or isinstance(fn, ModuleType):
        raise JSTypeError(f"{to_string(fn) if fn is None else typeof(fn)} is not a function")
    return fn(*args)


def call_opt(fn: Any, *args: Any) -> Any:
    """fn?.(...)"""
    return None if fn is None else call(fn, *args)


def call_method(obj: Any, key: Any, *args: Any) -> Any:
    """obj.key(...)"""
    name = to_property_key(key)
    builtin = None
    if isinstance(obj, list):
        builtin = ARRAY_METHODS.get(name)
    elif isinstance(obj, str):
        builtin = STRING_METHODS.get(name)
    elif is_number(obj):
        builtin = NUMBER_METHODS.get(name)
    elif isinstance(obj, dict) and name not in obj:
        builtin = OBJECT_METHODS.get(name)
    elif callable(obj) and not isinstance(obj, ModuleType):
        props = peek_function_props(obj)
        if not props or name not in props:
            builtin = FUNCTION_METHODS.get(name)
    if builtin is not None:
        return builtin(obj, *args)
    fn = get(obj, key)
    if not callable(fn):
        raise JSTypeError(f"{name} is not a function")
    return fn(*args)


def call_method_opt(obj: Any, key: Any, *args: Any) -> Any:
    """obj?.key(...)"""
    return None if obj is None else call_method(obj, key, *args)


def construct(ctor: Any, *args: Any) -> Any:
    """`new X(...)`; only the built-in constructors are constructible."""
    if any(ctor is known for known in _CONSTRUCTIBLE):
        return ctor(*args)
    raise JSTypeError(f"{getattr(ctor, '__name__', typeof(ctor))} is not a constructor")


def instance_of(value: Any, ctor: Any) -> bool:
    if ctor is Array:
        return isinstance(value, list)
    if ctor is Object:
        return is_object(value)
    if ctor is Error:
        return isinstance(value, JSError)
    for factory, cls in _ERROR_TYPES:
        if ctor is factory:
            return isinstance(value, cls)
    if not callable(ctor):
        raise JSTypeError("Right-hand side of 'instanceof' is not callable")
    return False


def unresolved(name: str) -> Any:
    raise JSReferenceError(f"{name} is not defined")


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


def add(a: Any, b: Any) -> Any:
    if is_number(a) and is_number(b):
        return normalize_number(a + b)
    if isinstance(a, str) and isinstance(b, str):
        return a + b
    a, b = to_primitive(a), to_primitive(b)
    if isinstance(a, str) or isinstance(b, str):
        return to_string(a) + to_string(b)
    return normalize_number(to_number(a) + to_number(b))


def sub(a: Any, b: Any) -> Any:
    return normalize_number(to_number(a) - to_number(b))


def mul(a: Any, b: Any) -> Any:
    return normalize_number(to_number(a) * to_number(b))


def div(a: Any, b: Any) -> Any:
    x, y = to_number(a), to_number(b)
    if y == 0:
        if x == 0 or x != x:
            return NaN
        return math.copysign(Infinity, x) * math.copysign(1.0, y)
    return normalize_number(x / y)


def mod(a: Any, b: Any) -> Any:
    x, y = to_number(a), to_number(b)
    if y == 0 or x != x or y != y or x in (Infinity, -Infinity):
        return NaN
    if y in (Infinity, -Infinity):
        return x
    return normalize_number(math.fmod(x, y))


def pow(a: Any, b: Any) -> Any:
    x, y = to_number(a), to_number(b)
    if y != y or (x != x and y != 0):
        return NaN
    try:
        result = x**y
    except ZeroDivisionError:
        return Infinity
    except OverflowError:
        return Infinity if x > 0 or float(y) % 2 == 0 else -Infinity
    if isinstance(result, complex):
        return NaN
    return normalize_number(result)


def neg(a: Any) -> Any:
    return normalize_number(-to_number(a))


def inc(a: Any) -> Any:
    return normalize_number(to_number(a) + 1)


def dec(a: Any) -> Any:
    return normalize_number(to_number(a) - 1)


def first(value: Any, *_: Any) -> Any:
    """Evaluate later arguments for their effects and return the first."""
    return value


def update_member(obj: Any, key: Any, delta: int, prefix: bool) -> Any:
    """obj.key++ and friends."""
    old = to_number(get(obj, key))
    new = normalize_number(old + delta)
    put(obj, key, new)
    return new if prefix else old


def eq(a: Any, b: Any) -> bool:
    return strict_equals(a, b)


def ne(a: Any, b: Any) -> bool:
    return not strict_equals(a, b)


def loose_eq(a: Any, b: Any) -> bool:
    return loose_equals(a, b)


def loose_ne(a: Any, b: Any) -> bool:
    return not loose_equals(a, b)


def _comparable(a: Any, b: Any) -> tuple[Any, Any]:
    a, b = to_primitive(a), to_primitive(b)
    if isinstance(a, str) and isinstance(b, str):
        return a, b
    return to_number(a), to_number(b)


def lt(a: Any, b: Any) -> bool:
    x, y = _comparable(a, b)
    return x < y


def gt(a: Any, b: Any) -> bool:
    x, y = _comparable(a, b)
    return x > y


def le(a: Any, b: Any) -> bool:
    x, y = _comparable(a, b)
    return x <= y


def ge(a: Any, b: Any) -> bool:
    x, y = _comparable(a, b)
    return x >= y


def has(key: Any, obj: Any) -> bool:
    """key in obj"""
    if isinstance(obj, dict):
        return to_property_key(key) in obj
    if isinstance(obj, list):
        index = to_array_index(key)
        return key == "length" or (index is not None and index < len(obj))
    if callable(obj) and not isinstance(obj, ModuleType):
        props = peek_function_props(obj)
        return bool(props) and to_property_key(key) in props
    raise JSTypeError(f"Cannot use 'in' operator to search for '{to_property_key(key)}' in {to_string(obj)}")


def bit_and(a: Any, b: Any) -> int:
    return to_int32(to_int32(a) & to_int32(b))


def bit_or(a: Any, b: Any) -> int:
    return to_int32(to_int32(a) | to_int32(b))


def bit_xor(a: Any, b: Any) -> int:
    return to_int32(to_int32(a) ^ to_int32(b))


def bit_not(a: Any) -> int:
    return to_int32(~to_int32(a))


def shl(a: Any, b: Any) -> int:
    return to_int32(to_int32(a) << (to_int32(b) & 31))


def shr(a: Any, b: Any) -> int:
    return to_int32(a) >> (to_int32(b) & 31)


def ushr(a: Any, b: Any) -> int:
    return (to_int32(a) % 2**32) >> (to_int32(b) & 31)


def void(_: Any) -> None:
    return None


# ---------------------------------------------------------------------------
# Literals, iteration, destructuring, modules
# ---------------------------------------------------------------------------


def template(*parts: Any) -> str:
    return "".join(to_string(part) for part in parts)


def key(value: Any) -> str:
    """Computed object-literal key."""
    return to_property_key(value)


def spread(value: Any) -> dict[str, Any]:
    """Own enumerable properties, for {...value}."""
    value = _js_view(value)
    if isinstance(value, dict):
        return value
    if isinstance(value, (list, str)):
        return {str(i): item for i, item in enumerate(value)}
    if callable(value):
        return dict(peek_function_props(value) or {})
    return {}


def iterate(value: Any) -> list[Any]:
    """The iteration protocol, for for…of and [...value] / f(...value)."""
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        return list(value)
    if value is None:
        raise JSTypeError("undefined is not iterable")
    raise JSTypeError(f"{typeof(value)} is not iterable")


def keys_of(value: Any) -> list[str]:
    """Enumerable keys, for for…in."""
    if value is None:
        return []
    return list(spread(value).keys())


def array(values: Any) -> list[Any]:
    """Collect a rest parameter."""
    return list(values)


def omit(value: Any, *names: str) -> dict[str, Any]:
    """Object rest: const { a, ...rest } = value."""
    if value is None:
        raise JSTypeError("Cannot destructure 'undefined' as it is undefined.")
    return {k: v for k, v in spread(value).items() if k not in names}


def rest(value: Any, start: int) -> list[Any]:
    """Array rest: const [a, ...rest] = value."""
    return list(iterate(value))[start:]


def default_import(mod: Any) -> Any:
    view = _js_view(mod)
    if isinstance(view, dict) and "default" in view:
        return view["default"]
    return mod


def export_all(exports: dict[str, Any], mod: Any) -> None:
    for name, value in spread(mod).items():
        if name != "default":
            exports[name] = value


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

# What `catch` intercepts
Catchable = Exception


def thrown(value: Any) -> BaseException:
    if isinstance(value, BaseException):
        return value
    return JSThrow(value)


def caught(exc: BaseException) -> Any:
    """The value a catch clause binds."""
    if isinstance(exc, JSThrow):
        return exc.value
    if isinstance(exc, JSError):
        return exc
    if isinstance(exc, RecursionError):
        return JSRangeError("Maximum call stack size exceeded")
    return JSTypeError(error_message(exc))


# ---------------------------------------------------------------------------
# Method tables
# ---------------------------------------------------------------------------


def _relative(index: Any, length: int, default: int) -> int:
    if index is None:
        return default
    n = to_integer(index)
    if n < 0:
        return max(length + n, 0)
    return min(n, length)


def _same_value_zero(a: Any, b: Any) -> bool:
    if is_number(a) and is_number(b) and a != a and b != b:
        return True
    return strict_equals(a, b)


def _callback(fn: Any, method: str) -> Callable[..., Any]:
    if not callable(fn):
        raise JSTypeError(f"{to_string(fn)} is not a function (in Array.prototype.{method})")
    return fn


def _array_map(arr, fn=None, *_):
    fn = _callback(fn, "map")
    return [fn(item, i, arr) for i, item in enumerate(arr)]


def _array_filter(arr, fn=None, *_):
    fn = _callback(fn, "filter")
    return [item for i, item in enumerate(arr) if truthy(fn(item, i, arr))]


def _array_for_each(arr, fn=None, *_):
    fn = _callback(fn, "forEach")
    for i, item in enumerate(list(arr)):
        fn(item, i, arr)
    return None


def _array_find(arr, fn=None, *_):
    fn = _callback(fn, "find")
    for i, item in enumerate(arr):
        if truthy(fn(item, i, arr)):
            return item
    return None


def _array_find_index(arr, fn=None, *_):
    fn = _callback(fn, "findIndex")
    for i, item in enumerate(arr):
        if truthy(fn(item, i, arr)):
            return i
    return -1


def _array_find_last(arr, fn=None, *_):
    fn = _callback(fn, "findLast")
    for i in range(len(arr) - 1, -1, -1):
        if truthy(fn(arr[i], i, arr)):
            return arr[i]
    return None


def _array_some(arr, fn=None, *_):
    fn = _callback(fn, "some")
    return any(truthy(fn(item, i, arr)) for i, item in enumerate(arr))


def _array_every(arr, fn=None, *_):
    fn = _callback(fn, "every")
    return all(truthy(fn(item, i, arr)) for i, item in enumerate(arr))


def _array_reduce(arr, fn=None, *initial):
    fn = _callback(fn, "reduce")
    items = list(enumerate(arr))
    if initial:
        acc = initial[0]
    elif items:
        acc = items.pop(0)[1]
    else:
        raise JSTypeError("Reduce of empty array with no initial value")
    for i, item in items:
        acc = fn(acc, item, i, arr)
    return acc


def _array_join(arr, separator=None, *_):
    sep = "," if separator is None else to_string(separator)
    return sep.join("" if item is None else to_string(item) for item in arr)


def _array_slice(arr, start=None, end=None, *_):
    length = len(arr)
    return arr[_relative(start, length, 0) : _relative(end, length, length)]


def _array_splice(arr, start=None, delete_count=None, *items):
    length = len(arr)
    begin = _relative(start, length, 0)
    count = length - begin if delete_count is None else max(0, min(to_integer(delete_count), length - begin))
    removed = arr[begin : begin + count]
    arr[begin : begin + count] = list(items)
    return removed


def _array_includes(arr, value=None, *_):
    return any(_same_value_zero(item, value) for item in arr)


def _array_index_of(arr, value=None, *_):
    for i, item in enumerate(arr):
        if strict_equals(item, value):
            return i
    return -1


def _array_last_index_of(arr, value=None, *_):
    for i in range(len(arr) - 1, -1, -1):
        if strict_equals(arr[i], value):
            return i
    return -1


def _array_concat(arr, *values):
    out = list(arr)
    for value in values:
        if isinstance(value, list):
            out.extend(value)
        else:
            out.append(value)
    return out


def _array_push(arr, *values):
    arr.extend(values)
    return len(arr)


def _array_pop(arr, *_):
    return arr.pop() if arr else None


def _array_shift(arr, *_):
    return arr.pop(0) if arr else None


def _array_unshift(arr, *values):
    arr[0:0] = list(values)
    return len(arr)


def _array_reverse(arr, *_):
    arr.reverse()
    return arr


def _sort_key(compare):
    def cmp(a, b):
        result = to_number(compare(a, b))
        if result != result or result == 0:
            return 0
        return -1 if result < 0 else 1

    return functools.cmp_to_key(cmp)


def _array_sort(arr, compare=None, *_):
    defined = [item for item in arr if item is not None]
    missing = len(arr) - len(defined)
    if compare is None:
        defined.sort(key=to_string)
    else:
        defined.sort(key=_sort_key(compare))
    arr[:] = defined + [None] * missing
    return arr


def _array_flat(arr, depth=1, *_):
    levels = to_integer(depth) if depth is not None else 1
    out: list[Any] = []
    for item in arr:
        if isinstance(item, list) and levels > 0:
            out.extend(_array_flat(item, levels - 1))
        else:
            out.append(item)
    return out


def _array_flat_map(arr, fn=None, *_):
    return _array_flat(_array_map(arr, fn), 1)


def _array_at(arr, index=None, *_):
    i = to_integer(index)
    if i < 0:
        i += len(arr)
    return arr[i] if 0 <= i < len(arr) else None


def _array_fill(arr, value=None, start=None, end=None, *_):
    length = len(arr)
    for i in range(_relative(start, length, 0), _relative(end, length, length)):
        arr[i] = value
    return arr


ARRAY_METHODS: dict[str, Callable[..., Any]] = {
    "map": _array_map,
    "filter": _array_filter,
    "forEach": _array_for_each,
    "find": _array_find,
    "findIndex": _array_find_index,
    "findLast": _array_find_last,
    "some": _array_some,
    "every": _array_every,
    "reduce": _array_reduce,
    "join": _array_join,
    "slice": _array_slice,
    "splice": _array_splice,
    "includes": _array_includes,
    "indexOf": _array_index_of,
    "lastIndexOf": _array_last_index_of,
    "concat": _array_concat,
    "push": _array_push,
    "pop": _array_pop,
    "shift": _array_shift,
    "unshift": _array_unshift,
    "reverse": _array_reverse,
    "sort": _array_sort,
    "toSorted": lambda arr, compare=None, *_: _array_sort(list(arr), compare),
    "toReversed": lambda arr, *_: list(reversed(arr)),
    "flat": _array_flat,
    "flatMap": _array_flat_map,
    "at": _array_at,
    "fill": _array_fill,
    "keys": lambda arr, *_: list(range(len(arr))),
    "values": lambda arr, *_: list(arr),
    "entries": lambda arr, *_: [[i, item] for i, item in enumerate(arr)],
    "toString": lambda arr, *_: to_string(arr),
}


def _string_split(s, separator=None, limit=None, *_):
    if separator is None:
        parts = [s]
    elif separator == "":
        parts = list(s)
    else:
        parts = s.split(to_string(separator))
    if limit is not None:
        parts = parts[: max(0, to_integer(limit))]
    return parts


def _string_replace(s, pattern=None, replacement=None, *_, count=1):
    needle = to_string(pattern)
    out = []
    pos = 0
    done = 0
    while count < 0 or done < count:
        found = s.find(needle, pos)
        if found < 0:
            break
        out.append(s[pos:found])
        if callable(replacement):
            out.append(to_string(replacement(needle, found, s)))
        else:
            out.append(to_string(replacement))
        pos = found + len(needle)
        done += 1
        if not needle:
            # Empty pattern matches between every character
            if found < len(s):
                out.append(s[found])
            pos += 1
            if pos > len(s):
                break
    out.append(s[pos:])
    return "".join(out)


def _string_slice(s, start=None, end=None, *_):
    length = len(s)
    return s[_relative(start, length, 0) : _relative(end, length, length)]


def _string_substring(s, start=None, end=None, *_):
    length = len(s)
    a = min(max(to_integer(start), 0), length)
    b = length if end is None else min(max(to_integer(end), 0), length)
    return s[min(a, b) : max(a, b)]


def _string_pad(s, length=None, fill=None, *_, start=True):
    target = to_integer(length)
    filler = " " if fill is None else to_string(fill)
    if target <= len(s) or not filler:
        return s
    needed = target - len(s)
    padding = (filler * (needed // len(filler) + 1))[:needed]
    return padding + s if start else s + padding


def _string_index_of(s, value=None, position=None, *_):
    return s.find(to_string(value), min(max(to_integer(position), 0), len(s)))


def _string_char_code_at(s, index=None, *_):
    i = to_integer(index)
    return ord(s[i]) if 0 <= i < len(s) else NaN


def _string_locale_compare(s, other=None, *_):
    other = to_string(other)
    return (s > other) - (s < other)


def _string_repeat(s, count=None, *_):
    n = to_integer(count)
    if n < 0:
        raise JSRangeError(f"Invalid count value: {to_string(count)}")
    return s * n


STRING_METHODS: dict[str, Callable[..., Any]] = {
    "toUpperCase": lambda s, *_: s.upper(),
    "toLowerCase": lambda s, *_: s.lower(),
    "toLocaleUpperCase": lambda s, *_: s.upper(),
    "toLocaleLowerCase": lambda s, *_: s.lower(),
    "trim": lambda s, *_: s.strip(),
    "trimStart": lambda s, *_: s.lstrip(),
    "trimEnd": lambda s, *_: s.rstrip(),
    "split": _string_split,
    "includes": lambda s, value=None, *_: to_string(value) in s,
    "startsWith": lambda s, value=None, pos=None, *_: s.startswith(to_string(value), max(to_integer(pos), 0)),
    "endsWith": lambda s, value=None, *_: s.endswith(to_string(value)),
    "indexOf": _string_index_of,
    "lastIndexOf": lambda s, value=None, *_: s.rfind(to_string(value)),
    "slice": _string_slice,
    "substring": _string_substring,
    "charAt": lambda s, index=None, *_: s[to_integer(index)] if 0 <= to_integer(index) < len(s) else "",
    "charCodeAt": _string_char_code_at,
    "at": lambda s, index=None, *_: _array_at(list(s), index),
    "replace": _string_replace,
    "replaceAll": functools.partial(_string_replace, count=-1),
    "repeat": _string_repeat,
    "padStart": _string_pad,
    "padEnd": functools.partial(_string_pad, start=False),
    "concat": lambda s, *values: s + "".join(to_string(v) for v in values),
    "localeCompare": _string_locale_compare,
    "toString": lambda s, *_: s,
    "valueOf": lambda s, *_: s,
}


def _number_to_fixed(n, digits=None, *_):
    places = to_integer(digits)
    if not 0 <= places <= 100:
        raise JSRangeError("toFixed() digits argument must be between 0 and 100")
    if n != n:
        return "NaN"
    if n in (Infinity, -Infinity) or abs(n) >= 1e21:
        return to_string(n)
    if n == 0:
        n = 0
    quantum = Decimal(1).scaleb(-places)
    return str(Decimal(n).quantize(quantum, rounding=ROUND_HALF_UP))


_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _number_to_string(n, radix=None, *_):
    base = 10 if radix is None else to_integer(radix)
    if base == 10 or n != n or n in (Infinity, -Infinity):
        return to_string(n)
    if not 2 <= base <= 36:
        raise JSRangeError("toString() radix must be between 2 and 36")
    value = int(n)
    digits = []
    sign = "-" if value < 0 else ""
    value = abs(value)
    while True:
        value, remainder = divmod(value, base)
        digits.append(_DIGITS[remainder])
        if not value:
            break
    return sign + "".join(reversed(digits))


def _number_to_locale_string(n, *_):
    if n != n or n in (Infinity, -Infinity):
        return to_string(n)
    if isinstance(n, int):
        return f"{n:,}"
    text = f"{n:,.3f}".rstrip("0").rstrip(".")
    return text


NUMBER_METHODS: dict[str, Callable[..., Any]] = {
    "toFixed": _number_to_fixed,
    "toString": _number_to_string,
    "toLocaleString": _number_to_locale_string,
    "valueOf": lambda n, *_: n,
}


OBJECT_METHODS: dict[str, Callable[..., Any]] = {
    "hasOwnProperty": lambda obj, name=None, *_: to_property_key(name) in obj,
    "toString": lambda obj, *_: "[object Object]",
    "valueOf": lambda obj, *_: obj,
}


FUNCTION_METHODS: dict[str, Callable[..., Any]] = {
    "call": lambda fn, this=None, *args: fn(*args),
    "apply": lambda fn, this=None, args=None, *_: fn(*iterate(args or [])),
    "bind": lambda fn, this=None, *bound: functools.partial(fn, *bound),
    "toString": lambda fn, *_: to_string(fn),
}


# ---------------------------------------------------------------------------
# JS globals
# ---------------------------------------------------------------------------


def _math_round(x=None, *_):
    n = to_number(x)
    if n != n or n in (Infinity, -Infinity):
        return n
    return int(math.floor(n + 0.5))


def _math_unary(fn: Callable[[float], Any]) -> Callable[..., Any]:
    def apply(x=None, *_):
        n = to_number(x)
        if n != n:
            return NaN
        try:
            return normalize_number(fn(n))
        except (ValueError, OverflowError):
            return NaN

    return apply


def _math_max(*values):
    numbers = [to_number(v) for v in values]
    if any(n != n for n in numbers):
        return NaN
    return max(numbers, default=-Infinity)


def _math_min(*values):
    numbers = [to_number(v) for v in values]
    if any(n != n for n in numbers):
        return NaN
    return min(numbers, default=Infinity)


def _math_sign(x=None, *_):
    n = to_number(x)
    if n != n or n == 0:
        return n
    return 1 if n > 0 else -1


def _math_trunc(x: float) -> Any:
    if x in (Infinity, -Infinity):
        return x
    return int(x)


def _math_floor(x: float) -> Any:
    return x if x in (Infinity, -Infinity) else math.floor(x)


def _math_ceil(x: float) -> Any:
    return x if x in (Infinity, -Infinity) else math.ceil(x)


Math: dict[str, Any] = {
    "PI": math.pi,
    "E": math.e,
    "LN2": math.log(2),
    "LN10": math.log(10),
    "SQRT2": math.sqrt(2),
    "abs": _math_unary(abs),
    "floor": _math_unary(_math_floor),
    "ceil": _math_unary(_math_ceil),
    "round": _math_round,
    "trunc": _math_unary(_math_trunc),
    "sign": _math_sign,
    "sqrt": _math_unary(math.sqrt),
    "cbrt": _math_unary(lambda x: math.copysign(abs(x) ** (1 / 3), x)),
    "exp": _math_unary(math.exp),
    "log": _math_unary(lambda x: -Infinity if x == 0 else math.log(x)),
    "log2": _math_unary(lambda x: -Infinity if x == 0 else math.log2(x)),
    "log10": _math_unary(lambda x: -Infinity if x == 0 else math.log10(x)),
    "sin": _math_unary(math.sin),
    "cos": _math_unary(math.cos),
    "tan": _math_unary(math.tan),
    "atan": _math_unary(math.atan),
    "atan2": lambda y=None, x=None, *_: normalize_number(math.atan2(to_number(y), to_number(x))),
    "hypot": lambda *values: normalize_number(math.hypot(*(to_number(v) for v in values))),
    "pow": lambda x=None, y=None, *_: pow(x, y),
    "max": _math_max,
    "min": _math_min,
    "random": lambda *_: random.random(),
}


def _to_json_value(value: Any) -> Any:
    value = _js_view(value)
    if value is None or isinstance(value, (bool, str)):
        return value
    if is_number(value):
        if value != value or value in (Infinity, -Infinity):
            return None
        return normalize_number(value)
    if isinstance(value, list):
        return [None if callable(item) else _to_json_value(item) for item in value]
    if isinstance(value, dict):
        return {k: _to_json_value(v) for k, v in value.items() if not callable(v)}
    if isinstance(value, JSError):
        return {}
    if isinstance(value, Element):
        return {"type": value.type if isinstance(value.type, str) else None, "props": _to_json_value(value.props)}
    return None


def _json_stringify(value=None, replacer=None, space=None, *_):
    if value is None or (callable(value) and not isinstance(value, ModuleType)):
        return None
    indent: int | str | None = None
    if is_number(space):
        indent = min(10, to_integer(space)) or None
    elif isinstance(space, str) and space:
        indent = space[:10]
    separators = (",", ":") if indent is None else (",", ": ")
    return json.dumps(_to_json_value(value), ensure_ascii=False, indent=indent, separators=separators)


def _json_parse(text=None, *_):
    try:
        return json.loads(to_string(text), parse_float=lambda s: normalize_number(float(s)))
    except json.JSONDecodeError as exc:
        raise JSSyntaxError(f"Unexpected token in JSON at position {exc.pos}") from exc


JSON: dict[str, Any] = {"stringify": _json_stringify, "parse": _json_parse}


def _console_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return _json_stringify(value) or ""
    return to_string(value)


def _console(level: int) -> Callable[..., None]:
    def emit(*values: Any) -> None:
        logger.log(level, "component console: %s", " ".join(_console_text(v) for v in values))

    return emit


console: dict[str, Any] = {
    "log": _console(logging.INFO),
    "info": _console(logging.INFO),
    "debug": _console(logging.DEBUG),
    "warn": _console(logging.WARNING),
    "error": _console(logging.ERROR),
}


_INT_PREFIX_RE = re.compile(r"^[+-]?[0-9a-zA-Z]*")
_FLOAT_PREFIX_RE = re.compile(r"^[+-]?(Infinity|\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?)")


def parseInt(value=None, radix=None, *_):
    text = to_string(value).strip()
    sign = -1 if text.startswith("-") else 1
    if text and text[0] in "+-":
        text = text[1:]
    base = to_integer(radix) if radix is not None else 0
    if base == 0:
        base = 10
        if text[:2].lower() == "0x":
            base, text = 16, text[2:]
    elif base == 16 and text[:2].lower() == "0x":
        text = text[2:]
    if not 2 <= base <= 36:
        return NaN
    digits = ""
    for ch in text:
        if ch.lower() in _DIGITS[:base]:
            digits += ch
        else:
            break
    if not digits:
        return NaN
    return sign * int(digits, base)


def parseFloat(value=None, *_):
    match = _FLOAT_PREFIX_RE.match(to_string(value).strip())
    if not match:
        return NaN
    text = match.group(0)
    if text.lstrip("+-") == "Infinity":
        return -Infinity if text.startswith("-") else Infinity
    return normalize_number(float(text))


def isNaN(value=None, *_):
    n = to_number(value)
    return n != n


def isFinite(value=None, *_):
    n = to_number(value)
    return n == n and n not in (Infinity, -Infinity)


def String(value="", *_):
    return to_string(value)


def Number(value=0, *_):
    return to_number(value)


def Boolean(value=None, *_):
    return truthy(value)


def Object(value=None, *_):
    return {} if value is None else value


def Array(*values):
    if len(values) == 1 and is_number(values[0]):
        return [None] * to_integer(values[0])
    return list(values)


def _array_from(value=None, fn=None, *_):
    if isinstance(value, dict):
        items = [get(value, i) for i in range(to_integer(value.get("length")))]
    else:
        items = list(iterate(value))
    if fn is not None:
        return [fn(item, i) for i, item in enumerate(items)]
    return items


def _object_assign(target=None, *sources):
    if target is None:
        raise JSTypeError("Cannot convert undefined or null to object")
    for source in sources:
        target.update(spread(source))
    return target


def _object_from_entries(entries=None, *_):
    return {to_property_key(get(entry, 0)): get(entry, 1) for entry in iterate(entries)}


def _require_object(value: Any) -> Any:
    if value is None:
        raise JSTypeError("Cannot convert undefined or null to object")
    return value


def _error_factory(cls: type[JSError]) -> Callable[..., JSError]:
    def factory(message=None, *_):
        return cls("" if message is None else to_string(message))

    factory.__name__ = cls.name
    return factory


Error = _error_factory(JSError)
TypeError_ = _error_factory(JSTypeError)
RangeError_ = _error_factory(JSRangeError)
ReferenceError_ = _error_factory(JSReferenceError)
SyntaxError_ = _error_factory(JSSyntaxError)

_ERROR_TYPES = (
    (TypeError_, JSTypeError),
    (RangeError_, JSRangeError),
    (ReferenceError_, JSReferenceError),
    (SyntaxError_, JSSyntaxError),
)
_CONSTRUCTIBLE = (Error, *(factory for factory, _ in _ERROR_TYPES), Array, Object)

function_props(String).update({"fromCharCode": lambda *codes: "".join(chr(to_integer(c)) for c in codes)})
function_props(Number).update(
    {
        "isInteger": lambda v=None, *_: is_number(v) and isFinite(v) and float(v).is_integer(),
        "isFinite": lambda v=None, *_: is_number(v) and isFinite(v),
        "isNaN": lambda v=None, *_: is_number(v) and v != v,
        "isSafeInteger": lambda v=None, *_: isinstance(v, int) and not isinstance(v, bool) and abs(v) < 2**53,
        "parseFloat": parseFloat,
        "parseInt": parseInt,
        "MAX_SAFE_INTEGER": 2**53 - 1,
        "MIN_SAFE_INTEGER": -(2**53 - 1),
        "EPSILON": 2.0**-52,
        "POSITIVE_INFINITY": Infinity,
        "NEGATIVE_INFINITY": -Infinity,
        "NaN": NaN,
    }
)
function_props(Object).update(
    {
        "keys": lambda v=None, *_: list(spread(_require_object(v)).keys()),
        "values": lambda v=None, *_: list(spread(_require_object(v)).values()),
        "entries": lambda v=None, *_: [[k, item] for k, item in spread(_require_object(v)).items()],
        "assign": _object_assign,
        "fromEntries": _object_from_entries,
        "freeze": lambda v=None, *_: v,
    }
)
function_props(Array).update(
    {
        "isArray": lambda v=None, *_: isinstance(v, list),
        "from": _array_from,
        "of": lambda *values: list(values),
    }
)
