"""
Preview pipeline — JavaScript value semantics.

Component source is authored in TSX, so the code it compiles to has to
behave like JavaScript: truthiness, string coercion, number formatting,
strict equality. Values map onto Python as:

  undefined / null  → None
  boolean           → bool
  number            → int (integral) or float
  string            → str
  array             → list
  plain object      → dict (string keys)
  function          → any Python callable

Arbitrary properties set on functions (Widget.defaultProps = {...}) live in
a side table keyed weakly by the function.
"""

from __future__ import annotations

import math
import re
import weakref
from decimal import Decimal
from typing import Any

NaN = math.nan
Infinity = math.inf

# Largest integer a JS number holds exactly
_MAX_SAFE = 2**53


# ---------------------------------------------------------------------------
# Runtime errors raised by (or on behalf of) component code
# ---------------------------------------------------------------------------


class JSError(Exception):
    """An error as component code sees it: a name and a message."""

    name = "Error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.name}: {self.message}" if self.message else self.name


class JSTypeError(JSError):
    name = "TypeError"


class JSReferenceError(JSError):
    name = "ReferenceError"


class JSSyntaxError(JSError):
    name = "SyntaxError"


class JSRangeError(JSError):
    name = "RangeError"


class JSThrow(JSError):
    """A value thrown with `throw` that is not one of ours."""

    def __init__(self, value: Any) -> None:
        self.value = value
        if isinstance(value, dict):
            self.name = to_string(value.get("name") or "Error")
            message = to_string(value.get("message") or "")
        else:
            message = to_string(value)
        super().__init__(message)


def error_message(exc: BaseException) -> str:
    """Short, user-facing text for an exception raised by component code."""
    if isinstance(exc, JSError):
        return exc.message or exc.name
    text = str(exc)
    return text or type(exc).__name__


# ---------------------------------------------------------------------------
# Function properties
# ---------------------------------------------------------------------------

_FUNCTION_PROPS: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()


def function_props(fn: Any) -> dict[str, Any]:
    """Return the JS-visible property bag of a callable, creating it on demand."""
    try:
        props = _FUNCTION_PROPS.get(fn)
        if props is None:
            props = {}
            _FUNCTION_PROPS[fn] = props
        return props
    except TypeError as exc:
        raise JSTypeError("Cannot add property to this function") from exc


def peek_function_props(fn: Any) -> dict[str, Any] | None:
    """Return the property bag of a callable without creating one."""
    try:
        return _FUNCTION_PROPS.get(fn)
    except TypeError:
        return None


# ---------------------------------------------------------------------------
# Type predicates and coercions
# ---------------------------------------------------------------------------


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_object(value: Any) -> bool:
    """True for values JS treats as objects (arrays, objects, functions)."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return False
    return True


def typeof(value: Any) -> str:
    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if callable(value) and not isinstance(value, (dict, list)):
        return "function"
    return "object"


def truthy(value: Any) -> bool:
    if value is None or value is False:
        return False
    if value is True:
        return True
    if is_number(value):
        return not (value == 0 or value != value)
    if isinstance(value, str):
        return value != ""
    return True


def normalize_number(value: float | int) -> float | int:
    """Collapse integral floats to int so they print the way JS prints them."""
    if isinstance(value, float) and value.is_integer() and abs(value) < _MAX_SAFE:
        return int(value)
    return value


_DECIMAL_RE = re.compile(r"^[+-]?(\d+\.?\d*([eE][+-]?\d+)?|\.\d+([eE][+-]?\d+)?)$")
_HEX_RE = re.compile(r"^0[xX][0-9a-fA-F]+$")
_OCT_RE = re.compile(r"^0[oO][0-7]+$")
_BIN_RE = re.compile(r"^0[bB][01]+$")


def to_number(value: Any) -> float | int:
    if value is None:
        return NaN
    if isinstance(value, bool):
        return 1 if value else 0
    if is_number(value):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text == "":
            return 0
        if _DECIMAL_RE.match(text):
            return normalize_number(float(text))
        if _HEX_RE.match(text):
            return int(text, 16)
        if _OCT_RE.match(text):
            return int(text[2:], 8)
        if _BIN_RE.match(text):
            return int(text[2:], 2)
        if text in ("Infinity", "+Infinity"):
            return Infinity
        if text == "-Infinity":
            return -Infinity
        return NaN
    if isinstance(value, list):
        if not value:
            return 0
        if len(value) == 1:
            return to_number(to_string(value[0]))
        return NaN
    return NaN


def to_integer(value: Any) -> int:
    """ToIntegerOrInfinity, clamped to int (NaN → 0)."""
    number = to_number(value)
    if number != number:
        return 0
    if number in (Infinity, -Infinity):
        return _MAX_SAFE if number > 0 else -_MAX_SAFE
    return int(number)


def to_int32(value: Any) -> int:
    number = to_integer(value) % 2**32
    return number - 2**32 if number >= 2**31 else number


def format_number(value: float | int) -> str:
    """Number.prototype.toString(): shortest round-trip digits, exponent at 1e21 and below 1e-6."""
    if isinstance(value, int):
        if abs(value) < 2**53:
            return str(value)
        try:
            value = float(value)
        except OverflowError:
            return "Infinity" if value > 0 else "-Infinity"
    if value != value:
        return "NaN"
    if value == Infinity:
        return "Infinity"
    if value == -Infinity:
        return "-Infinity"
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = "".join(map(str, digit_tuple)).rstrip("0")
    exponent += len(digit_tuple) - len(digits)
    k = len(digits)
    n = k + exponent
    if k <= n <= 21:
        text = digits + "0" * (n - k)
    elif 0 < n <= 21:
        text = f"{digits[:n]}.{digits[n:]}"
    elif -6 < n <= 0:
        text = "0." + "0" * -n + digits
    else:
        fraction = f".{digits[1:]}" if k > 1 else ""
        text = f"{digits[0]}{fraction}e{'+' if n > 0 else '-'}{abs(n - 1)}"
    return sign + text


def to_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return "undefined"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if is_number(value):
        return format_number(value)
    if isinstance(value, list):
        return ",".join("" if item is None else to_string(item) for item in value)
    if isinstance(value, JSError):
        return str(value)
    if isinstance(value, dict):
        return "[object Object]"
    if callable(value):
        name = getattr(value, "__name__", "") or ""
        return f"function {name}() {{ [native code] }}"
    return "[object Object]"


def to_property_key(key: Any) -> str:
    if isinstance(key, str):
        return key
    return to_string(key)


def to_array_index(key: Any) -> int | None:
    """Return key as a non-negative array index, or None if it is not one."""
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key if key >= 0 else None
    if isinstance(key, float):
        return int(key) if key.is_integer() and key >= 0 else None
    if isinstance(key, str) and key.isdigit() and (key == "0" or not key.startswith("0")):
        return int(key)
    return None


def to_primitive(value: Any) -> Any:
    if is_object(value):
        return to_string(value)
    return value


# ---------------------------------------------------------------------------
# Equality
# ---------------------------------------------------------------------------


def strict_equals(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return a is b
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if is_number(a) and is_number(b):
        return a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    return a is b


def loose_equals(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return a is None and b is None
    if isinstance(a, bool):
        a = 1 if a else 0
    if isinstance(b, bool):
        b = 1 if b else 0
    if is_object(a) and is_object(b):
        return a is b
    if is_object(a):
        a = to_primitive(a)
    if is_object(b):
        b = to_primitive(b)
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    return to_number(a) == to_number(b)
