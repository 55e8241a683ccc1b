"""
Preview pipeline — TSX → Python transpiler.

Uses tree-sitter (TSX grammar) to parse stored component source and emits a
Python module written against a CommonJS-style convention:

  _rt = require("react/jsx-runtime")
  _m1 = require("react")
  useState = _rt.get(_m1, 'useState')

  def Widget(props=None, *_):
      return _rt.h('div', {'className': 'w'}, _rt.get(props, 'label'))
  exports['default'] = Widget

The emitted code uses no Python builtins. Every operation with JavaScript
semantics (property access, `+`, `===`, truthiness, iteration) is a call into
the runtime module, so the module can run in a namespace that holds nothing
but `module`, `exports` and `require`.

Scoping: JS block scopes are flattened onto Python function scopes. A
declaration that would shadow a name already bound in the same or an
enclosing function gets a fresh Python name, so closures never capture the
wrong binding. Assignments to outer bindings declare `nonlocal`/`global`.

Not supported (raises TranspileError): classes, `this`, async/await,
generators, regex literals, switch, labels, comma sequences in expressions,
enums and namespaces. Known approximations: null and undefined are both
None, optional chaining short-circuits one link at a time. Closures created in
loops capture each iteration's let/const bindings with the value they hold
when the closure is created.
"""

from __future__ import annotations

import html
import keyword
import logging
import re
from contextlib import contextmanager
from typing import Iterator, NoReturn

import tree_sitter_typescript as _ts_mod
from tree_sitter import Language, Node, Parser

from engine.preview.errors import TranspileError
from engine.preview.values import format_number, normalize_number

logger = logging.getLogger(__name__)

_LANG = Language(_ts_mod.language_tsx())
_PARSER = Parser(_LANG)

RUNTIME_MODULE = "react/jsx-runtime"


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

_BINARY_HELPERS = {
    "+": "add",
    "-": "sub",
    "*": "mul",
    "/": "div",
    "%": "mod",
    "**": "pow",
    "===": "eq",
    "!==": "ne",
    "==": "loose_eq",
    "!=": "loose_ne",
    "<": "lt",
    ">": "gt",
    "<=": "le",
    ">=": "ge",
    "&": "bit_and",
    "|": "bit_or",
    "^": "bit_xor",
    "<<": "shl",
    ">>": "shr",
    ">>>": "ushr",
}

# Operators whose result is already a Python bool
_PREDICATES = frozenset(["===", "!==", "==", "!=", "<", ">", "<=", ">=", "in", "instanceof"])

# JS globals → attribute on the runtime module
_JS_GLOBALS = {
    "Math": "Math",
    "JSON": "JSON",
    "Object": "Object",
    "Array": "Array",
    "String": "String",
    "Number": "Number",
    "Boolean": "Boolean",
    "console": "console",
    "parseInt": "parseInt",
    "parseFloat": "parseFloat",
    "isNaN": "isNaN",
    "isFinite": "isFinite",
    "NaN": "NaN",
    "Infinity": "Infinity",
    "Error": "Error",
    "TypeError": "TypeError_",
    "RangeError": "RangeError_",
    "ReferenceError": "ReferenceError_",
    "SyntaxError": "SyntaxError_",
}

_UNSUPPORTED = {
    "class_declaration": "class",
    "abstract_class_declaration": "class",
    "class": "class",
    "this": "this",
    "super": "super",
    "await_expression": "async/await",
    "yield_expression": "generator",
    "generator_function_declaration": "generator",
    "generator_function": "generator",
    "regex": "regular expression",
    "switch_statement": "switch",
    "labeled_statement": "label",
    "sequence_expression": "comma sequence",
    "enum_declaration": "enum",
    "internal_module": "namespace",
    "module": "namespace",
    "with_statement": "with",
    "debugger_statement": "debugger",
    "meta_property": "import.meta / new.target",
    "import": "dynamic import",
    "private_property_identifier": "private field",
    "decorator": "decorator",
    "import_alias": "import alias",
}

_TYPE_ONLY_STATEMENTS = frozenset(
    ["interface_declaration", "type_alias_declaration", "ambient_declaration", "function_signature"]
)

_FUNCTION_TYPES = frozenset(
    [
        "function_declaration",
        "function_expression",
        "function",
        "arrow_function",
        "method_definition",
        "generator_function_declaration",
        "generator_function",
        "class_declaration",
        "class",
    ]
)

_FUNCTION_EXPRESSIONS = frozenset(["arrow_function", "function_expression", "function"])

_LOOP_TYPES = frozenset(["for_statement", "for_in_statement", "while_statement", "do_statement"])

# When a loop-scoped binding holds its value, relative to source positions:
# loop heads before anything in the body, hoisted functions before other statements
_READY_LOOP_HEAD = -2
_READY_HOISTED = -1

_TYPE_WRAPPERS = frozenset(["as_expression", "satisfies_expression", "non_null_expression"])

# Subtrees that only ever hold types
_TYPE_SUBTREES = frozenset(
    [
        "type_annotation",
        "type_arguments",
        "type_parameters",
        "interface_declaration",
        "type_alias_declaration",
        "implements_clause",
        "asserts_annotation",
        "ambient_declaration",
    ]
)

_RESERVED_MODULE_NAMES = ("module", "exports", "require")

_ESCAPE_RE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|[0-7]{1,3}|\r\n|[\s\S])")
_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v"}
_LINE_CONTINUATIONS = frozenset(["\n", "\r", "\r\n", "\u2028", "\u2029"])
_INTRINSIC_TAG_RE = re.compile(r"^[a-z]")
_JSX_LINE_RE = re.compile(r"\r\n|\n|\r")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _named(node: Node | None) -> list[Node]:
    """Named children without comments."""
    if node is None:
        return []
    return [child for child in node.named_children if child.type != "comment"]


def _has_token(node: Node, token: str) -> bool:
    return any(not child.is_named and child.type == token for child in node.children)


def mangle(name: str) -> str:
    """Map a JS identifier onto a Python identifier that cannot collide with generated names."""
    if "$" in name:
        return "_d_" + name.replace("_", "__").replace("$", "_S")
    if name.startswith("_"):
        return "_js" + name
    if keyword.iskeyword(name):
        return "_kw_" + name
    if not name.isidentifier():
        return "_x" + name.encode("utf-8").hex()
    return name


def decode_escapes(raw: str) -> str:
    """Cook a JS string/template body: resolve escapes, join surrogate pairs."""

    def replace(match: re.Match[str]) -> str:
        esc = match.group(1)
        if esc.startswith("u{"):
            return chr(int(esc[2:-1], 16))
        if esc[0] == "u" and len(esc) == 5:
            return chr(int(esc[1:], 16))
        if esc[0] == "x" and len(esc) == 3:
            return chr(int(esc[1:], 16))
        if esc in _LINE_CONTINUATIONS:
            return ""
        if esc in _SIMPLE_ESCAPES:
            return _SIMPLE_ESCAPES[esc]
        if esc[0] in "01234567":
            return chr(int(esc, 8))
        return esc

    text = _ESCAPE_RE.sub(replace, raw)
    return text.encode("utf-16", "surrogatepass").decode("utf-16", "surrogatepass")


def parse_number(text: str) -> int | float:
    text = text.replace("_", "")
    lower = text.lower()
    if lower.startswith("0x"):
        return int(text[2:], 16)
    if lower.startswith("0o"):
        return int(text[2:], 8)
    if lower.startswith("0b"):
        return int(text[2:], 2)
    if len(text) > 1 and text[0] == "0" and text.isdigit():
        # Legacy octal literal unless it holds an 8 or 9
        return int(text, 8) if all(ch in "01234567" for ch in text) else int(text)
    return normalize_number(float(text))


def _number_literal(value: int | float) -> str:
    if value == float("inf"):
        return "_rt.Infinity"
    if value == float("-inf"):
        return "_rt.neg(_rt.Infinity)"
    return repr(value)


def clean_jsx_text(text: str) -> str:
    """Collapse JSX text whitespace the way the JSX transform does."""
    lines = _JSX_LINE_RE.split(text)
    last_non_empty = 0
    for i, line in enumerate(lines):
        if re.search(r"[^ \t]", line):
            last_non_empty = i
    out = []
    for i, line in enumerate(lines):
        trimmed = line.replace("\t", " ")
        if i != 0:
            trimmed = trimmed.lstrip(" ")
        if i != len(lines) - 1:
            trimmed = trimmed.rstrip(" ")
        if trimmed:
            if i != last_non_empty:
                trimmed += " "
            out.append(trimmed)
    return "".join(out)


def _first_error(node: Node) -> Node | None:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = _first_error(child)
            if found is not None:
                return found
    return None


def _has_continue(node: Node) -> bool:
    """True if a `continue` inside node targets the loop that owns node."""
    if node.type == "continue_statement":
        return True
    if node.type in _LOOP_TYPES or node.type in _FUNCTION_TYPES:
        return False
    return any(_has_continue(child) for child in node.named_children)


# ---------------------------------------------------------------------------
# Scopes and output
# ---------------------------------------------------------------------------


class _FunctionScope:
    """One Python function (or the module body)."""

    __slots__ = ("parent", "used", "nonlocals", "globals", "free")

    def __init__(self, parent: _FunctionScope | None) -> None:
        self.parent = parent
        self.used: set[str] = set()
        self.free: set[str] = set()
        self.nonlocals: set[str] = set()
        self.globals: set[str] = set()

    @property
    def is_module(self) -> bool:
        return self.parent is None


class _Scope:
    """
    One JS block scope: JS name → Python name.

    `loop` scopes get a fresh binding per iteration in JS. `ready` records, for
    their let/const names, the source position after which the value is set.
    """

    __slots__ = ("parent", "function", "bindings", "loop", "ready")

    def __init__(self, parent: _Scope | None, function: _FunctionScope, loop: bool = False) -> None:
        self.parent = parent
        self.function = function
        self.bindings: dict[str, str] = {}
        self.loop = loop
        self.ready: dict[str, int] = {}


class _Emitter:
    __slots__ = ("lines", "indent")

    def __init__(self, indent: int = 0) -> None:
        self.lines: list[str] = []
        self.indent = indent

    def line(self, text: str) -> None:
        self.lines.append("    " * self.indent + text)

    @contextmanager
    def block(self) -> Iterator[None]:
        self.indent += 1
        start = len(self.lines)
        yield
        if len(self.lines) == start:
            self.line("pass")
        self.indent -= 1


# ---------------------------------------------------------------------------
# Transpiler
# ---------------------------------------------------------------------------


class _Transpiler:
    def __init__(self, source: bytes) -> None:
        self.src = source
        self.counter = 0
        self.module_fn = _FunctionScope(None)
        self.scope = _Scope(None, self.module_fn)
        for name in _RESERVED_MODULE_NAMES:
            self.scope.bindings[name] = name
            self.module_fn.used.add(name)
        self.module_fn.used.add("_rt")
        self.em = _Emitter()
        self.value_refs: set[str] = set()
        self.type_names: set[str] = set()
        self.deferred_exports: list[tuple[str, str]] = []

    # -- utilities -----------------------------------------------------------

    def text(self, node: Node) -> str:
        return self.src[node.start_byte : node.end_byte].decode("utf-8")

    def fresh(self, prefix: str) -> str:
        self.counter += 1
        return f"_{prefix}{self.counter}"

    def fail(self, node: Node, what: str | None = None) -> NoReturn:
        row, column = node.start_point
        label = what or _UNSUPPORTED.get(node.type) or node.type.replace("_", " ")
        raise TranspileError(f"unsupported syntax: {label}", row + 1, column + 1)

    def string_value(self, node: Node) -> str:
        return decode_escapes(self.src[node.start_byte + 1 : node.end_byte - 1].decode("utf-8"))

    @contextmanager
    def child_scope(self, loop: bool = False) -> Iterator[_Scope]:
        outer = self.scope
        self.scope = _Scope(outer, outer.function, loop or outer.loop)
        try:
            yield self.scope
        finally:
            self.scope = outer

    # -- bindings ------------------------------------------------------------

    def _taken(self, name: str, function: _FunctionScope) -> bool:
        fn: _FunctionScope | None = function
        while fn is not None:
            if name in fn.used:
                return True
            fn = fn.parent
        return False

    def declare(self, scope: _Scope, name: str, ready: int | None = None) -> str:
        if name in scope.bindings:
            return scope.bindings[name]
        if scope.loop and ready is not None:
            scope.ready[name] = ready
        py = mangle(name)
        if self._taken(py, scope.function):
            py = f"{self.fresh('s')}_{py}"
        scope.bindings[name] = py
        scope.function.used.add(py)
        return py

    def lookup(self, name: str) -> tuple[str, _FunctionScope] | None:
        scope: _Scope | None = self.scope
        while scope is not None:
            if name in scope.bindings:
                return scope.bindings[name], scope.function
            scope = scope.parent
        return None

    def ident(self, name: str) -> str:
        """Python expression reading the JS identifier `name`."""
        found = self.lookup(name)
        if found is not None:
            py, owner = found
            fn: _FunctionScope | None = self.scope.function
            while fn is not None and fn is not owner:
                fn.free.add(py)
                fn = fn.parent
            return py
        if name == "undefined":
            return "None"
        if name in _JS_GLOBALS:
            return f"_rt.{_JS_GLOBALS[name]}"
        return f"_rt.unresolved({name!r})"

    def target(self, name: str) -> str | None:
        """Python name to assign for the JS identifier `name`, or None if unbound."""
        found = self.lookup(name)
        if found is None:
            return None
        py, owner = found
        current = self.scope.function
        if owner is not current:
            if owner.is_module:
                current.globals.add(py)
            else:
                current.nonlocals.add(py)
        return py

    def pattern_names(self, node: Node | None) -> list[str]:
        if node is None:
            return []
        t = node.type
        if t in ("identifier", "shorthand_property_identifier_pattern"):
            return [self.text(node)]
        if t in ("object_pattern", "array_pattern"):
            names: list[str] = []
            for child in _named(node):
                names.extend(self.pattern_names(child))
            return names
        if t == "pair_pattern":
            return self.pattern_names(node.child_by_field_name("value"))
        if t in ("object_assignment_pattern", "assignment_pattern"):
            return self.pattern_names(node.child_by_field_name("left"))
        if t == "rest_pattern":
            return [name for child in _named(node) for name in self.pattern_names(child)]
        if t in ("required_parameter", "optional_parameter"):
            return self.pattern_names(node.child_by_field_name("pattern"))
        return []

    def declared_names(self, node: Node) -> list[str]:
        """Block-scoped names a statement introduces (var is collected per function)."""
        t = node.type
        if t == "lexical_declaration":
            return [
                name
                for decl in _named(node)
                if decl.type == "variable_declarator"
                for name in self.pattern_names(decl.child_by_field_name("name"))
            ]
        if t == "function_declaration":
            return [self.text(node.child_by_field_name("name"))]
        if t == "export_statement":
            decl = node.child_by_field_name("declaration")
            return self.declared_names(decl) if decl is not None else []
        if t == "import_statement" and not _has_token(node, "type"):
            return [local for _, local in self.import_bindings(node)]
        return []

    def var_names(self, node: Node) -> list[str]:
        names: list[str] = []
        stack = list(node.named_children)
        while stack:
            child = stack.pop()
            if child.type in _FUNCTION_TYPES or child.type in _TYPE_SUBTREES:
                continue
            if child.type == "variable_declaration":
                for decl in _named(child):
                    if decl.type == "variable_declarator":
                        names.extend(self.pattern_names(decl.child_by_field_name("name")))
            stack.extend(child.named_children)
        return names

    # -- module --------------------------------------------------------------

    def program(self, root: Node) -> str:
        if root.has_error:
            bad = _first_error(root) or root
            row, column = bad.start_point
            if bad.is_missing:
                message = f"syntax error: missing {bad.type!r}"
            else:
                message = f"syntax error near {self.text(bad)[:30]!r}"
            raise TranspileError(message, row + 1, column + 1)

        self.collect_refs(root)
        self.em.line(f"_rt = require({RUNTIME_MODULE!r})")
        for name in self.var_names(root):
            self.declare(self.scope, name)
        self.statements(_named(root))
        for exported, local in self.deferred_exports:
            self.em.line(f"exports[{exported!r}] = {self.ident(local)}")
        return "\n".join(self.em.lines) + "\n"

    def collect_refs(self, root: Node) -> None:
        """Record identifiers used as values, and names declared as types."""
        stack = [root]
        while stack:
            node = stack.pop()
            t = node.type
            if t in ("interface_declaration", "type_alias_declaration"):
                name = node.child_by_field_name("name")
                if name is not None:
                    self.type_names.add(self.text(name))
                continue
            if t == "import_statement" or t in _TYPE_SUBTREES:
                continue
            if t in ("as_expression", "satisfies_expression"):
                stack.extend(_named(node)[:1])
                continue
            if t in ("identifier", "shorthand_property_identifier"):
                self.value_refs.add(self.text(node))
            stack.extend(node.children)

    # -- statements ----------------------------------------------------------

    def statements(self, nodes: list[Node]) -> None:
        for node in nodes:
            ready = _READY_HOISTED if node.type == "function_declaration" else node.end_byte
            for name in self.declared_names(node):
                self.declare(self.scope, name, ready)

        def rank(node: Node) -> int:
            if node.type == "import_statement":
                return 0
            decl = node.child_by_field_name("declaration") if node.type == "export_statement" else node
            if decl is not None and decl.type == "function_declaration":
                return 1
            return 2

        for node in sorted(nodes, key=rank):
            self.statement(node)

    def substatement(self, node: Node, loop: bool = False) -> None:
        with self.child_scope(loop):
            if node.type == "statement_block":
                self.statements(_named(node))
            else:
                self.statements([node])

    def statement(self, node: Node) -> None:
        t = node.type
        if t in ("lexical_declaration", "variable_declaration"):
            self.declaration(node)
        elif t == "function_declaration":
            name = self.text(node.child_by_field_name("name"))
            self.function(node, self.ident(name))
        elif t == "expression_statement":
            inner = _named(node)
            if inner and inner[0].type != "string":
                self.effect(inner[0])
        elif t == "return_statement":
            inner = _named(node)
            self.em.line(f"return {self.expr(inner[0])}" if inner else "return None")
        elif t == "if_statement":
            self.if_statement(node)
        elif t == "statement_block":
            self.substatement(node)
        elif t == "for_in_statement":
            self.for_in_statement(node)
        elif t == "for_statement":
            self.for_statement(node)
        elif t == "while_statement":
            self.em.line(f"while {self.test(node.child_by_field_name('condition'))}:")
            with self.em.block():
                self.substatement(node.child_by_field_name("body"), loop=True)
        elif t == "do_statement":
            self.do_statement(node)
        elif t in ("break_statement", "continue_statement"):
            if node.child_by_field_name("label") is not None:
                self.fail(node, "label")
            self.em.line("break" if t == "break_statement" else "continue")
        elif t == "throw_statement":
            self.em.line(f"raise _rt.thrown({self.expr(_named(node)[0])})")
        elif t == "try_statement":
            self.try_statement(node)
        elif t == "import_statement":
            self.import_statement(node)
        elif t == "export_statement":
            self.export_statement(node)
        elif t in _TYPE_ONLY_STATEMENTS or t in ("empty_statement", "comment"):
            pass
        else:
            self.fail(node)

    def declaration(self, node: Node) -> None:
        for decl in _named(node):
            if decl.type != "variable_declarator":
                continue
            name_node = decl.child_by_field_name("name")
            value = decl.child_by_field_name("value")
            if name_node.type == "identifier":
                py = self.target(self.text(name_node))
                if value is not None and self.unwrap(value).type in _FUNCTION_EXPRESSIONS:
                    self.function(self.unwrap(value), py)
                else:
                    self.em.line(f"{py} = {self.expr(value) if value is not None else 'None'}")
            elif value is None:
                self.fail(decl, "destructuring declaration without initializer")
            else:
                self.bind_pattern(name_node, self.expr(value))

    def if_statement(self, node: Node) -> None:
        self.em.line(f"if {self.test(node.child_by_field_name('condition'))}:")
        with self.em.block():
            self.substatement(node.child_by_field_name("consequence"))
        alternative = node.child_by_field_name("alternative")
        if alternative is not None:
            self.em.line("else:")
            with self.em.block():
                for child in _named(alternative):
                    self.substatement(child)

    def for_in_statement(self, node: Node) -> None:
        if _has_token(node, "await"):
            self.fail(node, "for await")
        left = node.child_by_field_name("left")
        kind = node.child_by_field_name("kind")
        operator = self.text(node.child_by_field_name("operator"))
        iterable = self.expr(node.child_by_field_name("right"))
        source = f"_rt.iterate({iterable})" if operator == "of" else f"_rt.keys_of({iterable})"
        with self.child_scope(loop=True) as scope:
            if kind is not None:
                ready = _READY_LOOP_HEAD if self.text(kind) != "var" else None
                for name in self.pattern_names(left):
                    self.declare(scope, name, ready)
            py = self.target(self.text(left)) if left.type == "identifier" else None
            if py is not None:
                self.em.line(f"for {py} in {source}:")
                with self.em.block():
                    self.substatement(node.child_by_field_name("body"))
            else:
                item = self.fresh("p")
                self.em.line(f"for {item} in {source}:")
                with self.em.block():
                    self.bind_pattern(left, item)
                    self.substatement(node.child_by_field_name("body"))

    def _loop_part(self, node: Node | None) -> Node | None:
        if node is None or node.type in (";", "empty_statement"):
            return None
        if node.type == "expression_statement":
            inner = _named(node)
            return inner[0] if inner else None
        return node

    def for_statement(self, node: Node) -> None:
        with self.child_scope(loop=True) as scope:
            init = node.child_by_field_name("initializer")
            if init is not None and init.type == "lexical_declaration":
                for name in self.declared_names(init):
                    self.declare(scope, name, _READY_LOOP_HEAD)
                self.declaration(init)
            elif init is not None and init.type == "variable_declaration":
                self.declaration(init)
            else:
                init_expr = self._loop_part(init)
                if init_expr is not None:
                    self.effect(init_expr)
            condition = self._loop_part(node.child_by_field_name("condition"))
            update = self._loop_part(node.child_by_field_name("increment"))
            body = node.child_by_field_name("body")

            if not _has_continue(body):
                self.em.line(f"while {self.test(condition) if condition is not None else 'True'}:")
                with self.em.block():
                    self.substatement(body)
                    if update is not None:
                        self.effect(update)
                return

            started = self.fresh("f")
            self.em.line(f"{started} = False")
            self.em.line("while True:")
            with self.em.block():
                if update is not None:
                    self.em.line(f"if {started}:")
                    with self.em.block():
                        self.effect(update)
                self.em.line(f"{started} = True")
                if condition is not None:
                    self.em.line(f"if not {self.test(condition)}:")
                    with self.em.block():
                        self.em.line("break")
                self.substatement(body)

    def do_statement(self, node: Node) -> None:
        started = self.fresh("f")
        self.em.line(f"{started} = False")
        self.em.line("while True:")
        with self.em.block():
            self.em.line(f"if {started} and not {self.test(node.child_by_field_name('condition'))}:")
            with self.em.block():
                self.em.line("break")
            self.em.line(f"{started} = True")
            self.substatement(node.child_by_field_name("body"), loop=True)

    def try_statement(self, node: Node) -> None:
        handler = node.child_by_field_name("handler")
        finalizer = node.child_by_field_name("finalizer")
        self.em.line("try:")
        with self.em.block():
            self.substatement(node.child_by_field_name("body"))
        if handler is not None:
            error = self.fresh("e")
            self.em.line(f"except _rt.Catchable as {error}:")
            with self.em.block(), self.child_scope() as scope:
                param = handler.child_by_field_name("parameter")
                if param is not None:
                    for name in self.pattern_names(param):
                        self.declare(scope, name)
                    self.bind_pattern(param, f"_rt.caught({error})")
                self.statements(_named(handler.child_by_field_name("body")))
        if finalizer is not None:
            self.em.line("finally:")
            with self.em.block():
                self.substatement(finalizer.child_by_field_name("body"))

    # -- modules -------------------------------------------------------------

    def import_bindings(self, node: Node) -> list[tuple[str, str]]:
        """(imported name, local name) pairs; '*' and 'default' are special."""
        bindings: list[tuple[str, str]] = []
        clause = next((c for c in _named(node) if c.type == "import_clause"), None)
        for part in _named(clause):
            if part.type == "identifier":
                bindings.append(("default", self.text(part)))
            elif part.type == "namespace_import":
                bindings.append(("*", self.text(_named(part)[0])))
            elif part.type == "named_imports":
                for spec in _named(part):
                    if spec.type != "import_specifier" or _has_token(spec, "type"):
                        continue
                    name = spec.child_by_field_name("name")
                    alias = spec.child_by_field_name("alias")
                    imported = self.string_value(name) if name.type == "string" else self.text(name)
                    bindings.append((imported, self.text(alias) if alias is not None else imported))
        return bindings

    def import_statement(self, node: Node) -> None:
        if _has_token(node, "type"):
            return
        source = self.string_value(node.child_by_field_name("source"))
        if not any(c.type == "import_clause" for c in _named(node)):
            self.em.line(f"require({source!r})")
            return
        used = [(imported, local) for imported, local in self.import_bindings(node) if local in self.value_refs]
        if not used:
            # Type-only usage; nothing to load
            return
        mod = self.fresh("m")
        self.em.line(f"{mod} = require({source!r})")
        for imported, local in used:
            py = self.target(local)
            if imported == "*":
                self.em.line(f"{py} = {mod}")
            elif imported == "default":
                self.em.line(f"{py} = _rt.default_import({mod})")
            else:
                self.em.line(f"{py} = _rt.get({mod}, {imported!r})")

    def export_statement(self, node: Node) -> None:
        if _has_token(node, "type"):
            return
        declaration = node.child_by_field_name("declaration")
        value = node.child_by_field_name("value")
        source = node.child_by_field_name("source")
        is_default = _has_token(node, "default")

        if declaration is not None:
            if declaration.type in _TYPE_ONLY_STATEMENTS:
                return
            self.statement(declaration)
            if declaration.type == "variable_declaration":
                names = [
                    name
                    for decl in _named(declaration)
                    if decl.type == "variable_declarator"
                    for name in self.pattern_names(decl.child_by_field_name("name"))
                ]
            else:
                names = self.declared_names(declaration)
            for name in names:
                self.em.line(f"exports[{'default' if is_default else name!r}] = {self.ident(name)}")
            return

        if value is not None:
            self.em.line(f"exports['default'] = {self.expr(value)}")
            return

        clause = next((c for c in _named(node) if c.type == "export_clause"), None)
        if source is not None:
            path = self.string_value(source)
            namespace = next((c for c in _named(node) if c.type == "namespace_export"), None)
            if clause is None and namespace is None:
                self.em.line(f"_rt.export_all(exports, require({path!r}))")
                return
            mod = self.fresh("m")
            self.em.line(f"{mod} = require({path!r})")
            if namespace is not None:
                self.em.line(f"exports[{self.text(_named(namespace)[0])!r}] = {mod}")
            for name, alias in self.export_specifiers(clause):
                if name == "default":
                    self.em.line(f"exports[{alias!r}] = _rt.default_import({mod})")
                else:
                    self.em.line(f"exports[{alias!r}] = _rt.get({mod}, {name!r})")
            return

        for name, alias in self.export_specifiers(clause):
            if name in self.type_names and self.lookup(name) is None:
                continue
            self.deferred_exports.append((alias, name))

    def export_specifiers(self, clause: Node | None) -> list[tuple[str, str]]:
        specs = []
        for spec in _named(clause):
            if spec.type != "export_specifier" or _has_token(spec, "type"):
                continue
            name_node = spec.child_by_field_name("name")
            alias_node = spec.child_by_field_name("alias")
            name = self.string_value(name_node) if name_node.type == "string" else self.text(name_node)
            if alias_node is None:
                alias = name
            else:
                alias = self.string_value(alias_node) if alias_node.type == "string" else self.text(alias_node)
            specs.append((name, alias))
        return specs

    # -- functions -----------------------------------------------------------

    def function(self, node: Node, py_name: str) -> None:
        """Emit `def py_name(...)` for a function-like node at the current position."""
        if node.type in _UNSUPPORTED:
            self.fail(node)
        if _has_token(node, "async"):
            self.fail(node, "async/await")
        if _has_token(node, "*"):
            self.fail(node, "generator")
        if _has_token(node, "get") or _has_token(node, "set"):
            if node.type == "method_definition":
                self.fail(node, "getter/setter")

        outer_em, outer_scope = self.em, self.scope
        enclosing = outer_scope
        own_name = node.child_by_field_name("name") if node.type in ("function_expression", "function") else None
        if own_name is not None:
            enclosing = _Scope(outer_scope, outer_scope.function)
            enclosing.bindings[self.text(own_name)] = py_name

        fn = _FunctionScope(outer_scope.function)
        self.scope = _Scope(enclosing, fn)
        self.em = _Emitter(outer_em.indent + 1)
        try:
            header = self.parameters(node)
            body = node.child_by_field_name("body")
            if body.type == "statement_block":
                for name in self.var_names(body):
                    self.declare(self.scope, name)
                self.statements(_named(body))
            else:
                self.em.line(f"return {self.expr(body)}")
            body_lines = self.em.lines
        finally:
            self.em, self.scope = outer_em, outer_scope

        position = _READY_HOISTED if node.type == "function_declaration" else node.start_byte
        header.extend(f"{py}={py}" for py in self.loop_captures(enclosing, fn, position))
        self.em.line(f"def {py_name}({', '.join(header)}):")
        with self.em.block():
            if fn.globals:
                self.em.line("global " + ", ".join(sorted(fn.globals)))
            if fn.nonlocals:
                self.em.line("nonlocal " + ", ".join(sorted(fn.nonlocals)))
            self.em.lines.extend(body_lines)

    def loop_captures(self, scope: _Scope | None, fn: _FunctionScope, position: int) -> list[str]:
        """
        Loop-scoped let/const bindings `fn` reads, bound as keyword-only
        defaults so each iteration's closure keeps that iteration's value.

        Only bindings already set when the def runs qualify, and never one
        the function assigns through nonlocal/global.
        """
        owner = scope.function if scope is not None else None
        captured: list[str] = []
        while scope is not None and scope.function is owner:
            if scope.loop:
                for name, ready in scope.ready.items():
                    py = scope.bindings[name]
                    if (
                        ready < position
                        and py in fn.free
                        and py not in fn.nonlocals
                        and py not in fn.globals
                        and py not in captured
                    ):
                        captured.append(py)
            scope = scope.parent
        return sorted(captured)

    def _param_parts(self, param: Node) -> tuple[Node, Node | None]:
        if param.type in ("required_parameter", "optional_parameter"):
            return param.child_by_field_name("pattern"), param.child_by_field_name("value")
        if param.type == "assignment_pattern":
            return param.child_by_field_name("left"), param.child_by_field_name("right")
        return param, None

    def parameters(self, node: Node) -> list[str]:
        single = node.child_by_field_name("parameter")
        if single is not None:
            params = [single]
        else:
            params = _named(node.child_by_field_name("parameters"))
        parts = [self._param_parts(p) for p in params]
        parts = [(pattern, default) for pattern, default in parts if pattern is not None and pattern.type != "this"]
        for pattern, _ in parts:
            for name in self.pattern_names(pattern):
                self.declare(self.scope, name)

        header = []
        for pattern, default in parts:
            if pattern.type == "rest_pattern":
                collected = self.fresh("p")
                header.append(f"*{collected}")
                self.bind_pattern(_named(pattern)[0], f"_rt.array({collected})")
                return header
            if pattern.type == "identifier":
                py = self.ident(self.text(pattern))
            else:
                py = self.fresh("p")
            header.append(f"{py}=None")
            if default is not None:
                self.em.line(f"if {py} is None:")
                with self.em.block():
                    self.em.line(f"{py} = {self.expr(default)}")
            if pattern.type != "identifier":
                self.bind_pattern(pattern, py)
        header.append("*_")
        return header

    # -- destructuring and assignment ----------------------------------------

    def assign_name(self, name: str, value: str) -> str | None:
        py = self.target(name)
        if py is None:
            self.em.line(f"_rt.first({value}, _rt.unresolved({name!r}))")
            return None
        self.em.line(f"{py} = {value}")
        return py

    def bind_default(self, pattern: Node, value: str, default: Node) -> None:
        if pattern.type in ("identifier", "shorthand_property_identifier_pattern"):
            py = self.assign_name(self.text(pattern), value)
            if py is not None:
                self.em.line(f"if {py} is None:")
                with self.em.block():
                    self.em.line(f"{py} = {self.expr(default)}")
            return
        temp = self.fresh("p")
        self.em.line(f"{temp} = {value}")
        self.em.line(f"if {temp} is None:")
        with self.em.block():
            self.em.line(f"{temp} = {self.expr(default)}")
        self.bind_pattern(pattern, temp)

    def pattern_key(self, key: Node) -> str:
        """Key expression for a destructuring property; computed keys are evaluated once."""
        if key.type == "computed_property_name":
            temp = self.fresh("k")
            self.em.line(f"{temp} = _rt.key({self.expr(_named(key)[0])})")
            return temp
        return self.property_key(key)

    def bind_pattern(self, pattern: Node, value: str) -> None:
        """Emit statements assigning `value` into the names of a binding pattern."""
        t = pattern.type
        if t in ("identifier", "shorthand_property_identifier_pattern"):
            self.assign_name(self.text(pattern), value)
        elif t == "object_pattern":
            temp = self.fresh("p")
            self.em.line(f"{temp} = {value}")
            seen: list[str] = []
            for prop in _named(pattern):
                if prop.type == "shorthand_property_identifier_pattern":
                    key = repr(self.text(prop))
                    seen.append(key)
                    self.bind_pattern(prop, f"_rt.get({temp}, {key})")
                elif prop.type == "object_assignment_pattern":
                    left = prop.child_by_field_name("left")
                    key = repr(self.text(left))
                    seen.append(key)
                    self.bind_default(left, f"_rt.get({temp}, {key})", prop.child_by_field_name("right"))
                elif prop.type == "pair_pattern":
                    key = self.pattern_key(prop.child_by_field_name("key"))
                    seen.append(key)
                    target = prop.child_by_field_name("value")
                    if target.type == "assignment_pattern":
                        self.bind_default(
                            target.child_by_field_name("left"),
                            f"_rt.get({temp}, {key})",
                            target.child_by_field_name("right"),
                        )
                    else:
                        self.bind_pattern(target, f"_rt.get({temp}, {key})")
                elif prop.type == "rest_pattern":
                    omitted = "".join(f", {key}" for key in seen)
                    self.bind_pattern(_named(prop)[0], f"_rt.omit({temp}{omitted})")
                else:
                    self.fail(prop)
        elif t == "array_pattern":
            temp = self.fresh("p")
            self.em.line(f"{temp} = _rt.iterate({value})")
            index = 0
            for child in pattern.children:
                if child.type == ",":
                    index += 1
                elif not child.is_named or child.type == "comment":
                    continue
                elif child.type == "rest_pattern":
                    self.bind_pattern(_named(child)[0], f"_rt.rest({temp}, {index})")
                elif child.type == "assignment_pattern":
                    self.bind_default(
                        child.child_by_field_name("left"), f"_rt.get({temp}, {index})", child.child_by_field_name("right")
                    )
                else:
                    self.bind_pattern(child, f"_rt.get({temp}, {index})")
        elif t == "assignment_pattern":
            self.bind_default(pattern.child_by_field_name("left"), value, pattern.child_by_field_name("right"))
        elif t in ("member_expression", "subscript_expression"):
            self.em.line(self.store(pattern, value))
        elif t in ("parenthesized_expression", "non_null_expression"):
            self.bind_pattern(_named(pattern)[0], value)
        else:
            self.fail(pattern)

    def member_parts(self, node: Node) -> tuple[str, str]:
        obj = self.expr(node.child_by_field_name("object"))
        if node.type == "member_expression":
            prop = node.child_by_field_name("property")
            if prop.type == "private_property_identifier":
                self.fail(prop)
            return obj, repr(self.text(prop))
        return obj, self.expr(node.child_by_field_name("index"))

    def store(self, node: Node, value: str) -> str:
        obj, key = self.member_parts(node)
        return f"_rt.put({obj}, {key}, {value})"

    def effect(self, node: Node) -> None:
        """Compile an expression evaluated only for its side effects."""
        node = self.unwrap(node)
        t = node.type
        if t == "sequence_expression":
            for part in _named(node):
                self.effect(part)
        elif t == "assignment_expression":
            left = self.unwrap(node.child_by_field_name("left"))
            right = node.child_by_field_name("right")
            if left.type in ("identifier", "undefined"):
                self.assign_name(self.text(left), self.expr(right))
            elif left.type in ("member_expression", "subscript_expression"):
                self.em.line(self.store(left, self.expr(right)))
            else:
                self.bind_pattern(left, self.expr(right))
        elif t == "augmented_assignment_expression":
            self.augmented_statement(node)
        elif t == "update_expression":
            arg = self.unwrap(node.child_by_field_name("argument"))
            step = "inc" if self.text(node.child_by_field_name("operator")) == "++" else "dec"
            if arg.type == "identifier":
                py = self.target(self.text(arg))
                if py is None:
                    self.em.line(f"_rt.unresolved({self.text(arg)!r})")
                else:
                    self.em.line(f"{py} = _rt.{step}({py})")
            else:
                self.em.line(self.expr(node))
        else:
            self.em.line(self.expr(node))

    def augmented_statement(self, node: Node) -> None:
        left = self.unwrap(node.child_by_field_name("left"))
        right = node.child_by_field_name("right")
        operator = self.text(node.child_by_field_name("operator"))[:-1]
        if left.type == "identifier":
            py = self.target(self.text(left))
            if py is None:
                self.em.line(f"_rt.unresolved({self.text(left)!r})")
                return
            current, write = py, None
        elif left.type in ("member_expression", "subscript_expression"):
            obj, key = self.member_parts(left)
            if not obj.isidentifier():
                temp = self.fresh("t")
                self.em.line(f"{temp} = {obj}")
                obj = temp
            if not (key.startswith("'") or key.isidentifier()):
                temp = self.fresh("t")
                self.em.line(f"{temp} = {key}")
                key = temp
            current, write = f"_rt.get({obj}, {key})", (obj, key)
        else:
            self.fail(left, "assignment target")

        if operator in ("&&", "||", "??"):
            condition = {
                "&&": f"_rt.truthy({current})",
                "||": f"not _rt.truthy({current})",
                "??": f"{current} is None",
            }[operator]
            self.em.line(f"if {condition}:")
            with self.em.block():
                value = self.expr(right)
                self.em.line(f"{current} = {value}" if write is None else f"_rt.put({write[0]}, {write[1]}, {value})")
            return
        value = self.binary(operator, current, self.expr(right))
        self.em.line(f"{current} = {value}" if write is None else f"_rt.put({write[0]}, {write[1]}, {value})")

    # -- expressions ---------------------------------------------------------

    def unwrap(self, node: Node) -> Node:
        """Strip parentheses and type-only wrappers."""
        while True:
            if node.type in ("parenthesized_expression",) or node.type in _TYPE_WRAPPERS:
                inner = _named(node)
                if not inner:
                    return node
                node = inner[0]
            elif node.type == "type_assertion":
                node = _named(node)[-1]
            else:
                return node

    def test(self, node: Node) -> str:
        """Python boolean expression for a JS condition."""
        node = self.unwrap(node)
        t = node.type
        if t == "unary_expression" and self.text(node.child_by_field_name("operator")) == "!":
            return f"(not {self.test(node.child_by_field_name('argument'))})"
        if t == "binary_expression":
            operator = self.text(node.child_by_field_name("operator"))
            if operator == "&&":
                return f"({self.test(node.child_by_field_name('left'))} and {self.test(node.child_by_field_name('right'))})"
            if operator == "||":
                return f"({self.test(node.child_by_field_name('left'))} or {self.test(node.child_by_field_name('right'))})"
            if operator in _PREDICATES:
                return self.expr(node)
        if t == "true":
            return "True"
        if t == "false":
            return "False"
        return f"_rt.truthy({self.expr(node)})"

    def binary(self, operator: str, left: str, right: str) -> str:
        if operator == "in":
            return f"_rt.has({left}, {right})"
        if operator == "instanceof":
            return f"_rt.instance_of({left}, {right})"
        return f"_rt.{_BINARY_HELPERS[operator]}({left}, {right})"

    def expr(self, node: Node) -> str:
        node = self.unwrap(node)
        t = node.type
        if t in _UNSUPPORTED:
            self.fail(node)
        method = getattr(self, f"expr_{t}", None)
        if method is None:
            self.fail(node)
        return method(node)

    def expr_identifier(self, node: Node) -> str:
        return self.ident(self.text(node))

    def expr_undefined(self, node: Node) -> str:
        return self.ident("undefined")

    def expr_null(self, node: Node) -> str:
        return "None"

    def expr_true(self, node: Node) -> str:
        return "True"

    def expr_false(self, node: Node) -> str:
        return "False"

    def expr_number(self, node: Node) -> str:
        text = self.text(node)
        if text.endswith("n"):
            self.fail(node, "bigint")
        return _number_literal(parse_number(text))

    def expr_string(self, node: Node) -> str:
        return repr(self.string_value(node))

    def expr_template_string(self, node: Node) -> str:
        parts: list[str] = []
        position = node.start_byte + 1
        has_substitution = False

        def raw(start: int, end: int) -> None:
            if end > start:
                text = self.src[start:end].decode("utf-8").replace("\r\n", "\n").replace("\r", "\n")
                parts.append(repr(decode_escapes(text)))

        for child in node.children:
            if child.type == "template_substitution":
                has_substitution = True
                raw(position, child.start_byte)
                parts.append(self.expr(_named(child)[0]))
                position = child.end_byte
        raw(position, node.end_byte - 1)
        if not has_substitution:
            return parts[0] if parts else "''"
        return f"_rt.template({', '.join(parts)})"

    def expr_member_expression(self, node: Node) -> str:
        obj, key = self.member_parts(node)
        helper = "get_opt" if self._optional(node) else "get"
        return f"_rt.{helper}({obj}, {key})"

    expr_subscript_expression = expr_member_expression

    def _optional(self, node: Node) -> bool:
        return any(child.type == "optional_chain" for child in node.children)

    def arguments(self, node: Node) -> str:
        out = []
        for arg in _named(node):
            if arg.type == "spread_element":
                out.append(f"*_rt.iterate({self.expr(_named(arg)[0])})")
            else:
                out.append(self.expr(arg))
        return "".join(f", {a}" for a in out)

    def expr_call_expression(self, node: Node) -> str:
        fn = node.child_by_field_name("function")
        args_node = node.child_by_field_name("arguments")
        if args_node.type == "template_string":
            self.fail(node, "tagged template")
        if fn.type in _UNSUPPORTED:
            self.fail(fn)
        args = self.arguments(args_node)
        optional_call = self._optional(node)
        callee = self.unwrap(fn)
        if not optional_call and callee.type in ("member_expression", "subscript_expression"):
            obj, key = self.member_parts(callee)
            helper = "call_method_opt" if self._optional(callee) else "call_method"
            return f"_rt.{helper}({obj}, {key}{args})"
        return f"_rt.{'call_opt' if optional_call else 'call'}({self.expr(fn)}{args})"

    def expr_new_expression(self, node: Node) -> str:
        args_node = node.child_by_field_name("arguments")
        args = self.arguments(args_node) if args_node is not None else ""
        return f"_rt.construct({self.expr(node.child_by_field_name('constructor'))}{args})"

    def expr_assignment_expression(self, node: Node) -> str:
        left = self.unwrap(node.child_by_field_name("left"))
        value = self.expr(node.child_by_field_name("right"))
        if left.type == "identifier":
            py = self.target(self.text(left))
            if py is None:
                return f"_rt.first({value}, _rt.unresolved({self.text(left)!r}))"
            return f"({py} := {value})"
        if left.type in ("member_expression", "subscript_expression"):
            return self.store(left, value)
        self.fail(left, "destructuring assignment inside an expression")

    def expr_augmented_assignment_expression(self, node: Node) -> str:
        left = self.unwrap(node.child_by_field_name("left"))
        right = node.child_by_field_name("right")
        operator = self.text(node.child_by_field_name("operator"))[:-1]
        if left.type == "identifier":
            py = self.target(self.text(left))
            if py is None:
                return f"_rt.unresolved({self.text(left)!r})"
            current = py
            obj = key = None
        elif left.type in ("member_expression", "subscript_expression"):
            obj_expr, key_expr = self.member_parts(left)
            obj, key = self.fresh("t"), self.fresh("t")
            current = f"_rt.get({obj}, {key})"
        else:
            self.fail(left, "assignment target")

        if operator in ("&&", "||", "??"):
            value = self.logical(operator, current, self.expr(right), reuse=True)
        else:
            value = self.binary(operator, current, self.expr(right))
        if obj is None:
            return f"({current} := {value})"
        return f"_rt.put(({obj} := {obj_expr}), ({key} := {key_expr}), {value})"

    def expr_update_expression(self, node: Node) -> str:
        arg = self.unwrap(node.child_by_field_name("argument"))
        operator = self.text(node.child_by_field_name("operator"))
        prefix = node.children[0].type == operator
        if arg.type == "identifier":
            py = self.target(self.text(arg))
            if py is None:
                return f"_rt.unresolved({self.text(arg)!r})"
            step = "inc" if operator == "++" else "dec"
            if prefix:
                return f"({py} := _rt.{step}({py}))"
            return f"_rt.first(_rt.to_number({py}), ({py} := _rt.{step}({py})))"
        if arg.type in ("member_expression", "subscript_expression"):
            obj, key = self.member_parts(arg)
            delta = 1 if operator == "++" else -1
            return f"_rt.update_member({obj}, {key}, {delta}, {prefix})"
        self.fail(arg, "update target")

    def logical(self, operator: str, left: str, right: str, reuse: bool = False) -> str:
        """`&&`, `||`, `??` returning the deciding operand, left evaluated once."""
        if reuse:
            temp, first = left, left
        else:
            temp = self.fresh("t")
            first = f"({temp} := {left})"
        if operator == "&&":
            return f"({temp} if not _rt.truthy({first}) else {right})"
        if operator == "||":
            return f"({temp} if _rt.truthy({first}) else {right})"
        return f"({temp} if {first} is not None else {right})"

    def expr_binary_expression(self, node: Node) -> str:
        operator = self.text(node.child_by_field_name("operator"))
        left = self.expr(node.child_by_field_name("left"))
        right = self.expr(node.child_by_field_name("right"))
        if operator in ("&&", "||", "??"):
            return self.logical(operator, left, right)
        if operator not in _BINARY_HELPERS and operator not in ("in", "instanceof"):
            self.fail(node, f"operator {operator}")
        return self.binary(operator, left, right)

    def expr_unary_expression(self, node: Node) -> str:
        operator = self.text(node.child_by_field_name("operator"))
        arg = self.unwrap(node.child_by_field_name("argument"))
        if operator == "!":
            return f"(not {self.test(arg)})"
        if operator == "typeof":
            if arg.type == "identifier" and self.ident(self.text(arg)).startswith("_rt.unresolved("):
                return "'undefined'"
            return f"_rt.typeof({self.expr(arg)})"
        if operator == "-":
            if arg.type == "number":
                return _number_literal(normalize_number(-parse_number(self.text(arg))))
            return f"_rt.neg({self.expr(arg)})"
        if operator == "+":
            return f"_rt.to_number({self.expr(arg)})"
        if operator == "~":
            return f"_rt.bit_not({self.expr(arg)})"
        if operator == "void":
            return f"_rt.void({self.expr(arg)})"
        if operator == "delete":
            if arg.type in ("member_expression", "subscript_expression"):
                obj, key = self.member_parts(arg)
                return f"_rt.delete({obj}, {key})"
            return "True"
        self.fail(node, f"operator {operator}")

    def expr_ternary_expression(self, node: Node) -> str:
        condition = self.test(node.child_by_field_name("condition"))
        consequence = self.expr(node.child_by_field_name("consequence"))
        alternative = self.expr(node.child_by_field_name("alternative"))
        return f"({consequence} if {condition} else {alternative})"

    def expr_arrow_function(self, node: Node) -> str:
        name = self.fresh("fn")
        self.function(node, name)
        return name

    expr_function_expression = expr_arrow_function
    expr_function = expr_arrow_function

    def property_key(self, key: Node) -> str:
        t = key.type
        if t == "property_identifier":
            return repr(self.text(key))
        if t == "string":
            return repr(self.string_value(key))
        if t == "number":
            return repr(format_number(parse_number(self.text(key))))
        if t == "computed_property_name":
            return f"_rt.key({self.expr(_named(key)[0])})"
        self.fail(key)

    def expr_object(self, node: Node) -> str:
        entries = []
        for child in _named(node):
            t = child.type
            if t == "pair":
                key = self.property_key(child.child_by_field_name("key"))
                entries.append(f"{key}: {self.expr(child.child_by_field_name('value'))}")
            elif t == "shorthand_property_identifier":
                name = self.text(child)
                entries.append(f"{name!r}: {self.ident(name)}")
            elif t == "spread_element":
                entries.append(f"**_rt.spread({self.expr(_named(child)[0])})")
            elif t == "method_definition":
                key = self.property_key(child.child_by_field_name("name"))
                name = self.fresh("fn")
                self.function(child, name)
                entries.append(f"{key}: {name}")
            else:
                self.fail(child)
        return "{" + ", ".join(entries) + "}"

    def expr_array(self, node: Node) -> str:
        items = []
        after_value = False
        for child in node.children:
            if child.type == ",":
                if not after_value:
                    items.append("None")
                after_value = False
            elif child.is_named and child.type != "comment":
                if child.type == "spread_element":
                    items.append(f"*_rt.iterate({self.expr(_named(child)[0])})")
                else:
                    items.append(self.expr(child))
                after_value = True
        return "[" + ", ".join(items) + "]"

    # -- JSX -----------------------------------------------------------------

    def jsx_tag(self, name: Node | None) -> str:
        if name is None:
            return "_rt.Fragment"
        text = self.text(name)
        if name.type == "identifier":
            if _INTRINSIC_TAG_RE.match(text) or "-" in text:
                return repr(text)
            return self.ident(text)
        if name.type in ("member_expression", "nested_identifier"):
            head, *rest = text.split(".")
            out = self.ident(head)
            for part in rest:
                out = f"_rt.get({out}, {part!r})"
            return out
        if name.type == "jsx_namespace_name":
            return repr(text)
        self.fail(name)

    def jsx_props(self, node: Node) -> str:
        entries = []
        for attr in node.children_by_field_name("attribute"):
            if attr.type == "jsx_attribute":
                parts = _named(attr)
                name = self.text(parts[0])
                value = parts[1] if len(parts) > 1 else None
                if value is None:
                    entries.append(f"{name!r}: True")
                elif value.type == "string":
                    raw = self.src[value.start_byte + 1 : value.end_byte - 1].decode("utf-8")
                    entries.append(f"{name!r}: {html.unescape(raw)!r}")
                elif value.type == "jsx_expression":
                    inner = _named(value)
                    if not inner:
                        self.fail(value, "empty JSX attribute expression")
                    entries.append(f"{name!r}: {self.expr(inner[0])}")
                else:
                    entries.append(f"{name!r}: {self.jsx(value)}")
            elif attr.type == "jsx_expression":
                inner = _named(attr)
                if not inner or inner[0].type != "spread_element":
                    self.fail(attr, "JSX attribute expression")
                entries.append(f"**_rt.spread({self.expr(_named(inner[0])[0])})")
        return "{" + ", ".join(entries) + "}"

    def jsx_children(self, node: Node, open_tag: Node, close_tag: Node) -> list[str]:
        out: list[str] = []
        position = open_tag.end_byte

        def text(start: int, end: int) -> None:
            if end > start:
                cleaned = clean_jsx_text(html.unescape(self.src[start:end].decode("utf-8")))
                if cleaned:
                    out.append(repr(cleaned))

        for child in node.children:
            if child.start_byte < open_tag.end_byte or child.start_byte >= close_tag.start_byte:
                continue
            if child.type not in ("jsx_element", "jsx_self_closing_element", "jsx_expression"):
                continue
            text(position, child.start_byte)
            position = child.end_byte
            if child.type == "jsx_expression":
                inner = _named(child)
                if not inner:
                    continue
                if inner[0].type == "spread_element":
                    out.append(f"*_rt.iterate({self.expr(_named(inner[0])[0])})")
                else:
                    out.append(self.expr(inner[0]))
            else:
                out.append(self.jsx(child))
        text(position, close_tag.start_byte)
        return out

    def jsx(self, node: Node) -> str:
        if node.type == "jsx_self_closing_element":
            tag = self.jsx_tag(node.child_by_field_name("name"))
            return f"_rt.h({tag}, {self.jsx_props(node)})"
        open_tag = node.child_by_field_name("open_tag") or node.children[0]
        close_tag = node.child_by_field_name("close_tag") or node.children[-1]
        args = [self.jsx_tag(open_tag.child_by_field_name("name")), self.jsx_props(open_tag)]
        args.extend(self.jsx_children(node, open_tag, close_tag))
        return f"_rt.h({', '.join(args)})"

    expr_jsx_element = jsx
    expr_jsx_self_closing_element = jsx


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def transpile(source: str) -> str:
    """
    Transpile TSX component source into a Python module.

    Args:
        source: TSX source text (ES module syntax)

    Returns:
        Python source that expects `module`, `exports` and `require` in its
        globals and nothing else.

    Raises:
        TranspileError: syntax errors, unsupported syntax
    """
    data = source.encode("utf-8")
    tree = _PARSER.parse(data)
    try:
        code = _Transpiler(data).program(tree.root_node)
    except TranspileError:
        raise
    except RecursionError as exc:
        raise TranspileError("source nests too deeply") from exc
    except Exception as exc:
        logger.exception("transpile: unexpected failure")
        raise TranspileError(f"internal transpiler error: {exc}") from exc

    try:
        compile(code, "<component>", "exec")
    except SyntaxError as exc:
        logger.error("transpile: generated invalid Python: %s\n%s", exc, code)
        raise TranspileError(f"internal transpiler error: {exc.msg}") from exc
    return code
