"""
Preview Transpiler -- TSX source → Python module

Each test compiles a small component through the whole dynamic path
(transpile → evaluate → extract) and checks the HTML it renders. Asserting on
rendered output rather than on generated Python keeps the tests about
behaviour: what a component author writes must render the way it would in
the browser.

Categories:
  1. Module syntax: default/named exports, imports, type stripping
  2. Functions, destructuring, default parameters
  3. JSX: tags, attributes, text whitespace, fragments, spreads
  4. Statements and operators with JavaScript semantics
  5. Rejections: syntax errors and unsupported syntax
"""

import pytest

from engine.preview.elements import h, render_to_string
from engine.preview.errors import TranspileError
from engine.preview.sandbox import compile_component
from engine.preview.transpiler import clean_jsx_text, decode_escapes, mangle, parse_number, transpile

# ============================================================================
# Helpers
# ============================================================================


def render_source(source, props=None, symbol="Widget"):
    """Compile source and render its component with props."""
    compiled = compile_component(source, symbol)
    return render_to_string(h(compiled.component, props or {}))


# ============================================================================
# 1. Module syntax
# ============================================================================


class TestModuleSyntax:
    def test_default_export_function_declaration(self):
        source = "export default function Widget(props){ return <div>{props.label}</div>; }"
        assert render_source(source, {"label": "Hi"}) == "<div>Hi</div>"

    def test_generated_code_starts_with_runtime_require(self):
        code = transpile("export default function Widget(){ return <p/>; }")
        assert code.startswith("_rt = require('react/jsx-runtime')")
        assert "import " not in code

    def test_named_export_matching_symbol(self):
        source = "export function Widget() { return <span>named</span>; }"
        assert render_source(source) == "<span>named</span>"

    def test_default_export_identifier_after_const_arrow(self):
        source = """
const Widget = ({ label }) => <em>{label}</em>;
export default Widget;
"""
        assert render_source(source, {"label": "x"}) == "<em>x</em>"

    def test_export_clause_with_alias(self):
        source = """
function Inner() { return <i>aliased</i>; }
export { Inner as Widget };
"""
        assert render_source(source) == "<i>aliased</i>"

    def test_typescript_annotations_are_stripped(self):
        source = """
import React from 'react';

export interface WidgetProps {
  label: string;
  count?: number;
}

type Size = 'sm' | 'lg';

export const Widget: React.FC<WidgetProps> = ({ label, count = 0 }: WidgetProps) => {
  const size: Size = 'sm';
  const total = (count as number) + 1;
  return <p className={size}>{label}:{total}</p>;
};
"""
        assert render_source(source, {"label": "n"}) == '<p class="sm">n:1</p>'

    def test_type_only_imports_never_load(self):
        source = """
import type { Theme } from './theme';
import { Props } from './types';

export default function Widget(props: Props): JSX.Element {
  const theme: Theme | null = null;
  return <div>{theme ?? 'plain'}</div>;
}
"""
        assert render_source(source) == "<div>plain</div>"

    def test_react_hooks_come_from_react_module(self):
        source = """
import { useState, useMemo } from 'react';

export default function Widget() {
  const [count] = useState(3);
  const doubled = useMemo(() => count * 2, [count]);
  return <p>{count}/{doubled}</p>;
}
"""
        assert render_source(source) == "<p>3/6</p>"

    def test_react_default_import_create_element(self):
        source = """
import React from 'react';
export default function Widget() {
  return React.createElement('b', { title: 't' }, 'made');
}
"""
        assert render_source(source) == '<b title="t">made</b>'

    def test_use_client_directive_is_ignored(self):
        source = "'use client';\nexport default function Widget() { return <p>ok</p>; }"
        assert render_source(source) == "<p>ok</p>"


# ============================================================================
# 2. Functions and destructuring
# ============================================================================


class TestFunctions:
    def test_destructured_defaults_apply_for_missing_props(self):
        source = """
export default function Widget({ size = 'md', label }) {
  return <span className={`btn-${size}`}>{label}</span>;
}
"""
        assert render_source(source, {"label": "Go"}) == '<span class="btn-md">Go</span>'
        assert render_source(source, {"label": "Go", "size": "lg"}) == '<span class="btn-lg">Go</span>'

    def test_object_rest_collects_remaining_props(self):
        source = """
export default function Widget(props) {
  const { label, ...rest } = props;
  return <a {...rest}>{label}</a>;
}
"""
        assert render_source(source, {"label": "x", "href": "/y"}) == '<a href="/y">x</a>'

    def test_missing_arguments_are_undefined(self):
        source = """
function describe(a, b) { return b === undefined ? 'no b' : 'b'; }
export default function Widget() { return <p>{describe(1)}</p>; }
"""
        assert render_source(source) == "<p>no b</p>"

    def test_rest_parameters(self):
        source = """
function sum(...nums) { return nums.reduce((a, b) => a + b, 0); }
export default function Widget() { return <p>{sum(1, 2, 3)}</p>; }
"""
        assert render_source(source) == "<p>6</p>"

    def test_closures_write_outer_bindings(self):
        source = """
function makeCounter() {
  let n = 0;
  function inc() { n += 1; return n; }
  inc();
  inc();
  return n;
}
export default function Widget() { return <p>{makeCounter()}</p>; }
"""
        assert render_source(source) == "<p>2</p>"

    def test_block_scoped_shadowing(self):
        source = """
const x = 'outer';
export default function Widget() {
  const f = () => x;
  {
    const x = 'inner';
    return <p>{f()}-{x}</p>;
  }
}
"""
        assert render_source(source) == "<p>outer-inner</p>"

    def test_module_level_helpers_and_constants(self):
        source = """
const LABELS = { primary: 'Main', secondary: 'Other' };
const label = (variant) => LABELS[variant] || 'Unknown';
export default function Widget({ variant }) { return <p>{label(variant)}</p>; }
"""
        assert render_source(source, {"variant": "primary"}) == "<p>Main</p>"
        assert render_source(source, {"variant": "nope"}) == "<p>Unknown</p>"

    def test_default_props_on_function(self):
        source = """
function Widget({ tone }) { return <p>{tone}</p>; }
Widget.defaultProps = { tone: 'calm' };
export default Widget;
"""
        assert render_source(source) == "<p>calm</p>"


# ============================================================================
# 3. JSX
# ============================================================================


class TestJsx:
    def test_list_rendering_with_keys(self):
        source = """
export default function Widget({ items }) {
  return <ul>{items.map(item => <li key={item}>{item}</li>)}</ul>;
}
"""
        assert render_source(source, {"items": ["a", "b"]}) == "<ul><li>a</li><li>b</li></ul>"

    def test_conditional_rendering(self):
        source = "export default function Widget({ show }) { return <div>{show && <b>yes</b>}</div>; }"
        assert render_source(source, {"show": False}) == "<div></div>"
        assert render_source(source, {"show": True}) == "<div><b>yes</b></div>"

    def test_text_whitespace_is_collapsed(self):
        source = """
export default function Widget() {
  return (
    <p>
      Hello
      world
    </p>
  );
}
"""
        assert render_source(source) == "<p>Hello world</p>"

    def test_html_entities_in_text_and_attributes(self):
        source = 'export default function Widget() { return <p title="a &quot;b&quot;">x &amp; y</p>; }'
        assert render_source(source) == '<p title="a &quot;b&quot;">x &amp; y</p>'

    def test_fragments(self):
        source = "export default function Widget() { return <><b>a</b><i>b</i></>; }"
        assert render_source(source) == "<b>a</b><i>b</i>"

    def test_boolean_attribute_and_void_tag(self):
        source = "export default function Widget() { return <input disabled value=\"v\" />; }"
        assert render_source(source) == '<input disabled="" value="v"/>'

    def test_style_object(self):
        source = "export default function Widget() { return <div style={{ fontSize: 12, backgroundColor: 'red' }} />; }"
        assert render_source(source) == '<div style="font-size:12px;background-color:red"></div>'

    def test_components_nest(self):
        source = """
const Label = ({ children }) => <strong>{children}</strong>;
export default function Widget() { return <p><Label>inside</Label></p>; }
"""
        assert render_source(source) == "<p><strong>inside</strong></p>"

    def test_event_handlers_are_dropped(self):
        source = "export default function Widget() { return <button onClick={() => alert('x')}>go</button>; }"
        assert render_source(source) == "<button>go</button>"


# ============================================================================
# 4. Statements and operators
# ============================================================================


class TestStatements:
    def test_string_concatenation_follows_js(self):
        source = "export default function Widget() { return <p>{'n=' + 1 + 2}</p>; }"
        assert render_source(source) == "<p>n=12</p>"

    def test_for_loop_with_continue(self):
        source = """
export default function Widget() {
  let total = 0;
  for (let i = 1; i <= 5; i++) {
    if (i % 2 === 0) continue;
    total += i;
  }
  return <p>{total}</p>;
}
"""
        assert render_source(source) == "<p>9</p>"

    def test_closures_keep_their_iteration_of_let(self):
        source = """
export default function Widget() {
  const fns = [];
  for (let i = 0; i < 3; i++) { fns.push(() => i); }
  return <p>{fns.map(f => f()).join(',')}</p>;
}
"""
        assert render_source(source) == "<p>0,1,2</p>"

    def test_closures_keep_their_iteration_of_for_of_and_body_const(self):
        source = """
export default function Widget() {
  const fns = [];
  for (const item of ['a', 'b']) {
    const upper = item.toUpperCase();
    fns.push(function () { return upper + item; });
  }
  return <p>{fns.map(f => f()).join(',')}</p>;
}
"""
        assert render_source(source) == "<p>Aa,Bb</p>"

    def test_closures_in_loops_with_continue(self):
        source = """
export default function Widget() {
  const fns = [];
  for (let i = 0; i < 4; i++) {
    if (i === 1) continue;
    fns.push(() => i * 10);
  }
  return <p>{fns.map(f => f()).join(',')}</p>;
}
"""
        assert render_source(source) == "<p>0,20,30</p>"

    def test_var_in_loops_stays_shared(self):
        source = """
export default function Widget() {
  const fns = [];
  for (var j = 0; j < 3; j++) { fns.push(() => j); }
  return <p>{fns.map(f => f()).join(',')}</p>;
}
"""
        assert render_source(source) == "<p>3,3,3</p>"

    def test_closure_assigning_loop_binding_updates_it(self):
        source = """
export default function Widget() {
  const out = [];
  for (let i = 0; i < 3; i++) {
    const bump = () => { i += 1; };
    bump();
    out.push(i);
  }
  return <p>{out.join(',')}</p>;
}
"""
        assert render_source(source) == "<p>1,3</p>"

    def test_for_of_and_while_with_break(self):
        source = """
export default function Widget({ words }) {
  const out = [];
  for (const w of words) { out.push(w.toUpperCase()); }
  let i = 0;
  while (true) { i++; if (i > 2) break; }
  return <p>{out.join('-')}:{i}</p>;
}
"""
        assert render_source(source, {"words": ["a", "b"]}) == "<p>A-B:3</p>"

    def test_for_in_over_object_keys(self):
        source = """
export default function Widget() {
  const obj = { a: 1, b: 2 };
  let keys = '';
  for (const k in obj) keys += k;
  return <p>{keys}</p>;
}
"""
        assert render_source(source) == "<p>ab</p>"

    def test_try_catch_binds_error(self):
        source = """
function risky() { throw new Error('boom'); }
export default function Widget() {
  let msg = 'none';
  try { risky(); } catch (e) { msg = e.message; } finally { msg = msg + '!'; }
  return <p>{msg}</p>;
}
"""
        assert render_source(source) == "<p>boom!</p>"

    def test_nullish_and_optional_chaining(self):
        source = "export default function Widget(props) { return <p>{props.user?.name ?? 'none'}</p>; }"
        assert render_source(source) == "<p>none</p>"
        assert render_source(source, {"user": {"name": "Ada"}}) == "<p>Ada</p>"

    def test_typeof_undeclared_global(self):
        source = "export default function Widget() { return <p>{typeof window === 'undefined' ? 'server' : 'client'}</p>; }"
        assert render_source(source) == "<p>server</p>"

    def test_strict_equality_does_not_coerce(self):
        source = "export default function Widget() { return <p>{String(1 === '1')}/{String(1 == '1')}</p>; }"
        assert render_source(source) == "<p>false/true</p>"

    def test_number_formatting(self):
        source = "export default function Widget() { return <p>{(2.5).toFixed(1)} {10 / 4} {Math.round(2.5)}</p>; }"
        assert render_source(source) == "<p>2.5 2.5 3</p>"


# ============================================================================
# 5. Rejections
# ============================================================================


class TestRejections:
    def test_syntax_error_reports_position(self):
        with pytest.raises(TranspileError) as excinfo:
            transpile("function( broken {")
        assert "syntax error" in str(excinfo.value)
        assert excinfo.value.line == 1

    @pytest.mark.parametrize(
        ("source", "label"),
        [
            ("class Widget {}", "class"),
            ("export default async function Widget() {}", "async/await"),
            ("function* gen() {}", "generator"),
            ("const r = /x/;", "regular expression"),
            ("switch (1) { default: }", "switch"),
        ],
    )
    def test_unsupported_syntax(self, source, label):
        with pytest.raises(TranspileError) as excinfo:
            transpile(source)
        assert f"unsupported syntax: {label}" in str(excinfo.value)


# ============================================================================
# Helpers exposed for the transpiler
# ============================================================================


class TestLexicalHelpers:
    def test_mangle(self):
        assert mangle("label") == "label"
        assert mangle("_private") == "_js_private"
        assert mangle("lambda") == "_kw_lambda"
        assert mangle("$el") == "_d__Sel"

    def test_parse_number(self):
        assert parse_number("1_000") == 1000
        assert parse_number("0x1F") == 31
        assert parse_number("1.50") == 1.5
        assert parse_number("2.0") == 2

    def test_decode_escapes(self):
        assert decode_escapes(r"a\nb") == "a\nb"
        assert decode_escapes(r"\u00e9\x41") == "\u00e9A"
        assert decode_escapes(r"\ud83d\ude00") == "\U0001f600"

    def test_clean_jsx_text(self):
        assert clean_jsx_text("\n   ") == ""
        assert clean_jsx_text("  a  ") == "  a  "
        assert clean_jsx_text("\n  a\n  b\n") == "a b"
