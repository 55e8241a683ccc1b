"""
Preview Sandbox -- evaluation and component extraction

The evaluated module sees exactly `module`, `exports` and `require`, and
require() knows two names. Extraction prefers the default export, then the
export named after the resolved symbol, then the exports value itself.
"""

import logging

import pytest

from engine.preview import jsrt
from engine.preview.errors import EvaluationError, ModuleNotAllowed, NameUnresolvedError, TranspileError
from engine.preview.react import REACT
from engine.preview.sandbox import compile_component, evaluate, extract_component, require
from engine.preview.transpiler import transpile


class TestRequire:
    def test_allowed_modules(self):
        assert require("react") is REACT
        assert require("react/jsx-runtime") is jsrt

    def test_anything_else_is_refused(self):
        with pytest.raises(ModuleNotAllowed) as excinfo:
            require("lodash")
        assert "Module 'lodash' is not available" in str(excinfo.value)
        assert "react, react/jsx-runtime" in str(excinfo.value)

    def test_disallowed_import_fails_evaluation(self):
        source = "import _ from 'lodash';\nexport default function Widget() { return <p>{_.x}</p>; }"
        with pytest.raises(ModuleNotAllowed) as excinfo:
            compile_component(source, "Widget")
        assert excinfo.value.symbol == "Widget"


class TestEvaluate:
    def test_namespace_has_no_builtins(self):
        # Hand-written code: `len` is not reachable from evaluated modules
        with pytest.raises(EvaluationError) as excinfo:
            evaluate("exports['n'] = len([1, 2])")
        assert "Error evaluating component" in str(excinfo.value)

    def test_module_exports_can_be_replaced(self):
        module = evaluate(transpile("module.exports = function Widget() { return null; };"))
        assert callable(module["exports"])

    def test_top_level_throw_becomes_evaluation_error(self):
        with pytest.raises(EvaluationError) as excinfo:
            evaluate(transpile("throw new Error('boom');"), "Widget")
        assert excinfo.value.message == "Error evaluating component: boom"
        assert excinfo.value.symbol == "Widget"


class TestExtract:
    def test_default_export_wins(self):
        def default(props=None, *_):
            return None

        def named(props=None, *_):
            return None

        module = {"exports": {"default": default, "Widget": named}}
        assert extract_component(module, "Widget") is default

    def test_named_export_matching_symbol(self):
        def named(props=None, *_):
            return None

        assert extract_component({"exports": {"Widget": named}}, "Widget") is named

    def test_exports_value_fallback_is_logged(self, caplog):
        def component(props=None, *_):
            return None

        with caplog.at_level(logging.WARNING, logger="engine.preview.sandbox"):
            assert extract_component({"exports": component}, "Widget") is component
        assert "using the exports value itself" in caplog.text

    def test_non_callable_exports_are_unresolved(self):
        with pytest.raises(NameUnresolvedError) as excinfo:
            extract_component({"exports": {"Other": lambda *_: None, "Widget": "not a component"}}, "Widget")
        assert excinfo.value.symbol == "Widget"


class TestCompileComponent:
    def test_compiled_component_carries_python_source(self):
        compiled = compile_component("export default function Widget() { return <p>hi</p>; }", "Widget")
        assert compiled.symbol == "Widget"
        assert compiled.python_source.startswith("_rt = require(")
        assert compiled.exports["default"] is compiled.component

    def test_transpile_errors_get_the_symbol(self):
        with pytest.raises(TranspileError) as excinfo:
            compile_component("function( broken {", "Widget")
        assert excinfo.value.symbol == "Widget"
