"""Tests for the blocks CLI: argument parsing, API client, local render."""

from __future__ import annotations

import json

import httpx
import pytest

from cli.blocks_cli.client import DEFAULT_API_URL, BlocksClient, resolve_api_url
from cli.blocks_cli.main import cmd_list, cmd_render, parse_args, parse_props


def base_args(**overrides) -> dict:
    args = parse_args([])
    args.update(overrides)
    return args


class TestParseArgs:
    def test_list_filters(self):
        args = parse_args(["list", "--type", "composite", "--business", "Services", "--business", "Portfolio"])
        assert args["command"] == "list"
        assert args["component_type"] == "composite"
        assert args["business_types"] == ["Services", "Portfolio"]

    def test_render_options(self):
        args = parse_args(["render", "Widget.tsx", "--props", '{"a": 1}', "--page"])
        assert args["command"] == "render"
        assert args["target"] == "Widget.tsx"
        assert args["props"] == '{"a": 1}'
        assert args["page"] is True

    def test_unknown_command_exits(self):
        with pytest.raises(SystemExit):
            parse_args(["publish"])

    def test_missing_option_value_exits(self):
        with pytest.raises(SystemExit):
            parse_args(["list", "--search"])

    def test_props_must_be_object(self):
        assert parse_props('{"label": "x"}') == {"label": "x"}
        assert parse_props(None) is None
        with pytest.raises(SystemExit):
            parse_props("[1]")


class TestClient:
    def test_api_url_resolution(self, monkeypatch):
        monkeypatch.delenv("BLOCKS_API_URL", raising=False)
        assert resolve_api_url() == DEFAULT_API_URL
        monkeypatch.setenv("BLOCKS_API_URL", "http://blocks.test")
        assert resolve_api_url() == "http://blocks.test"
        assert resolve_api_url("http://flag.test") == "http://flag.test"

    def test_list_sends_repeated_params(self, capsys):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url)
            return httpx.Response(
                200, json=[{"id": "component-1-aaaaaa", "componentType": "base", "name": "Button"}]
            )

        client = BlocksClient("http://blocks.test/", transport=httpx.MockTransport(handler))
        code = cmd_list(client, base_args(command="list", features=["Contact Form", "Authentication"]))

        assert code == 0
        assert seen[0].path == "/api/blocks"
        assert seen[0].params.get_list("features") == ["Contact Form", "Authentication"]
        assert "component-1-aaaaaa" in capsys.readouterr().out

    def test_render_block_posts_props(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/blocks/component-1/render"
            assert json.loads(request.content) == {"props": {"label": "Go"}}
            return httpx.Response(200, json={"status": "rendered", "html": "<p>Go</p>"})

        client = BlocksClient("http://blocks.test", transport=httpx.MockTransport(handler))
        assert client.render_block("component-1", {"label": "Go"})["html"] == "<p>Go</p>"

    def test_http_errors_raise(self):
        client = BlocksClient("http://blocks.test", transport=httpx.MockTransport(lambda r: httpx.Response(404)))
        with pytest.raises(httpx.HTTPStatusError):
            client.get_block("component-missing")


class TestLocalRender:
    def test_render_file(self, tmp_path, capsys):
        path = tmp_path / "Widget.tsx"
        path.write_text("export default function Widget({ label }) { return <b>{label}</b>; }")

        code = cmd_render(base_args(command="render", target=str(path), props='{"label": "local"}'))

        assert code == 0
        assert capsys.readouterr().out.strip() == "<b>local</b>"

    def test_render_python_output(self, tmp_path, capsys):
        path = tmp_path / "Widget.tsx"
        path.write_text("export default function Widget() { return null; }")

        assert cmd_render(base_args(command="render", target=str(path), python=True)) == 0
        assert capsys.readouterr().out.startswith("_rt = require(")

    def test_render_broken_file_fails(self, tmp_path, capsys):
        path = tmp_path / "Broken.tsx"
        path.write_text("function( broken {")

        assert cmd_render(base_args(command="render", target=str(path))) == 1
        captured = capsys.readouterr()
        assert "Component &quot;Broken&quot; unavailable." in captured.out
        assert "status: unavailable" in captured.err

    def test_render_missing_file(self, tmp_path):
        assert cmd_render(base_args(command="render", target=str(tmp_path / "nope.tsx"))) == 1
