"""Main entry point for the UI Blocks CLI."""
from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import httpx

from cli.blocks_cli import __version__
from cli.blocks_cli.client import BlocksClient, resolve_api_url
from engine.preview import ComponentRenderer, PreviewRecord, render_preview_page, transpile
from engine.preview.errors import TranspileError
from engine.preview.types import RenderResult


def print_help():
    """Print help message."""
    print(f"""
UI Blocks CLI v{__version__}

Usage:
  blocks [options] <command> [args]

Commands:
  list              List stored blocks
  get <id>          Show one block as JSON
  preview <id>      Render a stored block on the server, print the HTML
  render <file>     Render a local .tsx component file, print the HTML

Options:
  --api-url URL     Override API endpoint (default: http://localhost:8000)
  --type T          list: base or composite
  --business T      list: business type (repeatable)
  --style S         list: style (repeatable)
  --feature F       list: feature (repeatable)
  --search TEXT     list: name/description substring
  --props JSON      preview/render: override props
  --name NAME       render: component name (default: file stem)
  --import STMT     render: import statement used to resolve the symbol
  --page            preview/render: print a full HTML page
  --python          render: print the transpiled Python instead
  -h, --help        Show this help
  -v, --version     Show version

Environment:
  BLOCKS_API_URL    Override API endpoint (same as --api-url)

Examples:
  blocks list --type composite --search hero
  blocks preview component-1700000000000-a1b2c3 --props '{{"label": "Go"}}'
  blocks render ./Widget.tsx --props '{{"label": "Hi"}}' --page > widget.html
""")


_VALUE_OPTIONS = {
    "--api-url": "api_url",
    "--type": "component_type",
    "--search": "search",
    "--props": "props",
    "--name": "name",
    "--import": "import_statement",
}

_LIST_OPTIONS = {
    "--business": "business_types",
    "--style": "styles",
    "--feature": "features",
}


def parse_args(args: list[str]) -> dict:
    """
    Parse command line arguments.

    Returns dict with:
        command: str | None (list, get, preview, render)
        target: str | None (block id or file path)
        api_url, component_type, search, props, name, import_statement: str | None
        business_types, styles, features: list[str]
        page, python, show_help, show_version: bool
    """
    result: dict = {
        "command": None,
        "target": None,
        "business_types": [],
        "styles": [],
        "features": [],
        "page": False,
        "python": False,
        "show_help": False,
        "show_version": False,
    }
    result.update({key: None for key in _VALUE_OPTIONS.values()})

    i = 0
    while i < len(args):
        arg = args[i]

        if arg in _VALUE_OPTIONS or arg in _LIST_OPTIONS:
            if i + 1 >= len(args):
                print(f"Error: {arg} requires a value")
                sys.exit(1)
            value = args[i + 1]
            if arg in _VALUE_OPTIONS:
                result[_VALUE_OPTIONS[arg]] = value
            else:
                result[_LIST_OPTIONS[arg]].append(value)
            i += 1
        elif arg == "--page":
            result["page"] = True
        elif arg == "--python":
            result["python"] = True
        elif arg in ("--help", "-h"):
            result["show_help"] = True
        elif arg in ("--version", "-v"):
            result["show_version"] = True
        elif arg.startswith("-"):
            print(f"Unknown option: {arg}")
            print("Run 'blocks --help' for usage.")
            sys.exit(1)
        elif result["command"] is None:
            if arg not in ("list", "get", "preview", "render"):
                print(f"Unknown command: {arg}")
                print("Run 'blocks --help' for usage.")
                sys.exit(1)
            result["command"] = arg
        elif result["target"] is None:
            result["target"] = arg
        else:
            print(f"Unexpected argument: {arg}")
            sys.exit(1)

        i += 1

    return result


def parse_props(raw: str | None) -> dict | None:
    """Decode --props. Exits on anything but a JSON object."""
    if raw is None:
        return None
    try:
        props = json.loads(raw)
    except json.JSONDecodeError as e:
        print(f"Error: --props is not valid JSON ({e.msg})")
        sys.exit(1)
    if not isinstance(props, dict):
        print("Error: --props must be a JSON object")
        sys.exit(1)
    return props


def cmd_list(client: BlocksClient, args: dict) -> int:
    blocks = client.list_blocks(
        component_type=args["component_type"],
        business_types=args["business_types"],
        styles=args["styles"],
        features=args["features"],
        search=args["search"],
    )
    if not blocks:
        print("No blocks found.")
        return 0
    for block in blocks:
        print(f"{block['id']}  {block['componentType']:<9}  {block['name']}")
    return 0


def cmd_get(client: BlocksClient, args: dict) -> int:
    print(json.dumps(client.get_block(args["target"]), indent=2, ensure_ascii=False))
    return 0


def cmd_preview(client: BlocksClient, args: dict) -> int:
    result = client.render_block(args["target"], parse_props(args["props"]))
    if args["page"]:
        block = client.get_block(args["target"])
        print(_page_from_dict(result, block.get("name"), block.get("description")))
    else:
        print(result["html"])
    if result["status"] != "rendered":
        print(f"status: {result['status']} ({result.get('error')})", file=sys.stderr)
        return 1
    return 0


def _page_from_dict(result: dict, title: str | None, description: str | None) -> str:
    return render_preview_page(RenderResult(**result), title=title, description=description)


def cmd_render(args: dict) -> int:
    """Run the preview pipeline locally on a component file."""
    path = Path(args["target"])
    if not path.is_file():
        print(f"Error: no such file: {path}")
        return 1
    source = path.read_text(encoding="utf-8")

    if args["python"]:
        try:
            print(transpile(source), end="")
        except TranspileError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return 1
        return 0

    record = PreviewRecord(
        name=args["name"] or path.stem,
        import_statement=args["import_statement"] or "",
        source_code=source,
    )
    renderer = ComponentRenderer()

    async def run():
        try:
            return await renderer.render_settled(record, parse_props(args["props"]))
        finally:
            renderer.unmount()

    result = asyncio.run(run())
    if args["page"]:
        print(render_preview_page(result))
    else:
        print(result.html)
    if result.status != "rendered":
        print(f"status: {result.status} ({result.error})", file=sys.stderr)
        return 1
    return 0


def main():
    """Main entry point."""
    args = parse_args(sys.argv[1:])

    # Handle version and help first
    if args["show_version"]:
        print(f"blocks-cli {__version__}")
        return

    if args["show_help"] or args["command"] is None:
        print_help()
        return

    if args["command"] in ("get", "preview", "render") and not args["target"]:
        print(f"Error: {args['command']} requires an argument")
        sys.exit(1)

    if args["command"] == "render":
        sys.exit(cmd_render(args))

    client = BlocksClient(resolve_api_url(args["api_url"]))
    commands = {"list": cmd_list, "get": cmd_get, "preview": cmd_preview}
    try:
        code = commands[args["command"]](client, args)
    except httpx.HTTPStatusError as e:
        print(f"Error: {e.response.status_code} {e.response.text}")
        code = 1
    except httpx.HTTPError as e:
        print(f"Error: could not reach {client.api_url} ({e})")
        code = 1
    finally:
        client.close()
    sys.exit(code)


if __name__ == "__main__":
    main()
