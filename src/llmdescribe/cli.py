"""
CLI interface for llm-describe.

Usage:
    llm-describe transform [FILE] [-o OUT] [--marker NAME] [--wrapper NAME] [--import-source SPEC]
    llm-describe outline [FILE] [--indent TEXT]
    llm-describe publish [FILE] --state STATE.json [--key KEY]

FILE defaults to stdin. ``transform`` reads and writes Babel JSON ASTs;
``outline`` and ``publish`` read a JSON array of {"id", "parentId", "content"}.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from .config import get_config
from .jsx import AstError
from .outline import render_outline
from .sink import JsonFileSink, SinkError
from .transform import transform_ast
from .tree import DescribeNode, DescribeTree, NodeFormatError

logger = logging.getLogger(__name__)


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    get_config()

    parser = argparse.ArgumentParser(
        prog="llm-describe",
        description="Describe UI subtrees for language models",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log each rewrite and publish to stderr",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    transform = sub.add_parser("transform", help="Rewrite marker attributes in a Babel JSON AST")
    transform.add_argument("file", nargs="?", help="AST file (reads from stdin if not provided)")
    transform.add_argument("--output", "-o", help="Write the rewritten AST here instead of stdout")
    transform.add_argument("--marker", help="Marker attribute name (default from config: llm)")
    transform.add_argument("--wrapper", help="Wrapper symbol (default from config: LLMDescribe)")
    transform.add_argument("--import-source", dest="import_source", help="Module the wrapper is imported from")

    outline = sub.add_parser("outline", help="Render a node list as a bullet outline")
    outline.add_argument("file", nargs="?", help="Node list file (reads from stdin if not provided)")
    outline.add_argument("--indent", help="Indent per depth level (default: two spaces)")

    publish = sub.add_parser("publish", help="Register nodes and merge the outline into a state file")
    publish.add_argument("file", nargs="?", help="Node list file (reads from stdin if not provided)")
    publish.add_argument("--state", required=True, help="JSON state file to merge into")
    publish.add_argument("--key", help="Reserved state key (default from config: __widget_context)")

    return parser.parse_args(args)


def read_json(filepath: str | None) -> Any:
    """Read JSON from file or stdin."""
    if filepath:
        with open(filepath, encoding="utf-8") as f:
            return json.load(f)
    return json.load(sys.stdin)


def read_nodes(filepath: str | None) -> list[DescribeNode]:
    """Read a JSON array of serialized nodes."""
    data = read_json(filepath)
    if not isinstance(data, list):
        raise NodeFormatError(f"Expected a JSON array of nodes, got {type(data).__name__}")
    return [DescribeNode.from_dict(item) for item in data]


def cmd_transform(args: argparse.Namespace) -> int:
    data = read_json(args.file)
    output, result = transform_ast(
        data,
        marker=args.marker,
        wrapper=args.wrapper,
        import_source=args.import_source,
    )

    text = json.dumps(output, indent=2)
    if args.output:
        Path(args.output).write_text(text + "\n", encoding="utf-8")
    else:
        print(text)

    logger.info(
        "%d element(s) wrapped, %d skipped, import %s",
        result.rewritten,
        result.skipped,
        "injected" if result.import_injected else "unchanged",
    )
    return 0


def cmd_outline(args: argparse.Namespace) -> int:
    nodes = read_nodes(args.file)
    output = render_outline(nodes, args.indent)
    if output:
        print(output)
    return 0


def cmd_publish(args: argparse.Namespace) -> int:
    nodes = read_nodes(args.file)
    tree = DescribeTree(sink=JsonFileSink(args.state), state_key=args.key)
    for node in nodes:
        tree.register(node)
    if not nodes:
        tree.publish()
    if tree.description:
        print(tree.description)
    return 0


COMMANDS = {
    "transform": cmd_transform,
    "outline": cmd_outline,
    "publish": cmd_publish,
}


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parsed = parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        return COMMANDS[parsed.command](parsed)
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}", file=sys.stderr)
        return 1
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}", file=sys.stderr)
        return 1
    except UnicodeDecodeError as e:
        print(f"Error: Input is not UTF-8 text: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: Cannot access {e.filename}: {e.strerror}", file=sys.stderr)
        return 1
    except (AstError, NodeFormatError, SinkError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
