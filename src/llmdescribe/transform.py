"""
Build-time rewrite of description markers.

Turns

    <Key note={n} llm="A piano key" />

into

    <LLMDescribe content="A piano key"><Key note={n} /></LLMDescribe>

and makes sure the module imports the wrapper exactly once:

    import { LLMDescribe } from "@/widgets/llm-describe";

Marker values:
- bare marker (``<Foo llm />``): empty content
- string literal: used as-is
- expression container (``llm={label}``): the expression, as-is
- anything else (``llm=<b />``, ``llm={}``): the element is left untouched

The marker is removed only after its value resolved, so a skipped element
comes out exactly as it went in. Running the transform on its own output
finds no markers and changes nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import get_config
from .jsx import (
    Identifier,
    ImportDeclaration,
    ImportSpecifier,
    JSXAttribute,
    JSXElement,
    JSXEmptyExpression,
    JSXExpressionContainer,
    JSXIdentifier,
    Node,
    Opaque,
    Program,
    StringLiteral,
    load_program,
    map_children,
)

logger = logging.getLogger(__name__)


@dataclass
class TransformResult:
    """Outcome of rewriting one program."""
    program: Program
    rewritten: int = 0
    skipped: int = 0
    import_injected: bool = False

    @property
    def changed(self) -> bool:
        return self.rewritten > 0


class DescribeTransform:
    """Rewrites marker attributes into wrapper elements, one program at a time."""

    def __init__(
        self,
        marker: str | None = None,
        wrapper: str | None = None,
        import_source: str | None = None,
        content_attribute: str | None = None,
    ):
        cfg = get_config().transform
        self.marker = marker or cfg.marker_attribute
        self.wrapper = wrapper or cfg.wrapper_symbol
        self.import_source = import_source or cfg.import_source
        self.content_attribute = content_attribute or cfg.content_attribute

    def transform_program(self, program: Program) -> TransformResult:
        """
        Rewrite ``program`` in place and report what happened.

        The existing-import check runs once, before any element is touched.
        The import is injected once, after every element was visited.
        """
        has_import = self.has_wrapper_import(program)
        result = TransformResult(program=program)

        self._visit(program, result)

        if result.rewritten and not has_import:
            program.body.insert(0, self._build_import())
            result.import_injected = True

        logger.debug(
            "Rewrote %d marked element(s), skipped %d, import %s",
            result.rewritten,
            result.skipped,
            "injected" if result.import_injected else "unchanged",
        )
        return result

    def has_wrapper_import(self, program: Program) -> bool:
        """True if a top-level import already binds the wrapper by name."""
        for stmt in program.body:
            if not isinstance(stmt, ImportDeclaration):
                continue
            if stmt.source.value != self.import_source:
                continue
            if stmt.imports_name(self.wrapper):
                return True
        return False

    def _visit(self, node: Node, result: TransformResult) -> Node:
        """Visit ``node`` and its descendants (children first); return its replacement."""
        map_children(node, lambda child: self._visit(child, result))
        if isinstance(node, JSXElement):
            return self._rewrite_element(node, result)
        return node

    def _rewrite_element(self, element: JSXElement, result: TransformResult) -> Node:
        """Wrap ``element`` if it carries the marker; otherwise return it unchanged."""
        index = element.find_attribute(self.marker)
        if index == -1:
            return element

        marker = element.attributes[index]
        content = self._resolve_content(marker)
        if content is None:
            result.skipped += 1
            value_type = type(marker.value).__name__
            if isinstance(marker.value, Opaque):
                value_type = marker.value.type
            logger.debug("Left <%s> untouched: unsupported %s value %s", element.tag, self.marker, value_type)
            return element

        element.attributes = element.attributes[:index] + element.attributes[index + 1:]

        wrapped = JSXElement(
            name=JSXIdentifier(self.wrapper),
            attributes=[self._build_content_attribute(content)],
            children=[element],
            self_closing=False,
            closing=Opaque("JSXClosingElement", {"name": JSXIdentifier(self.wrapper)}),
        )
        result.rewritten += 1
        logger.debug("Wrapped <%s> in <%s>", element.tag, self.wrapper)
        return wrapped

    def _resolve_content(self, marker: JSXAttribute) -> Node | None:
        """Content expression for a marker, or None when the shape is unsupported."""
        value = marker.value
        if value is None:
            return StringLiteral("")
        if isinstance(value, StringLiteral):
            return value
        if isinstance(value, JSXExpressionContainer):
            if isinstance(value.expression, JSXEmptyExpression):
                return None
            return value.expression
        return None

    def _build_content_attribute(self, content: Node) -> JSXAttribute:
        value = content if isinstance(content, StringLiteral) else JSXExpressionContainer(content)
        return JSXAttribute(name=JSXIdentifier(self.content_attribute), value=value)

    def _build_import(self) -> ImportDeclaration:
        return ImportDeclaration(
            source=StringLiteral(self.import_source),
            specifiers=[ImportSpecifier(imported=Identifier(self.wrapper), local=Identifier(self.wrapper))],
        )


def transform_program(program: Program, **names: str | None) -> TransformResult:
    """Rewrite a typed program. ``names`` override the configured names."""
    return DescribeTransform(**names).transform_program(program)


def transform_ast(data: dict, **names: str | None) -> tuple[dict, TransformResult]:
    """
    Rewrite a Babel JSON AST (a Program or a File).

    Returns the rewritten tree in the same JSON shape plus the result report.
    The input dict is not modified.
    """
    program, file_node = load_program(data)
    result = transform_program(program, **names)
    root = file_node if file_node is not None else program
    return root.to_dict(), result
