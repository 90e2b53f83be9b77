"""
JSX syntax tree model for llm-describe.

The transform never parses source text. It consumes the JSON AST produced by
an external parser (Babel with the jsx plugin) and converts it into a small,
closed set of node kinds:

- Program, ImportDeclaration, ImportSpecifier (module level)
- JSXElement, JSXAttribute, JSXExpressionContainer, JSXEmptyExpression,
  JSXIdentifier (elements and their attributes)
- Identifier, StringLiteral (leaf values the rewrite inspects or builds)

Every other node becomes an Opaque node that keeps its type and fields.
Opaque fields are converted recursively, so elements nested anywhere in a
function body stay reachable.

Key invariant: conversion is lossless. Keys a typed node does not model
(start, end, loc, extra, ...) are carried in ``meta`` and written back
unchanged, and ``keys`` remembers the order they came in, so
``json.dumps(to_dict(from_dict(data))) == json.dumps(data)``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


class AstError(ValueError):
    """Raised when input does not have the shape of a syntax tree."""


def _key_order() -> Any:
    return field(default=(), compare=False, repr=False)


def _emit(keys: tuple[str, ...], modeled: dict, meta: dict) -> dict:
    """Merge modeled fields and meta, in the order the keys were read."""
    out = {**modeled, **meta}
    if not keys:
        return out
    ordered = {k: out[k] for k in keys if k in out}
    for k, v in out.items():
        ordered.setdefault(k, v)
    return ordered


@dataclass
class Identifier:
    name: str
    meta: dict = field(default_factory=dict)
    keys: tuple[str, ...] = _key_order()

    def to_dict(self) -> dict:
        return _emit(self.keys, {"type": "Identifier", "name": self.name}, self.meta)


@dataclass
class StringLiteral:
    value: str
    meta: dict = field(default_factory=dict)
    keys: tuple[str, ...] = _key_order()

    def to_dict(self) -> dict:
        return _emit(self.keys, {"type": "StringLiteral", "value": self.value}, self.meta)


@dataclass
class ImportSpecifier:
    """Named binding: ``import { imported as local }``."""
    imported: Node
    local: Node
    meta: dict = field(default_factory=dict)
    keys: tuple[str, ...] = _key_order()

    @property
    def imported_name(self) -> str | None:
        # `import { "quoted" as x }` has a StringLiteral here, never a match
        if isinstance(self.imported, Identifier):
            return self.imported.name
        return None

    def to_dict(self) -> dict:
        return _emit(self.keys, {
            "type": "ImportSpecifier",
            "imported": to_dict(self.imported),
            "local": to_dict(self.local),
        }, self.meta)


@dataclass
class ImportDeclaration:
    source: StringLiteral
    specifiers: list[Node] = field(default_factory=list)
    meta: dict = field(default_factory=dict)
    keys: tuple[str, ...] = _key_order()

    def imports_name(self, name: str) -> bool:
        """True if a named specifier binds ``name`` as its imported name."""
        return any(
            isinstance(s, ImportSpecifier) and s.imported_name == name
            for s in self.specifiers
        )

    def to_dict(self) -> dict:
        return _emit(self.keys, {
            "type": "ImportDeclaration",
            "specifiers": [to_dict(s) for s in self.specifiers],
            "source": self.source.to_dict(),
        }, self.meta)


@dataclass
class Program:
    body: list[Node] = field(default_factory=list)
    meta: dict = field(default_factory=dict)
    keys: tuple[str, ...] = _key_order()

    def to_dict(self) -> dict:
        return _emit(self.keys, {"type": "Program", "body": [to_dict(s) for s in self.body]}, self.meta)


@dataclass
class JSXIdentifier:
    name: str
    meta: dict = field(default_factory=dict)
    keys: tuple[str, ...] = _key_order()

    def to_dict(self) -> dict:
        return _emit(self.keys, {"type": "JSXIdentifier", "name": self.name}, self.meta)


@dataclass
class JSXEmptyExpression:
    """The inside of ``{}`` or ``{/* comment */}``."""
    meta: dict = field(default_factory=dict)
    keys: tuple[str, ...] = _key_order()

    def to_dict(self) -> dict:
        return _emit(self.keys, {"type": "JSXEmptyExpression"}, self.meta)


@dataclass
class JSXExpressionContainer:
    expression: Node
    meta: dict = field(default_factory=dict)
    keys: tuple[str, ...] = _key_order()

    def to_dict(self) -> dict:
        return _emit(self.keys, {
            "type": "JSXExpressionContainer",
            "expression": to_dict(self.expression),
        }, self.meta)


@dataclass
class JSXAttribute:
    name: Node
    value: Node | None = None
    meta: dict = field(default_factory=dict)
    keys: tuple[str, ...] = _key_order()

    def has_name(self, name: str) -> bool:
        """Exact, case-sensitive match. Namespaced names (a:b) never match."""
        return isinstance(self.name, JSXIdentifier) and self.name.name == name

    def to_dict(self) -> dict:
        return _emit(self.keys, {
            "type": "JSXAttribute",
            "name": to_dict(self.name),
            "value": to_dict(self.value) if self.value is not None else None,
        }, self.meta)


@dataclass
class JSXElement:
    """
    An element with its opening tag flattened in.

    ``opening_meta`` holds the opening element's own unmodeled keys
    (positions, type arguments) and ``opening_keys`` their order;
    ``closing`` is kept as converted.
    """
    name: Node
    attributes: list[Node] = field(default_factory=list)
    children: list[Node] = field(default_factory=list)
    self_closing: bool = False
    closing: Node | None = None
    opening_meta: dict = field(default_factory=dict)
    meta: dict = field(default_factory=dict)
    opening_keys: tuple[str, ...] = _key_order()
    keys: tuple[str, ...] = _key_order()

    @property
    def tag(self) -> str:
        """Display name for logs: ``div``, ``Foo.Bar``, ``svg:rect``."""
        return _jsx_name(self.name)

    def find_attribute(self, name: str) -> int:
        """Index of the first attribute called ``name``, or -1."""
        for i, attr in enumerate(self.attributes):
            if isinstance(attr, JSXAttribute) and attr.has_name(name):
                return i
        return -1

    def to_dict(self) -> dict:
        opening = _emit(self.opening_keys, {
            "type": "JSXOpeningElement",
            "name": to_dict(self.name),
            "attributes": [to_dict(a) for a in self.attributes],
            "selfClosing": self.self_closing,
        }, self.opening_meta)
        return _emit(self.keys, {
            "type": "JSXElement",
            "openingElement": opening,
            "closingElement": to_dict(self.closing) if self.closing is not None else None,
            "children": [to_dict(c) for c in self.children],
        }, self.meta)


@dataclass
class Opaque:
    """Any node kind the rewrite does not need to understand."""
    type: str
    fields: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"type": self.type, **{k: _value_to_dict(v) for k, v in self.fields.items()}}


Node = (
    Program
    | ImportDeclaration
    | ImportSpecifier
    | Identifier
    | StringLiteral
    | JSXElement
    | JSXAttribute
    | JSXExpressionContainer
    | JSXEmptyExpression
    | JSXIdentifier
    | Opaque
)


def _is_node_dict(value: Any) -> bool:
    return isinstance(value, dict) and isinstance(value.get("type"), str)


def _rest(data: dict, *modeled: str) -> dict:
    """Keys of ``data`` that the typed node does not model."""
    skip = {"type", *modeled}
    return {k: v for k, v in data.items() if k not in skip}


def _require(data: dict, key: str) -> Any:
    if key not in data:
        raise AstError(f"{data.get('type')} node is missing {key!r}")
    return data[key]


def _node_list(data: dict, key: str) -> list[Node]:
    items = data.get(key) or []
    if not isinstance(items, list):
        raise AstError(f"{data.get('type')}.{key} must be a list, got {type(items).__name__}")
    return [from_dict(item) for item in items]


def _value_to_python(value: Any) -> Any:
    """Convert nested node dicts inside an arbitrary field value."""
    if _is_node_dict(value):
        return from_dict(value)
    if isinstance(value, list):
        return [_value_to_python(v) for v in value]
    return value


def _value_to_dict(value: Any) -> Any:
    if isinstance(value, list):
        return [_value_to_dict(v) for v in value]
    if isinstance(value, Node):
        return value.to_dict()
    return value


def from_dict(data: Any) -> Node:
    """Convert a Babel JSON AST node into the typed model."""
    if not _is_node_dict(data):
        raise AstError(f"Expected a syntax tree node, got {type(data).__name__}")

    kind = data["type"]
    keys = tuple(data)
    if kind == "Program":
        return Program(body=_node_list(data, "body"), meta=_rest(data, "body"), keys=keys)
    elif kind == "ImportDeclaration":
        source = from_dict(_require(data, "source"))
        if not isinstance(source, StringLiteral):
            raise AstError("ImportDeclaration.source must be a StringLiteral")
        return ImportDeclaration(
            source=source,
            specifiers=_node_list(data, "specifiers"),
            meta=_rest(data, "source", "specifiers"),
            keys=keys,
        )
    elif kind == "ImportSpecifier":
        return ImportSpecifier(
            imported=from_dict(_require(data, "imported")),
            local=from_dict(_require(data, "local")),
            meta=_rest(data, "imported", "local"),
            keys=keys,
        )
    elif kind == "Identifier":
        return Identifier(name=_require(data, "name"), meta=_rest(data, "name"), keys=keys)
    elif kind == "StringLiteral":
        return StringLiteral(value=_require(data, "value"), meta=_rest(data, "value"), keys=keys)
    elif kind == "JSXIdentifier":
        return JSXIdentifier(name=_require(data, "name"), meta=_rest(data, "name"), keys=keys)
    elif kind == "JSXEmptyExpression":
        return JSXEmptyExpression(meta=_rest(data), keys=keys)
    elif kind == "JSXExpressionContainer":
        return JSXExpressionContainer(
            expression=from_dict(_require(data, "expression")),
            meta=_rest(data, "expression"),
            keys=keys,
        )
    elif kind == "JSXAttribute":
        value = data.get("value")
        return JSXAttribute(
            name=from_dict(_require(data, "name")),
            value=from_dict(value) if value is not None else None,
            meta=_rest(data, "name", "value"),
            keys=keys,
        )
    elif kind == "JSXElement":
        opening = _require(data, "openingElement")
        if not _is_node_dict(opening):
            raise AstError("JSXElement.openingElement must be a node")
        closing = data.get("closingElement")
        return JSXElement(
            name=from_dict(_require(opening, "name")),
            attributes=_node_list(opening, "attributes"),
            children=_node_list(data, "children"),
            self_closing=bool(opening.get("selfClosing", False)),
            closing=from_dict(closing) if closing is not None else None,
            opening_meta=_rest(opening, "name", "attributes", "selfClosing"),
            meta=_rest(data, "openingElement", "closingElement", "children"),
            opening_keys=tuple(opening),
            keys=keys,
        )

    return Opaque(type=kind, fields={k: _value_to_python(v) for k, v in data.items() if k != "type"})


def to_dict(node: Node) -> dict:
    """Convert a typed node back into Babel JSON AST form."""
    return node.to_dict()


def load_program(data: Any) -> tuple[Program, Opaque | None]:
    """
    Accept either a Program or a Babel File wrapping one.

    Returns (program, file). ``file`` is None when ``data`` was a bare
    Program; otherwise it is the converted File whose ``program`` field
    is the returned Program.
    """
    node = from_dict(data)
    if isinstance(node, Program):
        return node, None
    if isinstance(node, Opaque) and node.type == "File":
        program = node.fields.get("program")
        if isinstance(program, Program):
            return program, node
    raise AstError(f"Expected a Program or File node, got {data.get('type')}")


def map_children(node: Node, fn: Callable[[Node], Node]) -> None:
    """
    Replace every direct child of ``node`` with ``fn(child)``, in source order.

    Leaves (identifiers, literals, JSXIdentifier, JSXEmptyExpression) have
    no children. A JSXElement's closing tag is not visited.
    """
    if isinstance(node, Program):
        node.body = [fn(s) for s in node.body]
    elif isinstance(node, ImportDeclaration):
        node.specifiers = [fn(s) for s in node.specifiers]
        node.source = fn(node.source)
    elif isinstance(node, ImportSpecifier):
        node.imported = fn(node.imported)
        node.local = fn(node.local)
    elif isinstance(node, JSXElement):
        node.name = fn(node.name)
        node.attributes = [fn(a) for a in node.attributes]
        node.children = [fn(c) for c in node.children]
    elif isinstance(node, JSXAttribute):
        node.name = fn(node.name)
        if node.value is not None:
            node.value = fn(node.value)
    elif isinstance(node, JSXExpressionContainer):
        node.expression = fn(node.expression)
    elif isinstance(node, Opaque):
        node.fields = {k: _map_value(v, fn) for k, v in node.fields.items()}


def _map_value(value: Any, fn: Callable[[Node], Node]) -> Any:
    if isinstance(value, list):
        return [_map_value(v, fn) for v in value]
    if isinstance(value, Node):
        return fn(value)
    return value


def _jsx_name(name: Node | None) -> str:
    if isinstance(name, JSXIdentifier):
        return name.name
    if isinstance(name, Opaque):
        if name.type == "JSXMemberExpression":
            return f"{_jsx_name(name.fields.get('object'))}.{_jsx_name(name.fields.get('property'))}"
        if name.type == "JSXNamespacedName":
            return f"{_jsx_name(name.fields.get('namespace'))}:{_jsx_name(name.fields.get('name'))}"
    return "?"
