"""
Text rendering for diff results.

Turns the differences decided by the engine into report lines:

    ~ .name: Alice → Bob
    - .city: New York
    + .age: 30

Formatting is configured with an explicit FormatOptions value; nothing here
keeps state between calls.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

import yaml

from .nodes import NodeKind, SyntaxNode
from .yamldiff import ChangeType, DiffItem, DocumentDiff, FileDiff

RESET = "\033[0m"

CHANGE_COLORS = {
    ChangeType.ADDED: "\033[92m",  # Bright green
    ChangeType.DELETED: "\033[91m",  # Bright red
    ChangeType.MODIFIED: "\033[93m",  # Bright yellow
}
METADATA_COLOR = "\033[96m"  # Bright cyan

VALUE_INDENT = 4
DOCUMENT_SEPARATOR = "\n---\n"


@dataclass(frozen=True)
class FormatOptions:
    color: bool = False
    paths_only: bool = False
    metadata: bool = False
    counts: bool = False


PLAIN = FormatOptions()


def _paint(text: str, color: str, options: FormatOptions) -> str:
    if not options.color or not text:
        return text
    return f"{color}{text}{RESET}"


def format_literal_block(value: str, indent_level: int) -> str:
    """Format a multiline string as a YAML literal block."""
    yaml_indent = " " * indent_level
    lines = value.split("\n")
    if lines and lines[-1] == "":
        lines = lines[:-1]
    indented_lines = [yaml_indent + "  " + line for line in lines]
    return "|\n" + "\n".join(indented_lines)


def format_value(value: Any, indent: int) -> str:
    """Dump a collection value as block YAML indented by indent spaces."""
    yaml_str = yaml.safe_dump(
        value, default_flow_style=False, indent=2, width=1000, sort_keys=False,
        allow_unicode=True,
    )
    lines = yaml_str.rstrip("\n").split("\n")
    return "\n".join(" " * indent + line for line in lines)


def _hang(block: str) -> str:
    lines = block.split("\n")
    return "\n".join([lines[0]] + ["  " + line for line in lines[1:]])


def node_value_string(node: SyntaxNode, nested: bool) -> Tuple[str, bool]:
    """
    Render a node's value, returning the text and whether it spans lines.

    Multi-line values of nested nodes (those with a path) start on a new line
    indented below the path; at the document root they hang after the sign.
    """
    if node.kind in (NodeKind.MAPPING, NodeKind.SEQUENCE):
        if not node.children:
            return ("{}" if node.kind is NodeKind.MAPPING else "[]"), False
        if nested:
            return "\n" + format_value(node.to_python(), VALUE_INDENT), True
        return _hang(format_value(node.to_python(), 0)), True
    if node.kind is NodeKind.LITERAL or "\n" in node.text:
        if nested:
            block = format_literal_block(node.text, VALUE_INDENT)
            return "\n" + " " * VALUE_INDENT + block, True
        return format_literal_block(node.text, 0), True
    if node.kind is NodeKind.STRING and node.text == "":
        return '""', False
    return node.text, False


def node_metadata(node: SyntaxNode) -> str:
    return f"[line:{node.line} <{node.kind.value}>]"


def _join(head: str, value: str) -> str:
    if value.startswith("\n"):
        return f"{head}{value}"
    return f"{head} {value}"


def format_diff(item: DiffItem, options: Optional[FormatOptions] = None) -> str:
    """Format a single difference as one (possibly multi-line) entry."""
    options = options or PLAIN
    color = CHANGE_COLORS[item.change_type]
    sign = _paint(item.change_type.value, color, options)
    path = _paint(item.path, color, options)

    if options.paths_only:
        return f"{sign} {path}"

    nested = item.path != ""
    if item.change_type is ChangeType.MODIFIED:
        body = _modified_body(item.left, item.right, nested, options)
    else:
        node = item.right if item.change_type is ChangeType.ADDED else item.left
        body = _value_with_metadata(node, node_value_string(node, nested)[0], options)

    if nested:
        return _join(f"{sign} {path}:", body)
    return _join(sign, body)


def _value_with_metadata(node: SyntaxNode, value: str, options: FormatOptions) -> str:
    if not options.metadata:
        return value
    return _join(_paint(node_metadata(node), METADATA_COLOR, options), value)


def _modified_body(
    left: SyntaxNode, right: SyntaxNode, nested: bool, options: FormatOptions
) -> str:
    left_value, left_multiline = node_value_string(left, nested)
    right_value, right_multiline = node_value_string(right, nested)
    left_value = _value_with_metadata(left, left_value, options)
    right_value = _value_with_metadata(right, right_value, options)

    if not (left_multiline or right_multiline):
        return f"{left_value} → {right_value}"

    pad = " " * (VALUE_INDENT if nested else 2)
    if nested and not left_multiline:
        left_value = f"\n{pad}{left_value}"
    if not right_multiline:
        right_value = f"\n{pad}{right_value}"
    elif not nested:
        right_value = f"\n{right_value}"
    return f"{left_value}\n{pad}↓{right_value}"


def format_document(document: DocumentDiff, options: Optional[FormatOptions] = None) -> str:
    """Format all differences of one document, one entry per line."""
    options = options or PLAIN
    lines: List[str] = [format_diff(item, options) for item in document]
    result = "\n".join(lines)
    if options.counts:
        result = f"{document.counts()}\n{result}"
    return result


def format_file(file_diff: FileDiff, options: Optional[FormatOptions] = None) -> str:
    """Format every document, separated by YAML document markers."""
    return DOCUMENT_SEPARATOR.join(format_document(document, options) for document in file_diff)


def format_stat(file_diff: FileDiff) -> str:
    """Summary line with the number of added, deleted and modified entries."""
    return str(file_diff.counts())
