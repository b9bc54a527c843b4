"""
Position-annotated YAML syntax nodes.

PyYAML's composer keeps the start mark of every node it builds, which is what
the diff engine needs to report source lines. This module turns a composed
node graph into immutable SyntaxNode trees that also know their path from the
document root.
"""

import logging
import math
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, List, Optional, Set, Tuple, Union

import yaml
from yaml.constructor import ConstructorError, SafeConstructor
from yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode

_log = logging.getLogger(__name__)

_log_debug = _log.debug

TAG_INT = "tag:yaml.org,2002:int"
TAG_FLOAT = "tag:yaml.org,2002:float"
TAG_BOOL = "tag:yaml.org,2002:bool"
TAG_NULL = "tag:yaml.org,2002:null"
TAG_STR = "tag:yaml.org,2002:str"

# Keys matching this pattern are written bare in paths, anything else is quoted.
_PLAIN_KEY = re.compile(r"^[^\s.\[\]'\"]+$")

# Alias expansion may build at most this many nodes per composed node.
_ALIAS_EXPANSION_FACTOR = 100
_MIN_NODE_LIMIT = 10000


class NodeKind(Enum):
    MAPPING = "Mapping"
    SEQUENCE = "Sequence"
    STRING = "String"
    LITERAL = "Literal"
    INTEGER = "Integer"
    FLOAT = "Float"
    BOOL = "Bool"
    NULL = "Null"


_COLLECTION_KINDS = (NodeKind.MAPPING, NodeKind.SEQUENCE)
_STRING_KINDS = (NodeKind.STRING, NodeKind.LITERAL)


class RecursiveAliasError(yaml.YAMLError):
    """Raised when an alias refers to a node that contains the alias."""

    def __init__(self, mark: Optional[yaml.Mark] = None):
        self.mark = mark
        super().__init__()

    def __str__(self) -> str:
        where = f"\n{self.mark}" if self.mark is not None else ""
        return f"found a recursive alias, which cannot be compared{where}"


class AliasExpansionError(yaml.YAMLError):
    """Raised when expanding aliases would build too many nodes."""

    def __init__(self, limit: int, mark: Optional[yaml.Mark] = None):
        self.limit = limit
        self.mark = mark
        super().__init__()

    def __str__(self) -> str:
        where = f"\n{self.mark}" if self.mark is not None else ""
        return f"expanding aliases exceeds the limit of {self.limit} nodes{where}"


@dataclass(frozen=True, eq=False)
class SyntaxNode:
    """A read-only view over one parsed YAML value."""

    kind: NodeKind
    path: str
    line: int
    value: Any = None
    text: str = ""
    children: Tuple[Any, ...] = ()
    # Mapping only: (tag, key text) per child, so 1 and "1" stay distinct.
    key_ids: Tuple[Tuple[str, str], ...] = ()

    @property
    def is_scalar(self) -> bool:
        return self.kind not in _COLLECTION_KINDS

    @property
    def is_nan(self) -> bool:
        return self.kind is NodeKind.FLOAT and math.isnan(self.value)

    def is_compatible(self, other: "SyntaxNode") -> bool:
        """Check whether two nodes can be compared value by value."""
        if self.kind in _STRING_KINDS and other.kind in _STRING_KINDS:
            return True
        return self.kind is other.kind

    def items(self) -> Iterator[Tuple[str, "SyntaxNode"]]:
        """Iterate (key, value) pairs of a mapping node in source order."""
        if self.kind is not NodeKind.MAPPING:
            raise TypeError(f"{self.kind.value} node has no mapping items")
        return iter(self.children)

    def keyed_items(self) -> Iterator[Tuple[Tuple[str, str], "SyntaxNode"]]:
        """Iterate (key identity, value) pairs of a mapping node."""
        if self.kind is not NodeKind.MAPPING:
            raise TypeError(f"{self.kind.value} node has no mapping items")
        key_ids = self.key_ids or tuple((TAG_STR, key) for key, _ in self.children)
        return zip(key_ids, (child for _, child in self.children))

    def get(self, key: str) -> Optional["SyntaxNode"]:
        """Look up a mapping value by key text; the last duplicate wins."""
        found = None
        for child_key, child in self.items():
            if child_key == key:
                found = child
        return found

    def __len__(self) -> int:
        return len(self.children)

    def __bool__(self) -> bool:
        return True

    def __getitem__(self, index: int) -> "SyntaxNode":
        if self.kind is not NodeKind.SEQUENCE:
            raise TypeError(f"{self.kind.value} node is not indexable")
        return self.children[index]

    def to_python(self) -> Any:
        """Convert the subtree back to plain Python data."""
        if self.kind is NodeKind.MAPPING:
            return {key: child.to_python() for key, child in self.children}
        if self.kind is NodeKind.SEQUENCE:
            return [child.to_python() for child in self.children]
        return self.value

    def __repr__(self) -> str:
        if self.is_scalar:
            return f"SyntaxNode({self.kind.value}, {self.path!r}, line={self.line}, {self.text!r})"
        return (
            f"SyntaxNode({self.kind.value}, {self.path!r}, line={self.line}, "
            f"{len(self.children)} children)"
        )


def key_segment(key: str) -> str:
    """Path segment for a mapping key."""
    if _PLAIN_KEY.match(key):
        return f".{key}"
    return ".'" + key.replace("'", "''") + "'"


def index_segment(index: int) -> str:
    """Path segment for a sequence index."""
    return f"[{index}]"


class _TreeBuilder:
    """Builds SyntaxNode trees from PyYAML composed nodes."""

    def __init__(self, node_limit: int = _MIN_NODE_LIMIT):
        self._constructor = SafeConstructor()
        self._active: Set[int] = set()
        self._node_limit = node_limit
        self._built = 0

    def build(self, node: Node, path: str = "") -> SyntaxNode:
        if id(node) in self._active:
            raise RecursiveAliasError(node.start_mark)
        self._built += 1
        if self._built > self._node_limit:
            raise AliasExpansionError(self._node_limit, node.start_mark)
        self._active.add(id(node))
        try:
            if isinstance(node, MappingNode):
                return self._build_mapping(node, path)
            if isinstance(node, SequenceNode):
                return self._build_sequence(node, path)
            return self._build_scalar(node, path)
        finally:
            self._active.discard(id(node))

    def _build_mapping(self, node: MappingNode, path: str) -> SyntaxNode:
        children = []
        key_ids = []
        for key_node, value_node in node.value:
            key = self._key_text(key_node)
            key_ids.append((key_node.tag, key))
            children.append((key, self.build(value_node, path + key_segment(key))))
        return SyntaxNode(
            NodeKind.MAPPING,
            path,
            _line(node),
            children=tuple(children),
            key_ids=tuple(key_ids),
        )

    def _build_sequence(self, node: SequenceNode, path: str) -> SyntaxNode:
        children = tuple(
            self.build(item, path + index_segment(i))
            for i, item in enumerate(node.value)
        )
        return SyntaxNode(NodeKind.SEQUENCE, path, _line(node), children=children)

    def _build_scalar(self, node: ScalarNode, path: str) -> SyntaxNode:
        kind, value = self._scalar_kind_and_value(node)
        return SyntaxNode(kind, path, _line(node), value=value, text=node.value)

    def _scalar_kind_and_value(self, node: ScalarNode) -> Tuple[NodeKind, Any]:
        tag = node.tag
        try:
            if tag == TAG_NULL:
                return NodeKind.NULL, None
            if tag == TAG_BOOL:
                return NodeKind.BOOL, self._constructor.construct_yaml_bool(node)
            if tag == TAG_INT:
                return NodeKind.INTEGER, self._constructor.construct_yaml_int(node)
            if tag == TAG_FLOAT:
                return NodeKind.FLOAT, self._constructor.construct_yaml_float(node)
        except (KeyError, ValueError) as err:
            raise ConstructorError(
                None, None, f"invalid {tag} value {node.value!r}: {err}", node.start_mark
            ) from err
        # Timestamps, binary and application tags keep their source text.
        if node.style in ("|", ">"):
            return NodeKind.LITERAL, node.value
        return NodeKind.STRING, node.value

    def _key_text(self, key_node: Node) -> str:
        if isinstance(key_node, ScalarNode):
            return key_node.value
        # Complex keys are identified by their flow-style serialization.
        return yaml.serialize(
            key_node, default_flow_style=True, explicit_end=False
        ).strip()


def _line(node: Node) -> int:
    return node.start_mark.line + 1


def _is_empty_document(node: Node) -> bool:
    return (
        isinstance(node, ScalarNode)
        and node.tag == TAG_NULL
        and node.value == ""
        and node.style is None
    )


def _composed_size(root: Node) -> int:
    """Count distinct composed nodes; an aliased node is counted once."""
    seen: Set[int] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        if isinstance(node, MappingNode):
            for key_node, value_node in node.value:
                stack.append(key_node)
                stack.append(value_node)
        elif isinstance(node, SequenceNode):
            stack.extend(node.value)
    return len(seen)


def build_tree(node: Optional[Node]) -> Optional[SyntaxNode]:
    """
    Convert one composed document root, returning None for empty documents.

    Aliases are expanded into copies of the anchored subtree. The number of
    nodes built is capped relative to the size of the composed document, and
    AliasExpansionError is raised beyond that.
    """
    if node is None or _is_empty_document(node):
        return None
    node_limit = max(_MIN_NODE_LIMIT, _ALIAS_EXPANSION_FACTOR * _composed_size(node))
    return _TreeBuilder(node_limit).build(node)


def parse_stream(source: Union[str, bytes]) -> List[Optional[SyntaxNode]]:
    """
    Parse a YAML stream into one root SyntaxNode per document.

    Empty documents are returned as None. An empty stream has no documents.
    Parse failures propagate as yaml.YAMLError.
    """
    documents = [build_tree(root) for root in yaml.compose_all(source, Loader=yaml.SafeLoader)]
    _log_debug("Parsed YAML stream with %d document(s)", len(documents))
    return documents


def parse_file(file_path: Union[str, Path]) -> List[Optional[SyntaxNode]]:
    """Parse a YAML file; OSError and yaml.YAMLError propagate unchanged."""
    with open(file_path, "r", encoding="utf-8") as f:
        source = f.read()
    _log_debug("Read %d bytes from %s", len(source), file_path)
    return parse_stream(source)
