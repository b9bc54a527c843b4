"""
Structural YAML diff engine.

Walks two parsed YAML trees in parallel and reports one DiffItem per point of
divergence: scalars whose values differ, and whole subtrees that exist on only
one side. Mappings are compared by key, sequences by index, optionally
cancelling out differences that are only caused by reordering.
"""

import collections.abc
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple, Union

from .nodes import NodeKind, SyntaxNode, parse_file, parse_stream

_log = logging.getLogger(__name__)

_log_debug = _log.debug


class ComparisonError(Exception):
    """Raised when a difference would reference neither document."""


class ChangeType(Enum):
    ADDED = "+"
    DELETED = "-"
    MODIFIED = "~"


# Same-line differences read removals first, insertions last.
_CHANGE_RANK = {
    ChangeType.DELETED: 0,
    ChangeType.MODIFIED: 1,
    ChangeType.ADDED: 2,
}


@dataclass(frozen=True)
class CompareOptions:
    # Treat [1, 2] and [2, 1] as equal.
    ignore_seq_order: bool = False


DEFAULT_COMPARE_OPTIONS = CompareOptions()


@dataclass(frozen=True, eq=False)
class DiffItem:
    left: Optional[SyntaxNode] = None
    right: Optional[SyntaxNode] = None

    def __post_init__(self):
        if self.left is None and self.right is None:
            raise ComparisonError("a difference needs a left or a right node")

    @property
    def change_type(self) -> ChangeType:
        if self.left is None:
            return ChangeType.ADDED
        if self.right is None:
            return ChangeType.DELETED
        return ChangeType.MODIFIED

    @property
    def left_node(self) -> Optional[SyntaxNode]:
        return self.left

    @property
    def right_node(self) -> Optional[SyntaxNode]:
        return self.right

    @property
    def path(self) -> str:
        """Path of the right node for additions, of the left node otherwise."""
        if self.left is None:
            return self.right.path
        return self.left.path

    @property
    def line(self) -> int:
        """Source line used for ordering: the left node's when present."""
        if self.left is None:
            return self.right.line
        return self.left.line

    def __repr__(self) -> str:
        return f"DiffItem({self.change_type.name}, {self.path!r}, line={self.line})"


class DiffCounts(NamedTuple):
    added: int = 0
    deleted: int = 0
    modified: int = 0

    @property
    def total(self) -> int:
        return self.added + self.deleted + self.modified

    def __add__(self, other: "DiffCounts") -> "DiffCounts":
        return DiffCounts(
            self.added + other.added,
            self.deleted + other.deleted,
            self.modified + other.modified,
        )

    def __str__(self) -> str:
        return f"{self.added} added, {self.deleted} deleted, {self.modified} modified"


def count_differences(items: Iterable[DiffItem]) -> DiffCounts:
    counts = {change_type: 0 for change_type in ChangeType}
    for item in items:
        counts[item.change_type] += 1
    return DiffCounts(
        counts[ChangeType.ADDED], counts[ChangeType.DELETED], counts[ChangeType.MODIFIED]
    )


def sort_differences(items: Iterable[DiffItem]) -> List[DiffItem]:
    """
    Order differences by source line, then DELETED < MODIFIED < ADDED.

    The sort is stable: differences sharing both line and change type stay in
    the order the comparison produced them.
    """
    return sorted(items, key=lambda item: (item.line, _CHANGE_RANK[item.change_type]))


class DocumentDiff(collections.abc.Sequence):
    """The ordered differences of one YAML document."""

    def __init__(self, items: Iterable[DiffItem] = (), index: int = 0):
        self._items = tuple(items)
        self.index = index

    def __getitem__(self, i):
        return self._items[i]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[DiffItem]:
        return iter(self._items)

    def __repr__(self) -> str:
        return f"DocumentDiff(index={self.index}, {list(self._items)!r})"

    def has_differences(self) -> bool:
        return bool(self._items)

    def counts(self) -> DiffCounts:
        return count_differences(self._items)


class FileDiff(collections.abc.Sequence):
    """Per-document differences of two YAML streams, aligned by index."""

    def __init__(self, documents: Iterable[DocumentDiff] = ()):
        self._documents = tuple(documents)

    def __getitem__(self, i):
        return self._documents[i]

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[DocumentDiff]:
        return iter(self._documents)

    def __repr__(self) -> str:
        return f"FileDiff({list(self._documents)!r})"

    def has_differences(self) -> bool:
        return any(document.has_differences() for document in self._documents)

    def counts(self) -> DiffCounts:
        total = DiffCounts()
        for document in self._documents:
            total = total + document.counts()
        return total


class YAMLDiff:
    """Compares two syntax trees and collects their differences."""

    def __init__(self, options: Optional[CompareOptions] = None):
        self.options = options or DEFAULT_COMPARE_OPTIONS

    def compare(
        self, left: Optional[SyntaxNode], right: Optional[SyntaxNode]
    ) -> List[DiffItem]:
        """Recursively compare two nodes, either of which may be absent."""
        if left is None and right is None:
            return []

        if left is None or right is None or not left.is_compatible(right):
            return [DiffItem(left, right)]

        if left.kind is NodeKind.MAPPING:
            return self._compare_mappings(left, right)
        if left.kind is NodeKind.SEQUENCE:
            return self.compare_sequences(left.children, right.children)
        if self._scalars_equal(left, right):
            return []
        return [DiffItem(left, right)]

    def _scalars_equal(self, left: SyntaxNode, right: SyntaxNode) -> bool:
        kind = left.kind
        if kind is NodeKind.NULL:
            return True
        if kind is NodeKind.FLOAT:
            if left.is_nan or right.is_nan:
                return left.is_nan and right.is_nan
            return left.value == right.value
        if kind in (NodeKind.STRING, NodeKind.LITERAL):
            return str(left.value) == str(right.value)
        if kind in (NodeKind.INTEGER, NodeKind.BOOL):
            return left.value == right.value
        raise ComparisonError(f"cannot compare {kind.value} nodes at {left.path!r}")

    def _compare_mappings(self, left: SyntaxNode, right: SyntaxNode) -> List[DiffItem]:
        """Compare two mappings key by key."""
        left_map = self._mapping_lookup(left)
        right_map = self._mapping_lookup(right)

        differences = []

        for key, left_value in left_map.items():
            if key not in right_map:
                differences.append(DiffItem(left_value, None))
            else:
                differences.extend(self.compare(left_value, right_map[key]))

        for key, right_value in right_map.items():
            if key not in left_map:
                differences.append(DiffItem(None, right_value))

        return differences

    def _mapping_lookup(self, node: SyntaxNode) -> Dict[Tuple[str, str], SyntaxNode]:
        # Keyed by (tag, text); duplicate keys: the last one wins.
        return {key: value for key, value in node.keyed_items()}

    def compare_sequences(
        self, left: Sequence[SyntaxNode], right: Sequence[SyntaxNode]
    ) -> List[DiffItem]:
        """Compare two sequences by index, optionally ignoring their order."""
        differences = self._compare_ordered_sequences(left, right)
        if self.options.ignore_seq_order and differences:
            differences = self._cancel_reordered(differences)
        return differences

    def _compare_ordered_sequences(
        self, left: Sequence[SyntaxNode], right: Sequence[SyntaxNode]
    ) -> List[DiffItem]:
        differences = []
        for i in range(max(len(left), len(right))):
            left_item = left[i] if i < len(left) else None
            right_item = right[i] if i < len(right) else None
            differences.extend(self.compare(left_item, right_item))
        return differences

    def _cancel_reordered(self, differences: List[DiffItem]) -> List[DiffItem]:
        """
        Drop differences that only exist because items moved.

        Every left node still carrying a difference is paired with the first
        right node, in list order, that compares equal to it; both sides of
        such a pair are removed. This is a greedy first-match pairing, not an
        optimal matching.
        """
        left_nodes = [item.left for item in differences]
        right_nodes = [item.right for item in differences]

        for il, left_node in enumerate(left_nodes):
            if left_node is None:
                continue
            for ir, right_node in enumerate(right_nodes):
                if right_node is None:
                    continue
                if not self.compare(left_node, right_node):
                    left_nodes[il] = None
                    right_nodes[ir] = None
                    break

        remaining = [
            DiffItem(left_node, right_node)
            for left_node, right_node in zip(left_nodes, right_nodes)
            if left_node is not None or right_node is not None
        ]
        _log_debug(
            "Reorder cancellation kept %d of %d difference(s)",
            len(remaining),
            len(differences),
        )
        return remaining


def compare_nodes(
    left: Optional[SyntaxNode],
    right: Optional[SyntaxNode],
    options: Optional[CompareOptions] = None,
) -> List[DiffItem]:
    """Compare two nodes and return their differences in comparison order."""
    return YAMLDiff(options).compare(left, right)


def compare_sequences(
    left: Sequence[SyntaxNode],
    right: Sequence[SyntaxNode],
    options: Optional[CompareOptions] = None,
) -> List[DiffItem]:
    """Compare two lists of sequence items."""
    return YAMLDiff(options).compare_sequences(left, right)


def compare_documents(
    left: Sequence[Optional[SyntaxNode]],
    right: Sequence[Optional[SyntaxNode]],
    options: Optional[CompareOptions] = None,
) -> FileDiff:
    """
    Compare two pre-parsed document streams.

    Documents are aligned by index; a document missing from the shorter
    stream is compared as absent.
    """
    differ = YAMLDiff(options)
    documents = []
    for i in range(max(len(left), len(right))):
        left_root = left[i] if i < len(left) else None
        right_root = right[i] if i < len(right) else None
        items = sort_differences(differ.compare(left_root, right_root))
        _log_debug("Document %d: %d difference(s)", i, len(items))
        documents.append(DocumentDiff(items, index=i))
    return FileDiff(documents)


def compare(
    left: Union[str, bytes],
    right: Union[str, bytes],
    options: Optional[CompareOptions] = None,
) -> FileDiff:
    """Compare two YAML streams given as text or bytes."""
    left_docs = parse_stream(left)
    right_docs = parse_stream(right)
    return compare_documents(left_docs, right_docs, options)


def compare_files(
    left_file: Union[str, Path],
    right_file: Union[str, Path],
    options: Optional[CompareOptions] = None,
) -> FileDiff:
    """Compare two YAML files by path."""
    left_docs = parse_file(left_file)
    right_docs = parse_file(right_file)
    return compare_documents(left_docs, right_docs, options)
