"""
yamldelta - structural YAML diff

Compares two YAML streams node by node and reports additions, deletions and
modifications with their paths and source lines.
"""

__version__ = "0.1.0"

from .nodes import (
    AliasExpansionError,
    NodeKind,
    RecursiveAliasError,
    SyntaxNode,
    parse_file,
    parse_stream,
)
from .yamldiff import (
    DEFAULT_COMPARE_OPTIONS,
    ChangeType,
    CompareOptions,
    ComparisonError,
    DiffCounts,
    DiffItem,
    DocumentDiff,
    FileDiff,
    YAMLDiff,
    compare,
    compare_documents,
    compare_files,
    compare_nodes,
    compare_sequences,
    sort_differences,
)
from .format import FormatOptions, format_diff, format_document, format_file, format_stat

__all__ = [
    "AliasExpansionError",
    "ChangeType",
    "CompareOptions",
    "ComparisonError",
    "DEFAULT_COMPARE_OPTIONS",
    "DiffCounts",
    "DiffItem",
    "DocumentDiff",
    "FileDiff",
    "FormatOptions",
    "NodeKind",
    "RecursiveAliasError",
    "SyntaxNode",
    "YAMLDiff",
    "compare",
    "compare_documents",
    "compare_files",
    "compare_nodes",
    "compare_sequences",
    "format_diff",
    "format_document",
    "format_file",
    "format_stat",
    "parse_file",
    "parse_stream",
]
