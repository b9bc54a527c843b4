"""
Tests for diff report rendering.
"""

from textwrap import dedent

from yamldelta.format import (
    CHANGE_COLORS,
    RESET,
    FormatOptions,
    format_diff,
    format_document,
    format_file,
    format_stat,
)
from yamldelta.yamldiff import ChangeType, compare

LEFT = dedent(
    """\
    name: Alice
    city: New York
    items:
      - foo
      - bar
    """
)

RIGHT = dedent(
    """\
    name: Bob
    age: 30
    items:
      - foo
      - baz
    """
)


def example_diffs():
    return compare(LEFT, RIGHT)


def test_plain_output():
    assert format_file(example_diffs()) == (
        "~ .name: Alice → Bob\n"
        "- .city: New York\n"
        "+ .age: 30\n"
        "~ .items[1]: bar → baz"
    )


def test_paths_only():
    output = format_file(example_diffs(), FormatOptions(paths_only=True))
    assert output == "~ .name\n- .city\n+ .age\n~ .items[1]"


def test_metadata():
    document = example_diffs()[0]
    options = FormatOptions(metadata=True)
    assert format_diff(document[0], options) == (
        "~ .name: [line:1 <String>] Alice → [line:1 <String>] Bob"
    )
    assert format_diff(document[2], options) == "+ .age: [line:2 <Integer>] 30"


def test_counts_header():
    output = format_document(example_diffs()[0], FormatOptions(counts=True))
    assert output.splitlines()[0] == "1 added, 1 deleted, 2 modified"
    assert output.splitlines()[1] == "~ .name: Alice → Bob"


def test_stat():
    assert format_stat(example_diffs()) == "1 added, 1 deleted, 2 modified"


def test_color():
    item = example_diffs()[0][0]
    yellow = CHANGE_COLORS[ChangeType.MODIFIED]
    assert format_diff(item, FormatOptions(color=True)) == (
        f"{yellow}~{RESET} {yellow}.name{RESET}: Alice → Bob"
    )


def test_added_mapping_is_dumped_below_path():
    diffs = compare("a: 1\n", "a: 1\nb:\n  c: 2\n  d: x\n")
    assert format_diff(diffs[0][0]) == "+ .b:\n    c: 2\n    d: x"


def test_modified_scalar_to_mapping():
    diffs = compare("a: 1\n", "a:\n  b: 2\n")
    assert format_diff(diffs[0][0]) == "~ .a:\n    1\n    ↓\n    b: 2"


def test_literal_value():
    diffs = compare("a: 1\n", "a: 1\nb: |\n  one\n  two\n")
    assert format_diff(diffs[0][0]) == "+ .b:\n    |\n      one\n      two"


def test_empty_collections_and_strings():
    diffs = compare("a: 1\n", "a: 1\nb: {}\nc: []\nd: ''\n")
    assert [format_diff(item) for item in diffs[0]] == [
        "+ .b: {}",
        "+ .c: []",
        '+ .d: ""',
    ]


def test_root_values():
    diffs = compare("", "42\n")
    assert format_diff(diffs[0][0]) == "+ 42"
    diffs = compare("a: 1\nb: 2\n", "")
    assert format_diff(diffs[0][0]) == "- a: 1\n  b: 2"
    diffs = compare("1\n", "2\n")
    assert format_diff(diffs[0][0]) == "~ 1 → 2"


def test_documents_are_separated():
    diffs = compare("a: 1\n---\nb: 1\n", "a: 2\n---\nb: 2\n")
    assert format_file(diffs) == "~ .a: 1 → 2\n---\n~ .b: 1 → 2"
