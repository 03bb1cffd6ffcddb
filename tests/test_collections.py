from __future__ import annotations

import pytest

from tests.support.harness import run_runtime_case
from seqlang.eval.expr import materialize_range
from seqlang.types import InvalidSequenceBoundsError, SeqNumber, SeqSequence

SEQUENCE_SCENARIOS = [
    pytest.param("out {1, 4}", ["[1.0, 2.0, 3.0, 4.0]"], None, id="inclusive-range"),
    pytest.param("out {3, 3}", ["[3.0]"], None, id="single-element"),
    pytest.param("out {-2, 1}", ["[-2.0, -1.0, 0.0, 1.0]"], None, id="negative-start"),
    pytest.param("out {2.0, 3}", ["[2.0, 3.0]"], None, id="integer-valued-decimal"),
    pytest.param(
        "var a = 2\nvar b = 5\nout {a, b}",
        ["[2.0, 3.0, 4.0, 5.0]"],
        None,
        id="variable-bounds",
    ),
    pytest.param("out {1 + 1, 2 * 2}", ["[2.0, 3.0, 4.0]"], None, id="expression-bounds"),
    pytest.param("var s = {1, 3}\nout -s", ["[-1.0, -2.0, -3.0]"], None, id="negate-sequence"),
    pytest.param(
        "out {5, 2}",
        [],
        "Sequence {5, 2} has end bound < start bound",
        id="reversed-bounds",
    ),
    pytest.param(
        "out {1.5, 3}",
        [],
        "Sequence {1.5, 3.0} has non-integer bound(s)",
        id="non-integer-bound",
    ),
    pytest.param(
        "out {{1, 2}, 3}",
        [],
        "Sequence bounds must be numbers, got sequence and number",
        id="sequence-as-bound",
    ),
]

MAP_SCENARIOS = [
    pytest.param("out map({1, 3}, i -> i ^ 2)", ["[1.0, 4.0, 9.0]"], None, id="squares"),
    pytest.param("out map({1, 2}, i -> i + 5 * 2)", ["[11.0, 12.0]"], None, id="body-precedence"),
    pytest.param("out map({1, 3}, i -> 7)", ["[7.0, 7.0, 7.0]"], None, id="constant-body"),
    pytest.param("out map({4, 6}, i -> i)", ["[4.0, 5.0, 6.0]"], None, id="identity"),
    pytest.param(
        "out map(map({1, 2}, x -> x + 1), y -> y * 10)",
        ["[20.0, 30.0]"],
        None,
        id="nested-map",
    ),
    pytest.param(
        "var k = 3\nout map({1, 2}, i -> i * k)",
        ["[3.0, 6.0]"],
        None,
        id="captures-global",
    ),
    pytest.param(
        "out map({1, 3}, i -> i / 2)",
        [],
        "Lambda i / 2 returned non-integer element '0.5'; sequences hold integers only",
        id="non-integer-result",
    ),
    pytest.param(
        "out map({1, 2}, i -> {1, i})",
        [],
        "Lambda {1, i} returned non-number value '[1.0]'",
        id="sequence-result",
    ),
    pytest.param(
        "out map(5, i -> i)",
        [],
        "map expects a sequence, got number",
        id="map-over-number",
    ),
    pytest.param(
        "out map({1, 2}, i -> q)",
        [],
        "Variable q not found",
        id="unknown-name-in-body",
    ),
]


@pytest.mark.parametrize("source, expected_outputs, expected_error", SEQUENCE_SCENARIOS)
def test_sequences(source, expected_outputs, expected_error) -> None:
    run_runtime_case(source, expected_outputs, expected_error)


@pytest.mark.parametrize("source, expected_outputs, expected_error", MAP_SCENARIOS)
def test_map(source, expected_outputs, expected_error) -> None:
    run_runtime_case(source, expected_outputs, expected_error)


def test_map_preserves_order_across_batches() -> None:
    # more elements than one batch of element tasks
    source = "out reduce(map({1, 3000}, i -> i * 2), 0, a b -> a + b)"
    run_runtime_case(source, ["9003000.0"], None)


def test_map_over_large_range_keeps_positions() -> None:
    source = "var s = map({1, 2500}, i -> i - 1)\nout reduce(s, 0, acc x -> acc * 0 + x)"
    # the fold keeps the last element, which must come from the last position
    run_runtime_case(source, ["2499.0"], None)


def test_materialize_range() -> None:
    assert materialize_range(SeqNumber(1.0), SeqNumber(3.0)) == SeqSequence([1.0, 2.0, 3.0])


def test_materialize_range_error_keeps_bounds() -> None:
    with pytest.raises(InvalidSequenceBoundsError) as excinfo:
        materialize_range(SeqNumber(5.0), SeqNumber(2.0))

    assert excinfo.value.start == 5.0
    assert excinfo.value.end == 2.0


def test_sequence_str() -> None:
    assert str(SeqSequence([1.0, 2.0])) == "[1.0, 2.0]"
    assert str(SeqSequence([])) == "[]"
