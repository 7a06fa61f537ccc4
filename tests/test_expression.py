#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import numpy as np
import pytest

from basinforge.expression import (
    NodeResolver,
    OPERATORS,
    compile_expression,
    evaluate,
    parse_rule,
    to_postfix,
    tokenize_expression,
)


NODES = ["A", "B", "C"]


# ------------------------------------------------------------
# Helper
# ------------------------------------------------------------

def run(expression, state, nodes=NODES):
    return evaluate(compile_expression(expression, nodes), state)


# ------------------------------------------------------------
# 1 Rule splitting
# ------------------------------------------------------------

def test_parse_rule_splits_on_first_equals():
    assert parse_rule(" A = B AND C ") == ("A", "B AND C")
    assert parse_rule("A = B = C") == ("A", "B = C")


@pytest.mark.parametrize("rule", ["A", "= B", "A =", "   "])
def test_parse_rule_rejects_malformed(rule):
    with pytest.raises(ValueError, match="Malformed rule"):
        parse_rule(rule)


# ------------------------------------------------------------
# 2 Tokenizer
# ------------------------------------------------------------

def test_tokenizer_kinds():
    resolver = NodeResolver(NODES)
    tokens = tokenize_expression("(A && !b) || TRUE", resolver)
    assert [t.kind for t in tokens] == [
        "paren", "identifier", "operator", "operator", "identifier", "paren", "operator", "constant"
    ]
    assert tokens[1].value == 0
    assert tokens[2].value is OPERATORS["AND"]
    assert tokens[3].value is OPERATORS["NOT"]
    assert tokens[6].value is OPERATORS["OR"]
    assert tokens[7].value == 1


@pytest.mark.parametrize("word, value", [("1", 1), ("0", 0), ("true", 1), ("FALSE", 0), ("t", 1), ("F", 0)])
def test_constants(word, value):
    assert run(word, [0, 0, 0]) == value


# ------------------------------------------------------------
# 3 Operators and synonyms
# ------------------------------------------------------------

@pytest.mark.parametrize("expression", ["A AND B", "A and B", "A && B", "A * B", "A ∧ B"])
def test_and_synonyms(expression):
    assert run(expression, [1, 1, 0]) == 1
    assert run(expression, [1, 0, 0]) == 0


@pytest.mark.parametrize("expression", ["A OR B", "A || B", "A + B", "A ∨ B"])
def test_or_synonyms(expression):
    assert run(expression, [0, 1, 0]) == 1
    assert run(expression, [0, 0, 0]) == 0


@pytest.mark.parametrize("expression", ["NOT A", "!A", "¬A", "not A"])
def test_not_synonyms(expression):
    assert run(expression, [0, 0, 0]) == 1
    assert run(expression, [1, 0, 0]) == 0


@pytest.mark.parametrize("operator, table", [
    ("AND", [0, 0, 0, 1]),
    ("OR", [0, 1, 1, 1]),
    ("XOR", [0, 1, 1, 0]),
    ("NAND", [1, 1, 1, 0]),
    ("NOR", [1, 0, 0, 0]),
])
def test_binary_operator_truth_tables(operator, table):
    program = compile_expression(f"A {operator} B", NODES)
    assert program.get_truth_table().tolist() == table


# ------------------------------------------------------------
# 4 Precedence and associativity
# ------------------------------------------------------------

def test_and_binds_tighter_than_or():
    # A OR (B AND C)
    assert run("A OR B AND C", [1, 0, 0]) == 1
    assert run("B AND C OR A", [1, 0, 0]) == 1


def test_not_binds_tighter_than_and():
    # (NOT A) AND B
    assert run("NOT A AND B", [0, 1, 0]) == 1
    assert run("NOT A AND B", [1, 1, 0]) == 0


def test_not_is_right_associative():
    assert run("NOT NOT A", [1, 0, 0]) == 1
    assert run("! ! ! A", [1, 0, 0]) == 0


def test_and_class_operators_are_left_associative():
    # (A AND B) NAND C, not A AND (B NAND C)
    assert run("A AND B NAND C", [0, 0, 1]) == 1


def test_parentheses_override_precedence():
    assert run("(A OR B) AND C", [1, 0, 0]) == 0


def test_postfix_order():
    resolver = NodeResolver(NODES)
    postfix = to_postfix(tokenize_expression("A OR B AND NOT C", resolver))
    symbols = [t.value if t.kind == "identifier" else t.value.symbol for t in postfix]
    assert symbols == [0, 1, 2, "NOT", "AND", "OR"]


# ------------------------------------------------------------
# 5 Identifier resolution
# ------------------------------------------------------------

def test_identifiers_are_case_insensitive():
    assert run("a and b", [1, 1, 0]) == 1


def test_identifiers_resolve_by_label():
    nodes = [{"id": "n1", "label": "p53"}, {"id": "n2", "label": "MDM2"}]
    assert run("P53 AND NOT mdm2", [1, 0], nodes) == 1
    assert run("n1 AND n2", [1, 1], nodes) == 1


def test_ambiguous_identifier_is_a_compile_error():
    nodes = [{"id": "A"}, {"id": "B", "label": "a"}]
    with pytest.warns(UserWarning, match="more than one node"):
        resolver = NodeResolver.from_nodes(nodes)
    assert "b" in resolver
    assert "a" not in resolver
    with pytest.raises(ValueError, match="Ambiguous identifier: a"):
        compile_expression("a", resolver)


def test_regulators_are_sorted_and_unique():
    program = compile_expression("C AND A OR C", NODES)
    assert program.regulators == [0, 2]


def test_truth_table_over_regulators():
    program = compile_expression("A AND NOT C", NODES)
    assert program.get_truth_table().tolist() == [0, 0, 1, 0]
    assert compile_expression("1", NODES).get_truth_table().tolist() == [1]


def test_program_is_callable_on_arrays():
    program = compile_expression("A XOR C", NODES)
    assert program(np.array([1, 0, 0], dtype=np.uint8)) == 1
    assert program([1, 1, 1]) == 0


# ------------------------------------------------------------
# 6 Compile errors
# ------------------------------------------------------------

@pytest.mark.parametrize("expression, message", [
    ("", "Empty rule expression"),
    ("   ", "Empty rule expression"),
    ("A AND", "ends with an operator"),
    ("AND A", "insufficient operands for AND"),
    ("A B", "missing operator"),
    ("NOT", "ends with an operator"),
    ("A NOT B", "misplaced NOT"),
    ("(A", "Mismatched parentheses"),
    ("A)", "Mismatched parentheses"),
    ("()", "empty or incomplete"),
    ("A (B)", "missing operator before"),
    ("A & B", "Unexpected token in rule expression: &"),
    ("A = B", "Unexpected token in rule expression: ="),
    ("X AND A", "Unknown identifier: X"),
])
def test_compile_errors(expression, message):
    with pytest.raises(ValueError, match=message):
        compile_expression(expression, NODES)


def test_expression_must_be_a_string():
    with pytest.raises(TypeError):
        compile_expression(None, NODES)
