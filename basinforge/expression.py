#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Compiler for Boolean update rules.

This module turns a rule such as ``"C = A AND NOT (B || 0)"`` into a small
postfix program over node indices that can be evaluated against a network
state. Compilation runs in three stages:

    1. :func:`tokenize_expression` splits the text into identifiers,
       constants, operators and parentheses, resolving identifiers to node
       indices through a :class:`NodeResolver`.
    2. :func:`to_postfix` converts the infix token stream to postfix order
       with the shunting-yard algorithm.
    3. :func:`evaluate` runs the postfix program on a stack machine.

Recognised syntax
-----------------
- NOT: ``NOT``, ``!``, ``¬``
- AND: ``AND``, ``&&``, ``∧``, ``*``
- OR: ``OR``, ``||``, ``∨``, ``+``
- ``XOR``, ``NAND``, ``NOR``
- constants: ``1``, ``0``, ``true``, ``false``, ``t``, ``f``
- parentheses

Keywords and identifiers are case-insensitive. NOT binds tightest and is
right-associative; AND, XOR, NAND and NOR share the next level; OR binds
loosest. All binary operators are left-associative.

Every problem is reported as a ``ValueError`` naming the offending token.
"""

import warnings
from collections import namedtuple
from collections.abc import Mapping, Sequence

import numpy as np

from typing import Union

try:
    import basinforge.utils as utils
except ModuleNotFoundError:
    import utils


__all__ = [
    "Operator",
    "OPERATORS",
    "NodeResolver",
    "RuleProgram",
    "parse_rule",
    "tokenize_expression",
    "to_postfix",
    "compile_expression",
    "evaluate",
]


class Operator(object):
    """
    A Boolean operator: its arity, binding strength, associativity and the
    function that applies it.

    ``apply`` uses bitwise arithmetic so the same operator works on plain
    0/1 integers and on numpy arrays of 0/1 values.
    """

    __slots__ = ['symbol', 'arity', 'precedence', 'associativity', 'apply']

    def __init__(self, symbol, arity, precedence, associativity, apply):
        self.symbol = symbol
        self.arity = arity
        self.precedence = precedence
        self.associativity = associativity
        self.apply = apply

    def __repr__(self):
        return f"Operator({self.symbol})"


OPERATORS = {
    'NOT': Operator('NOT', 1, 3, 'right', lambda a: 1 - a),
    'AND': Operator('AND', 2, 2, 'left', lambda a, b: a & b),
    'OR': Operator('OR', 2, 1, 'left', lambda a, b: a | b),
    'XOR': Operator('XOR', 2, 2, 'left', lambda a, b: a ^ b),
    'NAND': Operator('NAND', 2, 2, 'left', lambda a, b: 1 - (a & b)),
    'NOR': Operator('NOR', 2, 2, 'left', lambda a, b: 1 - (a | b)),
}

CONSTANTS = {'TRUE': 1, 'T': 1, '1': 1, 'FALSE': 0, 'F': 0, '0': 0}

#single characters that stand for an operator
SYMBOL_OPERATORS = {'!': 'NOT', '¬': 'NOT', '∧': 'AND', '∨': 'OR', '+': 'OR', '*': 'AND'}

Token = namedtuple('Token', ['kind', 'value'])


def _is_word_char(char : str) -> bool:
    return char.isalnum() or char == '_'


class NodeResolver(object):
    """
    Case-insensitive lookup from identifiers to node indices.

    Each node is reachable by its (trimmed) id and, if it has one, by its
    label. A key claimed by two different nodes is ambiguous; resolving it
    raises a ValueError instead of silently picking one of them.

    **Constructor Parameters:**

        - node_order (list[str]): Node ids; the position is the node index.
        - labels (dict[str:str], optional): Display label per node id.
    """

    def __init__(self, node_order : Sequence, labels : Union[dict, None] = None):
        self.node_order = list(node_order)
        self._lookup = {}
        self._ambiguous = set()
        labels = labels or {}
        for index, node_id in enumerate(self.node_order):
            self._register(str(node_id), index)
        for index, node_id in enumerate(self.node_order):
            label = labels.get(node_id)
            if label and label != node_id:
                self._register(label, index)

    def _register(self, name : str, index : int) -> None:
        key = name.strip().lower()
        if not key:
            return
        previous = self._lookup.get(key)
        if previous is None:
            self._lookup[key] = index
        elif previous != index:
            warnings.warn(f"Identifier '{name.strip()}' refers to more than one node "
                          f"('{self.node_order[previous]}' and '{self.node_order[index]}'); "
                          "rules using it will not compile.", UserWarning)
            self._ambiguous.add(key)

    @classmethod
    def from_nodes(cls, nodes : Sequence) -> "NodeResolver":
        """Build a resolver from a node list as accepted by the engines."""
        nodes = utils.normalize_nodes(nodes)
        return cls([node['id'] for node in nodes],
                   {node['id']: node['label'] for node in nodes if node['label']})

    def resolve(self, name : str) -> int:
        """
        Return the node index for ``name``.

        **Raises:**

            - ValueError: If ``name`` matches no node or more than one node.
        """
        key = name.strip().lower()
        if key in self._ambiguous:
            raise ValueError(f"Ambiguous identifier: {name}")
        try:
            return self._lookup[key]
        except KeyError:
            raise ValueError(f"Unknown identifier: {name}") from None

    def __contains__(self, name):
        key = str(name).strip().lower()
        return key in self._lookup and key not in self._ambiguous

    def __len__(self):
        return len(self.node_order)


def parse_rule(rule : str) -> tuple:
    """
    Split a rule ``"TARGET = EXPRESSION"`` at its first ``=``.

    **Returns:**

        - tuple[str, str]: The stripped target and expression.

    **Raises:**

        - ValueError: If there is no ``=`` or either side is empty.
    """
    target, separator, expression = rule.partition('=')
    target, expression = target.strip(), expression.strip()
    if not separator or not target or not expression:
        raise ValueError(f"Malformed rule (expected 'TARGET = EXPRESSION'): {rule}")
    return target, expression


def tokenize_expression(expression : str, resolver : NodeResolver) -> list:
    """
    Split a Boolean expression into tokens.

    **Parameters:**

        - expression (str): Right-hand side of a rule.
        - resolver (NodeResolver): Maps identifiers to node indices.

    **Returns:**

        - list[Token]: Tokens of kind ``'identifier'`` (value: node index),
          ``'constant'`` (0 or 1), ``'operator'`` (an :class:`Operator`) or
          ``'paren'`` (``'('`` or ``')'``).

    **Raises:**

        - ValueError: For unexpected characters and unresolvable identifiers.
    """
    tokens = []
    length = len(expression)
    position = 0
    while position < length:
        char = expression[position]

        if char.isspace():
            position += 1
            continue

        if char in '()':
            tokens.append(Token('paren', char))
            position += 1
            continue

        if expression.startswith('&&', position):
            tokens.append(Token('operator', OPERATORS['AND']))
            position += 2
            continue

        if expression.startswith('||', position):
            tokens.append(Token('operator', OPERATORS['OR']))
            position += 2
            continue

        if char in SYMBOL_OPERATORS:
            tokens.append(Token('operator', OPERATORS[SYMBOL_OPERATORS[char]]))
            position += 1
            continue

        if _is_word_char(char):
            end = position + 1
            while end < length and _is_word_char(expression[end]):
                end += 1
            word = expression[position:end]
            upper = word.upper()
            position = end
            if upper in CONSTANTS:
                tokens.append(Token('constant', CONSTANTS[upper]))
            elif upper in OPERATORS:
                tokens.append(Token('operator', OPERATORS[upper]))
            else:
                tokens.append(Token('identifier', resolver.resolve(word)))
            continue

        raise ValueError(f"Unexpected token in rule expression: {char}")

    return tokens


def to_postfix(tokens : list) -> list:
    """
    Convert an infix token list to postfix order (shunting-yard).

    Besides reordering, the token sequence is checked against the infix
    grammar, so inputs such as ``"A B"``, ``"A AND"`` or ``"NOT"`` are
    rejected here rather than during evaluation.

    **Raises:**

        - ValueError: For mismatched parentheses, misplaced operators or
          operands, and empty expressions.
    """
    output = []
    stack = []
    expect_operand = True

    for token in tokens:
        if token.kind in ('identifier', 'constant'):
            if not expect_operand:
                raise ValueError("Malformed expression: missing operator between operands.")
            output.append(token)
            expect_operand = False
            continue

        if token.kind == 'operator':
            operator = token.value
            if operator.arity == 1:
                if not expect_operand:
                    raise ValueError(f"Malformed expression: misplaced {operator.symbol}.")
            else:
                if expect_operand:
                    raise ValueError(f"Malformed expression: insufficient operands for {operator.symbol}.")
                expect_operand = True
            while stack and stack[-1].kind == 'operator':
                top = stack[-1].value
                if operator.associativity == 'left':
                    should_pop = operator.precedence <= top.precedence
                else:
                    should_pop = operator.precedence < top.precedence
                if not should_pop:
                    break
                output.append(stack.pop())
            stack.append(token)
            continue

        if token.value == '(':
            if not expect_operand:
                raise ValueError("Malformed expression: missing operator before '('.")
            stack.append(token)
            continue

        # closing parenthesis
        if expect_operand:
            raise ValueError("Malformed expression: empty or incomplete parenthesised group.")
        while stack and stack[-1].kind != 'paren':
            output.append(stack.pop())
        if not stack:
            raise ValueError("Mismatched parentheses in rule expression.")
        stack.pop()

    if not tokens:
        raise ValueError("Empty rule expression.")
    if expect_operand:
        raise ValueError("Malformed expression: expression ends with an operator.")

    while stack:
        token = stack.pop()
        if token.kind == 'paren':
            raise ValueError("Mismatched parentheses in rule expression.")
        output.append(token)
    return output


def _run_postfix(postfix : list, state):
    stack = []
    for token in postfix:
        if token.kind == 'identifier':
            stack.append(state[token.value])
        elif token.kind == 'constant':
            stack.append(token.value)
        else:
            operator = token.value
            if len(stack) < operator.arity:
                raise ValueError(f"Malformed expression: insufficient operands for {operator.symbol}.")
            if operator.arity == 1:
                stack.append(operator.apply(stack.pop()))
            else:
                right = stack.pop()
                left = stack.pop()
                stack.append(operator.apply(left, right))
    if len(stack) != 1:
        raise ValueError("Malformed expression: residual operands after evaluation.")
    return stack[0]


class RuleProgram(object):
    """
    A compiled Boolean update rule.

    **Members:**

        - expression (str): The source expression.
        - postfix (list[Token]): The program in postfix order.
        - regulators (list[int]): Sorted indices of the nodes the rule reads.
        - name (str): Target node id, if known.

    Calling the program on a state (any sequence indexable by node index)
    returns the next value of the target node, 0 or 1.
    """

    __slots__ = ['expression', 'postfix', 'regulators', 'name']

    def __init__(self, expression : str, postfix : list, name : str = ''):
        self.expression = expression
        self.postfix = postfix
        self.regulators = sorted({token.value for token in postfix if token.kind == 'identifier'})
        self.name = name

    def __call__(self, state) -> int:
        return evaluate(self, state)

    def __repr__(self):
        return f"RuleProgram({self.expression!r})"

    def __len__(self):
        return len(self.postfix)

    def get_truth_table(self) -> np.ndarray:
        """
        Evaluate the rule on every combination of its regulators.

        **Returns:**

            - np.ndarray[int]: Array of length 2^n (n = number of
              regulators). Row ``r`` holds the output for the regulator
              values given by row ``r`` of
              ``utils.get_left_side_of_truth_table(n)``, i.e. the first
              regulator is the most significant bit.
        """
        n = len(self.regulators)
        left_side_of_truth_table = utils.get_left_side_of_truth_table(n)
        columns = {regulator: left_side_of_truth_table[:, j] for j, regulator in enumerate(self.regulators)}
        return self.evaluate_columns(columns, 2**n)

    def evaluate_columns(self, columns, size : int) -> np.ndarray:
        """
        Evaluate the rule on many states at once.

        **Parameters:**

            - columns (np.ndarray | dict[int:np.ndarray]): ``columns[i]`` is
              an array with the value of node ``i`` in each state.
            - size (int): Number of states.

        **Returns:**

            - np.ndarray[int]: Output per state.
        """
        f = _run_postfix(self.postfix, columns)
        return np.broadcast_to(np.asarray(f, dtype=int), (size,)).copy()


def compile_expression(expression : str, resolver : Union[NodeResolver, Sequence, Mapping],
                       name : str = '') -> RuleProgram:
    """
    Compile a Boolean expression into an evaluable program.

    **Parameters:**

        - expression (str): The expression, e.g. ``"A && !B"``.
        - resolver (NodeResolver | list): Identifier resolver, or a node list
          from which one is built.
        - name (str, optional): Target node id, stored on the program.

    **Returns:**

        - RuleProgram: The compiled program.

    **Raises:**

        - ValueError: If the expression cannot be compiled. The message names
          the offending token or the structural problem.

    **Examples:**

        >>> program = compile_expression('A AND NOT B', ['A', 'B'])
        >>> evaluate(program, [1, 0])
        1
    """
    if not isinstance(expression, str):
        raise TypeError("expression must be a string")
    if not isinstance(resolver, NodeResolver):
        resolver = NodeResolver.from_nodes(resolver)
    postfix = to_postfix(tokenize_expression(expression, resolver))
    return RuleProgram(expression.strip(), postfix, name)


def evaluate(program : RuleProgram, state) -> int:
    """
    Evaluate a compiled program on a state.

    **Parameters:**

        - program (RuleProgram): Output of :func:`compile_expression`.
        - state (list[int] | np.ndarray[int]): Bit per node, in node order.

    **Returns:**

        - int: 0 or 1.

    **Raises:**

        - ValueError: If the program leaves other than exactly one value on
          the stack.
    """
    return 1 if _run_postfix(program.postfix, state) else 0
