"""Condition expressions for ``condition`` nodes.

A small, closed language evaluated by a tree walker. Nothing in an
expression is ever handed to a host-language evaluator.

Supports:
- Variable references: {{age}}, {{plano}}
- Literals: 42, 3.5, -1, 'text', "text", true, false, null
- Comparison: ==, !=, >, <, >=, <= (=== and !== are accepted as aliases)
- Boolean: &&, ||, !
- Parentheses

Grammar::

    or         := and ('||' and)*
    and        := not ('&&' not)*
    not        := '!' not | comparison
    comparison := primary (COMPARE_OP primary)*
    primary    := NUMBER | STRING | true | false | null | VAR | '(' or ')'
"""

import logging
import math
import operator
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from chatflow.core.errors import ExpressionError

logger = logging.getLogger(__name__)

MAX_EXPRESSION_LENGTH = 2000
MAX_NESTING_DEPTH = 32

_COMPARE_OPS = ("===", "!==", "==", "!=", ">=", "<=", ">", "<")
# Longer operators first to avoid partial matches
_SYMBOLS = _COMPARE_OPS + ("&&", "||", "!", "(", ")")
_OP_ALIASES = {"===": "==", "!==": "!="}
_KEYWORDS = {"true": True, "false": False, "null": None}
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", "'": "'", '"': '"'}


# ─────────────────────────────────────────────────────────────────
# Tokens
# ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Token:
    type: str
    value: Any
    position: int


def tokenize(source: str) -> list[Token]:
    """Split an expression into tokens.

    Raises:
        ExpressionError: On unknown characters, unterminated strings or
            variable references, and bare identifiers.
    """
    tokens: list[Token] = []
    i = 0
    length = len(source)

    while i < length:
        char = source[i]

        if char.isspace():
            i += 1
            continue

        if source.startswith("{{", i):
            end = source.find("}}", i + 2)
            if end == -1:
                raise ExpressionError("Unterminated variable reference", position=i)
            name = source[i + 2 : end].strip()
            if not name:
                raise ExpressionError("Empty variable reference", position=i)
            tokens.append(Token("VAR", name, i))
            i = end + 2
            continue

        if char in ("'", '"'):
            value, end = _read_string(source, i)
            tokens.append(Token("STRING", value, i))
            i = end
            continue

        if char.isdigit() or (char == "." and _digit_at(source, i + 1)):
            value, end = _read_number(source, i)
            tokens.append(Token("NUMBER", value, i))
            i = end
            continue

        if char == "-" and _digit_at(source, i + 1) and _expects_operand(tokens):
            value, end = _read_number(source, i + 1)
            tokens.append(Token("NUMBER", -value, i))
            i = end
            continue

        if char.isalpha() or char == "_":
            start = i
            while i < length and (source[i].isalnum() or source[i] == "_"):
                i += 1
            word = source[start:i]
            if word.lower() not in _KEYWORDS:
                raise ExpressionError(
                    f"Unknown identifier '{word}' (use {{{{{word}}}}} for variables)",
                    position=start,
                )
            tokens.append(Token("KEYWORD", _KEYWORDS[word.lower()], start))
            continue

        for symbol in _SYMBOLS:
            if source.startswith(symbol, i):
                tokens.append(Token("OP", _OP_ALIASES.get(symbol, symbol), i))
                i += len(symbol)
                break
        else:
            raise ExpressionError(f"Unexpected character '{char}'", position=i)

    tokens.append(Token("EOF", None, length))
    return tokens


def _digit_at(source: str, index: int) -> bool:
    return index < len(source) and source[index].isdigit()


def _expects_operand(tokens: list[Token]) -> bool:
    if not tokens:
        return True
    last = tokens[-1]
    return last.type == "OP" and last.value != ")"


def _read_number(source: str, start: int) -> tuple[float | int, int]:
    i = start
    length = len(source)
    while i < length and source[i].isdigit():
        i += 1
    is_float = False
    if i < length and source[i] == ".":
        is_float = True
        i += 1
        while i < length and source[i].isdigit():
            i += 1
    if i < length and source[i] in "eE":
        j = i + 1
        if j < length and source[j] in "+-":
            j += 1
        if _digit_at(source, j):
            is_float = True
            i = j
            while i < length and source[i].isdigit():
                i += 1
    text = source[start:i]
    return (float(text) if is_float else int(text)), i


def _read_string(source: str, start: int) -> tuple[str, int]:
    quote = source[start]
    chars: list[str] = []
    i = start + 1
    while i < len(source):
        char = source[i]
        if char == "\\" and i + 1 < len(source):
            chars.append(_ESCAPES.get(source[i + 1], source[i + 1]))
            i += 2
            continue
        if char == quote:
            return "".join(chars), i + 1
        chars.append(char)
        i += 1
    raise ExpressionError("Unterminated string literal", position=start)


# ─────────────────────────────────────────────────────────────────
# AST
# ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class Not:
    operand: "Expr"


@dataclass(frozen=True)
class Logical:
    op: str  # "&&" or "||"
    left: "Expr"
    right: "Expr"


@dataclass(frozen=True)
class Compare:
    op: str
    left: "Expr"
    right: "Expr"


Expr = Literal | Variable | Not | Logical | Compare


# ─────────────────────────────────────────────────────────────────
# Parser
# ─────────────────────────────────────────────────────────────────


class _Parser:
    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.index = 0
        self.depth = 0

    def peek(self) -> Token:
        return self.tokens[self.index]

    def advance(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def match_op(self, *values: str) -> Token | None:
        token = self.peek()
        if token.type == "OP" and token.value in values:
            return self.advance()
        return None

    def parse(self) -> Expr:
        expr = self.parse_or()
        token = self.peek()
        if token.type != "EOF":
            raise ExpressionError(f"Unexpected token '{token.value}'", position=token.position)
        return expr

    def parse_or(self) -> Expr:
        expr = self.parse_and()
        while self.match_op("||"):
            expr = Logical("||", expr, self.parse_and())
        return expr

    def parse_and(self) -> Expr:
        expr = self.parse_not()
        while self.match_op("&&"):
            expr = Logical("&&", expr, self.parse_not())
        return expr

    def parse_not(self) -> Expr:
        if self.match_op("!"):
            self._enter()
            operand = self.parse_not()
            self.depth -= 1
            return Not(operand)
        return self.parse_comparison()

    def parse_comparison(self) -> Expr:
        expr = self.parse_primary()
        while True:
            op_token = self.match_op("==", "!=", ">=", "<=", ">", "<")
            if op_token is None:
                return expr
            expr = Compare(op_token.value, expr, self.parse_primary())

    def parse_primary(self) -> Expr:
        token = self.advance()
        if token.type in ("NUMBER", "STRING", "KEYWORD"):
            return Literal(token.value)
        if token.type == "VAR":
            return Variable(token.value)
        if token.type == "OP" and token.value == "(":
            self._enter()
            expr = self.parse_or()
            if not self.match_op(")"):
                raise ExpressionError("Expected ')'", position=self.peek().position)
            self.depth -= 1
            return expr
        if token.type == "EOF":
            raise ExpressionError("Unexpected end of expression", position=token.position)
        raise ExpressionError(f"Unexpected token '{token.value}'", position=token.position)

    def _enter(self) -> None:
        self.depth += 1
        if self.depth > MAX_NESTING_DEPTH:
            raise ExpressionError("Expression nested too deeply", depth=self.depth)


@lru_cache(maxsize=512)
def parse_condition(source: str) -> Expr:
    """Parse an expression into an AST.

    Raises:
        ExpressionError: If the expression is empty, too long or malformed.
    """
    if not source or not source.strip():
        raise ExpressionError("Empty expression")
    if len(source) > MAX_EXPRESSION_LENGTH:
        raise ExpressionError("Expression too long", length=len(source))
    return _Parser(tokenize(source)).parse()


# ─────────────────────────────────────────────────────────────────
# Evaluation
# ─────────────────────────────────────────────────────────────────

_ORDERING: dict[str, Callable[[Any, Any], bool]] = {
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
}


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _equals(left: Any, right: Any) -> bool:
    if _is_number(left) or _is_number(right):
        left_num, right_num = _to_number(left), _to_number(right)
        return left_num is not None and left_num == right_num
    if isinstance(left, bool) and isinstance(right, str):
        return right.strip().lower() == ("true" if left else "false")
    if isinstance(right, bool) and isinstance(left, str):
        return left.strip().lower() == ("true" if right else "false")
    return bool(left == right)


def _compare(op: str, left: Any, right: Any) -> bool:
    if op == "==":
        return _equals(left, right)
    if op == "!=":
        return not _equals(left, right)

    ordering = _ORDERING[op]
    left_num, right_num = _to_number(left), _to_number(right)
    if left_num is not None and right_num is not None:
        return ordering(left_num, right_num)
    if isinstance(left, str) and isinstance(right, str):
        return ordering(left, right)
    return False


def truthy(value: Any) -> bool:
    """Truthiness used by ``&&``, ``||`` and ``!``."""
    if value is None:
        return False
    if isinstance(value, (bool, int, float)):
        return bool(value)
    if isinstance(value, (str, list, tuple, dict, set)):
        return len(value) > 0
    return True


def evaluate_ast(node: Expr, variables: Mapping[str, Any]) -> Any:
    """Walk an AST and return its value."""
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, Variable):
        return variables.get(node.name.lower())
    if isinstance(node, Not):
        return not truthy(evaluate_ast(node.operand, variables))
    if isinstance(node, Logical):
        left = truthy(evaluate_ast(node.left, variables))
        if node.op == "&&":
            return left and truthy(evaluate_ast(node.right, variables))
        return left or truthy(evaluate_ast(node.right, variables))
    if isinstance(node, Compare):
        return _compare(
            node.op,
            evaluate_ast(node.left, variables),
            evaluate_ast(node.right, variables),
        )
    raise ExpressionError(f"Unsupported node {type(node).__name__}")


def evaluate_condition(expression: str, variables: Mapping[str, Any]) -> bool:
    """Evaluate a condition against variable values.

    Fails closed: any tokenize, parse or evaluation error yields ``False``.

    Args:
        expression: Expression like "{{idade}} >= 18 && {{plano}} == 'pro'"
        variables: Variable name -> value (matched case-insensitively)

    Returns:
        Boolean result of evaluation.

    Examples:
        >>> evaluate_condition("{{age}} > 18", {"age": "25"})
        True
        >>> evaluate_condition("{{status}} == 'approved'", {"status": "pending"})
        False
        >>> evaluate_condition("process.exit()", {})
        False
    """
    scope = {str(key).lower(): value for key, value in variables.items()}
    try:
        return truthy(evaluate_ast(parse_condition(expression), scope))
    except Exception as e:
        logger.debug(
            f"Condition evaluated to false after error: {e}",
            extra={"expression": expression, "error_type": type(e).__name__},
        )
        return False
