"""
Arithmetic formula evaluation for calculated fields.

Formulas are plain arithmetic over field tokens:

    quantidade_horas * valor_por_hora + (taxa_fixa / 2)

Grammar (standard precedence, left-associative):

    expr    := term (('+' | '-') term)*
    term    := unary (('*' | '/') unary)*
    unary   := ('+' | '-') unary | primary
    primary := NUMBER | NAME | '(' expr ')'

Known variable names are matched as whole tokens before anything else, so
`horas` never matches inside `quantidade_horas` and names such as `preço` or
`custo-base` stay intact. Characters outside the grammar are then dropped
from the remaining text. Division by zero yields 0.
"""

import math
import re
from typing import Dict, List, Optional, Pattern, Tuple

from .exceptions import FormulaEvaluationError

_DISALLOWED = re.compile(r"[^\w+\-*/().\s]")
_TOKEN = re.compile(
    r"\s*(?:(?P<number>[0-9]+(?:\.[0-9]*)?|\.[0-9]+)|(?P<name>[^\W\d]\w*)|(?P<op>[+\-*/()]))"
)


def sanitize(expression: str) -> str:
    """Strip every character the grammar does not use."""
    return _DISALLOWED.sub("", expression or "")


def _variable_pattern(variables: Dict[str, float]) -> Optional[Pattern]:
    names = sorted((name for name in variables if name), key=len, reverse=True)
    if not names:
        return None
    alternation = "|".join(re.escape(name) for name in names)
    return re.compile(rf"(?<!\w)(?:{alternation})(?!\w)", re.IGNORECASE)


def _scan(text: str) -> List[Tuple[str, str]]:
    tokens = []
    text = sanitize(text)
    pos = 0
    while pos < len(text):
        if text[pos:].strip() == "":
            break
        match = _TOKEN.match(text, pos)
        if not match:
            raise FormulaEvaluationError(f"Unexpected character at position {pos}: {text[pos:]!r}")
        kind = match.lastgroup
        tokens.append((kind, match.group(kind)))
        pos = match.end()
    return tokens


def tokenize(expression: str,
             variables: Optional[Dict[str, float]] = None) -> List[Tuple[str, str]]:
    """Split a formula into (kind, text) tokens, known variable names first."""
    expression = expression or ""
    pattern = _variable_pattern(variables or {})
    if pattern is None:
        return _scan(expression)

    tokens = []
    pos = 0
    for match in pattern.finditer(expression):
        tokens.extend(_scan(expression[pos:match.start()]))
        tokens.append(("name", match.group(0)))
        pos = match.end()
    tokens.extend(_scan(expression[pos:]))
    return tokens


class _Parser:
    """Recursive-descent evaluator over a token list. Evaluates while parsing."""

    def __init__(self, tokens: List[Tuple[str, str]], variables: Dict[str, float]):
        self.tokens = tokens
        self.variables = variables
        self.pos = 0

    def _peek(self):
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def _take(self):
        token = self._peek()
        if token is None:
            raise FormulaEvaluationError("Unexpected end of formula")
        self.pos += 1
        return token

    def parse(self) -> float:
        if not self.tokens:
            raise FormulaEvaluationError("Empty formula")
        value = self._expr()
        if self._peek() is not None:
            raise FormulaEvaluationError(f"Unexpected token {self._peek()[1]!r}")
        return value

    def _expr(self) -> float:
        value = self._term()
        while self._peek() in (("op", "+"), ("op", "-")):
            _, op = self._take()
            right = self._term()
            value = value + right if op == "+" else value - right
        return value

    def _term(self) -> float:
        value = self._unary()
        while self._peek() in (("op", "*"), ("op", "/")):
            _, op = self._take()
            right = self._unary()
            if op == "*":
                value = value * right
            elif right == 0:
                value = 0.0
            else:
                value = value / right
        return value

    def _unary(self) -> float:
        if self._peek() in (("op", "+"), ("op", "-")):
            _, op = self._take()
            value = self._unary()
            return -value if op == "-" else value
        return self._primary()

    def _primary(self) -> float:
        kind, text = self._take()
        if kind == "number":
            return float(text)
        if kind == "name":
            return self._lookup(text)
        if text == "(":
            value = self._expr()
            if self._take() != ("op", ")"):
                raise FormulaEvaluationError("Missing closing parenthesis")
            return value
        raise FormulaEvaluationError(f"Unexpected token {text!r}")

    def _lookup(self, name: str) -> float:
        if name in self.variables:
            return self.variables[name]
        lowered = name.lower()
        if lowered in self.variables:
            return self.variables[lowered]
        for key, value in self.variables.items():
            if key.lower() == lowered:
                return value
        raise FormulaEvaluationError(f"Unknown variable {name!r}")


def evaluate(expression: str, variables: Dict[str, float]) -> float:
    """
    Evaluate a formula. Raises FormulaEvaluationError on malformed input,
    unknown names or a non-finite result.
    """
    try:
        result = _Parser(tokenize(expression, variables), variables).parse()
    except RecursionError:
        raise FormulaEvaluationError("Formula is nested too deeply")
    except OverflowError:
        raise FormulaEvaluationError("Formula result overflowed")
    if not math.isfinite(result):
        raise FormulaEvaluationError("Formula result is not finite")
    return result
