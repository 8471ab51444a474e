"""Safe boolean expressions over a file's stats and datas.

Expressions are parsed with :mod:`ast` and interpreted node by node; only
numbers, the two record names, attribute/subscript lookups on them,
arithmetic, comparisons, boolean connectives and ``min``/``max``/``abs``
are allowed. Nothing is handed to ``eval``.

Examples::

    stats.ploc > 100 and datas.authors >= 2
    stats["editCount"] / stats.fileCount > 3 || datas.codeCoveragePercent < 50
"""

import ast
import math
import operator
import re
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

import structlog

from worktrack.exceptions import ExpressionError

logger = structlog.get_logger(__name__)

Predicate = Callable[[Mapping[str, float], Mapping[str, float]], bool]


def _float_pow(base: Any, exponent: Any) -> float:
    # Float power overflows instead of building unbounded integers.
    return math.pow(base, exponent)


_BINARY_OPS: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: _float_pow,
}

_UNARY_OPS: Dict[type, Callable[[Any], Any]] = {
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
    ast.Not: operator.not_,
}

_COMPARE_OPS: Dict[type, Callable[[Any, Any], bool]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
}

_FUNCTIONS: Dict[str, Callable[..., Any]] = {
    "min": min,
    "max": max,
    "abs": abs,
}

_BOOL_CONSTANTS = {"true": True, "false": False}


def _normalize(expression: str) -> str:
    """Accept the C-style connectives users tend to type."""
    expression = expression.replace("&&", " and ").replace("||", " or ")
    expression = expression.replace("===", "==").replace("!==", "!=")
    return re.sub(r"!(?!=)", " not ", expression)


class _Validator(ast.NodeVisitor):
    def __init__(self, names: Sequence[str], expression: str) -> None:
        self.names = set(names)
        self.expression = expression

    def fail(self, reason: str) -> None:
        raise ExpressionError(self.expression, reason)

    def generic_visit(self, node: ast.AST) -> None:
        self.fail(f"unsupported syntax {type(node).__name__}")

    def visit_Expression(self, node: ast.Expression) -> None:
        self.visit(node.body)

    def visit_BoolOp(self, node: ast.BoolOp) -> None:
        for value in node.values:
            self.visit(value)

    def visit_BinOp(self, node: ast.BinOp) -> None:
        if type(node.op) not in _BINARY_OPS:
            self.fail(f"unsupported operator {type(node.op).__name__}")
        self.visit(node.left)
        self.visit(node.right)

    def visit_UnaryOp(self, node: ast.UnaryOp) -> None:
        if type(node.op) not in _UNARY_OPS:
            self.fail(f"unsupported operator {type(node.op).__name__}")
        self.visit(node.operand)

    def visit_Compare(self, node: ast.Compare) -> None:
        for op in node.ops:
            if type(op) not in _COMPARE_OPS:
                self.fail(f"unsupported comparison {type(op).__name__}")
        self.visit(node.left)
        for comparator in node.comparators:
            self.visit(comparator)

    def visit_Constant(self, node: ast.Constant) -> None:
        if not isinstance(node.value, (bool, int, float)):
            self.fail(f"only numeric constants are allowed, got {node.value!r}")

    def visit_Name(self, node: ast.Name) -> None:
        if node.id not in self.names and node.id not in _BOOL_CONSTANTS:
            self.fail(f"unknown name {node.id!r}, expected one of {sorted(self.names)}")

    def visit_Attribute(self, node: ast.Attribute) -> None:
        if not isinstance(node.value, ast.Name) or node.value.id not in self.names:
            self.fail("attributes are only allowed on record names")
        if node.attr.startswith("_"):
            self.fail(f"private attribute {node.attr!r}")

    def visit_Subscript(self, node: ast.Subscript) -> None:
        if not isinstance(node.value, ast.Name) or node.value.id not in self.names:
            self.fail("subscripts are only allowed on record names")
        if not (isinstance(node.slice, ast.Constant) and isinstance(node.slice.value, str)):
            self.fail("subscript keys must be string literals")

    def visit_Call(self, node: ast.Call) -> None:
        if not isinstance(node.func, ast.Name) or node.func.id not in _FUNCTIONS:
            self.fail(f"only {sorted(_FUNCTIONS)} may be called")
        if node.keywords:
            self.fail("keyword arguments are not supported")
        for arg in node.args:
            self.visit(arg)


class _Interpreter:
    def __init__(self, scope: Mapping[str, Mapping[str, float]]) -> None:
        self.scope = scope

    def lookup(self, record: str, key: str) -> float:
        # Unknown keys read as 0 so optional stats can be compared safely.
        return self.scope[record].get(key, 0)

    def eval(self, node: ast.AST) -> Any:
        if isinstance(node, ast.Expression):
            return self.eval(node.body)
        if isinstance(node, ast.BoolOp):
            if isinstance(node.op, ast.And):
                result: Any = True
                for value in node.values:
                    result = self.eval(value)
                    if not result:
                        return result
                return result
            result = False
            for value in node.values:
                result = self.eval(value)
                if result:
                    return result
            return result
        if isinstance(node, ast.BinOp):
            return _BINARY_OPS[type(node.op)](self.eval(node.left), self.eval(node.right))
        if isinstance(node, ast.UnaryOp):
            return _UNARY_OPS[type(node.op)](self.eval(node.operand))
        if isinstance(node, ast.Compare):
            left = self.eval(node.left)
            for op, comparator in zip(node.ops, node.comparators):
                right = self.eval(comparator)
                if not _COMPARE_OPS[type(op)](left, right):
                    return False
                left = right
            return True
        if isinstance(node, ast.Constant):
            return node.value
        if isinstance(node, ast.Name):
            if node.id in _BOOL_CONSTANTS:
                return _BOOL_CONSTANTS[node.id]
            return self.scope[node.id]
        if isinstance(node, ast.Attribute):
            return self.lookup(node.value.id, node.attr)
        if isinstance(node, ast.Subscript):
            return self.lookup(node.value.id, node.slice.value)
        if isinstance(node, ast.Call):
            return _FUNCTIONS[node.func.id](*(self.eval(arg) for arg in node.args))
        raise ExpressionError(type(node).__name__, "unsupported syntax")


def compile_predicate(expression: str, names: Sequence[str] = ("stats", "datas")) -> Predicate:
    """Compile an expression into a predicate over two records.

    Args:
        expression: Boolean expression text
        names: Names the two records are bound to, in call order

    Returns:
        Callable taking the two records and returning a bool. Runtime
        arithmetic errors (e.g. division by zero) evaluate to False.

    Raises:
        ExpressionError: If the expression does not parse or uses
            anything outside the allowed grammar
    """
    try:
        tree = ast.parse(_normalize(expression).strip(), mode="eval")
    except SyntaxError as e:
        raise ExpressionError(expression, e.msg) from e
    _Validator(names, expression).visit(tree)

    first, second = names

    def predicate(first_record: Mapping[str, float], second_record: Mapping[str, float]) -> bool:
        interpreter = _Interpreter({first: first_record, second: second_record})
        try:
            return bool(interpreter.eval(tree))
        except (ArithmeticError, TypeError, ValueError) as e:
            logger.debug("eval_filter_failed", expression=expression, error=str(e))
            return False

    return predicate


def _reject_all(first_record: Mapping[str, float], second_record: Mapping[str, float]) -> bool:
    return False


def build_eval_filter(
    expression: Optional[str], names: Sequence[str] = ("stats", "datas")
) -> Optional[Predicate]:
    """Build the optional file predicate from settings.

    Args:
        expression: Expression text, or None/empty for no predicate
        names: Record names bound in the expression

    Returns:
        None if no expression is set; a predicate that rejects everything
        if the expression is invalid; otherwise the compiled predicate
    """
    if not expression or not expression.strip():
        return None
    try:
        return compile_predicate(expression, names)
    except ExpressionError as e:
        logger.error("bad_eval_filter", expression=expression, error=e.reason)
        return _reject_all
