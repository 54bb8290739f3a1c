"""Gate expression evaluation.

Gate expressions are boolean conditions written in configuration, e.g.::

    is_default_branch && github.event_name == 'push'
    weekday in [1, 2, 3, 4, 5] and hour < 9
    startsWith(env.GITHUB_REF, 'refs/tags/')

They are parsed with :mod:`ast` and interpreted node by node against the typed
namespace of a :class:`RunContext`. Nothing is passed to ``eval``. Only the
node types handled below are accepted; everything else is rejected.

The result must be exactly ``true``. A ``nil`` result counts as ``false``;
any other non-boolean value is an error rather than being treated as truthy.
"""

from __future__ import annotations

import ast
import re
from typing import Any, Callable, Dict, List, Mapping

from covgate.context.types import ContextValue, RunContext
from covgate.errors import ExpressionError

# &&, || and ! outside of string literals
_ALIAS_RE = re.compile(r"""("(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*')|(&&|\|\||!(?!=))""")
_ALIASES = {"&&": " and ", "||": " or ", "!": " not "}
_CONSTANTS = {"true": True, "false": False, "nil": None}
_TOO_DEEP = "expression is nested too deeply"


def _translate(expression: str) -> str:
    def _replace(match: re.Match) -> str:
        if match.group(1) is not None:
            return match.group(1)
        return _ALIASES[match.group(2)]

    return _ALIAS_RE.sub(_replace, expression)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _type_name(value: Any) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "map"
    return type(value).__name__


def _equals(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if _is_number(left) and _is_number(right):
        return left == right
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(_equals(a, b) for a, b in zip(left, right))
    return type(left) is type(right) and left == right


def compile_expression(expression: str) -> ast.Expression:
    """Parse a gate expression. Raises ``ExpressionError`` on syntax errors."""
    source = _translate(expression)
    try:
        # Parenthesized so multi-line YAML blocks parse as one expression.
        return ast.parse(f"(\n{source}\n)", mode="eval")
    except (SyntaxError, ValueError) as exc:
        reason = getattr(exc, "msg", None) or str(exc)
        raise ExpressionError(expression, f"syntax error: {reason}") from exc
    except (RecursionError, MemoryError) as exc:
        raise ExpressionError(expression, _TOO_DEEP) from exc


class _Interpreter:
    def __init__(self, expression: str, variables: Mapping[str, ContextValue]):
        self.expression = expression
        self.variables = variables
        self.functions: Dict[str, Callable[..., Any]] = {
            "len": self._fn_len,
            "contains": self._fn_contains,
            "startsWith": self._fn_starts_with,
            "endsWith": self._fn_ends_with,
            "matches": self._fn_matches,
        }

    def fail(self, reason: str):
        raise ExpressionError(self.expression, reason)

    def visit(self, node: ast.AST) -> Any:
        method = getattr(self, f"visit_{type(node).__name__}", None)
        if method is None:
            self.fail(f"unsupported syntax: {type(node).__name__}")
        return method(node)

    def visit_Expression(self, node: ast.Expression) -> Any:
        return self.visit(node.body)

    def visit_Constant(self, node: ast.Constant) -> Any:
        value = node.value
        if value is None or isinstance(value, (bool, int, float, str)):
            return value
        self.fail(f"unsupported literal: {value!r}")

    def visit_Name(self, node: ast.Name) -> Any:
        if node.id in _CONSTANTS:
            return _CONSTANTS[node.id]
        variable = self.variables.get(node.id)
        if variable is None:
            self.fail(f"unknown name {node.id}")
        return variable.unwrap()

    def visit_List(self, node: ast.List) -> List[Any]:
        return [self.visit(item) for item in node.elts]

    def visit_Tuple(self, node: ast.Tuple) -> List[Any]:
        return [self.visit(item) for item in node.elts]

    def _boolean(self, value: Any, operator: str) -> bool:
        if not isinstance(value, bool):
            self.fail(f"invalid operation: {operator} on {_type_name(value)}, expected bool")
        return value

    def visit_BoolOp(self, node: ast.BoolOp) -> bool:
        is_and = isinstance(node.op, ast.And)
        operator = "and" if is_and else "or"
        for item in node.values:
            value = self._boolean(self.visit(item), operator)
            if is_and and not value:
                return False
            if not is_and and value:
                return True
        return is_and

    def visit_UnaryOp(self, node: ast.UnaryOp) -> Any:
        operand = self.visit(node.operand)
        if isinstance(node.op, ast.Not):
            return not self._boolean(operand, "not")
        if isinstance(node.op, (ast.USub, ast.UAdd)):
            if not _is_number(operand):
                self.fail(f"invalid operation: unary sign on {_type_name(operand)}")
            return -operand if isinstance(node.op, ast.USub) else operand
        self.fail(f"unsupported operator: {type(node.op).__name__}")

    def visit_BinOp(self, node: ast.BinOp) -> Any:
        left = self.visit(node.left)
        right = self.visit(node.right)
        op = node.op
        if isinstance(op, ast.Add):
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            if isinstance(left, list) and isinstance(right, list):
                return left + right
        if isinstance(op, (ast.Add, ast.Sub, ast.Mult, ast.Div, ast.Mod)):
            if not (_is_number(left) and _is_number(right)):
                self.fail(
                    f"invalid operation: {type(op).__name__} "
                    f"(mismatched types {_type_name(left)} and {_type_name(right)})"
                )
            if isinstance(op, ast.Add):
                return left + right
            if isinstance(op, ast.Sub):
                return left - right
            if isinstance(op, ast.Mult):
                return left * right
            if right == 0:
                self.fail("division by zero")
            if isinstance(op, ast.Div):
                return left / right
            return left % right
        self.fail(f"unsupported operator: {type(op).__name__}")

    def _contains(self, container: Any, item: Any) -> bool:
        if isinstance(container, str):
            if not isinstance(item, str):
                self.fail(f"invalid operation: in (mismatched types {_type_name(item)} and string)")
            return item in container
        if isinstance(container, dict):
            return isinstance(item, str) and item in container
        if isinstance(container, (list, tuple)):
            return any(_equals(item, element) for element in container)
        self.fail(f"invalid operation: in on {_type_name(container)}")

    def _compare(self, op: ast.cmpop, left: Any, right: Any) -> bool:
        if isinstance(op, ast.Eq):
            return _equals(left, right)
        if isinstance(op, ast.NotEq):
            return not _equals(left, right)
        if isinstance(op, ast.In):
            return self._contains(right, left)
        if isinstance(op, ast.NotIn):
            return not self._contains(right, left)
        if isinstance(op, (ast.Lt, ast.LtE, ast.Gt, ast.GtE)):
            comparable = (_is_number(left) and _is_number(right)) or (
                isinstance(left, str) and isinstance(right, str)
            )
            if not comparable:
                self.fail(
                    f"invalid operation: {type(op).__name__} "
                    f"(mismatched types {_type_name(left)} and {_type_name(right)})"
                )
            if isinstance(op, ast.Lt):
                return left < right
            if isinstance(op, ast.LtE):
                return left <= right
            if isinstance(op, ast.Gt):
                return left > right
            return left >= right
        self.fail(f"unsupported comparison: {type(op).__name__}")

    def visit_Compare(self, node: ast.Compare) -> bool:
        left = self.visit(node.left)
        for op, comparator in zip(node.ops, node.comparators):
            right = self.visit(comparator)
            if not self._compare(op, left, right):
                return False
            left = right
        return True

    def visit_IfExp(self, node: ast.IfExp) -> Any:
        if self._boolean(self.visit(node.test), "if"):
            return self.visit(node.body)
        return self.visit(node.orelse)

    def _field(self, value: Any, name: Any) -> Any:
        if isinstance(value, dict):
            if not isinstance(name, str):
                self.fail(f"map keys are strings, got {_type_name(name)}")
            return value.get(name)
        if value is None:
            self.fail(f"cannot fetch {name} from nil")
        self.fail(f"cannot fetch {name} from {_type_name(value)}")

    def visit_Attribute(self, node: ast.Attribute) -> Any:
        return self._field(self.visit(node.value), node.attr)

    def visit_Subscript(self, node: ast.Subscript) -> Any:
        value = self.visit(node.value)
        key = self.visit(node.slice)
        if isinstance(value, (list, tuple)):
            if not isinstance(key, int) or isinstance(key, bool):
                self.fail(f"array index must be int, got {_type_name(key)}")
            if not -len(value) <= key < len(value):
                self.fail(f"index out of range: {key} (array of length {len(value)})")
            return value[key]
        return self._field(value, key)

    def visit_Call(self, node: ast.Call) -> Any:
        if not isinstance(node.func, ast.Name) or node.func.id not in self.functions:
            name = node.func.id if isinstance(node.func, ast.Name) else type(node.func).__name__
            self.fail(f"unknown function {name}")
        if node.keywords:
            self.fail(f"{node.func.id} does not accept keyword arguments")
        args = [self.visit(arg) for arg in node.args]
        expected = 1 if node.func.id == "len" else 2
        if len(args) != expected:
            self.fail(f"{node.func.id} expects {expected} argument(s), got {len(args)}")
        return self.functions[node.func.id](*args)

    def _strings(self, name: str, *values: Any) -> None:
        for value in values:
            if not isinstance(value, str):
                self.fail(f"{name} expects string arguments, got {_type_name(value)}")

    def _fn_len(self, value: Any) -> int:
        if not isinstance(value, (str, list, tuple, dict)):
            self.fail(f"invalid argument for len (type {_type_name(value)})")
        return len(value)

    def _fn_contains(self, container: Any, item: Any) -> bool:
        return self._contains(container, item)

    def _fn_starts_with(self, value: Any, prefix: Any) -> bool:
        self._strings("startsWith", value, prefix)
        return value.startswith(prefix)

    def _fn_ends_with(self, value: Any, suffix: Any) -> bool:
        self._strings("endsWith", value, suffix)
        return value.endswith(suffix)

    def _fn_matches(self, value: Any, pattern: Any) -> bool:
        self._strings("matches", value, pattern)
        try:
            return re.search(pattern, value) is not None
        except re.error as exc:
            self.fail(f"invalid pattern {pattern!r}: {exc}")


def evaluate(expression: str, context: RunContext) -> bool:
    """Evaluate a gate expression. An empty expression is always true."""
    if not expression or not expression.strip():
        return True
    tree = compile_expression(expression)
    try:
        result = _Interpreter(expression, context.variables()).visit(tree)
    except RecursionError as exc:
        raise ExpressionError(expression, _TOO_DEEP) from exc
    if result is None:
        return False
    if not isinstance(result, bool):
        raise ExpressionError(
            expression,
            f"expression must evaluate to bool, got {_type_name(result)} ({result!r})",
        )
    return result
