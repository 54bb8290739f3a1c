from __future__ import annotations

from typing import TYPE_CHECKING

from covgate.gate.expression import compile_expression, evaluate

if TYPE_CHECKING:
    from covgate.context.builder import ContextAssembler


def check_if(expression: str, assembler: "ContextAssembler") -> bool:
    """
    Decide whether a gated action may proceed.

    An empty expression is always satisfied and never touches the assembler,
    so no platform call is made. Otherwise the run context is assembled fresh
    and the expression is evaluated against it.
    """
    if not expression or not expression.strip():
        return True
    return evaluate(expression, assembler.assemble())


__all__ = ["check_if", "compile_expression", "evaluate"]
