from covgate.context.builder import ContextAssembler
from covgate.context.types import ContextValue, RunContext, ValueKind

__all__ = ["ContextAssembler", "ContextValue", "RunContext", "ValueKind"]
