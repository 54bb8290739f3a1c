from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping


class ValueKind(str, Enum):
    INT = "int"
    STRING = "string"
    BOOL = "bool"
    MAPPING = "mapping"
    DOCUMENT = "document"


@dataclass(frozen=True)
class ContextValue:
    """
    A typed variable exposed to gate expressions.

    MAPPING holds named ``ContextValue`` children (or plain strings for ``env``);
    DOCUMENT holds decoded JSON whose fields are resolved on access.
    """
    kind: ValueKind
    raw: Any

    @classmethod
    def of_int(cls, value: int) -> "ContextValue":
        return cls(ValueKind.INT, int(value))

    @classmethod
    def of_string(cls, value: str) -> "ContextValue":
        return cls(ValueKind.STRING, str(value))

    @classmethod
    def of_bool(cls, value: bool) -> "ContextValue":
        return cls(ValueKind.BOOL, bool(value))

    @classmethod
    def of_mapping(cls, value: Mapping[str, Any]) -> "ContextValue":
        return cls(ValueKind.MAPPING, dict(value))

    @classmethod
    def of_document(cls, value: Any) -> "ContextValue":
        return cls(ValueKind.DOCUMENT, value)

    def unwrap(self) -> Any:
        """Plain Python value as seen by the expression evaluator."""
        if self.kind == ValueKind.MAPPING:
            return {
                key: item.unwrap() if isinstance(item, ContextValue) else item
                for key, item in self.raw.items()
            }
        return self.raw


@dataclass(frozen=True)
class RunContext:
    """Snapshot of the current CI invocation used to evaluate gate expressions."""
    year: int
    month: int
    day: int
    hour: int
    weekday: int  # Sunday = 0
    event_name: str
    event_payload: Any
    environment: Mapping[str, str] = field(default_factory=dict)
    is_default_branch: bool = False
    is_pull_request: bool = False

    def variables(self) -> Dict[str, ContextValue]:
        return {
            "year": ContextValue.of_int(self.year),
            "month": ContextValue.of_int(self.month),
            "day": ContextValue.of_int(self.day),
            "hour": ContextValue.of_int(self.hour),
            "weekday": ContextValue.of_int(self.weekday),
            "github": ContextValue.of_mapping({
                "event_name": ContextValue.of_string(self.event_name),
                "event": ContextValue.of_document(self.event_payload),
            }),
            "env": ContextValue.of_mapping({str(k): str(v) for k, v in self.environment.items()}),
            "is_default_branch": ContextValue.of_bool(self.is_default_branch),
            "is_pull_request": ContextValue.of_bool(self.is_pull_request),
        }
