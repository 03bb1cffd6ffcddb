from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Union

from typing_extensions import TypeAlias

# ---------- Value Model ----------

@dataclass(frozen=True)
class SeqNumber:
    value: float
    def __str__(self) -> str:
        return repr(self.value)

@dataclass(frozen=True)
class SeqString:
    value: str
    def __str__(self) -> str:
        return self.value

@dataclass(frozen=True)
class SeqSequence:
    """Fully materialized list of integer-valued floats."""
    elements: List[float] = field(default_factory=list)
    def __str__(self) -> str:
        return "[" + ", ".join(repr(x) for x in self.elements) + "]"

SeqValue: TypeAlias = Union[SeqNumber, SeqString, SeqSequence]

def type_name(value: SeqValue) -> str:
    match value:
        case SeqNumber():
            return "number"
        case SeqString():
            return "string"
        case SeqSequence():
            return "sequence"
    return type(value).__name__

# ---------- Errors ----------

class SeqlangError(Exception):
    """Base class of every failure that ends a run with an Error event."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message

class SeqlangSyntaxError(SeqlangError):
    pass

class UndefinedVariableError(SeqlangError):
    def __init__(self, name: str):
        super().__init__(f"Variable {name} not found")
        self.name = name

class SeqlangTypeError(SeqlangError):
    pass

class InvalidSequenceBoundsError(SeqlangError):
    def __init__(self, message: str, start: float, end: float):
        super().__init__(message)
        self.start = start
        self.end = end

class RunCancelled(Exception):
    """Raised at a suspension point once the run's CancelToken is set."""

# ---------- Cancellation ----------

class CancelToken:
    """Thread-safe cooperative cancellation flag shared by one run."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def cancelled(self) -> bool:
        return self._event.is_set()

    def check(self) -> None:
        if self._event.is_set():
            raise RunCancelled()

# ---------- Scopes ----------

class Scope:
    """Name to value mapping consulted during evaluation.

    The global scope is mutated only by the sequential statement loop.
    `overlay` derives a read-only child holding lambda parameters; the parent
    is never written through it, so a parameter shadows a global only for the
    duration of the lambda body.
    """

    def __init__(self, parent: Optional['Scope'] = None, bindings: Optional[Mapping[str, SeqValue]] = None):
        self.parent = parent
        self.vars: Dict[str, SeqValue] = dict(bindings) if bindings else {}

    def define(self, name: str, val: SeqValue) -> None:
        self.vars[name] = val

    def get(self, name: str) -> SeqValue:
        scope: Optional[Scope] = self

        while scope is not None:
            if name in scope.vars:
                return scope.vars[name]
            scope = scope.parent

        raise UndefinedVariableError(name)

    def __contains__(self, name: str) -> bool:
        try:
            self.get(name)
        except UndefinedVariableError:
            return False
        return True

    def overlay(self, bindings: Mapping[str, SeqValue]) -> 'Scope':
        return Scope(parent=self, bindings=bindings)
