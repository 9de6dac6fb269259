"""Exception types raised by the expression engine."""

from __future__ import annotations

__all__ = [
    "EvalError",
    "ExpressionSyntaxError",
    "UnknownIdentifierError",
    "NonFiniteResultError",
    "SymbolicError",
]


class EvalError(ValueError):
    """Raised when an expression cannot be evaluated to a number."""


class ExpressionSyntaxError(EvalError):
    """Raised for malformed token streams: unbalanced brackets, stray operators, bad arity."""

    def __init__(self, message: str, position: int | None = None) -> None:
        if position is not None:
            message = f"{message} (at position {position})"
        super().__init__(message)
        self.position = position


class UnknownIdentifierError(EvalError):
    """Raised when a variable or function name is not bound or whitelisted."""

    def __init__(self, name: str, kind: str = "identifier") -> None:
        super().__init__(f"Unknown {kind}: {name!r}")
        self.name = name
        self.kind = kind


class NonFiniteResultError(EvalError):
    """Raised when a caller requires a finite result and got NaN or infinity."""


class SymbolicError(RuntimeError):
    """Raised when the symbolic engine cannot produce a usable result."""
