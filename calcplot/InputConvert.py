# === SECTION: InputConvert [id: InputConvert]===
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Type, TypeVar

if TYPE_CHECKING:
    from .evaluator import Evaluator

T = TypeVar("T", int, float)


def InputConvert(
    obj: Any,
    dest_type: Type[T] = float,
    truncate: bool = True,
    *,
    evaluator: Optional["Evaluator"] = None,
) -> T:
    """
    Convert a user-supplied value `obj` to `dest_type`.

    Supported destination types:
    - float
    - int

    Rules:
    - If `obj` is a number: cast via dest_type(obj).
    - If `obj` is a string:
        1) try float(s)
        2) else evaluate it as a calculator expression ("-2pi", "sqrt(2)/2").

    Truncation Rules (`truncate`):
    - When converting Float -> Int:
        - If `truncate=True`: Truncate decimal part (e.g., 3.9 -> 3).
        - If `truncate=False`: Require exact integer (e.g., 3.0 -> 3, 3.1 -> Error).

    Parameters
    ----------
    evaluator:
        Evaluator used for the expression path (its angle mode applies).
        A fresh radian-mode evaluator is used when omitted.

    Raises
    ------
    NotImplementedError
        If dest_type is unsupported.
    ValueError
        If conversion fails or violates truncation rules.
    """
    if dest_type not in (float, int):
        raise NotImplementedError(
            f"Unsupported destination type: {dest_type!r}. Only float and int are supported."
        )

    def _coerce_numeric_value(x: float) -> T:
        if dest_type is float:
            return float(x)  # type: ignore[return-value]

        if x != x or x in (float("inf"), float("-inf")):
            raise ValueError(f"Could not convert {x!r} to int: value is not finite.")
        if not float(x).is_integer():
            if not truncate:
                raise ValueError(
                    f"Could not convert {x!r} to int: value is not an exact integer."
                )
            # If truncate=True, int() truncates towards zero

        return int(x)  # type: ignore[return-value]

    # Fast path: numeric types (exclude bool)
    if isinstance(obj, (int, float)) and not isinstance(obj, bool):
        return _coerce_numeric_value(float(obj))

    # String path
    if isinstance(obj, str):
        s = obj.strip()
        if s == "":
            raise ValueError(f"Cannot convert empty string to {dest_type.__name__}.")

        try:
            return _coerce_numeric_value(float(s))
        except ValueError:
            pass

        from .errors import EvalError
        from .evaluator import Evaluator

        ev = evaluator if evaluator is not None else Evaluator()
        try:
            value = ev.evaluate(s, require_finite=dest_type is int)
        except EvalError as e:
            raise ValueError(
                f"Could not convert {obj!r} to {dest_type.__name__} (neither directly nor as an expression)."
            ) from e
        return _coerce_numeric_value(value)

    # Fallback: NumPy scalars, 0-d arrays, and other float-convertible objects
    try:
        return _coerce_numeric_value(float(obj))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Could not convert {obj!r} to {dest_type.__name__}.") from e

# === END OF SECTION: InputConvert [id: InputConvert]===
