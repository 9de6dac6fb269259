"""Display formatting for calculator results."""

from __future__ import annotations

import math

__all__ = ["format_result", "ERROR_TEXT"]

ERROR_TEXT = "Error"


def format_result(value: float) -> str:
    """Format a numeric result for the calculator display.

    - NaN -> ``"Error"``; infinities -> ``"Infinity"`` / ``"-Infinity"``.
      The sign is kept so that ``-1/0`` and ``1/0`` read differently.
    - Magnitudes above ``1e10`` or below ``1e-6`` (non-zero) use exponential
      notation with six fractional digits.
    - Everything else is rounded to ten decimals with trailing zeros removed,
      which hides binary noise such as ``0.1 + 0.2``.

    >>> format_result(14.0)
    '14'
    >>> format_result(0.1 + 0.2)
    '0.3'
    >>> format_result(12345678901.0)
    '1.234568e+10'
    """
    value = float(value)
    if math.isnan(value):
        return ERROR_TEXT
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    magnitude = abs(value)
    if magnitude > 1e10 or (magnitude < 1e-6 and value != 0):
        return f"{value:.6e}"
    text = f"{value:.10f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text
