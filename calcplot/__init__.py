"""Top-level public API for the ``calcplot`` package.

Scientific-calculator expression engine and function-plot sampler:

>>> from calcplot import Calculator, GraphSession, evaluate_base
>>> Calculator().calculate("sqrt(16) + 2^3")
'12'
>>> evaluate_base("FF AND 0F", "hex")
15

Lower-level building blocks (normalizer, parser, evaluator, calculus
helpers, sampler) are exported too, for callers that want to drive one
stage directly.
"""

from .calculator import Calculator
from .calculus import derivative, integral
from .config import EvaluatorConfig, PlotConfig
from .errors import (
    EvalError,
    ExpressionSyntaxError,
    NonFiniteResultError,
    SymbolicError,
    UnknownIdentifierError,
)
from .evaluator import Evaluator
from .formatting import format_result
from .functions import FunctionDefinition, FunctionHandle, FunctionSlots, GraphMode
from .graph import GraphSession, RenderState
from .history import History, HistoryEntry
from .InputConvert import InputConvert
from .normalize import normalize
from .parser import parse_expression
from .programmer import BaseEvaluator, evaluate_base, format_in_base, to_base_strings
from .render import to_plotly_figure
from .sampler import Frame, PlotSampler, Polyline, SampledCurve
from .symbolic import SymbolicEngine
from .view import ViewWindow

__all__ = [
    "Calculator",
    "derivative",
    "integral",
    "EvaluatorConfig",
    "PlotConfig",
    "EvalError",
    "ExpressionSyntaxError",
    "NonFiniteResultError",
    "SymbolicError",
    "UnknownIdentifierError",
    "Evaluator",
    "format_result",
    "FunctionDefinition",
    "FunctionHandle",
    "FunctionSlots",
    "GraphMode",
    "GraphSession",
    "RenderState",
    "History",
    "HistoryEntry",
    "InputConvert",
    "normalize",
    "parse_expression",
    "BaseEvaluator",
    "evaluate_base",
    "format_in_base",
    "to_base_strings",
    "to_plotly_figure",
    "Frame",
    "PlotSampler",
    "Polyline",
    "SampledCurve",
    "SymbolicEngine",
    "ViewWindow",
]
