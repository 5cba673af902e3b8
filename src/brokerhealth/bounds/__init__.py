"""Declarative bound rules and their evaluation."""

from .bound_evaluator import BoundEvaluator, rate_retention
from .bound_types import BoundCheck, BoundRule, BoundType, HealthBit, worst_bit

__all__ = [
    "BoundCheck",
    "BoundEvaluator",
    "BoundRule",
    "BoundType",
    "HealthBit",
    "rate_retention",
    "worst_bit",
]
