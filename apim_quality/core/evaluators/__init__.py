"""
Criterion evaluator implementations.

Provides evaluators for naming conventions, minimum lengths and runtime usage.
"""

from .base_evaluator import BaseEvaluator, LocalEvaluator
from .min_length_evaluator import MinLengthEvaluator
from .naming_convention_evaluator import APP_NAME_PATTERN, NamingConventionEvaluator
from .runtime_usage_evaluator import RuntimeUsageEvaluator

__all__ = [
    "BaseEvaluator",
    "LocalEvaluator",
    "NamingConventionEvaluator",
    "MinLengthEvaluator",
    "RuntimeUsageEvaluator",
    "APP_NAME_PATTERN",
]
