"""
Core data models for the Application quality extraction.

All models use Pydantic for runtime validation and type safety.
"""

from .application import Application, ApplicationFilter
from .application_report import ApplicationReport
from .audit_settings import AuditSettings
from .evaluation_context import EvaluationContext
from .quality_criterion import EnabledCriteriaSet, QualityCriterion
from .quality_result import QualityResult

__all__ = [
    "Application",
    "ApplicationFilter",
    "ApplicationReport",
    "AuditSettings",
    "EvaluationContext",
    "QualityCriterion",
    "EnabledCriteriaSet",
    "QualityResult",
]
