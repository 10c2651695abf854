"""
Criteria registry: the catalog of quality criteria and its enabled subset.

The registry is the only place where criteria are declared. Adding, removing or
disabling a criterion never requires touching the pipeline or the report sink.
"""

import logging
from typing import Any

from apim_quality.core.evaluators import (
    APP_NAME_PATTERN,
    BaseEvaluator,
    MinLengthEvaluator,
    NamingConventionEvaluator,
    RuntimeUsageEvaluator,
)
from apim_quality.core.models import EnabledCriteriaSet, QualityCriterion
from apim_quality.core.models.audit_settings import DEFAULT_DESCRIPTION_MIN_LENGTH

logger = logging.getLogger(__name__)


def default_criteria(description_min_length: int = DEFAULT_DESCRIPTION_MIN_LENGTH) -> list[dict[str, Any]]:
    """
    Definitions of the shipped criteria.

    Args:
        description_min_length: Minimum description length for APP-DF02

    Returns:
        List of criterion definitions suitable for CriteriaRegistry
    """
    return [
        {
            "reference": "APP-DF01",
            "description": "Name's naming convention complied",
            "evaluator_type": "naming_convention",
            "field_name": "name",
            "parameters": {"pattern": APP_NAME_PATTERN},
            "enabled": True,
        },
        {
            "reference": "APP-DF02",
            "description": f"Description's length higher than {description_min_length}",
            "evaluator_type": "min_length",
            "field_name": "description",
            "parameters": {"min_length": description_min_length},
            "enabled": True,
        },
        {
            "reference": "APP-R00",
            "description": "Application usage at runtime",
            "evaluator_type": "runtime_usage",
            "field_name": "runtime_key",
            "parameters": {"match_field": "application", "max_results": 1},
            "enabled": True,
        },
    ]


class CriteriaRegistry:
    """
    Holds the criteria catalog and derives the enabled criteria of a run.

    Both the catalog and the enabled subsets are computed once and then shared,
    read-only, by every evaluation task of the run.
    """

    EVALUATOR_REGISTRY: dict[str, type[BaseEvaluator]] = {
        "naming_convention": NamingConventionEvaluator,
        "min_length": MinLengthEvaluator,
        "runtime_usage": RuntimeUsageEvaluator,
    }

    def __init__(self, definitions: list[dict[str, Any]] | None = None):
        """
        Initialize the registry.

        Args:
            definitions: Criterion definitions, each containing:
                         - reference: str (unique)
                         - description: str
                         - evaluator_type: str (naming_convention, min_length, runtime_usage)
                         - field_name: str
                         - parameters: Dict[str, Any] (optional)
                         - enabled: bool (default True)
                         - at_runtime: bool (default: the evaluator's own flag)
                         Defaults to default_criteria().
        """
        self.definitions = definitions if definitions is not None else default_criteria()
        self._criteria: tuple[QualityCriterion, ...] | None = None
        self._enabled_criteria: dict[bool, EnabledCriteriaSet] = {}

    def get_criteria(self) -> tuple[QualityCriterion, ...]:
        """
        Get the whole catalog, enabled or not.

        Raises:
            ValueError: If a definition is invalid or a reference is duplicated
        """
        if self._criteria is None:
            self._criteria = self._build_criteria()
        return self._criteria

    def get_enabled_criteria(self, runtime_enabled: bool) -> EnabledCriteriaSet:
        """
        Get the criteria to evaluate during a run, ascending by reference.

        Args:
            runtime_enabled: Whether runtime criteria are evaluated

        Returns:
            EnabledCriteriaSet shared by the pipeline and the report sink
        """
        runtime_enabled = bool(runtime_enabled)
        if runtime_enabled not in self._enabled_criteria:
            enabled = [
                criterion for criterion in self.get_criteria()
                if criterion.enabled and (not criterion.at_runtime or runtime_enabled)
            ]
            # Reference order drives both the CSV header and every CSV line
            enabled.sort(key=lambda criterion: criterion.reference)
            self._enabled_criteria[runtime_enabled] = EnabledCriteriaSet(
                criteria=tuple(enabled),
                runtime_enabled=runtime_enabled,
            )
            logger.debug(
                f"Enabled criteria (runtime={runtime_enabled}): "
                f"{self._enabled_criteria[runtime_enabled].references}"
            )
        return self._enabled_criteria[runtime_enabled]

    def _build_criteria(self) -> tuple[QualityCriterion, ...]:
        criteria = []
        seen: set[str] = set()

        for definition in self.definitions:
            reference = definition.get("reference")
            if not reference:
                raise ValueError(f"Criterion definition is missing 'reference': {definition}")
            if reference in seen:
                raise ValueError(f"Duplicate criterion reference: {reference}")
            seen.add(reference)

            evaluator_type = definition.get("evaluator_type")
            evaluator_class = self.EVALUATOR_REGISTRY.get(evaluator_type)
            if not evaluator_class:
                raise ValueError(f"Unknown evaluator type '{evaluator_type}' for criterion '{reference}'")

            field_name = definition.get("field_name") or evaluator_class.default_field
            try:
                evaluator = evaluator_class(field_name, definition.get("parameters", {}))
            except Exception as e:
                raise ValueError(f"Failed to create evaluator for criterion '{reference}': {e}")

            at_runtime = definition.get("at_runtime", evaluator.at_runtime)
            if evaluator.at_runtime and not at_runtime:
                raise ValueError(
                    f"Criterion '{reference}' uses the {evaluator.evaluator_type} evaluator, which cannot run locally"
                )

            criteria.append(QualityCriterion(
                reference=reference,
                description=definition.get("description", reference),
                at_runtime=at_runtime,
                enabled=definition.get("enabled", True),
                evaluator=evaluator,
            ))

        return tuple(criteria)

    def get_catalog_summary(self) -> dict[str, Any]:
        """
        Get summary of the catalog.

        Returns:
            Dictionary with criteria counts
        """
        criteria = self.get_criteria()
        return {
            "total_criteria": len(criteria),
            "enabled_criteria": sum(1 for criterion in criteria if criterion.enabled),
            "runtime_criteria": sum(1 for criterion in criteria if criterion.at_runtime),
        }
