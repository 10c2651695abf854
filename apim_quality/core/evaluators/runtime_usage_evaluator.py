"""
RuntimeUsageEvaluator - checks an Application was used on the gateway during a time window.
"""

import logging
from typing import Any

from .base_evaluator import BaseEvaluator

logger = logging.getLogger(__name__)

ONLY_ONE_RESULT = 1


class RuntimeUsageEvaluator(BaseEvaluator):
    """
    Complies when at least one gateway request event references the Application
    inside the context's [runtime_from, runtime_to) window.

    Issues exactly one search query per evaluation, asking for a single hit:
    only the reported total matters.

    Parameters:
    - match_field: Event field holding the Application id (default: "application")
    - max_results: Number of hits requested (default: 1)
    """

    at_runtime = True
    default_field = "runtime_key"

    def __init__(self, field_name: str = "runtime_key", parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)
        self.match_field = self.parameters.get("match_field", "application")
        self.max_results = self.parameters.get("max_results", ONLY_ONE_RESULT)

    async def evaluate(self, application: Any, context: Any) -> bool:
        if context is None or context.search is None:
            raise ValueError("RuntimeUsageEvaluator requires a search collaborator")

        key = self.get_value(application)
        hits = context.search.search_hits(
            context.search_index,
            context.runtime_from,
            context.runtime_to,
            [(self.match_field, key)],
            self.max_results,
        )
        try:
            async for hit in hits:
                total = hit["meta"]["total"]
                logger.debug(f"{total} event(s) found for {self.match_field}={key}")
                return total > 0
        finally:
            aclose = getattr(hits, "aclose", None)
            if aclose is not None:
                await aclose()

        # No hit reported at all
        return False

    @property
    def evaluator_type(self) -> str:
        return "runtime_usage"
