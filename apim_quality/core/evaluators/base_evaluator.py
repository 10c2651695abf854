"""
Base evaluator interface for all quality criteria.

All evaluators inherit from BaseEvaluator and implement the evaluate() coroutine.
Local evaluators only implement check(), a pure synchronous predicate.
"""

from abc import ABC, abstractmethod
from typing import Any


class BaseEvaluator(ABC):
    """
    Abstract base class for all criterion evaluators.

    Each evaluator implements a specific criterion type
    (naming_convention, min_length, runtime_usage).
    """

    #: Whether the evaluator needs the search collaborator
    at_runtime: bool = False

    #: Application attribute evaluated when a definition names none
    default_field: str = "name"

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        """
        Initialize evaluator.

        Args:
            field_name: Name of the Application attribute to evaluate
            parameters: Criterion-specific parameters (e.g., pattern, min_length)
        """
        self.field_name = field_name
        self.parameters = parameters or {}

    def get_value(self, application: Any) -> Any:
        """Read the evaluated attribute from the Application."""
        return getattr(application, self.field_name, None)

    @abstractmethod
    async def evaluate(self, application: Any, context: Any) -> bool:
        """
        Evaluate the criterion against an Application.

        Args:
            application: The Application to evaluate
            context: EvaluationContext holding the collaborators

        Returns:
            True if the Application complies with the criterion
        """
        pass

    @property
    @abstractmethod
    def evaluator_type(self) -> str:
        """Return the evaluator type identifier."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(field={self.field_name}, params={self.parameters})"


class LocalEvaluator(BaseEvaluator):
    """
    Evaluator computable from the Application alone.

    The synchronous check() result is returned from an already-resolved coroutine.
    """

    at_runtime = False

    @abstractmethod
    def check(self, value: Any) -> bool:
        """Pure predicate on the evaluated attribute."""
        pass

    async def evaluate(self, application: Any, context: Any = None) -> bool:
        return self.check(self.get_value(application))
