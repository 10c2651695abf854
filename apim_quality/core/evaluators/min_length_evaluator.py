"""
MinLengthEvaluator - checks an Application attribute is long enough.
"""

from typing import Any

from .base_evaluator import LocalEvaluator


class MinLengthEvaluator(LocalEvaluator):
    """
    Complies when the attribute length is greater than or equal to a minimum.

    Parameters:
    - min_length: Minimum length (inclusive)
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

        self.min_length = self.parameters.get("min_length")
        if self.min_length is None:
            raise ValueError("MinLengthEvaluator requires 'min_length' parameter")
        if not isinstance(self.min_length, int) or isinstance(self.min_length, bool) or self.min_length < 0:
            raise ValueError(f"min_length must be a non-negative integer, got {self.min_length!r}")

    def check(self, value: Any) -> bool:
        """
        Args:
            value: The attribute value (None counts as empty)

        Returns:
            True if len(value) >= min_length
        """
        actual_length = 0 if value is None else len(value)
        return actual_length >= self.min_length

    @property
    def evaluator_type(self) -> str:
        return "min_length"
