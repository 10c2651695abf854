"""
NamingConventionEvaluator - checks an Application attribute against a naming convention.
"""

import re
from re import Pattern
from typing import Any

from .base_evaluator import LocalEvaluator

# Application name is composed of:
# - optionally a namespace (one or more words) followed by " - "
# - a resource or provider (one or more words)
# - optionally " - " followed by a country
# e.g. "Multiple words namespace - Resource or provider - Country"
APP_NAME_PATTERN = r"^(\w+( \w+)* - )?\w+( \w+)*( - \w+)?$"


class NamingConventionEvaluator(LocalEvaluator):
    """
    Complies when the whole attribute value matches a regular expression.

    Parameters:
    - pattern: Regular expression pattern (string or compiled Pattern)
    - flags: Optional regex flags (default: re.ASCII, words are [A-Za-z0-9_])
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

        pattern = self.parameters.get("pattern")
        if not pattern:
            raise ValueError("NamingConventionEvaluator requires 'pattern' parameter")

        flags = self.parameters.get("flags", re.ASCII)

        try:
            if isinstance(pattern, str):
                self.pattern: Pattern = re.compile(pattern, flags)
            elif isinstance(pattern, Pattern):
                self.pattern = pattern
            else:
                raise ValueError(f"Pattern must be string or compiled Pattern, got {type(pattern)}")
        except re.error as e:
            raise ValueError(f"Invalid regex pattern: {e}")

    def check(self, value: Any) -> bool:
        """
        Check that the value matches the naming convention.

        Args:
            value: The attribute value

        Returns:
            True if the whole value matches the pattern, False otherwise
            (a missing value never complies)
        """
        if value is None:
            return False

        value_str = value if isinstance(value, str) else str(value)
        return self.pattern.fullmatch(value_str) is not None

    @property
    def evaluator_type(self) -> str:
        return "naming_convention"
