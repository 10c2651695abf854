"""
Quality criteria registry and configuration management.
"""

from .criteria_config import CriteriaConfigBuilder, CriteriaConfigLoader, merge_definitions
from .registry import CriteriaRegistry, default_criteria

__all__ = [
    "CriteriaRegistry",
    "CriteriaConfigLoader",
    "CriteriaConfigBuilder",
    "default_criteria",
    "merge_definitions",
]
