"""
Criteria configuration management.

Loads criteria overrides from YAML files and provides utilities
for building criterion definitions.
"""

from pathlib import Path
from typing import Any

import yaml

from .registry import CriteriaRegistry


class CriteriaConfigLoader:
    """
    Loads criteria overrides from YAML configuration files.

    Shipped criteria are referenced by their reference and may be disabled or
    re-parameterised; unknown references declare new criteria.

    Expected YAML format:
    ```yaml
    criteria:
      APP-DF02:
        params:
          min_length: 50

      APP-R00:
        enabled: false

      APP-DF03:
        type: naming_convention
        field: description
        description: "Description starts with a capital letter"
        params:
          pattern: "^[A-Z].*"
    ```
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the criteria config loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Criteria configuration file not found: {config_path}")

    def load_overrides(self) -> dict[str, dict[str, Any]]:
        """
        Load and parse criteria overrides from the YAML file.

        Returns:
            Overrides keyed by criterion reference

        Raises:
            ValueError: If YAML is invalid or an entry is malformed
        """
        with open(self.config_path) as f:
            config = yaml.safe_load(f)

        if not config or "criteria" not in config:
            raise ValueError("Configuration file must contain 'criteria' section")

        criteria = config["criteria"]
        if not isinstance(criteria, dict):
            raise ValueError("'criteria' section must be a mapping of reference to settings")

        return {
            str(reference): self._parse_override(str(reference), override or {})
            for reference, override in criteria.items()
        }

    def load_definitions(self, base: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """
        Apply the overrides of the file on top of base definitions.

        Args:
            base: Criterion definitions to override (usually default_criteria())

        Returns:
            New list of definitions, base order first then added criteria
        """
        return merge_definitions(base, self.load_overrides())

    def _parse_override(self, reference: str, override: dict[str, Any]) -> dict[str, Any]:
        """
        Parse a single override entry.

        Raises:
            ValueError: If the entry is invalid
        """
        if not isinstance(override, dict):
            raise ValueError(f"Settings of criterion '{reference}' must be a mapping")

        parsed: dict[str, Any] = {"reference": reference}

        if "type" in override:
            evaluator_type = override["type"]
            if evaluator_type not in CriteriaRegistry.EVALUATOR_REGISTRY:
                raise ValueError(f"Unknown evaluator type '{evaluator_type}' for criterion '{reference}'")
            parsed["evaluator_type"] = evaluator_type
        if "field" in override:
            parsed["field_name"] = override["field"]
        if "description" in override:
            parsed["description"] = str(override["description"])
        if "params" in override or "parameters" in override:
            parsed["parameters"] = override.get("params", override.get("parameters")) or {}
        if "enabled" in override:
            if not isinstance(override["enabled"], bool):
                raise ValueError(f"'enabled' of criterion '{reference}' must be a boolean")
            parsed["enabled"] = override["enabled"]
        if "runtime" in override:
            parsed["at_runtime"] = bool(override["runtime"])

        return parsed


def merge_definitions(
    base: list[dict[str, Any]],
    overrides: dict[str, dict[str, Any]],
) -> list[dict[str, Any]]:
    """
    Merge overrides into criterion definitions.

    Parameters of an existing criterion are updated key by key; a new
    reference must at least declare its evaluator type.

    Raises:
        ValueError: If a new criterion has no evaluator type
    """
    merged = []
    known = set()

    for definition in base:
        reference = definition["reference"]
        known.add(reference)
        override = overrides.get(reference)
        if override is None:
            merged.append(dict(definition))
            continue

        updated = {**definition, **{k: v for k, v in override.items() if k != "parameters"}}
        if "parameters" in override:
            updated["parameters"] = {**definition.get("parameters", {}), **override["parameters"]}
        merged.append(updated)

    for reference, override in overrides.items():
        if reference in known:
            continue
        if "evaluator_type" not in override:
            raise ValueError(f"New criterion '{reference}' is missing 'type'")
        merged.append({"enabled": True, "parameters": {}, **override})

    return merged


class CriteriaConfigBuilder:
    """
    Programmatically build criterion definitions (for testing or dynamic criteria).
    """

    def __init__(self):
        """Initialize empty criteria configuration."""
        self.definitions: list[dict[str, Any]] = []

    def add_naming_convention(
        self,
        reference: str,
        pattern: str,
        field_name: str = "name",
        description: str | None = None,
        enabled: bool = True,
    ) -> "CriteriaConfigBuilder":
        """Add a naming convention criterion."""
        self.definitions.append({
            "reference": reference,
            "description": description or f"{field_name} naming convention complied",
            "evaluator_type": "naming_convention",
            "field_name": field_name,
            "parameters": {"pattern": pattern},
            "enabled": enabled,
        })
        return self

    def add_min_length(
        self,
        reference: str,
        min_length: int,
        field_name: str = "description",
        description: str | None = None,
        enabled: bool = True,
    ) -> "CriteriaConfigBuilder":
        """Add a minimum length criterion."""
        self.definitions.append({
            "reference": reference,
            "description": description or f"{field_name} length higher than {min_length}",
            "evaluator_type": "min_length",
            "field_name": field_name,
            "parameters": {"min_length": min_length},
            "enabled": enabled,
        })
        return self

    def add_runtime_usage(
        self,
        reference: str,
        match_field: str = "application",
        description: str | None = None,
        enabled: bool = True,
    ) -> "CriteriaConfigBuilder":
        """Add a runtime usage criterion."""
        self.definitions.append({
            "reference": reference,
            "description": description or "Application usage at runtime",
            "evaluator_type": "runtime_usage",
            "field_name": "runtime_key",
            "parameters": {"match_field": match_field, "max_results": 1},
            "enabled": enabled,
        })
        return self

    def build(self) -> list[dict[str, Any]]:
        """Build and return the criterion definitions."""
        return list(self.definitions)
