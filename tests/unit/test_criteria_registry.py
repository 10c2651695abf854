"""
Unit tests for the criteria registry and criteria configuration.
"""

import tempfile
from pathlib import Path

import pytest

from apim_quality.core.criteria import (
    CriteriaConfigBuilder,
    CriteriaConfigLoader,
    CriteriaRegistry,
    default_criteria,
    merge_definitions,
)
from apim_quality.core.evaluators import MinLengthEvaluator, RuntimeUsageEvaluator
from apim_quality.core.models import Application


@pytest.mark.unit
class TestCriteriaRegistry:
    """Tests for CriteriaRegistry"""

    def test_default_catalog(self, registry):
        criteria = registry.get_criteria()

        assert [criterion.reference for criterion in criteria] == ["APP-DF01", "APP-DF02", "APP-R00"]
        assert [criterion.at_runtime for criterion in criteria] == [False, False, True]
        assert all(criterion.enabled for criterion in criteria)

    def test_catalog_is_memoized(self, registry):
        assert registry.get_criteria() is registry.get_criteria()

    def test_enabled_criteria_without_runtime(self, registry):
        enabled = registry.get_enabled_criteria(False)
        assert enabled.references == ["APP-DF01", "APP-DF02"]
        assert enabled.runtime_enabled is False

    def test_enabled_criteria_with_runtime(self, registry):
        enabled = registry.get_enabled_criteria(True)
        assert enabled.references == ["APP-DF01", "APP-DF02", "APP-R00"]

    def test_runtime_toggle_differs_by_runtime_criteria_only(self, registry):
        without_runtime = set(registry.get_enabled_criteria(False).references)
        with_runtime = set(registry.get_enabled_criteria(True).references)
        runtime_references = {c.reference for c in registry.get_criteria() if c.at_runtime and c.enabled}

        assert with_runtime - without_runtime == runtime_references
        assert without_runtime <= with_runtime

    def test_enabled_criteria_memoized_per_flag(self, registry):
        assert registry.get_enabled_criteria(True) is registry.get_enabled_criteria(True)
        assert registry.get_enabled_criteria(False) is registry.get_enabled_criteria(False)
        assert registry.get_enabled_criteria(False) is not registry.get_enabled_criteria(True)

    def test_enabled_criteria_sorted_regardless_of_declaration_order(self):
        definitions = CriteriaConfigBuilder() \
            .add_min_length("APP-Z99", 10) \
            .add_runtime_usage("APP-A00") \
            .add_naming_convention("APP-M50", r"^\w+$") \
            .build()

        registry = CriteriaRegistry(definitions)

        assert registry.get_enabled_criteria(True).references == ["APP-A00", "APP-M50", "APP-Z99"]

    def test_disabled_criteria_excluded(self):
        definitions = CriteriaConfigBuilder() \
            .add_min_length("APP-DF02", 30, enabled=False) \
            .add_naming_convention("APP-DF01", r"^\w+$") \
            .build()

        registry = CriteriaRegistry(definitions)

        assert registry.get_enabled_criteria(True).references == ["APP-DF01"]
        assert len(registry.get_criteria()) == 2

    def test_duplicate_reference(self):
        definitions = CriteriaConfigBuilder() \
            .add_min_length("APP-DF02", 30) \
            .add_min_length("APP-DF02", 40) \
            .build()

        with pytest.raises(ValueError) as exc_info:
            CriteriaRegistry(definitions).get_criteria()
        assert "Duplicate" in str(exc_info.value)

    def test_unknown_evaluator_type(self):
        definitions = [{"reference": "APP-X", "evaluator_type": "unknown", "field_name": "name"}]
        with pytest.raises(ValueError) as exc_info:
            CriteriaRegistry(definitions).get_criteria()
        assert "Unknown evaluator type" in str(exc_info.value)

    def test_invalid_evaluator_parameters(self):
        definitions = [{"reference": "APP-X", "evaluator_type": "min_length", "field_name": "name"}]
        with pytest.raises(ValueError) as exc_info:
            CriteriaRegistry(definitions).get_criteria()
        assert "APP-X" in str(exc_info.value)

    def test_description_min_length_parameter(self):
        registry = CriteriaRegistry(default_criteria(description_min_length=50))
        criterion = registry.get_criteria()[1]

        assert isinstance(criterion.evaluator, MinLengthEvaluator)
        assert criterion.evaluator.min_length == 50
        assert criterion.description == "Description's length higher than 50"

    def test_catalog_summary(self, registry):
        assert registry.get_catalog_summary() == {
            "total_criteria": 3,
            "enabled_criteria": 3,
            "runtime_criteria": 1,
        }


@pytest.mark.unit
class TestCriteriaConfigLoader:
    """Tests for CriteriaConfigLoader"""

    def _write(self, content: str) -> Path:
        handle = tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False)
        with handle:
            handle.write(content)
        return Path(handle.name)

    def test_load_overrides(self):
        config_path = self._write("""
criteria:
  APP-DF02:
    params:
      min_length: 50
  APP-R00:
    enabled: false
""")
        try:
            overrides = CriteriaConfigLoader(config_path).load_overrides()
        finally:
            config_path.unlink()

        assert overrides["APP-DF02"] == {"reference": "APP-DF02", "parameters": {"min_length": 50}}
        assert overrides["APP-R00"] == {"reference": "APP-R00", "enabled": False}

    def test_load_definitions_on_defaults(self):
        config_path = self._write("""
criteria:
  APP-R00:
    enabled: false
  APP-DF03:
    type: naming_convention
    field: description
    description: Description starts with a capital letter
    params:
      pattern: "^[A-Z].*"
""")
        try:
            definitions = CriteriaConfigLoader(config_path).load_definitions(default_criteria())
        finally:
            config_path.unlink()

        registry = CriteriaRegistry(definitions)

        assert [c.reference for c in registry.get_criteria()] == ["APP-DF01", "APP-DF02", "APP-R00", "APP-DF03"]
        assert registry.get_enabled_criteria(True).references == ["APP-DF01", "APP-DF02", "APP-DF03"]

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            CriteriaConfigLoader("/nonexistent/criteria.yaml")

    def test_missing_criteria_section(self):
        config_path = self._write("rules: {}\n")
        try:
            with pytest.raises(ValueError) as exc_info:
                CriteriaConfigLoader(config_path).load_overrides()
        finally:
            config_path.unlink()
        assert "criteria" in str(exc_info.value)

    def test_unknown_type(self):
        config_path = self._write("criteria:\n  APP-X:\n    type: spelling\n")
        try:
            with pytest.raises(ValueError):
                CriteriaConfigLoader(config_path).load_overrides()
        finally:
            config_path.unlink()

    def test_non_boolean_enabled(self):
        config_path = self._write("criteria:\n  APP-DF01:\n    enabled: 'no way'\n")
        try:
            with pytest.raises(ValueError):
                CriteriaConfigLoader(config_path).load_overrides()
        finally:
            config_path.unlink()


@pytest.mark.unit
class TestMergeDefinitions:
    """Tests for merge_definitions"""

    def test_parameters_merged_key_by_key(self):
        base = default_criteria()
        merged = merge_definitions(base, {"APP-R00": {"reference": "APP-R00", "parameters": {"match_field": "app"}}})

        runtime = merged[2]
        assert runtime["parameters"] == {"match_field": "app", "max_results": 1}
        assert base[2]["parameters"]["match_field"] == "application"

    def test_new_criterion_requires_type(self):
        with pytest.raises(ValueError):
            merge_definitions(default_criteria(), {"APP-NEW": {"reference": "APP-NEW"}})

    def test_runtime_override_flag(self):
        merged = merge_definitions(
            default_criteria(),
            {"APP-DF02": {"reference": "APP-DF02", "at_runtime": True}},
        )
        registry = CriteriaRegistry(merged)
        assert registry.get_enabled_criteria(False).references == ["APP-DF01"]

    def test_runtime_evaluator_class(self):
        registry = CriteriaRegistry(default_criteria())
        assert isinstance(registry.get_criteria()[2].evaluator, RuntimeUsageEvaluator)

    def test_added_runtime_criterion_scoped_to_application_id(self):
        merged = merge_definitions(default_criteria(), {"APP-R01": {"reference": "APP-R01", "evaluator_type": "runtime_usage"}})

        evaluator = CriteriaRegistry(merged).get_criteria()[3].evaluator

        assert evaluator.field_name == "runtime_key"
        assert evaluator.get_value(Application(id="app-a", name="Billing - Invoicing - FR")) == "app-a"

    def test_added_local_criterion_defaults_to_name(self):
        merged = merge_definitions(
            default_criteria(),
            {"APP-DF03": {"reference": "APP-DF03", "evaluator_type": "min_length", "parameters": {"min_length": 3}}},
        )

        assert CriteriaRegistry(merged).get_criteria()[3].evaluator.field_name == "name"

    def test_runtime_evaluator_cannot_be_local(self):
        merged = merge_definitions(default_criteria(), {"APP-R00": {"reference": "APP-R00", "at_runtime": False}})

        with pytest.raises(ValueError) as exc_info:
            CriteriaRegistry(merged).get_enabled_criteria(False)
        assert "APP-R00" in str(exc_info.value)

    def test_builder_returns_a_copy(self):
        builder = CriteriaConfigBuilder().add_min_length("APP-DF02", 30)

        definitions = builder.build()
        definitions.append({"reference": "APP-X"})

        assert [d["reference"] for d in builder.build()] == ["APP-DF02"]
