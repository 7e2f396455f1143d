"""
Tests for plugin specs and spec list validation.

This test suite covers:
1. Spec modes (multi-instance, default, identified)
2. Declared form conversion
3. Each validation rule
"""

import pytest

from plughost.plugin.errors import ValidationError
from plughost.plugin.spec import PluginSpec, validate_specs


class TestPluginSpec:
    """Test PluginSpec modes and conversion."""

    def test_multi_instance_mode(self):
        """A spec without id or default should be multi-instance."""
        assert PluginSpec(type="Filter").is_multi_instance
        assert not PluginSpec(type="Auth", plugin="X", is_default=True).is_multi_instance
        assert not PluginSpec(type="Auth", plugin="X", id="alt").is_multi_instance
        assert not PluginSpec(type="Auth", plugin="X").is_multi_instance

    def test_registry_id(self):
        """Defaults should register under None."""
        assert PluginSpec(type="Auth", plugin="X", is_default=True).registry_id is None
        assert PluginSpec(type="Auth", plugin="X", id="alt").registry_id == "alt"

    def test_to_dict_only_declared_fields(self):
        """to_dict should drop empty fields and transient state."""
        spec = PluginSpec(type="Auth", plugin="X", is_default=True)
        spec.capability = object
        assert spec.to_dict() == {"type": "Auth", "plugin": "X", "is_default": True}
        assert PluginSpec(type="Filter").to_dict() == {"type": "Filter"}

    def test_transient_fields_ignored_in_equality(self):
        """Resolved capability and instance should not affect equality."""
        a = PluginSpec(type="Auth", plugin="X", id="a")
        b = PluginSpec(type="Auth", plugin="X", id="a")
        b.capability = object
        assert a == b

    def test_from_dict(self):
        """from_dict should accept both is_default and default keys."""
        spec = PluginSpec.from_dict({"type": "Auth", "plugin": "X", "default": True})
        assert spec.is_default
        assert spec.plugin == "X"

        spec = PluginSpec.from_dict(
            {"type": "Auth", "plugin": "Y", "id": "alt", "comment": "ignored"}
        )
        assert spec == PluginSpec(type="Auth", plugin="Y", id="alt")

    def test_from_dict_empty_strings_become_none(self):
        """Empty strings should be treated as absent."""
        spec = PluginSpec.from_dict({"type": "Filter", "plugin": "", "id": ""})
        assert spec.plugin is None
        assert spec.id is None
        assert spec.is_multi_instance

    def test_from_dict_wrong_types(self):
        """from_dict should reject non-string names and non-bool defaults."""
        with pytest.raises(ValidationError, match="'id' field must be a string"):
            PluginSpec.from_dict({"type": "Auth", "id": 3})
        with pytest.raises(ValidationError, match="must be a boolean"):
            PluginSpec.from_dict({"type": "Auth", "is_default": "yes"})
        with pytest.raises(ValidationError, match="must be a table"):
            PluginSpec.from_dict(["Auth"])

    def test_str_is_json(self):
        """str() should render the declared form."""
        assert str(PluginSpec(type="Filter")) == '{"type": "Filter"}'


class TestValidateSpecs:
    """Test validation rules."""

    def test_empty_and_none_are_valid(self):
        validate_specs(None)
        validate_specs([])

    def test_valid_mixed_list(self):
        """Multi, default and identified specs may share a type."""
        validate_specs(
            [
                PluginSpec(type="Filter"),
                PluginSpec(type="Auth", plugin="X", is_default=True),
                PluginSpec(type="Auth", plugin="Y", id="alt"),
                PluginSpec(type="Auth", plugin="Z", id="other"),
                PluginSpec(type="Auth"),
                PluginSpec(type="Executor", plugin="X", is_default=True),
            ]
        )

    def test_same_id_different_types(self):
        """Ids only need to be unique within a type."""
        validate_specs(
            [
                PluginSpec(type="Auth", plugin="X", id="main"),
                PluginSpec(type="Executor", plugin="X", id="main"),
            ]
        )

    def test_missing_type(self):
        with pytest.raises(ValidationError, match="Type cannot be null or empty"):
            validate_specs([PluginSpec(type="", plugin="X", is_default=True)])

    def test_duplicate_multi_type(self):
        """Two multi-instance specs for one type should be rejected."""
        with pytest.raises(ValidationError, match="Duplicate multi-type"):
            validate_specs([PluginSpec(type="Auth"), PluginSpec(type="Auth")])

    def test_default_with_id(self):
        with pytest.raises(ValidationError, match="Default configs cannot have an ID"):
            validate_specs([PluginSpec(type="Auth", plugin="X", id="a", is_default=True)])

    def test_plugin_without_id_or_default(self):
        """Naming a plugin without an id or default is neither mode."""
        with pytest.raises(ValidationError, match="must have an ID if it is not the default"):
            validate_specs([PluginSpec(type="Auth", plugin="X")])

    def test_plugin_without_id_after_valid_specs(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_specs(
                [
                    PluginSpec(type="Auth", plugin="X", is_default=True),
                    PluginSpec(type="Auth"),
                    PluginSpec(type="Auth", plugin="Y"),
                ]
            )
        assert '"plugin": "Y"' in str(exc_info.value)

    def test_duplicate_id(self):
        with pytest.raises(ValidationError, match="Duplicate ID found"):
            validate_specs(
                [
                    PluginSpec(type="Auth", plugin="X", id="a"),
                    PluginSpec(type="Auth", plugin="Y", id="a"),
                ]
            )

    def test_duplicate_default(self):
        with pytest.raises(ValidationError, match="more than one default"):
            validate_specs(
                [
                    PluginSpec(type="Auth", plugin="X", is_default=True),
                    PluginSpec(type="Auth", plugin="Y", is_default=True),
                ]
            )

    def test_error_names_offending_spec(self):
        """The error message should include the offending spec."""
        with pytest.raises(ValidationError) as exc_info:
            validate_specs(
                [
                    PluginSpec(type="Auth", plugin="X", id="a"),
                    PluginSpec(type="Auth", plugin="Second", id="a"),
                ]
            )
        assert "Second" in str(exc_info.value)

    def test_violation_inside_larger_list(self):
        """A violation is found regardless of the surrounding valid specs."""
        specs = [
            PluginSpec(type="Filter"),
            PluginSpec(type="Auth", plugin="X", is_default=True),
            PluginSpec(type="Executor", plugin="E", id="local"),
            PluginSpec(type="Filter"),
        ]
        with pytest.raises(ValidationError, match="Duplicate multi-type"):
            validate_specs(specs)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_specs([PluginSpec(type="")])
