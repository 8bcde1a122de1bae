"""Unit tests for profile document merging and integration validation."""

import pytest

from qiclife.errors import DomainValidationError
from qiclife.profile.service import merge_profile_json, validate_integrations


class TestMergeProfile:
    def test_empty_update_clears(self):
        assert merge_profile_json({"name": "Aisha", "age": 30}, {}) == {}

    def test_top_level_keys_replaced(self):
        merged = merge_profile_json({"name": "Aisha", "age": 30}, {"age": 31})
        assert merged == {"name": "Aisha", "age": 31}

    def test_arrays_are_replaced_not_appended(self):
        merged = merge_profile_json({"insurance_preferences": ["car", "home"]}, {"insurance_preferences": ["travel"]})
        assert merged["insurance_preferences"] == ["travel"]

    def test_preferences_merged_one_level(self):
        current = {"preferences": {"theme": "dark", "notifications": {"email": True}}}
        merged = merge_profile_json(current, {"preferences": {"language": "ar", "notifications": {"sms": True}}})
        assert merged["preferences"] == {"theme": "dark", "language": "ar", "notifications": {"sms": True}}

    def test_settings_merged(self):
        merged = merge_profile_json({"settings": {"a": 1}}, {"settings": {"b": 2}})
        assert merged["settings"] == {"a": 1, "b": 2}

    def test_other_objects_replaced(self):
        merged = merge_profile_json({"lifestyle": {"a": 1}}, {"lifestyle": {"b": 2}})
        assert merged["lifestyle"] == {"b": 2}

    def test_current_not_mutated(self):
        current = {"settings": {"a": 1}}
        merge_profile_json(current, {"settings": {"b": 2}})
        assert current == {"settings": {"a": 1}}


class TestValidateIntegrations:
    def test_three_valid(self):
        selected = ["QIC Mobile App", "QIC Claims Portal", "QIC Financial Planner"]
        assert validate_integrations(selected) == selected

    @pytest.mark.parametrize("selected", [None, [], ["QIC Mobile App"], "QIC Mobile App"])
    def test_wrong_count_rejected(self, selected):
        with pytest.raises(DomainValidationError, match="Exactly 3 integrations must be selected"):
            validate_integrations(selected)

    def test_unknown_names_listed(self):
        with pytest.raises(DomainValidationError) as exc_info:
            validate_integrations(["QIC Mobile App", "Fax Portal", "Pager"])
        assert str(exc_info.value) == "Invalid integrations selected"
        assert exc_info.value.details == {"invalid": ["Fax Portal", "Pager"]}

    def test_custom_message(self):
        with pytest.raises(DomainValidationError, match="in Step 6"):
            validate_integrations([], "Exactly 3 integrations must be selected in Step 6")
