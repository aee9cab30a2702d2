"""Tests for rule normalization."""

import pytest

from formstate import Rule, normalize_rules


def required(value, name, form):
    return bool(value) or "required"


class TestNormalizeRules:
    def test_none_is_empty(self):
        assert normalize_rules(None) == []

    def test_bare_callable(self):
        assert normalize_rules(required) == [Rule(required)]

    def test_list_of_callables(self):
        assert normalize_rules([required, required]) == [Rule(required), Rule(required)]

    def test_mapping_shapes(self):
        rules = normalize_rules(
            [
                {"rule": required},
                {"rule": required, "auto_validate": False},
                {"rule": required, "autoValidate": True},
            ]
        )
        assert rules == [
            Rule(required, None),
            Rule(required, False),
            Rule(required, True),
        ]

    def test_single_mapping(self):
        assert normalize_rules({"rule": required, "autoValidate": False}) == [Rule(required, False)]

    def test_idempotent(self):
        once = normalize_rules([required, {"rule": required, "auto_validate": False}])
        assert normalize_rules(once) == once

    def test_unspecified_auto_validate_runs_automatically(self):
        assert Rule(required).runs_automatically
        assert Rule(required, True).runs_automatically
        assert not Rule(required, False).runs_automatically

    def test_rejects_non_rules(self):
        with pytest.raises(TypeError):
            normalize_rules([42])
