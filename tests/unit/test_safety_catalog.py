# Copyright 2025 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.


"""Tests for the severity scale, safety levels and the rule catalog."""

import pytest

from magic_shell.safety.levels import (
    DEFAULT_SAFETY_LEVEL,
    SafetyLevel,
    Severity,
    _SEVERITY_ORDER,
    parse_safety_level,
    resolve_safety_level,
)
from magic_shell.safety.patterns import PatternCatalog, get_catalog


class TestSeverity:
    """Tests for Severity ordering."""

    def test_severity_order_completeness(self):
        for severity in Severity:
            assert severity in _SEVERITY_ORDER

    def test_total_order(self):
        assert Severity.LOW < Severity.MEDIUM < Severity.HIGH < Severity.CRITICAL
        assert Severity.CRITICAL >= Severity.HIGH
        assert Severity.MEDIUM <= Severity.MEDIUM
        assert not Severity.HIGH > Severity.CRITICAL

    def test_max_picks_highest(self):
        assert max([Severity.MEDIUM, Severity.CRITICAL, Severity.LOW]) == Severity.CRITICAL

    def test_comparison_with_other_types_fails(self):
        with pytest.raises(TypeError):
            Severity.LOW < 1  # noqa: B015


class TestSafetyLevel:
    """Tests for parsing user-supplied safety levels."""

    def test_default_is_moderate(self):
        assert DEFAULT_SAFETY_LEVEL == SafetyLevel.MODERATE

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("strict", SafetyLevel.STRICT),
            ("MODERATE", SafetyLevel.MODERATE),
            ("  relaxed ", SafetyLevel.RELAXED),
            (SafetyLevel.STRICT, SafetyLevel.STRICT),
        ],
    )
    def test_parse_known_levels(self, value, expected):
        assert parse_safety_level(value) == expected

    @pytest.mark.parametrize("value", ["paranoid", "", None, 3])
    def test_parse_unknown_levels(self, value):
        assert parse_safety_level(value) is None

    def test_resolve_falls_back_to_moderate(self):
        assert resolve_safety_level("yolo") == SafetyLevel.MODERATE
        assert resolve_safety_level("relaxed") == SafetyLevel.RELAXED

    def test_every_level_has_summary(self):
        for level in SafetyLevel:
            assert level.summary


class TestPatternCatalog:
    """Tests for the bundled rule table."""

    def test_catalog_is_shared(self):
        assert get_catalog() is get_catalog()

    def test_every_tier_has_rules(self):
        catalog = get_catalog()
        for severity in Severity:
            assert len(catalog.rules_for(severity)) > 0

    def test_rule_ids_are_unique(self):
        ids = [rule.id for rule in get_catalog()]
        assert len(ids) == len(set(ids))

    def test_rules_are_tagged_with_their_tier(self):
        catalog = get_catalog()
        for severity in Severity:
            assert all(rule.severity == severity for rule in catalog.rules_for(severity))

    def test_iteration_runs_critical_first(self):
        rules = list(get_catalog())
        assert rules[0].severity == Severity.CRITICAL
        assert rules[-1].severity == Severity.LOW

    def test_get_rule_by_id(self):
        rule = get_catalog().get("rm-root")
        assert rule is not None
        assert rule.severity == Severity.CRITICAL
        assert rule.matches("rm -rf /")
        assert get_catalog().get("no-such-rule") is None

    def test_patterns_match_case_insensitively(self):
        rule = get_catalog().get("chmod-recursive")
        assert rule.matches("chmod -r 755 dir")
        assert rule.matches("chmod -R 755 dir")

    def test_rules_are_frozen(self):
        rule = get_catalog().get("sudo")
        with pytest.raises(AttributeError):
            rule.id = "other"

    def test_from_dict_skips_bad_entries(self):
        catalog = PatternCatalog.from_dict(
            {
                "tiers": {
                    "high": [
                        {"id": "good", "pattern": "danger"},
                        {"id": "broken", "pattern": "(unclosed"},
                        {"id": "", "pattern": "x"},
                        "not-a-mapping",
                    ],
                    "extreme": [{"id": "unknown-tier", "pattern": "x"}],
                }
            }
        )
        assert [rule.id for rule in catalog] == ["good"]

    def test_from_dict_empty(self):
        assert len(PatternCatalog.from_dict({})) == 0

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(
            "tiers:\n"
            "  medium:\n"
            "    - id: touch-etc\n"
            "      pattern: 'touch\\s+/etc'\n"
            "      description: Touch a system file\n"
        )
        catalog = PatternCatalog.from_yaml(path)
        rule = catalog.get("touch-etc")
        assert rule.severity == Severity.MEDIUM
        assert rule.description == "Touch a system file"
        assert rule.matches("touch /etc/hosts")
