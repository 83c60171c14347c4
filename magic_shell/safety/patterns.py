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

"""Catalog of command risk rules.

The rule table itself lives in ``rules.yaml`` next to this module. It is
parsed once, compiled, and shared through :func:`get_catalog`. Rules are
frozen; nothing mutates the catalog after loading.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import yaml

from magic_shell.safety.levels import Severity

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).with_name("rules.yaml")


@dataclass(frozen=True)
class Rule:
    """A single risk rule: a case-insensitive regex predicate in one tier."""

    id: str
    severity: Severity
    pattern: re.Pattern
    description: str = ""

    def matches(self, normalized_command: str) -> bool:
        return self.pattern.search(normalized_command) is not None


class PatternCatalog:
    """Ordered, immutable table of risk rules grouped by severity tier."""

    def __init__(self, rules: List[Rule]):
        tiers: Dict[Severity, List[Rule]] = {severity: [] for severity in Severity}
        for rule in rules:
            tiers[rule.severity].append(rule)
        self._tiers: Dict[Severity, Tuple[Rule, ...]] = {
            severity: tuple(tier_rules) for severity, tier_rules in tiers.items()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatternCatalog":
        """Build a catalog from the parsed YAML structure.

        Entries with an unknown tier or an invalid regex are skipped with a
        warning rather than failing the whole table.
        """
        rules: List[Rule] = []
        tiers = (data or {}).get("tiers", {}) or {}

        for tier_name, entries in tiers.items():
            try:
                severity = Severity(str(tier_name).lower())
            except ValueError:
                logger.warning(f"Unknown severity tier in rule table: {tier_name}")
                continue

            for entry in entries or []:
                if not isinstance(entry, dict):
                    logger.warning(f"Skipping malformed {tier_name} rule: {entry!r}")
                    continue
                rule_id = str(entry.get("id", "")).strip()
                pattern = entry.get("pattern")
                if not rule_id or not pattern:
                    logger.warning(f"Skipping incomplete {tier_name} rule: {entry}")
                    continue
                try:
                    compiled = re.compile(str(pattern), re.IGNORECASE)
                except re.error as e:
                    logger.warning(f"Invalid regex for rule {rule_id}: {pattern} - {e}")
                    continue
                rules.append(
                    Rule(
                        id=rule_id,
                        severity=severity,
                        pattern=compiled,
                        description=str(entry.get("description", "")),
                    )
                )

        return cls(rules)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "PatternCatalog":
        """Load a catalog from a YAML rule file."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        catalog = cls.from_dict(data)
        logger.debug(f"Loaded {len(catalog)} risk rules from {path}")
        return catalog

    def rules_for(self, severity: Severity) -> Tuple[Rule, ...]:
        """Return the rules of one tier, in evaluation order."""
        return self._tiers[severity]

    def get(self, rule_id: str) -> Optional[Rule]:
        for rule in self:
            if rule.id == rule_id:
                return rule
        return None

    def __iter__(self) -> Iterator[Rule]:
        for severity in (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW):
            yield from self._tiers[severity]

    def __len__(self) -> int:
        return sum(len(tier) for tier in self._tiers.values())


@lru_cache(maxsize=1)
def get_catalog() -> PatternCatalog:
    """Get the shared catalog built from the bundled rule table."""
    return PatternCatalog.from_yaml(DEFAULT_RULES_PATH)
