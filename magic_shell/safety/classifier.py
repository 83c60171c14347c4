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

"""Risk classification of shell commands.

This module provides:
- ``SafetyVerdict``, the immutable result of classifying one command
- ``RiskClassifier``, which evaluates a command against the pattern catalog
  and the user's blocked/confirmed lists

Evaluation order (it determines the reported severity):

1. Blocked list: any blocked substring is immediately CRITICAL.
2. Critical rules.
3. High rules, only when no critical rule matched.
4. Medium rules, always; they never lower an existing severity.
5. Low rules, only when nothing matched so far.
6. Safety level decides whether the severity is dangerous.
7. A confirmed pattern clears ``is_dangerous`` unless the severity is CRITICAL.

``classify`` never raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from magic_shell.config.settings import ShellConfig
from magic_shell.safety.levels import SafetyLevel, Severity
from magic_shell.safety.patterns import PatternCatalog, get_catalog

logger = logging.getLogger(__name__)

BLOCKED_REASON_PREFIX = "Command contains blocked pattern: "

SEVERITY_MESSAGES: Dict[Severity, str] = {
    Severity.CRITICAL: "This command could cause irreversible damage to your system!",
    Severity.HIGH: "This command may cause significant changes or data loss.",
    Severity.MEDIUM: "This command requires elevated privileges or modifies system state.",
    Severity.LOW: "This command may make changes worth reviewing.",
}


@dataclass(frozen=True)
class SafetyVerdict:
    """Result of classifying a single command."""

    is_dangerous: bool
    severity: Severity = Severity.LOW
    reason: Optional[str] = None
    patterns: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def blocked(self) -> bool:
        return bool(self.reason and self.reason.startswith(BLOCKED_REASON_PREFIX))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_dangerous": self.is_dangerous,
            "severity": self.severity.value,
            "reason": self.reason,
            "patterns": list(self.patterns),
        }


def normalize_command(command: Any) -> str:
    """Trim and lower-case a command for matching only."""
    if not isinstance(command, str):
        return ""
    return command.strip().lower()


def _first_contained(normalized: str, entries: Iterable[str]) -> Optional[str]:
    """Return the first non-blank entry contained (case-insensitively) in the command."""
    for entry in entries:
        if not isinstance(entry, str) or not entry.strip():
            continue
        if entry.lower() in normalized:
            return entry
    return None


def _coerce_config(config: Any) -> ShellConfig:
    """Accept a ShellConfig, a plain mapping or None; fall back to defaults."""
    if isinstance(config, ShellConfig):
        return config
    if isinstance(config, dict):
        try:
            return ShellConfig.model_validate(config)
        except ValidationError as e:
            logger.warning(f"Invalid safety config, using defaults: {e}")
    return ShellConfig()


def is_dangerous_at_level(
    severity: Severity, matched_any: bool, safety_level: SafetyLevel
) -> bool:
    """Apply the safety-level gate to a classified severity."""
    if safety_level == SafetyLevel.STRICT:
        return matched_any
    if safety_level == SafetyLevel.RELAXED:
        return severity == Severity.CRITICAL
    return severity >= Severity.HIGH


class RiskClassifier:
    """Classifies commands against a pattern catalog and user overrides.

    Stateless apart from the (immutable) catalog, so one instance can be
    shared freely between sessions.
    """

    def __init__(self, catalog: Optional[PatternCatalog] = None):
        self.catalog = catalog if catalog is not None else get_catalog()

    def match_rules(self, normalized: str) -> Tuple[Severity, List[str]]:
        """Run the tiered rule evaluation on an already-normalized command.

        Returns:
            Tuple of (highest matched severity or LOW, matched rule ids)
        """
        matched: List[str] = []
        severity = Severity.LOW

        for rule in self.catalog.rules_for(Severity.CRITICAL):
            if rule.matches(normalized):
                matched.append(rule.id)
                severity = Severity.CRITICAL

        if severity != Severity.CRITICAL:
            for rule in self.catalog.rules_for(Severity.HIGH):
                if rule.matches(normalized):
                    matched.append(rule.id)
                    severity = Severity.HIGH

        for rule in self.catalog.rules_for(Severity.MEDIUM):
            if rule.matches(normalized):
                matched.append(rule.id)
                if severity == Severity.LOW:
                    severity = Severity.MEDIUM

        if not matched:
            for rule in self.catalog.rules_for(Severity.LOW):
                if rule.matches(normalized):
                    matched.append(rule.id)

        return severity, matched

    def classify(self, command: Any, config: Optional[ShellConfig] = None) -> SafetyVerdict:
        """Classify a command.

        Args:
            command: Command text to classify (never modified)
            config: User safety policy; defaults when None

        Returns:
            SafetyVerdict for the command
        """
        config = _coerce_config(config)
        normalized = normalize_command(command)

        blocked = _first_contained(normalized, config.blocked_commands)
        if blocked is not None:
            logger.info(f"Command matched blocked pattern: {blocked!r}")
            return SafetyVerdict(
                is_dangerous=True,
                severity=Severity.CRITICAL,
                reason=f"{BLOCKED_REASON_PREFIX}{blocked}",
                patterns=(blocked,),
            )

        severity, matched = self.match_rules(normalized)
        is_dangerous = is_dangerous_at_level(severity, bool(matched), config.safety_level)

        confirmed = _first_contained(normalized, config.confirmed_dangerous_patterns)
        if confirmed is not None and severity != Severity.CRITICAL:
            if is_dangerous:
                logger.debug(f"Previously confirmed pattern {confirmed!r} allows command")
            is_dangerous = False

        verdict = SafetyVerdict(
            is_dangerous=is_dangerous,
            severity=severity,
            reason=SEVERITY_MESSAGES[severity] if is_dangerous else None,
            patterns=tuple(matched),
        )

        if verdict.is_dangerous:
            logger.info(
                f"Dangerous command [{severity.value}] at {config.safety_level.value}: "
                f"{', '.join(matched)}"
            )
        else:
            logger.debug(f"Classified command [{severity.value}] matched={matched}")
        return verdict


def classify_command(command: Any, config: Optional[ShellConfig] = None) -> SafetyVerdict:
    """Classify a command with the shared catalog."""
    return RiskClassifier().classify(command, config)
