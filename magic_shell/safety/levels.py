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

"""Severity scale and user-configured safety levels."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class Severity(Enum):
    """Severity tier of a command, totally ordered low < medium < high < critical."""

    LOW = "low"  # State-changing but routine (installs, checkouts)
    MEDIUM = "medium"  # Privileged or mutating operations
    HIGH = "high"  # Broad destructive operations that may be intentional
    CRITICAL = "critical"  # Irreversible, whole-system destruction

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


# Numeric ordering for severity comparisons
_SEVERITY_ORDER = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class SafetyLevel(Enum):
    """User-configured strictness controlling which severities need confirmation."""

    STRICT = "strict"  # Any matched rule requires confirmation
    MODERATE = "moderate"  # HIGH/CRITICAL require confirmation (default)
    RELAXED = "relaxed"  # Only CRITICAL requires confirmation

    @property
    def summary(self) -> str:
        return _LEVEL_SUMMARIES[self]


_LEVEL_SUMMARIES = {
    SafetyLevel.STRICT: "Confirm all potentially dangerous commands",
    SafetyLevel.MODERATE: "Confirm high/critical severity commands (default)",
    SafetyLevel.RELAXED: "Only confirm critical commands",
}

DEFAULT_SAFETY_LEVEL = SafetyLevel.MODERATE


def parse_safety_level(value: Any) -> Optional[SafetyLevel]:
    """Parse a safety level from a string or enum; None if unrecognized."""
    if isinstance(value, SafetyLevel):
        return value
    if not isinstance(value, str):
        return None
    try:
        return SafetyLevel(value.strip().lower())
    except ValueError:
        return None


def resolve_safety_level(value: Any) -> SafetyLevel:
    """Resolve a safety level, falling back to MODERATE for unknown values."""
    return parse_safety_level(value) or DEFAULT_SAFETY_LEVEL
