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

"""Policy gate: turns a SafetyVerdict into an execution decision.

Every entry point (one-shot CLI preview, one-shot execute, interactive
session) goes through :func:`decide`, so the same verdict always leads to
the same action for a given mode.

    PREVIEW      -> always PREVIEW, never runs anything
    EXECUTE      -> REFUSE if dangerous above LOW, else EXECUTE
    INTERACTIVE  -> EXECUTE (auto-approved) if safe, else CONFIRM
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from magic_shell.core.errors import PolicyRefusalError
from magic_shell.safety.classifier import SafetyVerdict
from magic_shell.safety.levels import Severity

logger = logging.getLogger(__name__)

REFUSAL_HINT = "Use -n to preview, or run the command manually."


class ExecutionMode(Enum):
    """Calling context of a classification."""

    PREVIEW = "preview"  # Dry run: show the verdict only
    EXECUTE = "execute"  # Non-interactive direct execution
    INTERACTIVE = "interactive"  # Human available to confirm


class GateAction(Enum):
    """What the caller must do with the command."""

    PREVIEW = "preview"
    REFUSE = "refuse"
    EXECUTE = "execute"
    CONFIRM = "confirm"


@dataclass(frozen=True)
class GateDecision:
    """Decision for one command in one mode."""

    action: GateAction
    verdict: SafetyVerdict
    reason: str

    @property
    def auto_approved(self) -> bool:
        return self.action == GateAction.EXECUTE

    @property
    def requires_confirmation(self) -> bool:
        return self.action == GateAction.CONFIRM


def decide(verdict: SafetyVerdict, mode: ExecutionMode) -> GateDecision:
    """Apply the execution policy for ``mode`` to a verdict."""
    if mode == ExecutionMode.PREVIEW:
        reason = verdict.reason or "Command appears safe"
        return GateDecision(GateAction.PREVIEW, verdict, reason)

    if mode == ExecutionMode.EXECUTE:
        if verdict.is_dangerous and verdict.severity != Severity.LOW:
            logger.warning(
                f"Refusing unattended execution of {verdict.severity.value} severity command"
            )
            return GateDecision(
                GateAction.REFUSE,
                verdict,
                f"{verdict.reason} {REFUSAL_HINT}" if verdict.reason else REFUSAL_HINT,
            )
        return GateDecision(GateAction.EXECUTE, verdict, "Command approved for execution")

    if verdict.is_dangerous:
        return GateDecision(
            GateAction.CONFIRM,
            verdict,
            verdict.reason or "Command requires confirmation",
        )
    return GateDecision(GateAction.EXECUTE, verdict, "Auto-approved")


def enforce(decision: GateDecision, command: str) -> None:
    """Raise PolicyRefusalError when the decision refuses the command."""
    if decision.action == GateAction.REFUSE:
        raise PolicyRefusalError(command, decision.verdict)
